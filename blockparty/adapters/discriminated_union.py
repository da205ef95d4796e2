from typing import Dict, Iterable, List, Optional

from blockparty.models import (
    ArrayShape,
    ConstantShape,
    DiscriminatedCase,
    DiscriminatedUnionInfo,
    FunctionShape,
    ObjectShape,
    PropDefinition,
    TupleShape,
    UnionShape,
)


def find_property(shape: ObjectShape, name: str) -> Optional[PropDefinition]:
    for prop in shape.properties:
        if prop.name == name:
            return prop
    return None


def detect_discriminated_union(shape) -> Optional[DiscriminatedUnionInfo]:
    """Recognise ``{kind: 'a', ...} | {kind: 'b', ...}`` style unions.

    Every member must be an object carrying the same constant-typed field,
    with a different constant in each member. The first such field, in the
    first member's declaration order, is the discriminator.
    """
    if not isinstance(shape, UnionShape) or len(shape.types) < 2:
        return None
    if not all(isinstance(member, ObjectShape) for member in shape.types):
        return None

    for candidate in shape.types[0].properties:
        if not isinstance(candidate.shape, ConstantShape):
            continue
        values = []
        for member in shape.types:
            prop = find_property(member, candidate.name)
            if prop is None or not isinstance(prop.shape, ConstantShape):
                break
            values.append(prop.shape.value)
        else:
            if len(set(values)) == len(values):
                return DiscriminatedUnionInfo(
                    discriminator=candidate.name,
                    cases=[
                        DiscriminatedCase(value=value, properties=member.properties)
                        for value, member in zip(values, shape.types)
                    ],
                )
    return None


def _child_shapes(shape):
    if isinstance(shape, (ObjectShape, FunctionShape)):
        members = shape.properties if isinstance(shape, ObjectShape) else shape.parameters
        return [(prop.name, prop.shape) for prop in members]
    if isinstance(shape, ArrayShape):
        return [("[]", shape.element_type)]
    if isinstance(shape, (TupleShape, UnionShape)):
        return [(f"[{i}]", member) for i, member in enumerate(shape.types)]
    return []


def collect_discriminated_unions(props: Iterable[PropDefinition]) -> Dict[str, DiscriminatedUnionInfo]:
    """Every discriminated union in a props tree, keyed by its path.

    Paths join field names with dots; ``[]`` marks an array element and
    ``[i]`` a tuple or union position, e.g. ``shapes[][0].fill``.
    """
    found: Dict[str, DiscriminatedUnionInfo] = {}

    def visit(path: str, shape):
        info = detect_discriminated_union(shape)
        if info is not None:
            found[path] = info
        for segment, child in _child_shapes(shape):
            visit(f"{path}{segment}" if segment.startswith("[") else f"{path}.{segment}", child)

    for prop in props:
        visit(prop.name, prop.shape)
    return found


def adapt_discriminated_unions(props: List[PropDefinition]) -> List[dict]:
    return [{"path": path, **info.to_dict()} for path, info in collect_discriminated_unions(props).items()]
