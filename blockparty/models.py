from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class _Shape(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PrimitiveShape(_Shape):
    kind: Literal["primitive"] = "primitive"
    syntax: str


class ConstantShape(_Shape):
    kind: Literal["constant"] = "constant"
    syntax: str
    value: str


class ArrayShape(_Shape):
    kind: Literal["array"] = "array"
    syntax: str
    element_type: "PropShape" = Field(alias="elementType")


class TupleShape(_Shape):
    kind: Literal["tuple"] = "tuple"
    syntax: str
    types: Tuple["PropShape", ...] = ()


class UnionShape(_Shape):
    kind: Literal["union"] = "union"
    syntax: str
    types: Tuple["PropShape", ...] = ()


class ObjectShape(_Shape):
    kind: Literal["object"] = "object"
    syntax: str
    properties: Tuple["PropDefinition", ...] = ()


class FunctionShape(_Shape):
    kind: Literal["function"] = "function"
    syntax: str
    parameters: Tuple["PropDefinition", ...] = ()


PropShape = Annotated[
    Union[PrimitiveShape, ConstantShape, ArrayShape, TupleShape, UnionShape, ObjectShape, FunctionShape],
    Field(discriminator="kind"),
]


class PropDefinition(BaseModel):
    """One named member of a props object or of a function parameter list.

    ``optional`` only reflects a ``?`` marker in the source; ``description``
    is the cleaned JSDoc text and is left out of the serialized record when
    there is none.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    shape: PropShape = Field(alias="type")
    optional: bool = False
    description: Optional[str] = None

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


for _model in (ArrayShape, TupleShape, UnionShape, ObjectShape, FunctionShape, PropDefinition):
    _model.model_rebuild()  # necessary for recursive types


class DiscriminatedCase(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    properties: Tuple[PropDefinition, ...] = ()


class DiscriminatedUnionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    discriminator: str
    cases: Tuple[DiscriminatedCase, ...] = ()

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BlockMetadata(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class BlockInfo(BaseModel):
    name: str
    path: str
    props: List[PropDefinition] = []
    description: Optional[str] = None

    def to_dict(self):
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
