import json
import logging
import re
from typing import List, Optional, Tuple

from tree_sitter import Node

from blockparty.base.props_extractor import PropsExtractor
from blockparty.extractors.declaration_index import TYPE_REFERENCE_TYPES, DeclarationIndex, walk
from blockparty.models import (
    ArrayShape,
    ConstantShape,
    FunctionShape,
    ObjectShape,
    PrimitiveShape,
    PropDefinition,
    PropShape,
    TupleShape,
    UnionShape,
)
from blockparty.program import Program
from blockparty.utils.source_file import SourceFile

logger = logging.getLogger(__name__)

JSDOC_OPEN = re.compile(r"^/\*\*")
JSDOC_CLOSE = re.compile(r"\*/$")
JSDOC_LINE_STAR = re.compile(r"^\* ?")

# (file path, declaration start byte) for every declaration being expanded
ExpansionStack = Tuple[Tuple[str, int], ...]


def clean_jsdoc(comment_text: str) -> Optional[str]:
    body = JSDOC_OPEN.sub("", comment_text, count=1)
    body = JSDOC_CLOSE.sub("", body, count=1)
    lines = [JSDOC_LINE_STAR.sub("", line.strip(), count=1) for line in body.split("\n")]
    description = " ".join(line for line in lines if line).strip()
    return description or None


class TypeScriptPropsExtractor(PropsExtractor):
    FUNCTION_DECLARATION_TYPES = {"function_declaration", "generator_function_declaration"}
    FUNCTION_VALUE_TYPES = {"arrow_function", "function_expression", "function", "generator_function"}
    PARAMETER_TYPES = {"required_parameter", "optional_parameter"}
    CONSTANT_LITERAL_TYPES = {"string", "number", "true", "false", "null", "unary_expression"}
    MAX_DEPTH = 64

    def __init__(self, program: Optional[Program] = None):
        self.program = program
        self.index = DeclarationIndex(program)
        self.all_props: List[PropDefinition] = []

    def get_text(self, node, source_file: SourceFile) -> str:
        return source_file.get_text(node)

    def has_child_type(self, node, child_type: str) -> bool:
        return any(c.type == child_type for c in node.children)

    def annotation_type(self, annotation: Optional[Node]) -> Optional[Node]:
        if annotation is None:
            return None
        for c in annotation.named_children:
            if c.type != "comment":
                return c
        return None

    # default export

    def find_default_export_function(self, root: Node, source_file: SourceFile) -> Optional[Node]:
        default_export = None
        for node in walk(root):
            if node.type != "export_statement" or not self.has_child_type(node, "default"):
                continue
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                if declaration.type in self.FUNCTION_DECLARATION_TYPES:
                    default_export = declaration
                continue
            value = node.child_by_field_name("value")
            if value is not None:
                default_export = value

        if default_export is None:
            return None
        if default_export.type in self.FUNCTION_DECLARATION_TYPES or default_export.type in self.FUNCTION_VALUE_TYPES:
            return default_export
        if default_export.type == "identifier":
            return self.find_function_by_name(root, self.get_text(default_export, source_file), source_file)
        return None

    def find_function_by_name(self, root: Node, name: str, source_file: SourceFile) -> Optional[Node]:
        result = None
        for node in walk(root):
            if node.type in self.FUNCTION_DECLARATION_TYPES:
                name_node = node.child_by_field_name("name")
                if name_node is not None and self.get_text(name_node, source_file) == name:
                    result = node
            elif node.type == "variable_declarator":
                name_node = node.child_by_field_name("name")
                value = node.child_by_field_name("value")
                if (
                    name_node is not None
                    and name_node.type == "identifier"
                    and self.get_text(name_node, source_file) == name
                    and value is not None
                    and value.type in self.FUNCTION_VALUE_TYPES
                ):
                    result = value
        return result

    def get_props_type_node(self, func: Node) -> Optional[Node]:
        params = func.child_by_field_name("parameters")
        if params is None:
            return None
        first = next((p for p in params.named_children if p.type in self.PARAMETER_TYPES), None)
        if first is None:
            return None
        return self.annotation_type(first.child_by_field_name("type"))

    # shapes

    def build_shape(self, node: Node, source_file: SourceFile, stack: ExpansionStack = ()) -> PropShape:
        syntax = self.get_text(node, source_file)

        if node.type == "literal_type":
            literal = node.named_children[0] if node.named_children else None
            if literal is not None and literal.type in self.CONSTANT_LITERAL_TYPES:
                return ConstantShape(syntax=syntax, value=self.get_text(literal, source_file))
            return PrimitiveShape(syntax=syntax)
        if node.type in self.CONSTANT_LITERAL_TYPES - {"null", "unary_expression"}:
            return ConstantShape(syntax=syntax, value=syntax)

        if node.type == "tuple_type":
            elements = [c for c in node.named_children if c.type != "comment"]
            return TupleShape(syntax=syntax, types=[self.build_shape(el, source_file, stack) for el in elements])

        if node.type == "union_type":
            members = self.union_members(node)
            return UnionShape(syntax=syntax, types=[self.build_shape(m, source_file, stack) for m in members])

        if node.type == "array_type":
            element = self.annotation_type(node)
            if element is not None:
                return ArrayShape(syntax=syntax, element_type=self.build_shape(element, source_file, stack))

        function_node = self.find_function_type(node)
        if function_node is not None:
            parameters = self.extract_function_parameters(function_node, source_file, stack)
            return FunctionShape(syntax=syntax, parameters=parameters)

        if node.type == "object_type":
            return ObjectShape(syntax=syntax, properties=self.extract_properties_from_members(node, source_file, stack))

        if node.type in TYPE_REFERENCE_TYPES:
            resolved = self.index.resolve(node, source_file)
            if resolved is not None:
                decl, decl_file = resolved
                properties = self.extract_properties_from_declaration(decl, decl_file, stack)
                if properties:
                    return ObjectShape(syntax=syntax, properties=properties)

        return PrimitiveShape(syntax=syntax)

    def union_members(self, node: Node) -> List[Node]:
        # a | b | c parses left-nested; flatten it back to declaration order
        members = []
        stack = list(reversed(node.named_children))
        while stack:
            c = stack.pop()
            if c.type == "union_type":
                stack.extend(reversed(c.named_children))
            elif c.type != "comment":
                members.append(c)
        return members

    def find_function_type(self, node: Node) -> Optional[Node]:
        """Return the function type a type expression denotes, if any.

        A union of signatures collapses to its first function member.
        """
        if node.type == "function_type":
            return node
        if node.type == "parenthesized_type":
            inner = self.annotation_type(node)
            return self.find_function_type(inner) if inner is not None else None
        if node.type == "union_type":
            for member in self.union_members(node):
                if member.type == "function_type":
                    return member
                if member.type == "parenthesized_type":
                    inner = self.annotation_type(member)
                    if inner is not None and inner.type == "function_type":
                        return inner
        return None

    def extract_function_parameters(
        self, function_node: Node, source_file: SourceFile, stack: ExpansionStack = ()
    ) -> List[PropDefinition]:
        parameters = []
        params = function_node.child_by_field_name("parameters")
        if params is None:
            return parameters
        for param in params.named_children:
            if param.type not in self.PARAMETER_TYPES:
                continue
            pattern = param.child_by_field_name("pattern")
            if pattern is None:
                continue
            if pattern.type == "rest_pattern" and pattern.named_children:
                pattern = pattern.named_children[0]
            type_node = self.annotation_type(param.child_by_field_name("type"))
            shape = self.build_shape(type_node, source_file, stack) if type_node is not None else PrimitiveShape(syntax="any")
            parameters.append(
                PropDefinition(
                    name=self.get_text(pattern, source_file),
                    shape=shape,
                    optional=param.type == "optional_parameter",
                )
            )
        return parameters

    # properties

    def extract_properties_from_declaration(
        self, decl: Node, source_file: SourceFile, stack: ExpansionStack = ()
    ) -> List[PropDefinition]:
        key = (source_file.path, decl.start_byte)
        if key in stack or len(stack) >= self.MAX_DEPTH:
            logger.debug("Not expanding %s again in %s", self.declaration_name(decl, source_file), source_file.path)
            return []
        stack = stack + (key,)

        props = []
        if decl.type == "interface_declaration":
            for base in self.interface_extends(decl):
                resolved = self.index.resolve(base, source_file)
                if resolved is None:
                    continue
                base_decl, base_file = resolved
                props.extend(self.extract_properties_from_declaration(base_decl, base_file, stack))
            body = decl.child_by_field_name("body")
            if body is not None:
                props.extend(self.extract_properties_from_members(body, source_file, stack))
        elif decl.type == "type_alias_declaration":
            value = decl.child_by_field_name("value")
            if value is not None and value.type == "object_type":
                props.extend(self.extract_properties_from_members(value, source_file, stack))
        return props

    def declaration_name(self, decl: Node, source_file: SourceFile) -> Optional[str]:
        name_node = decl.child_by_field_name("name")
        return self.get_text(name_node, source_file) if name_node is not None else None

    def interface_extends(self, decl: Node) -> List[Node]:
        parents = []
        for c in decl.children:
            if c.type == "extends_type_clause":
                parents.extend(t for t in c.children_by_field_name("type"))
        return parents

    def extract_properties_from_members(
        self, body: Node, source_file: SourceFile, stack: ExpansionStack = ()
    ) -> List[PropDefinition]:
        props = []
        for member in body.named_children:
            if member.type != "property_signature" or member.child_by_field_name("name") is None:
                continue
            props.append(self.extract_property_from_signature(member, source_file, stack))
        return props

    def extract_property_from_signature(
        self, member: Node, source_file: SourceFile, stack: ExpansionStack = ()
    ) -> PropDefinition:
        name = self.get_text(member.child_by_field_name("name"), source_file)
        type_node = self.annotation_type(member.child_by_field_name("type"))
        shape = self.build_shape(type_node, source_file, stack) if type_node is not None else PrimitiveShape(syntax="any")
        return PropDefinition(
            name=name,
            shape=shape,
            optional=self.has_child_type(member, "?"),
            description=self.extract_jsdoc(member, source_file),
        )

    def extract_jsdoc(self, node: Node, source_file: SourceFile) -> Optional[str]:
        """Description from the last ``/**`` block in the comments leading ``node``.

        Leading comments are the run of comments right before the node,
        minus any that sit on the line the previous token ends on (those
        trail the previous member).
        """
        if node.parent is None:
            return None
        siblings = node.parent.children
        idx = siblings.index(node)
        comments = []
        previous = None
        for i in range(idx - 1, -1, -1):
            sib = siblings[i]
            if sib.type != "comment":
                previous = sib
                break
            comments.append(sib)
        if previous is not None:
            comments = [c for c in comments if c.start_point[0] > previous.end_point[0]]

        for comment in comments:
            comment_text = self.get_text(comment, source_file)
            if comment_text.startswith("/**"):
                return clean_jsdoc(comment_text)
        return None

    # entry points

    def extract_props(self, source_file: SourceFile) -> List[PropDefinition]:
        func = self.find_default_export_function(source_file.root_node, source_file)
        if func is None:
            return []
        type_node = self.get_props_type_node(func)
        if type_node is None:
            return []
        shape = self.build_shape(type_node, source_file)
        if isinstance(shape, ObjectShape):
            return list(shape.properties)
        return []

    def extract_all_props(self) -> List[PropDefinition]:
        return self.all_props

    def process_file(self, file_path: str):
        if self.program is None:
            self.program = Program([file_path])
            self.index = DeclarationIndex(self.program)
            source_file = self.program.root_files[0]
        else:
            source_file = self.program.get_source_file(file_path)
        self.all_props = self.extract_props(source_file) if source_file is not None else []

    def write_to_file(self, output_path: str):
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump([p.to_dict() for p in self.all_props], f, indent=2, ensure_ascii=False)


def extract_props_from_source(content: str, file_name: str = "source.tsx") -> List[PropDefinition]:
    """Props of the default-exported component in ``content``, single-file mode.

    Only declarations in the same source are visible; anything else
    degrades to a primitive carrying its written type.
    """
    source_file = SourceFile(file_name, content)
    return TypeScriptPropsExtractor().extract_props(source_file)


def extract_props_with_program(source_file: SourceFile, program: Program) -> List[PropDefinition]:
    return TypeScriptPropsExtractor(program).extract_props(source_file)


def extract_props_from_file(file_path: str) -> List[PropDefinition]:
    try:
        program = Program([file_path])
    except (OSError, UnicodeDecodeError, LookupError) as e:
        logger.error("Error extracting props from %s: %s", file_path, e)
        return []
    return extract_props_with_program(program.root_files[0], program)
