import logging
from typing import Iterator, Optional, Tuple

from tree_sitter import Node

from blockparty.utils.source_file import SourceFile

logger = logging.getLogger(__name__)

TYPE_DECLARATION_TYPES = {"interface_declaration", "type_alias_declaration"}
TYPE_REFERENCE_TYPES = {"type_identifier", "nested_type_identifier", "generic_type"}

Resolved = Tuple[Node, SourceFile]


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal, the order declarations appear in the source."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_type_declaration(root: Node, type_name: str, source_file: SourceFile) -> Optional[Node]:
    for node in walk(root):
        if node.type in TYPE_DECLARATION_TYPES:
            name_node = node.child_by_field_name("name")
            if name_node is not None and source_file.get_text(name_node) == type_name:
                return node
    return None


def reference_name_node(node: Node) -> Node:
    # Props<T> is looked up as Props
    if node.type == "generic_type":
        name_node = node.child_by_field_name("name")
        if name_node is not None:
            return name_node
    return node


def reference_name(node: Node, source_file: SourceFile) -> str:
    return source_file.get_text(reference_name_node(node))


class DeclarationIndex:
    """Maps a type reference to the interface or type alias that defines it.

    The current file is searched first. When a ``Program`` is attached the
    reference is then handed to its symbol resolution, which follows imports
    into other files and reports the file the declaration lives in.
    """

    def __init__(self, program=None):
        self.program = program

    def find_type_declaration(self, type_name: str, source_file: SourceFile) -> Optional[Node]:
        return find_type_declaration(source_file.root_node, type_name, source_file)

    def resolve(self, ref_node: Node, source_file: SourceFile) -> Optional[Resolved]:
        type_name = reference_name(ref_node, source_file)
        decl = self.find_type_declaration(type_name, source_file)
        if decl is not None:
            return decl, source_file

        if self.program is not None:
            resolved = self.program.resolve_symbol(ref_node, source_file)
            if resolved is not None:
                return resolved

        logger.debug("Unresolved type reference %s in %s", type_name, source_file.path)
        return None
