import os

import chardet
from tree_sitter import Node

from blockparty.registry.extractor_registry import get_parser


def read_source(file_path: str) -> str:
    with open(file_path, "rb") as f:
        raw = f.read()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        guess = chardet.detect(raw)
        encoding = guess["encoding"] or "utf-8"
        return raw.decode(encoding, errors="replace")


class SourceFile:
    """A parsed module: its path, its text and the Tree-sitter tree over it.

    The tree is built from the utf-8 encoding of ``code`` so node byte
    offsets index ``code_bytes`` directly.
    """

    def __init__(self, path: str, code: str):
        self.path = path
        self.code = code
        self.code_bytes = code.encode("utf-8")
        self.tree = get_parser(path).parse(self.code_bytes)

    @property
    def root_node(self) -> Node:
        return self.tree.root_node

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    def get_text(self, node: Node) -> str:
        snippet = self.code_bytes[node.start_byte : node.end_byte]
        return snippet.decode("utf-8", errors="replace")

    def __repr__(self):
        return f"SourceFile({self.path!r})"


def load_source_file(file_path: str) -> SourceFile:
    path = os.path.abspath(file_path)
    return SourceFile(path, read_source(path))
