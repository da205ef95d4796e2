import os

import tree_sitter_typescript
from tree_sitter import Language, Parser

TYPESCRIPT_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

EXT_MAP = {
    "typescript": [".ts", ".mts", ".cts"],
    "tsx": [".tsx"],
}

INVERSE_EXTS = {ext: lang for lang, exts in EXT_MAP.items() for ext in exts}


def get_language_name(file_name: str) -> str:
    # Unknown extensions get the tsx grammar, which also accepts plain TypeScript
    # apart from angle-bracket type assertions.
    _, ext = os.path.splitext(file_name)
    return INVERSE_EXTS.get(ext.lower(), "tsx")


def get_parser(file_name: str) -> Parser:
    lang = get_language_name(file_name)
    if lang == "typescript":
        return Parser(TYPESCRIPT_LANGUAGE)
    if lang == "tsx":
        return Parser(TSX_LANGUAGE)
    raise ValueError(f"No grammar for file: {file_name}")
