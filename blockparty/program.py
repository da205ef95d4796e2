import logging
import os
from typing import Dict, Iterable, List, Optional, Set, Tuple

from tree_sitter import Node

from blockparty.extractors.declaration_index import (
    TYPE_DECLARATION_TYPES,
    Resolved,
    find_type_declaration,
    reference_name_node,
)
from blockparty.utils.source_file import SourceFile, load_source_file
from blockparty.utils.tsconfig import (
    compiler_options_from_tsconfig,
    find_tsconfig_dir,
    resolve_module_alias,
)

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".mts", ".cts")
PROBE_EXTENSIONS = (".ts", ".tsx", ".d.ts")
JS_TO_TS_EXTENSIONS = {
    ".js": (".ts", ".tsx", ".d.ts"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}


class ImportBinding:
    """A name brought into a module by an import statement.

    ``imported`` is the exported name in the source module, ``"default"`` for
    default imports and ``"*"`` for namespace imports.
    """

    def __init__(self, local: str, imported: str, specifier: str):
        self.local = local
        self.imported = imported
        self.specifier = specifier

    def __repr__(self):
        return f"ImportBinding({self.local!r}, {self.imported!r}, {self.specifier!r})"


class ExportBinding:
    """A name a module exports without declaring it itself.

    ``specifier`` is None for ``export { a as b }`` (a local binding) and
    ``local`` is ``"*"`` for ``export * from``.
    """

    def __init__(self, exported: str, local: str, specifier: Optional[str]):
        self.exported = exported
        self.local = local
        self.specifier = specifier

    @property
    def is_star(self) -> bool:
        return self.local == "*"

    def __repr__(self):
        return f"ExportBinding({self.exported!r}, {self.local!r}, {self.specifier!r})"


def _string_value(node: Node, source_file: SourceFile) -> str:
    return source_file.get_text(node)[1:-1]


def _child_of_type(node: Node, node_type: str) -> Optional[Node]:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def collect_imports(source_file: SourceFile) -> List[ImportBinding]:
    bindings = []
    for node in source_file.root_node.children:
        if node.type != "import_statement":
            continue
        source_node = node.child_by_field_name("source")
        clause = _child_of_type(node, "import_clause")
        if source_node is None or clause is None:
            continue
        specifier = _string_value(source_node, source_file)
        for child in clause.named_children:
            if child.type == "identifier":
                bindings.append(ImportBinding(source_file.get_text(child), "default", specifier))
            elif child.type == "namespace_import":
                ident = _child_of_type(child, "identifier")
                if ident is not None:
                    bindings.append(ImportBinding(source_file.get_text(ident), "*", specifier))
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name_node = spec.child_by_field_name("name")
                    alias_node = spec.child_by_field_name("alias")
                    if name_node is None:
                        continue
                    imported = source_file.get_text(name_node)
                    local = source_file.get_text(alias_node) if alias_node is not None else imported
                    bindings.append(ImportBinding(local, imported, specifier))
    return bindings


def collect_exports(source_file: SourceFile) -> List[ExportBinding]:
    bindings = []
    for node in source_file.root_node.children:
        if node.type != "export_statement":
            continue
        source_node = node.child_by_field_name("source")
        specifier = _string_value(source_node, source_file) if source_node is not None else None
        clause = _child_of_type(node, "export_clause")
        if clause is not None:
            for spec in clause.named_children:
                if spec.type != "export_specifier":
                    continue
                name_node = spec.child_by_field_name("name")
                alias_node = spec.child_by_field_name("alias")
                if name_node is None:
                    continue
                local = source_file.get_text(name_node)
                exported = source_file.get_text(alias_node) if alias_node is not None else local
                bindings.append(ExportBinding(exported, local, specifier))
        elif specifier is not None and _child_of_type(node, "*") is not None and _child_of_type(node, "namespace_export") is None:
            bindings.append(ExportBinding("*", "*", specifier))
    return bindings


class Program:
    """Read-only whole-program view used to resolve type names across files.

    Files are parsed on first use and cached by absolute path. Module
    specifiers are resolved the way a bundler-style TypeScript setup does:
    relative paths against the importing file, everything else through the
    nearest ``tsconfig.json`` ``paths``/``baseUrl``.
    """

    def __init__(self, root_files: Iterable[str], root_dir: Optional[str] = None):
        self.source_files: Dict[str, Optional[SourceFile]] = {}
        self._imports: Dict[str, List[ImportBinding]] = {}
        self._exports: Dict[str, List[ExportBinding]] = {}
        self._compiler_options: Dict[str, Tuple[Optional[str], dict]] = {}
        self.root_files = [self.add_source_file(load_source_file(p)) for p in root_files]
        # tsconfig.json lookups walk up from each file until they reach root_dir
        self.root_dir = os.path.abspath(root_dir or os.environ.get("ROOT_DIR") or os.sep)

    def add_source_file(self, source_file: SourceFile) -> SourceFile:
        self.source_files[source_file.path] = source_file
        return source_file

    def get_source_file(self, file_path: str) -> Optional[SourceFile]:
        path = os.path.abspath(file_path)
        if path not in self.source_files:
            try:
                self.source_files[path] = load_source_file(path)
            except OSError as e:
                logger.warning("Unable to read %s: %s", path, e)
                self.source_files[path] = None
        return self.source_files[path]

    def imports_of(self, source_file: SourceFile) -> List[ImportBinding]:
        if source_file.path not in self._imports:
            self._imports[source_file.path] = collect_imports(source_file)
        return self._imports[source_file.path]

    def exports_of(self, source_file: SourceFile) -> List[ExportBinding]:
        if source_file.path not in self._exports:
            self._exports[source_file.path] = collect_exports(source_file)
        return self._exports[source_file.path]

    def resolve_symbol(self, ref_node: Node, source_file: SourceFile) -> Optional[Resolved]:
        """Find the interface/alias a type reference names, in whichever file defines it."""
        name_node = reference_name_node(ref_node)
        name = source_file.get_text(name_node)
        seen: Set[Tuple[str, str, str]] = set()
        if name_node.type == "nested_type_identifier":
            namespace, _, member = name.rpartition(".")
            return self.resolve_namespace_member(source_file, namespace, member, seen)
        return self.resolve_name(source_file, name, seen)

    def resolve_name(self, source_file: SourceFile, name: str, seen: Set[Tuple[str, str, str]]) -> Optional[Resolved]:
        key = ("local", source_file.path, name)
        if key in seen:
            return None
        seen.add(key)

        decl = find_type_declaration(source_file.root_node, name, source_file)
        if decl is not None:
            return decl, source_file

        for binding in self.imports_of(source_file):
            if binding.local != name or binding.imported == "*":
                continue
            target = self.resolve_module(source_file, binding.specifier)
            if target is None:
                return None
            return self.resolve_export(target, binding.imported, seen)
        return None

    def resolve_namespace_member(
        self, source_file: SourceFile, namespace: str, member: str, seen: Set[Tuple[str, str, str]]
    ) -> Optional[Resolved]:
        for binding in self.imports_of(source_file):
            if binding.local == namespace and binding.imported == "*":
                target = self.resolve_module(source_file, binding.specifier)
                if target is not None:
                    return self.resolve_export(target, member, seen)
        return None

    def resolve_export(self, source_file: SourceFile, name: str, seen: Set[Tuple[str, str, str]]) -> Optional[Resolved]:
        key = ("export", source_file.path, name)
        if key in seen:
            return None
        seen.add(key)

        if name == "default":
            return self.resolve_default_export(source_file, seen)

        decl = find_type_declaration(source_file.root_node, name, source_file)
        if decl is not None:
            return decl, source_file

        exports = self.exports_of(source_file)
        for binding in exports:
            if binding.is_star or binding.exported != name:
                continue
            if binding.specifier is None:
                return self.resolve_name(source_file, binding.local, seen)
            target = self.resolve_module(source_file, binding.specifier)
            if target is None:
                return None
            return self.resolve_export(target, binding.local, seen)

        for binding in exports:
            if not binding.is_star:
                continue
            target = self.resolve_module(source_file, binding.specifier)
            if target is None:
                continue
            resolved = self.resolve_export(target, name, seen)
            if resolved is not None:
                return resolved
        return None

    def resolve_default_export(self, source_file: SourceFile, seen: Set[Tuple[str, str, str]]) -> Optional[Resolved]:
        for node in source_file.root_node.children:
            if node.type != "export_statement" or _child_of_type(node, "default") is None:
                continue
            declaration = node.child_by_field_name("declaration")
            if declaration is not None and declaration.type in TYPE_DECLARATION_TYPES:
                return declaration, source_file
            value = node.child_by_field_name("value")
            if value is not None and value.type == "identifier":
                return self.resolve_name(source_file, source_file.get_text(value), seen)
        for binding in self.exports_of(source_file):
            if binding.exported == "default" and binding.specifier is None:
                return self.resolve_name(source_file, binding.local, seen)
        return None

    def compiler_options_for(self, file_path: str) -> Tuple[Optional[str], dict]:
        directory = os.path.dirname(file_path)
        if directory not in self._compiler_options:
            config_dir = find_tsconfig_dir(self.root_dir, file_path)
            options = {}
            if config_dir:
                options = compiler_options_from_tsconfig(os.path.join(config_dir, "tsconfig.json"))
            self._compiler_options[directory] = (config_dir, options)
        return self._compiler_options[directory]

    def candidate_paths(self, base: str) -> List[str]:
        candidates = []
        if base.endswith(SOURCE_EXTENSIONS):
            candidates.append(base)
        stem, ext = os.path.splitext(base)
        for ts_ext in JS_TO_TS_EXTENSIONS.get(ext, ()):
            candidates.append(stem + ts_ext)
        candidates.extend(base + ext for ext in PROBE_EXTENSIONS)
        candidates.extend(os.path.join(base, "index" + ext) for ext in PROBE_EXTENSIONS)
        return candidates

    def resolve_module(self, source_file: SourceFile, specifier: str) -> Optional[SourceFile]:
        if specifier.startswith("."):
            bases = [os.path.normpath(os.path.join(source_file.directory, specifier))]
        else:
            config_dir, options = self.compiler_options_for(source_file.path)
            bases = []
            if config_dir:
                paths = options.get("paths", {})
                base_url = options.get("baseUrl")
                bases = resolve_module_alias(
                    specifier,
                    config_dir,
                    paths if isinstance(paths, dict) else {},
                    base_url if isinstance(base_url, str) else None,
                )

        for base in bases:
            for candidate in self.candidate_paths(base):
                if os.path.isfile(candidate):
                    return self.get_source_file(candidate)

        logger.debug("Unresolved module %r imported from %s", specifier, source_file.path)
        return None
