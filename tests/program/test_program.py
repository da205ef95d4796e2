import os

import pytest

from blockparty.extractors.typescript_props_extractor import (
    extract_props_from_file,
    extract_props_from_source,
    extract_props_with_program,
)
from blockparty.models import ObjectShape, PrimitiveShape, UnionShape
from blockparty.program import Program, collect_exports, collect_imports
from blockparty.utils.source_file import SourceFile

HERE = os.path.dirname(__file__)
CROSS_FILE_DIR = os.path.abspath(os.path.join(HERE, "..", "fixtures", "cross_file"))


def write_files(root, files):
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def props_for(root, entry, root_dir=None):
    program = Program([str(root / entry)], root_dir=str(root_dir or root))
    return extract_props_with_program(program.root_files[0], program)


@pytest.fixture(scope="module")
def component_props():
    return extract_props_from_file(os.path.join(CROSS_FILE_DIR, "Component.tsx"))


def test_cross_file_extends_puts_base_fields_first(component_props):
    assert [(p.name, p.optional) for p in component_props] == [
        ("id", False),
        ("name", False),
        ("theme", True),
        ("title", False),
        ("count", True),
    ]


def test_cross_file_descriptions(component_props):
    assert [p.description for p in component_props] == [
        "Unique identifier",
        "Display name",
        "Colour scheme",
        "Heading shown above the content",
        "How many items to render",
    ]


def test_references_resolve_relative_to_declaring_file(component_props):
    theme = component_props[2].shape
    assert isinstance(theme, ObjectShape)
    assert theme.syntax == "Theme"
    assert [p.name for p in theme.properties] == ["primary", "mode"]
    assert isinstance(theme.properties[1].shape, UnionShape)


def test_single_file_mode_cannot_see_imports():
    with open(os.path.join(CROSS_FILE_DIR, "Component.tsx"), encoding="utf-8") as f:
        props = extract_props_from_source(f.read(), "Component.tsx")

    assert [p.name for p in props] == ["title", "count"]


def test_missing_file_yields_no_props(tmp_path):
    assert extract_props_from_file(str(tmp_path / "missing.tsx")) == []


def test_imported_props_type(tmp_path):
    write_files(tmp_path, {
        "types.ts": "export interface CardProps { title: string; config: Config }\nexport type Config = { dense: boolean }\n",
        "Card.tsx": "import type { CardProps } from './types'\nexport default (p: CardProps) => <div />\n",
    })

    props = props_for(tmp_path, "Card.tsx")

    assert [p.name for p in props] == ["title", "config"]
    assert [p.name for p in props[1].shape.properties] == ["dense"]


def test_nested_reference_to_imported_type(tmp_path):
    write_files(tmp_path, {
        "config.ts": "export interface Config { url: string }\n",
        "Widget.tsx": (
            "import { Config as Settings } from './config'\n"
            "interface Props { settings: Settings; other: Missing }\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "Widget.tsx")

    assert isinstance(props[0].shape, ObjectShape)
    assert props[0].shape.syntax == "Settings"
    assert [p.name for p in props[0].shape.properties] == ["url"]
    assert props[1].shape == PrimitiveShape(syntax="Missing")


def test_re_exports_through_index(tmp_path):
    write_files(tmp_path, {
        "lib/base.ts": "export interface Base { id: string }\n",
        "lib/extra.ts": "export interface Extra { note?: string }\n",
        "lib/index.ts": "export { Base as Root } from './base'\nexport * from './extra'\n",
        "Block.tsx": (
            "import { Root, Extra } from './lib'\n"
            "interface Props extends Root, Extra { own: number }\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "Block.tsx")

    assert [p.name for p in props] == ["id", "note", "own"]


def test_local_export_clause_and_default_import(tmp_path):
    write_files(tmp_path, {
        "shared.ts": "interface Hidden { secret: string }\nexport { Hidden as Visible }\n",
        "defaults.ts": "export default interface DefaultProps { fallback: boolean }\n",
        "Block.tsx": (
            "import { Visible } from './shared'\n"
            "import DefaultProps from './defaults'\n"
            "interface Props extends Visible, DefaultProps {}\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "Block.tsx")

    assert [p.name for p in props] == ["secret", "fallback"]


def test_namespace_import_reference(tmp_path):
    write_files(tmp_path, {
        "models.ts": "export interface User { email: string }\n",
        "Profile.tsx": (
            "import * as models from './models'\n"
            "interface Props { user: models.User }\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "Profile.tsx")

    assert props[0].shape.syntax == "models.User"
    assert [p.name for p in props[0].shape.properties] == ["email"]


def test_js_extension_specifier_maps_to_typescript(tmp_path):
    write_files(tmp_path, {
        "types.ts": "export interface Props { ok: boolean }\n",
        "Esm.tsx": "import { Props } from './types.js'\nexport default (p: Props) => null\n",
    })

    assert [p.name for p in props_for(tmp_path, "Esm.tsx")] == ["ok"]


def test_tsconfig_path_alias(tmp_path):
    write_files(tmp_path, {
        "tsconfig.json": """{
  // editor settings
  "compilerOptions": {
    "baseUrl": ".",
    "paths": { "@/*": ["src/*"], },
  },
}""",
        "src/models/user.ts": "export interface User { name: string }\n",
        "src/blocks/UserCard/index.tsx": (
            "import { User } from '@/models/user'\n"
            "interface Props extends User { compact?: boolean }\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "src/blocks/UserCard/index.tsx")

    assert [p.name for p in props] == ["name", "compact"]


def test_root_dir_from_environment(tmp_path, monkeypatch):
    write_files(tmp_path, {
        "tsconfig.json": '{"compilerOptions": {"paths": {"~shared": ["shared/index.ts"]}}}',
        "shared/index.ts": "export type Shared = { token: string }\n",
        "app/Block.tsx": "import { Shared } from '~shared'\nexport default (p: Shared) => null\n",
    })
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))

    props = extract_props_from_file(str(tmp_path / "app" / "Block.tsx"))

    assert [p.name for p in props] == ["token"]


def test_package_imports_stay_unresolved(tmp_path):
    write_files(tmp_path, {
        "Block.tsx": (
            "import { ReactNode } from 'react'\n"
            "interface Props { children: ReactNode }\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "Block.tsx")

    assert props[0].shape == PrimitiveShape(syntax="ReactNode")


def test_circular_re_exports_terminate(tmp_path):
    write_files(tmp_path, {
        "a.ts": "export * from './b'\n",
        "b.ts": "export * from './a'\n",
        "Block.tsx": (
            "import { Nowhere } from './a'\n"
            "interface Props { n: Nowhere }\n"
            "export default (p: Props) => null\n"
        ),
    })

    props = props_for(tmp_path, "Block.tsx")

    assert props[0].shape == PrimitiveShape(syntax="Nowhere")


def test_cross_file_extends_cycle_terminates(tmp_path):
    write_files(tmp_path, {
        "a.ts": "import { B } from './b'\nexport interface A extends B { a: string }\n",
        "b.ts": "import { A } from './a'\nexport interface B extends A { b: string }\n",
        "Block.tsx": "import { A } from './a'\nexport default (p: A) => null\n",
    })

    props = props_for(tmp_path, "Block.tsx")

    assert [p.name for p in props] == ["b", "a"]


def test_files_are_parsed_once(tmp_path):
    write_files(tmp_path, {
        "shared.ts": "export interface S { v: number }\n",
        "Block.tsx": (
            "import { S } from './shared'\n"
            "interface Props { one: S; two: S }\n"
            "export default (p: Props) => null\n"
        ),
    })
    program = Program([str(tmp_path / "Block.tsx")], root_dir=str(tmp_path))

    extract_props_with_program(program.root_files[0], program)
    first = program.get_source_file(str(tmp_path / "shared.ts"))
    extract_props_with_program(program.root_files[0], program)

    assert program.get_source_file(str(tmp_path / "shared.ts")) is first
    assert set(program.source_files) == {str(tmp_path / "Block.tsx"), str(tmp_path / "shared.ts")}


def test_collect_imports_and_exports():
    source_file = SourceFile("mod.ts", """
import Default, { a, b as c } from './one'
import * as ns from "./two"
import type { T } from './three'
import './side-effect'
export { x as y } from './four'
export * from './five'
export { local }
""")

    imports = [(b.local, b.imported, b.specifier) for b in collect_imports(source_file)]
    exports = [(b.exported, b.local, b.specifier) for b in collect_exports(source_file)]

    assert imports == [
        ("Default", "default", "./one"),
        ("a", "a", "./one"),
        ("c", "b", "./one"),
        ("ns", "*", "./two"),
        ("T", "T", "./three"),
    ]
    assert exports == [
        ("y", "x", "./four"),
        ("*", "*", "./five"),
        ("local", "local", None),
    ]
