import json
from typing import List

from blockparty.models import BlockInfo


def _js_value(value) -> str:
    if value is None:
        return "undefined"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def generate_blocks_module(blocks: List[BlockInfo]) -> str:
    paths = [block.path.replace("\\", "/") for block in blocks]
    imports = "\n".join(f"import Block{idx} from {_js_value(path)}" for idx, path in enumerate(paths))

    block_configs = ",\n".join(
        f"""  {{
    name: {_js_value(block.name)},
    Component: Block{idx},
    propDefinitions: {_js_value([p.to_dict() for p in block.props])},
    description: {_js_value(block.description)}
  }}"""
        for idx, block in enumerate(blocks)
    )

    return f"""{imports}

export const blocks = [
{block_configs}
]
"""
