import logging
import os
import re
from typing import Dict, Tuple

from blockparty.models import BlockMetadata
from blockparty.utils.source_file import read_source

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"^---\s*\n([\s\S]*?)\n---\s*\n([\s\S]*)$")
QUOTES_RE = re.compile(r"^[\"']|[\"']$")
HEADING_RE = re.compile(r"^#+\s*")


def parse_frontmatter(content: str) -> Tuple[Dict[str, str], str]:
    match = FRONTMATTER_RE.match(content)
    if not match:
        return {}, content

    frontmatter = {}
    for line in match.group(1).split("\n"):
        colon = line.find(":")
        if colon > 0:
            key = line[:colon].strip()
            frontmatter[key] = QUOTES_RE.sub("", line[colon + 1 :].strip())
    return frontmatter, match.group(2)


def extract_markdown_metadata(content: str) -> BlockMetadata:
    """Name from the first heading, description from the paragraph under it."""
    lines = content.strip().split("\n")
    for i, raw in enumerate(lines):
        line = raw.strip()
        if not line.startswith("#"):
            continue
        name = HEADING_RE.sub("", line).strip()
        description = None
        for following in lines[i + 1 :]:
            text = following.strip()
            if not text:
                continue
            if not text.startswith("#"):
                description = text
            break
        return BlockMetadata(name=name or None, description=description)
    return BlockMetadata()


def parse_readme_metadata(dir_path: str) -> BlockMetadata:
    readme_path = os.path.join(dir_path, "README.md")
    if not os.path.isfile(readme_path):
        return BlockMetadata()

    try:
        content = read_source(readme_path)
    except (OSError, LookupError) as e:
        logger.warning("Error parsing README.md at %s: %s", readme_path, e)
        return BlockMetadata()

    frontmatter, remaining = parse_frontmatter(content)
    name = frontmatter.get("name") or None
    description = frontmatter.get("description") or None
    if not name or not description:
        fallback = extract_markdown_metadata(remaining)
        name = name or fallback.name
        description = description or fallback.description
    return BlockMetadata(name=name, description=description)
