import json
import logging
import os
import re
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


def find_tsconfig_dir(root_dir: str, file_path: str, config_filename: str = "tsconfig.json") -> Optional[str]:
    root_dir = os.path.abspath(root_dir)
    current_dir = os.path.abspath(os.path.dirname(file_path))

    while True:
        candidate = os.path.join(current_dir, config_filename)
        if os.path.isfile(candidate):
            return current_dir

        parent = os.path.dirname(current_dir)
        if current_dir == root_dir or parent == current_dir:
            return None

        current_dir = parent


def _strip_json_comments(text: str) -> str:
    # Strings are matched first so "//" or "/*" inside a path survive.
    pattern = r'("(?:\\.|[^"\\])*")|/\*[\s\S]*?\*/|//[^\n]*'
    return re.sub(pattern, lambda m: m.group(1) or "", text)


def _strip_trailing_commas(text: str) -> str:
    return re.sub(r",(\s*[}\]])", r"\1", text)


def compiler_options_from_tsconfig(config_file_path: str) -> dict:
    if not os.path.isfile(config_file_path):
        return {}

    try:
        with open(config_file_path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        logger.warning("Unable to read %s: %s", config_file_path, e)
        return {}

    clean = _strip_trailing_commas(_strip_json_comments(raw)).strip()
    if not clean:
        return {}

    try:
        cfg = json.loads(clean)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring invalid tsconfig %s: %s", config_file_path, e)
        return {}

    options = cfg.get("compilerOptions", {}) if isinstance(cfg, dict) else {}
    return options if isinstance(options, dict) else {}


def resolve_module_alias(
    specifier: str,
    config_dir: str,
    alias_paths: Dict[str, List[str]],
    base_url: Optional[str] = None,
) -> List[str]:
    """Expand a non-relative module specifier through ``compilerOptions.paths``.

    Returns every candidate base path (without extension probing) in the
    order TypeScript tries them: exact patterns before wildcard ones, longer
    prefixes first, then the ``baseUrl`` fallback.
    """
    base_dir = os.path.normpath(os.path.join(config_dir, base_url)) if base_url else config_dir

    def sort_key(item):
        pat = item[0]
        return (pat.count("*"), -len(pat))

    candidates = []
    for alias_pattern, targets in sorted(alias_paths.items(), key=sort_key):
        if "*" in alias_pattern:
            regex = "^" + re.escape(alias_pattern).replace(r"\*", "(.+)") + "$"
            m = re.match(regex, specifier)
            if not m:
                continue
            wildcards = m.groups()
        else:
            if specifier != alias_pattern:
                continue
            wildcards = ()

        for tpl in targets:
            rel = tpl
            for w in wildcards:
                rel = rel.replace("*", w, 1)
            candidates.append(os.path.normpath(os.path.join(base_dir, rel)))
        if candidates:
            break

    if base_url:
        candidates.append(os.path.normpath(os.path.join(base_dir, specifier)))
    return candidates
