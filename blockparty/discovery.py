import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import pathspec
from tqdm import tqdm

from blockparty.extractors.typescript_props_extractor import extract_props_from_file
from blockparty.models import BlockInfo
from blockparty.readme import parse_readme_metadata

logger = logging.getLogger(__name__)

INDEX_FILES = ("index.tsx", "index.ts")
SKIPPED_DIRS = {"node_modules"}


def find_index_file(block_dir: Path) -> Optional[Path]:
    for name in INDEX_FILES:
        candidate = block_dir / name
        if candidate.is_file():
            return candidate
    return None


def get_block_info(block_dir: Path, index_path: Optional[Path] = None) -> Optional[BlockInfo]:
    if index_path is None:
        index_path = find_index_file(block_dir)
        if index_path is None:
            return None

    props = extract_props_from_file(str(index_path))
    metadata = parse_readme_metadata(str(block_dir))
    return BlockInfo(
        name=metadata.name or block_dir.name,
        path=str(index_path),
        props=props,
        description=metadata.description,
    )


def _block_info_worker(block_dir: Path) -> Optional[BlockInfo]:
    try:
        return get_block_info(block_dir)
    except Exception:
        logger.exception("Unable to process block %s. Skipping it.", block_dir)
        return None


def load_gitignore(root_dir: Path) -> pathspec.PathSpec:
    gitignore_pth = root_dir / ".gitignore"
    gitign_pattern = gitignore_pth.read_text().splitlines() if gitignore_pth.exists() else []
    return pathspec.PathSpec.from_lines("gitwildmatch", gitign_pattern)


def candidate_block_dirs(root_dir: Path) -> List[Path]:
    spec = load_gitignore(root_dir)
    dirs = []
    for entry in sorted(root_dir.iterdir(), key=lambda p: p.name):
        if not entry.is_dir() or entry.name.startswith(".") or entry.name in SKIPPED_DIRS:
            continue
        if spec.match_file(entry.name + "/"):
            continue
        dirs.append(entry)
    return dirs


def discover_blocks(target_path: str, show_progress: bool = False) -> List[BlockInfo]:
    """Blocks at ``target_path``: the block itself, or one per sub-directory.

    A file target, or a directory holding an ``index.tsx``/``index.ts``, is a
    single block. Otherwise each immediate sub-directory with an index file
    is a block; they are extracted in parallel since no state is shared.
    """
    target = Path(target_path).resolve()
    if target.is_file():
        block = get_block_info(target.parent, target)
        return [block] if block is not None else []

    block = get_block_info(target)
    if block is not None:
        return [block]

    if not target.is_dir():
        logger.error("Error reading directory: %s", target)
        return []

    block_dirs = candidate_block_dirs(target)
    with ThreadPoolExecutor(max_workers=min(32, (os.cpu_count() or 1) + 4)) as executor:
        results = executor.map(_block_info_worker, block_dirs)
        if show_progress:
            results = tqdm(results, total=len(block_dirs), desc="Discovering blocks")
        return [b for b in results if b is not None]
