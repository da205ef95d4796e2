import argparse
import json
import logging
import os
import sys

from blockparty.adapters.discriminated_union import adapt_discriminated_unions
from blockparty.codegen import generate_blocks_module
from blockparty.discovery import discover_blocks
from blockparty.extractors.typescript_props_extractor import (
    TypeScriptPropsExtractor,
    extract_props_from_source,
)
from blockparty.utils.source_file import read_source

logger = logging.getLogger(__name__)


def _emit(text: str, output_path=None):
    if output_path:
        out_dir = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(out_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        print(f"Wrote {output_path}")
    else:
        print(text)


def _to_json(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def run_extract(file_path, output_path=None, single_file=False, unions=False):
    if single_file:
        props = extract_props_from_source(read_source(file_path), os.path.basename(file_path))
    else:
        extractor = TypeScriptPropsExtractor()
        extractor.process_file(file_path)
        props = extractor.extract_all_props()

    data = [p.to_dict() for p in props]
    if unions:
        data = {"props": data, "discriminated_unions": adapt_discriminated_unions(props)}
    _emit(_to_json(data), output_path)


def run_discover(target_path, output_path=None, show_progress=False):
    blocks = discover_blocks(target_path, show_progress=show_progress)
    logger.info("Discovered %d block(s) under %s", len(blocks), target_path)
    _emit(_to_json([b.to_dict() for b in blocks]), output_path)


def run_generate(target_path, output_path=None):
    blocks = discover_blocks(target_path)
    _emit(generate_blocks_module(blocks), output_path)


def main():
    parser = argparse.ArgumentParser(description="Extract props definitions from TypeScript components")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="function", help="Available functions")

    parser_extract = subparsers.add_parser("extract", help="Extract the props of one component module")
    parser_extract.add_argument("file", help="Component module (.ts or .tsx)")
    parser_extract.add_argument("--output", help="Write JSON here instead of stdout")
    parser_extract.add_argument(
        "--single-file", action="store_true", help="Do not follow imports into other files"
    )
    parser_extract.add_argument(
        "--unions", action="store_true", help="Also report discriminated unions found in the props"
    )

    parser_discover = subparsers.add_parser("discover", help="Discover blocks and their props")
    parser_discover.add_argument("path", help="Block directory, block entry file, or directory of blocks")
    parser_discover.add_argument("--output", help="Write JSON here instead of stdout")
    parser_discover.add_argument("--progress", action="store_true", help="Show a progress bar")

    parser_generate = subparsers.add_parser("generate", help="Generate the blocks module for discovered blocks")
    parser_generate.add_argument("path", help="Block directory, block entry file, or directory of blocks")
    parser_generate.add_argument("--output", help="Write the module here instead of stdout")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.function:
        parser.print_help()
        return

    target = args.file if args.function == "extract" else args.path
    if not os.path.exists(target):
        print(f"Error: path not found: {os.path.abspath(target)}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.function == "extract":
            run_extract(args.file, args.output, single_file=args.single_file, unions=args.unions)
        elif args.function == "discover":
            run_discover(args.path, args.output, show_progress=args.progress)
        elif args.function == "generate":
            run_generate(args.path, args.output)
    except Exception as e:
        logger.debug("Command %s failed", args.function, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
