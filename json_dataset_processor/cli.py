"""CLI entrypoint.

Commands:
- `json-dataset repair FILE` prints the repaired JSON of one file
- `json-dataset build FILE... --format csv --output out.csv` processes,
  merges and exports files in one go
- `json-dataset formats` lists the export formats
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .errors import ProcessorError
from .exporting import list_export_formats
from .io_utils import read_text_content
from .logging_ import setup_logging
from .options import ProcessingOptions, load_options
from .repair import repair_json_text
from .storage import JsonFileStorage, MemoryStorage
from .workspace import Workspace

logger = logging.getLogger(__name__)


def _build_options(args) -> ProcessingOptions:
    options = load_options(args.options) if args.options else ProcessingOptions()
    overrides = {}
    if args.max_depth is not None:
        overrides['max_depth'] = args.max_depth
    if args.no_flatten:
        overrides['flatten_nested'] = False
    if args.expand_arrays:
        overrides['preserve_arrays'] = False
    if args.no_schema:
        overrides['detect_schemas'] = False
    return options.replace(**overrides) if overrides else options


def _repair(args) -> int:
    try:
        text, source_name = read_text_content(args.file)
    except (OSError, UnicodeDecodeError, ValueError) as exc:
        logger.error("Could not read %s: %s", args.file, exc)
        return 1
    result = repair_json_text(text)
    print(result.corrected_text)
    if result.note:
        print(f"{source_name}: {result.note}", file=sys.stderr)
    if result.error and not result.used_aggressive_repair:
        print(f"{source_name}: {result.error}", file=sys.stderr)
        return 1
    return 0


def _build(args) -> int:
    storage = JsonFileStorage(args.storage) if args.storage else MemoryStorage()
    workspace = Workspace(storage=storage, options=_build_options(args))

    for path in args.files:
        try:
            text, source_name = read_text_content(path)
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.error("Could not read %s: %s", path, exc)
            continue
        workspace.enqueue(text, source_name)

    entries = workspace.drain_queue()
    for entry in entries:
        if entry.failed:
            logger.error("%s: %s", entry.source_name, entry.repair_note)

    try:
        dataset = workspace.merge([entry.id for entry in entries], name=args.name)
        result = workspace.export(dataset.id, args.format)
    except ProcessorError as exc:
        logger.error("%s", exc)
        return 1

    try:
        if args.output == '-':
            sys.stdout.write(result.content)
        else:
            with open(args.output, 'w', encoding='utf-8', newline='') as f:
                f.write(result.content)
    except (OSError, UnicodeError) as exc:
        logger.error("Could not write %s: %s", args.output, exc)
        return 1
    if args.output != '-':
        logger.info("Wrote %d records to %s", dataset.record_count, args.output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="json-dataset")
    p.add_argument("--log-level", default="WARNING")
    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser("repair", help="Repair one JSON file and print it")
    pr.add_argument("file")

    pb = sub.add_parser("build", help="Process, merge and export files")
    pb.add_argument("files", nargs="+")
    pb.add_argument("--format", default="json", choices=list_export_formats())
    pb.add_argument("--output", default="-", help="Output file (default: stdout)")
    pb.add_argument("--name", default=None, help="Dataset name")
    pb.add_argument("--options", default=None, help="JSON file with processing options")
    pb.add_argument("--storage", default=None, help="Directory to persist entries and datasets")
    pb.add_argument("--max-depth", type=int, default=None)
    pb.add_argument("--no-flatten", action="store_true", help="Keep nested objects as single fields")
    pb.add_argument("--expand-arrays", action="store_true", help="Expand arrays of objects into indexed fields")
    pb.add_argument("--no-schema", action="store_true", help="Skip schema inference")

    sub.add_parser("formats", help="List export formats")

    args = p.parse_args(argv)
    setup_logging(args.log_level.upper())

    if args.cmd == "formats":
        print("\n".join(list_export_formats()))
        return 0
    if args.cmd == "repair":
        return _repair(args)
    return _build(args)


if __name__ == "__main__":
    sys.exit(main())
