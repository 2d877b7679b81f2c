"""
CLI entry point — inspect symbols, apply an agent response to a file, and
validate a multi-file changeset.
"""

import argparse
import dataclasses
import json
import logging
import sys

from .collaborators import FileSourceProvider
from .config import Config
from .diff_display import compute_diff, create_preview, format_colored_diff
from .editing.conflict_validator import ChangeSetApplier, validate
from .editing.diff_parser import DiffParser, EditEncoding
from .editing.errors import ConflictError, ParseError
from .editing.patch_applier import PatchApplier
from .kb.parser import extract
from .language import detect_language

logger = logging.getLogger(__name__)


def _cmd_symbols(args, config: Config, source: FileSourceProvider) -> int:
    text = source.read(args.file)
    ctx = extract(text, args.language or detect_language(args.file))
    print(json.dumps(dataclasses.asdict(ctx), indent=2))
    return 0


def _cmd_apply(args, config: Config, source: FileSourceProvider) -> int:
    original = source.read(args.file)
    with open(args.response, "r", encoding="utf-8") as f:
        response = f.read()

    parser = DiffParser(config.ENCODING_ORDER)
    try:
        edits = parser.decode(response, original, encoding=args.encoding)
    except ParseError as exc:
        print(f"Could not understand the AI response: {exc}", file=sys.stderr)
        return 2

    applier = PatchApplier(fuzzy_match_window=config.FUZZY_MATCH_WINDOW)
    result = applier.apply_batch(original, edits)
    print(f"{len(result.succeeded)} applied, {len(result.failed)} failed")
    for edit_id, reason in result.failures.items():
        print(f"  edit {edit_id}: {reason}")

    diff = compute_diff(original, result.new_buffer, args.file)
    if diff:
        print(format_colored_diff(diff) if sys.stdout.isatty() else diff)

    if args.write and result.succeeded:
        if not source.write(args.file, result.new_buffer):
            return 1
    return 0 if result.success else 1


def _cmd_validate(args, config: Config, source: FileSourceProvider) -> int:
    with open(args.changeset, "r", encoding="utf-8") as f:
        response = f.read()

    parser = DiffParser(config.ENCODING_ORDER)
    try:
        probe = parser.decode_change_set(response, {})
        originals = {path: source.read(path) for path in probe.file_paths}
        change_set = parser.decode_change_set(response, originals)
    except ParseError as exc:
        print(f"Could not understand the changeset: {exc}", file=sys.stderr)
        return 2

    print(create_preview(change_set))
    report = validate(change_set)
    if not report.valid:
        for message in report.errors:
            print(message, file=sys.stderr)
        return 1

    if args.write:
        applier = ChangeSetApplier(
            PatchApplier(fuzzy_match_window=config.FUZZY_MATCH_WINDOW),
            allow_partial=config.ALLOW_PARTIAL_CHANGESET,
        )
        try:
            result = applier.apply(change_set, provider=source)
        except ConflictError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        if not result.success:
            print(result.error, file=sys.stderr)
            return 1
        print(f"Wrote {len(result.files_written)} file(s)")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="incremental-editor",
        description="Decode, verify and apply agent-proposed source edits",
    )
    parser.add_argument("--config", default=None,
                        help="Path to a .incremental_editor.yaml file")
    parser.add_argument("--root", default=None,
                        help="Directory relative paths are resolved against")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    symbols_p = subparsers.add_parser("symbols", help="List symbols and imports of a file")
    symbols_p.add_argument("file")
    symbols_p.add_argument("--language", default=None,
                           help="Override detected language")

    apply_p = subparsers.add_parser("apply", help="Apply an agent response to a file")
    apply_p.add_argument("file")
    apply_p.add_argument("response", help="File containing the agent response")
    apply_p.add_argument("--encoding", choices=list(EditEncoding.ALL), default=None,
                         help="Force one edit encoding (default: auto-detect)")
    apply_p.add_argument("--write", action="store_true",
                         help="Write the result back to the file")

    validate_p = subparsers.add_parser(
        "validate", help="Preview and validate a multi-file changeset")
    validate_p.add_argument("changeset", help="File containing the changeset JSON")
    validate_p.add_argument("--write", action="store_true",
                            help="Apply and write the changeset if valid")

    args = parser.parse_args(argv)
    config = Config.load(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    source = FileSourceProvider(args.root)
    handlers = {
        "symbols": _cmd_symbols,
        "apply": _cmd_apply,
        "validate": _cmd_validate,
    }
    try:
        return handlers[args.command](args, config, source)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
