#!/usr/bin/env python3
"""
CLI runner for server content comparison.

Provides command-line interface for:
- Classifying two export directories
- Exporting and comparing an object type across two servers
- Moving comment-only pairs out of a comparison
- Showing the diff of one object
- Managing saved comparisons
- Signing content files and transferring objects between servers
- Writing an export file of the objects that differ

Usage:
    python cli.py compare --left DIR --right DIR [--check-comments-only]
    python cli.py compare-servers --type sensors --left-fqdn A --left-username U --right-fqdn B --right-username U
    python cli.py extract-comments --left DIR --right DIR
    python cli.py diff --label LABEL --name NAME
    python cli.py comparisons [--action list|remove|prune|refresh] [--label LABEL]
    python cli.py sign --file FILE
    python cli.py transfer --type sensors --name NAME --left-fqdn A ... --right-fqdn B ...
    python cli.py export-file --type sensors --label LABEL --file OUT --left-fqdn A --left-username U
"""

import argparse
import json
import logging
import os
import sys
from getpass import getpass
from pathlib import Path
from typing import Optional

import httpx
import structlog

from config import settings
from diffing.directory_classifier import BUCKETS, ComparisonResult, DirectoryClassifier, MatchRecord
from diffing.exceptions import ClassificationError
from diffing.report import diff_summary, diff_title, unified_diff
from fetcher.object_types import OBJECT_TYPES, ObjectType
from fetcher.session import ServerInfo
from services.content_import import ContentImportError
from services.server_comparison import ServerComparison
from services.signing import ContentSigner, SigningError
from services.transfer import ItemTransfer
from storage.comparison_store import ComparisonStore

logger = structlog.get_logger()

COMMENTS_ONLY_SUFFIX = " - Comments Only"


def configure_logging() -> None:
    """Configure structlog; stdout is reserved for command output."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr)
    )


def print_result(result: ComparisonResult, as_json: bool = False) -> None:
    """Print a classification as JSON or as a table of counts and names."""
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    print("\n=== Comparison ===")
    print(f"{'Bucket':<12} {'Count':<8}")
    print("-" * 20)
    for bucket, count in result.counts.items():
        print(f"{bucket:<12} {count:<8}")

    for bucket in BUCKETS:
        if bucket == "unchanged":
            continue
        records = getattr(result, bucket)
        if records:
            print(f"\n{bucket.capitalize()}:")
            for record in records:
                print(f"  {record.name}")

    print()


def _server(args, side: str) -> ServerInfo:
    """Build a ServerInfo from --<side>-fqdn/--<side>-username/... arguments."""
    fqdn = getattr(args, f"{side}_fqdn")
    username = getattr(args, f"{side}_username")
    if not fqdn or not username:
        raise SystemExit(f"--{side}-fqdn and --{side}-username are required")

    password = os.getenv(f"{side.upper()}_PASSWORD") or getpass(f"Password for {username}@{fqdn}: ")
    return ServerInfo(
        fqdn=fqdn,
        username=username,
        password=password,
        label=getattr(args, f"{side}_label") or fqdn
    )


def _object_type(args) -> ObjectType:
    if not args.type:
        raise SystemExit("--type is required")
    return OBJECT_TYPES[args.type]


def _require_dirs(args) -> tuple[Path, Path]:
    if not args.left or not args.right:
        raise SystemExit("--left and --right are required")
    return Path(args.left), Path(args.right)


def cmd_compare(args) -> None:
    """Classify two directories."""
    left_dir, right_dir = _require_dirs(args)

    result = DirectoryClassifier().classify(
        left_dir,
        right_dir,
        check_comments_only=args.check_comments_only,
        skip_created_scan=args.skip_created
    )

    if args.label:
        ComparisonStore().add(args.label, left_dir, right_dir, check_comments_only=args.check_comments_only)

    print_result(result, args.json)


def cmd_compare_servers(args) -> None:
    """Export an object type from two servers and classify it."""
    settings.ensure_directories()

    object_type = _object_type(args)
    left = _server(args, "left")
    right = _server(args, "right")

    comparison = ServerComparison()
    result = comparison.run(
        object_type,
        left,
        right,
        label=args.label,
        check_comments_only=True if args.check_comments_only else None
    )

    left_dir, right_dir = comparison.directories_for(object_type, left, right)
    if not args.json:
        print(f"Left:  {left_dir}")
        print(f"Right: {right_dir}")

    print_result(result, args.json)


def cmd_extract_comments(args) -> None:
    """Move comment-only pairs to sibling directories."""
    left_dir, right_dir = _require_dirs(args)
    comment_left = Path(args.comment_left) if args.comment_left else left_dir.with_name(left_dir.name + COMMENTS_ONLY_SUFFIX)
    comment_right = Path(args.comment_right) if args.comment_right else right_dir.with_name(right_dir.name + COMMENTS_ONLY_SUFFIX)

    moved = DirectoryClassifier().extract_comment_only(left_dir, right_dir, comment_left, comment_right)

    if args.json:
        print(json.dumps([record.to_dict() for record in moved], indent=2))
        return

    print(f"Moved {len(moved)} comment-only pair(s)")
    print(f"  left:  {comment_left}")
    print(f"  right: {comment_right}")
    for record in moved:
        print(f"  {record.name}")


def _classify_selected(args) -> ComparisonResult:
    """Classify a saved comparison (--label) or two directories (--left/--right)."""
    if args.label:
        entry = ComparisonStore().get(args.label)
        if entry is None:
            raise SystemExit(f"No saved comparison named '{args.label}'")
        left_dir, right_dir = Path(entry.left_dir), Path(entry.right_dir)
        check_comments_only = entry.check_comments_only
    else:
        left_dir, right_dir = _require_dirs(args)
        check_comments_only = args.check_comments_only

    return DirectoryClassifier().classify(left_dir, right_dir, check_comments_only=check_comments_only)


def _find_record(args) -> tuple[str, MatchRecord]:
    found = _classify_selected(args).find(args.name)
    if found is None:
        raise SystemExit(f"No object named '{args.name}'")
    return found


def cmd_diff(args) -> None:
    """Show what changed in one object (full unified diff with --json)."""
    if not args.name:
        raise SystemExit("--name is required")

    bucket, record = _find_record(args)

    if args.json:
        print(json.dumps({
            "name": record.name,
            "bucket": bucket,
            "title": diff_title(record),
            "summary": diff_summary(record),
            "diff": unified_diff(record),
        }, indent=2))
        return

    print(f"{diff_title(record)} [{bucket}]")
    print(diff_summary(record))


def cmd_comparisons(args) -> None:
    """List, remove, prune or refresh saved comparisons."""
    store = ComparisonStore()

    if args.action == "list":
        entries = store.list_all()
        if args.json:
            print(json.dumps([entry.to_dict() for entry in entries], indent=2))
            return

        if not entries:
            print("No saved comparisons.")
            return

        print("\n=== Saved Comparisons ===")
        print(f"{'Label':<50} {'Comments Only':<14} {'Created':<20}")
        print("-" * 86)
        for entry in entries:
            print(f"{entry.label[:50]:<50} {str(entry.check_comments_only):<14} {entry.created_at:<20}")
        print()

    elif args.action == "remove":
        if not args.label:
            raise SystemExit("--label is required")
        if not store.remove(args.label):
            raise SystemExit(f"No saved comparison named '{args.label}'")
        print(f"Removed '{args.label}'")

    elif args.action == "prune":
        removed = store.prune()
        print(f"Pruned {len(removed)} comparison(s)")
        for label in removed:
            print(f"  {label}")

    elif args.action == "refresh":
        if not args.label:
            raise SystemExit("--label is required")
        result = store.refresh(args.label)
        if result is None:
            raise SystemExit(f"No saved comparison named '{args.label}'")
        print_result(result, args.json)


def cmd_sign(args) -> None:
    """Sign a content file in place."""
    if not args.file:
        raise SystemExit("--file is required")

    path = ContentSigner().sign_file(Path(args.file))
    print(f"Signed {path}")


def cmd_transfer(args) -> None:
    """Export named objects from the left server and import them into the right one."""
    object_type = _object_type(args)
    if not args.name:
        raise SystemExit("--name is required")

    source = _server(args, "left")
    dest = _server(args, "right")

    status = ItemTransfer().transfer(object_type, args.name, source, dest)

    print(f"Import {status.id}: success={status.success}")
    if status.result:
        print(status.result)
    if status.exception:
        print(status.exception)


def cmd_export_file(args) -> None:
    """Write the left server's export of missing and modified objects to a file."""
    object_type = _object_type(args)
    if not args.file:
        raise SystemExit("--file is required")

    result = _classify_selected(args)
    records = result.missing + result.modified
    source = _server(args, "left")

    path = ItemTransfer().build_export_file(object_type, records, source, Path(args.file))
    print(f"Exported {len(records)} object(s) to {path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Server Content Compare CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  compare           Classify two export directories
  compare-servers   Export an object type from two servers and classify it
  extract-comments  Move comment-only pairs to separate directories
  diff              Show the unified diff of one object
  comparisons       List/remove/prune/refresh saved comparisons
  sign              Sign a content file
  transfer          Copy named objects from the left server to the right one
  export-file       Export missing and modified objects from the left server to a file

Passwords are read from LEFT_PASSWORD / RIGHT_PASSWORD or prompted for.

Examples:
  python cli.py compare --left "1 - dev%Sensors" --right "2 - prod%Sensors" --check-comments-only
  python cli.py compare-servers --type sensors --left-fqdn dev --left-username admin --right-fqdn prod --right-username admin
  python cli.py comparisons --action prune
        """
    )

    parser.add_argument(
        "command",
        choices=["compare", "compare-servers", "extract-comments", "diff", "comparisons", "sign", "transfer", "export-file"],
        help="Command to execute"
    )

    parser.add_argument("--left", help="Left (source) directory")
    parser.add_argument("--right", help="Right (destination) directory")
    parser.add_argument("--comment-left", help="Destination for left comment-only files (extract-comments)")
    parser.add_argument("--comment-right", help="Destination for right comment-only files (extract-comments)")
    parser.add_argument("--check-comments-only", action="store_true", help="Treat comment-only differences as unchanged")
    parser.add_argument("--skip-created", action="store_true", help="Do not scan the right directory for created objects")
    parser.add_argument("--label", help="Saved comparison label")
    parser.add_argument("--name", action="append", help="Object name (repeat for transfer)")
    parser.add_argument("--type", choices=sorted(OBJECT_TYPES), help="Object type")
    parser.add_argument("--action", choices=["list", "remove", "prune", "refresh"], default="list",
                        help="Action for the 'comparisons' command")
    parser.add_argument("--file", help="File to sign (sign) or to write (export-file)")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of tables")

    for side in ("left", "right"):
        parser.add_argument(f"--{side}-fqdn", help=f"{side.capitalize()} server FQDN (host[:port])")
        parser.add_argument(f"--{side}-username", help=f"{side.capitalize()} server username")
        parser.add_argument(f"--{side}-label", help=f"{side.capitalize()} server label (defaults to FQDN)")

    return parser


COMMANDS = {
    "compare": cmd_compare,
    "compare-servers": cmd_compare_servers,
    "extract-comments": cmd_extract_comments,
    "diff": cmd_diff,
    "comparisons": cmd_comparisons,
    "sign": cmd_sign,
    "transfer": cmd_transfer,
    "export-file": cmd_export_file,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    configure_logging()
    args = build_parser().parse_args(argv)

    # diff takes a single name
    if args.command == "diff" and args.name:
        args.name = args.name[0]

    try:
        COMMANDS[args.command](args)
    except ClassificationError as e:
        logger.error("Classification failed", path=str(e.path), error=str(e))
        return 1
    except (SigningError, ContentImportError, httpx.HTTPError, ValueError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
