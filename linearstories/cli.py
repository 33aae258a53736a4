#!/usr/bin/env python3
"""
Command line interface: `linearstories import` and `linearstories export`.
"""

import argparse
import glob
import sys
from typing import List, Optional

from .config_loader import ConfigError, load_config
from .content_parser import ParseError
from .exporter import export_records
from .importer import import_documents
from .linear_client import LinearApiError, LinearClient
from .logger import configure_logger
from .models import ExportFilters, ImportSummary
from .resolvers import ResolverError


KNOWN_ERRORS = (ConfigError, ParseError, LinearApiError, ResolverError)


def resolve_globs(patterns: List[str]) -> List[str]:
    """Expand file patterns; duplicates dropped, first-seen order kept."""
    files: List[str] = []
    for pattern in patterns:
        matches = sorted(glob.glob(pattern, recursive=True))
        for path in matches:
            if path not in files:
                files.append(path)
    return files


def print_summary(summary: ImportSummary) -> None:
    print()
    print("Import Summary")
    print(f"  Total:   {summary.total}")
    print(f"  Created: {summary.created}")
    print(f"  Updated: {summary.updated}")
    print(f"  Skipped: {summary.skipped}")
    print(f"  Failed:  {summary.failed}")

    for result in summary.results:
        if result.action == 'created' and result.linear_id:
            print(f"  + {result.linear_id} {result.story.title}")
        elif result.action == 'updated' and result.linear_id:
            print(f"  ~ {result.linear_id} {result.story.title}")
        elif result.action == 'failed':
            print(f"  ✗ {result.story.title}: {result.error}")

    for error in summary.document_errors:
        print(f"  ✗ {error.path}: {error.message}")


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-c', '--config', help='Config file path')
    parser.add_argument('--context', help='Named context from a multi-context config')
    parser.add_argument('-t', '--team', help='Override default team')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='linearstories',
        description='Bridge Markdown user stories and Linear issues',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    import_parser = subparsers.add_parser('import', help='Import user stories from Markdown files to Linear')
    import_parser.add_argument('files', nargs='+', help='Markdown file paths or glob patterns')
    _add_common_options(import_parser)
    import_parser.add_argument('-p', '--project', help='Override default project')
    import_parser.add_argument('--dry-run', action='store_true', help='Validate without calling Linear')
    import_parser.add_argument('--no-write-back', action='store_true',
                               help='Skip writing Linear IDs back to Markdown')
    import_parser.add_argument('--keep-going', action='store_true',
                               help='Continue with remaining files when one cannot be parsed')

    export_parser = subparsers.add_parser('export', help='Export Linear issues to a Markdown file')
    _add_common_options(export_parser)
    export_parser.add_argument('-o', '--output', default='./exported-stories.md', help='Output file path')
    export_parser.add_argument('-p', '--project', help='Filter by project')
    export_parser.add_argument('-i', '--issues', help='Comma-separated issue IDs (e.g. ENG-1,ENG-2)')
    export_parser.add_argument('-s', '--status', help='Filter by status')
    export_parser.add_argument('-a', '--assignee', help='Filter by assignee email')
    export_parser.add_argument('--creator', help='Filter by creator email')

    return parser


def run_import(args: argparse.Namespace) -> int:
    files = resolve_globs(args.files)
    if not files:
        print("✗ No files matched the provided patterns.", file=sys.stderr)
        return 1

    config = load_config(config_path=args.config, context=args.context)
    client = LinearClient(config.api_key)

    summary = import_documents(
        client,
        files,
        config,
        team=args.team,
        project=args.project,
        dry_run=args.dry_run,
        skip_write_back=args.no_write_back,
        fail_fast=not args.keep_going,
    )
    print_summary(summary)

    return 1 if summary.failed or summary.document_errors else 0


def run_export(args: argparse.Namespace) -> int:
    config = load_config(config_path=args.config, context=args.context)
    client = LinearClient(config.api_key)

    filters = ExportFilters(
        project=args.project,
        issues=[i.strip() for i in args.issues.split(',') if i.strip()] if args.issues else [],
        status=args.status,
        assignee=args.assignee,
        creator=args.creator,
    )

    result = export_records(client, config, filters, args.output, team=args.team)
    print(f"✓ Exported {result.count} stories to {result.output_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logger(debug=args.debug)

    try:
        if args.command == 'import':
            return run_import(args)
        return run_export(args)
    except KNOWN_ERRORS as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
