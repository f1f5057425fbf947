#!/usr/bin/env python3
"""
Periodical Archive CLI

Command-line browser for the scanned periodical archive.

Usage:
    # Year/month summary with document counts
    periodical-archive years

    # Months of a year, or the issues of one month
    periodical-archive list --year 2023
    periodical-archive list --year 2023 --month 5

    # Every category, not only Archive
    periodical-archive --all-categories years

    # Run the access check and open a granted issue in the system viewer
    periodical-archive open 65a1f0c2e4b0 --token "$ARCHIVE_CLIENT_TOKEN"

    # Against another server, as JSON
    periodical-archive --base-url https://archive.example.org --json years

Exit codes: 0 on success, 1 when loading fails or access is denied,
2 for usage and configuration errors.
"""

import argparse
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Optional, List, Dict, Any

from dotenv import load_dotenv

from .browse.state import BrowseSnapshot, OverlayState
from .browser import ArchiveBrowser
from .catalog.data_types import ArchiveDocument
from .catalog.indexer import month_name
from .config import ArchiveConfig
from .exceptions import SelectionError
from .utils.error_messages import NETWORK_ERROR_MESSAGE
from .utils.path_utils import get_config_dir
from .viewer.handoff import NullRenderer

# Logging configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

# Extra seconds to wait on top of the HTTP timeout before giving up on a check
WAIT_GRACE_SECONDS = 5


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI.

    Args:
        verbose: Enable debug logging if True
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )


def load_environment() -> None:
    """Load ~/.periodical_archive/.env if present, else a local .env."""
    user_env_path = get_config_dir() / ".env"
    if user_env_path.exists():
        load_dotenv(user_env_path)
    else:
        load_dotenv()


def build_config(args: argparse.Namespace) -> ArchiveConfig:
    """Load configuration and apply command-line overrides."""
    config = ArchiveConfig(Path(args.config) if args.config else None)
    if args.base_url:
        config.set("api.base_url", args.base_url)
    if args.all_categories:
        config.set("archive.category", "")
    elif args.category:
        config.set("archive.category", args.category)
    if args.timeout is not None:
        config.set("api.timeout", args.timeout)
    if getattr(args, 'no_browser', False):
        config.set("viewer.open_in_browser", False)
    return config


def build_browser(args: argparse.Namespace) -> ArchiveBrowser:
    """Create the browser for a command.

    Raises:
        ValueError: If the configuration is invalid
    """
    config = build_config(args)
    renderer = None if config.get("viewer.open_in_browser", True) else NullRenderer()
    return ArchiveBrowser(config, renderer=renderer)


def emit(args: argparse.Namespace, payload: Any, lines: List[str]) -> None:
    """Print payload as JSON with --json, else the text lines."""
    if args.json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        for line in lines:
            print(line)


def document_row(document: ArchiveDocument) -> Dict[str, Any]:
    return {
        "id": document.document_id,
        "title": document.title,
        "subtitle": document.subtitle,
        "date": document.publication_date or document.uploaded_at,
        "category": document.category,
        "visibility": document.visibility.value,
    }


def cmd_years(args: argparse.Namespace, browser: ArchiveBrowser) -> int:
    """Execute the years command.

    Args:
        args: Parsed command-line arguments
        browser: Archive browser

    Returns:
        Exit code
    """
    if not browser.load_catalog():
        print(f"Error: {browser.load_error}", file=sys.stderr)
        return EXIT_FAILURE

    summaries = browser.state.summaries()
    payload = [
        {"year": s.year, "total": s.total,
         "months": [{"month": m.month, "count": m.count} for m in s.months]}
        for s in summaries
    ]
    lines = []
    for summary in summaries:
        lines.append(f"{summary.year} ({summary.total})")
        for month in summary.months:
            lines.append(f"  {month_name(month.month):<10} {month.count}")
    if not summaries:
        lines.append(f"No {browser.category} documents found." if browser.category
                     else "No documents found.")
    emit(args, payload, lines)
    return EXIT_OK


def cmd_list(args: argparse.Namespace, browser: ArchiveBrowser) -> int:
    """Execute the list command.

    Args:
        args: Parsed command-line arguments
        browser: Archive browser

    Returns:
        Exit code
    """
    if not browser.load_catalog():
        print(f"Error: {browser.load_error}", file=sys.stderr)
        return EXIT_FAILURE

    state = browser.state
    try:
        state.select_year(args.year)
        if args.month is not None:
            state.select_month(args.month)
    except SelectionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.month is None:
        months = state.visible_months()
        payload = {
            "year": args.year,
            "months": [
                {"month": m, "count": len(state.index.items(args.year, m))} for m in months
            ]
        }
        lines = [f"{month_name(m):<10} {len(state.index.items(args.year, m))}" for m in months]
        if not months:
            lines = [f"No documents in {args.year}."]
        emit(args, payload, lines)
        return EXIT_OK

    items = state.visible_items()
    payload = {"year": args.year, "month": args.month, "items": [document_row(d) for d in items]}
    lines = [
        f"{d.document_id}  {(d.publication_date or d.uploaded_at or '')[:10]}  {d.title}"
        for d in items
    ]
    if not items:
        lines = [f"No documents in {month_name(args.month)} {args.year}."]
    emit(args, payload, lines)
    return EXIT_OK


def snapshot_payload(snapshot: BrowseSnapshot) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"state": snapshot.overlay.value}
    if snapshot.viewer_session:
        payload["document_id"] = snapshot.viewer_session.document_id
        payload["title"] = snapshot.viewer_session.title
        payload["url"] = snapshot.viewer_session.content_url
    if snapshot.prompt:
        payload["document_id"] = snapshot.prompt.document_id
        payload["title"] = snapshot.prompt.title
        payload["message"] = snapshot.prompt.message
        payload["action_url"] = snapshot.prompt.action_url
    return payload


def cmd_open(args: argparse.Namespace, browser: ArchiveBrowser) -> int:
    """Execute the open command.

    Args:
        args: Parsed command-line arguments
        browser: Archive browser

    Returns:
        Exit code (1 when access is denied or fails)
    """
    # The listing is only used for the title; the access check decides
    document = None
    if browser.load_catalog():
        document = browser.find_document(args.document_id)
    if document is None:
        document = ArchiveDocument(document_id=args.document_id, title=args.document_id)

    settled = threading.Event()

    def on_change(snapshot: BrowseSnapshot) -> None:
        if snapshot.overlay is not OverlayState.ACCESS_PENDING:
            settled.set()

    state = browser.state
    state.add_listener(on_change)
    state.activate_item(document, auth_token=args.token)

    wait_seconds = browser.access_client.timeout + WAIT_GRACE_SECONDS
    if not settled.wait(wait_seconds):
        state.dismiss_overlay()
        emit(args, {"state": "timeout", "message": NETWORK_ERROR_MESSAGE}, [NETWORK_ERROR_MESSAGE])
        return EXIT_FAILURE

    snapshot = state.snapshot()
    payload = snapshot_payload(snapshot)

    if snapshot.overlay is OverlayState.VIEWER_OPEN:
        session = snapshot.viewer_session
        emit(args, payload, [f"Opened {session.title}", f"  {session.content_url}"])
        return EXIT_OK

    prompt = snapshot.prompt
    lines = []
    if prompt is not None:
        if prompt.title:
            lines.append(prompt.title)
        lines.append(prompt.message)
        if prompt.action_url:
            lines.append(f"{prompt.action_label}: {prompt.action_url}")
    emit(args, payload, lines)
    return EXIT_FAILURE


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='periodical-archive',
        description='Browse the periodical archive and open issues',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--base-url', help='Archive API base URL')
    category_group = parser.add_mutually_exclusive_group()
    category_group.add_argument('--category', help='Category tag to browse (default: Archive)')
    category_group.add_argument('--all-categories', action='store_true',
                                help='Browse documents of every category')
    parser.add_argument('--timeout', type=int, help='HTTP timeout in seconds')
    parser.add_argument('--config', help='Path to a JSON configuration file')
    parser.add_argument('--json', action='store_true', help='Print JSON instead of text')
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    subparsers.add_parser('years', help='Show years and months with document counts')

    list_parser = subparsers.add_parser('list', help='List months of a year or issues of a month')
    list_parser.add_argument('--year', type=int, required=True, help='Year to list')
    list_parser.add_argument('--month', type=int, help='Month (1-12) to list issues for')

    open_parser = subparsers.add_parser('open', help='Check access and open an issue')
    open_parser.add_argument('document_id', help='Document identifier')
    open_parser.add_argument('--token', help='Bearer token of a logged-in visitor')
    open_parser.add_argument(
        '--no-browser',
        action='store_true',
        help='Print the document URL without opening the system viewer'
    )

    return parser


COMMANDS = {
    'years': cmd_years,
    'list': cmd_list,
    'open': cmd_open,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (sys.argv[1:] by default)

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    load_environment()

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return EXIT_USAGE

    try:
        browser = build_browser(args)
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        return command(args, browser)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    finally:
        browser.close()


if __name__ == '__main__':
    sys.exit(main())
