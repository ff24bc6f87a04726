"""
flowsync.cli - Command-line interface.

Main entry point for the flowsync CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from flowsync import __version__
from flowsync.commands import baseline_cmd, daemon, export_cmd, review_cmd, sync_cmd, validate


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="flowsync",
        description="Keep a workflow graph in sync with a SwiftUI git repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  flowsync daemon                      # Poll the repository and serve the API
  flowsync sync                        # Run one sync cycle now
  flowsync validate                    # Check the stored workflow graph
  flowsync export onboarding           # Print one journey as Mermaid
  flowsync baseline save               # Snapshot workflows and annotations
  flowsync baseline diff --json        # Compare with the latest snapshot
  flowsync review --check-files        # Prioritized annotation report

Configuration:
  .flowsync.toml is looked up from the current directory upwards.
  Any setting can be overridden with FLOWSYNC_<SECTION>_<KEY>,
  e.g. FLOWSYNC_SOURCE_PATH=../ios-app

For detailed command help: flowsync <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"flowsync {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--source",
        type=Path,
        help="Override the source repository path",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "daemon",
        help="Run the polling scheduler and HTTP API until interrupted",
    )

    subparsers.add_parser(
        "sync",
        help="Run a single sync cycle now",
    )

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate the stored workflow graph",
    )
    validate_parser.add_argument(
        "--baseline",
        action="store_true",
        help="Also check against the latest baseline (catches deleted steps)",
    )
    validate_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output JSON for tooling",
    )

    export_parser = subparsers.add_parser(
        "export",
        help="Export journeys as Mermaid flowcharts",
    )
    export_parser.add_argument(
        "journey",
        nargs="?",
        help="Journey id (default: all journeys)",
    )
    export_parser.add_argument(
        "--json",
        action="store_true",
        help="Print {journeyId: mermaid} JSON",
    )
    export_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Write the JSON mapping to a file",
        metavar="PATH",
    )

    baseline_parser = subparsers.add_parser(
        "baseline",
        help="Manage workflow/annotation snapshots (save, list, diff, restore)",
    )
    baseline_subparsers = baseline_parser.add_subparsers(dest="baseline_action")

    baseline_subparsers.add_parser(
        "save",
        help="Snapshot the current workflows and annotations",
    )
    baseline_subparsers.add_parser(
        "list",
        help="List saved snapshots",
    )
    baseline_diff = baseline_subparsers.add_parser(
        "diff",
        help="Compare current documents with a snapshot",
    )
    baseline_diff.add_argument(
        "--json",
        action="store_true",
        help="Output JSON for tooling",
    )
    baseline_diff.add_argument(
        "--timestamp",
        help="Snapshot timestamp prefix (default: latest)",
    )
    baseline_restore = baseline_subparsers.add_parser(
        "restore",
        help="Overwrite current documents from a snapshot",
    )
    baseline_restore.add_argument(
        "timestamp",
        nargs="?",
        help="Snapshot timestamp prefix (default: latest)",
    )

    review_parser = subparsers.add_parser(
        "review",
        help="Report annotations by priority, traced to their source files",
    )
    review_parser.add_argument(
        "--json",
        action="store_true",
        help="Output JSON for tooling",
    )
    review_parser.add_argument(
        "--check-files",
        action="store_true",
        help="Warn about annotated steps whose source file is missing",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "daemon":
            return daemon.run(args)
        elif args.command == "sync":
            return sync_cmd.run(args)
        elif args.command == "validate":
            return validate.run(args)
        elif args.command == "export":
            return export_cmd.run(args)
        elif args.command == "baseline":
            return baseline_cmd.run(args)
        elif args.command == "review":
            return review_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
