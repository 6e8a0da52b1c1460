"""Command-line entry point for the export and issue-sync workflows."""

from __future__ import annotations

import logging
from typing import List, Optional

from .config import ConfigurationError, build_arg_parser, resolve_export_settings, resolve_sync_settings
from .log import configure_logging
from .mirroring.board import BoardConfigurationError
from .mirroring.runner import sync_issues
from .retrieval.runner import export_csv

logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """Run one subcommand and return the process exit code."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(log_file=getattr(args, "log_file", None))

    if args.command is None:
        parser.print_help()
        return 1

    try:
        if args.command == "export-csv":
            logger.info("=== snapshot export started ===")
            export_csv(resolve_export_settings(args))
            logger.info("=== snapshot export finished ===")
        elif args.command == "sync-issues":
            logger.info("=== issue sync started ===")
            report = sync_issues(resolve_sync_settings(args))
            logger.info("=== issue sync finished (%d processed, %d errors) ===", report.processed, report.errors)
    except (ConfigurationError, BoardConfigurationError, FileNotFoundError) as exc:
        logger.error("[error] %s", exc)
        return 1
    return 0


__all__ = ["main"]
