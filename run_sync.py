"""Convenience shim to run only the issue-sync workflow."""

from __future__ import annotations

import sys

from repo_observer.cli import main


if __name__ == "__main__":
    sys.exit(main(["sync-issues", *sys.argv[1:]]))
