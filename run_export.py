"""Convenience shim to run only the snapshot export workflow."""

from __future__ import annotations

import sys

from repo_observer.cli import main


if __name__ == "__main__":
    sys.exit(main(["export-csv", *sys.argv[1:]]))
