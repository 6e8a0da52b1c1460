"""Issue mirroring of repository snapshots with optional board placement."""

from .runner import sync_issues

__all__ = ["sync_issues"]
