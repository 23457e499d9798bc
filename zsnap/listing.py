"""Read-only snapshot listing."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zsnap.models import Options
    from zsnap.zfs import SnapshotEngine


def run_list(options: "Options", engine: "SnapshotEngine") -> list[str]:
    """Snapshot names in ascending order, filtered to '@<tag>-' if a tag is set.

    No datasets means every snapshot on the system.
    """
    names = engine.list_snapshots(
        options.datasets, recursive=options.recursive, descending=False,
    )
    if options.tag:
        marker = f"@{options.tag}-"
        names = [n for n in names if marker in n]
    return names
