"""Snapshot creation: one tagged, timestamped snapshot per dataset."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from zsnap import zfs
from zsnap.models import CommandRecord, Request

if TYPE_CHECKING:
    from zsnap.models import Options
    from zsnap.zfs import SnapshotEngine


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def run_create(
    options: "Options",
    engine: "SnapshotEngine",
    now: Callable[[], datetime] = _utcnow,
) -> list[CommandRecord]:
    """
    Snapshot every dataset in order, stopping at the first zfs failure.

    Datasets are not de-duplicated: naming one twice in the same second
    makes zfs reject the second create, which aborts the run.
    """
    records: list[CommandRecord] = []
    for dataset in options.datasets:
        name = zfs.snapshot_name(dataset, options.tag, now())
        request = Request("create", name, recursive=options.recursive)
        records.append(zfs.perform(
            request, engine, dry_run=options.dry_run, verbose=options.verbose,
        ))
    return records
