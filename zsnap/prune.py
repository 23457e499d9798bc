"""Pruning: keep the N newest snapshots of a tag on each dataset."""
from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Iterable

from zsnap import zfs
from zsnap.models import CommandRecord, Request, Snapshot

if TYPE_CHECKING:
    from zsnap.models import Options
    from zsnap.zfs import SnapshotEngine


def _snapshots_to_delete(
    snapshots: Iterable[Snapshot],
    tag: str,
    keep: int,
) -> list[Snapshot]:
    """
    Return the snapshots of `tag` beyond the `keep` newest, newest first.

    Names carry a fixed-width UTC timestamp, so descending name order is
    newest-first order. Snapshots of other tags are never returned.
    """
    if keep < 0:
        raise ValueError(f"keep must be >= 0, got {keep}")
    matching = sorted(
        {s for s in snapshots if s.tag_matches(tag)},
        key=lambda s: s.full_name,
        reverse=True,
    )
    return matching[keep:]


def _dataset_snapshots(
    dataset: str,
    engine: "SnapshotEngine",
    recursive: bool,
) -> list[Snapshot]:
    """Snapshots living directly on `dataset` (children are excluded)."""
    results = []
    for full_name in engine.list_snapshots([dataset], recursive=recursive, descending=True):
        if "@" not in full_name:
            continue
        snap = Snapshot.parse(full_name)
        if snap.dataset == dataset:
            results.append(snap)
    return results


def _covered(snap: Snapshot, destroyed: set[Snapshot], recursive: bool) -> bool:
    """True if a destroy issued earlier in this run already removes `snap`.

    `zfs destroy -r ds@name` also removes name on every descendant of ds.
    """
    if snap in destroyed:
        return True
    if not recursive:
        return False
    return any(
        d.name == snap.name and snap.dataset.startswith(d.dataset + "/")
        for d in destroyed
    )


def run_prune(
    options: "Options",
    engine: "SnapshotEngine",
    pending: Iterable[str] = (),
) -> list[CommandRecord]:
    """
    Destroy old snapshots of options.tag on each dataset, keeping options.keep.

    `pending` holds full names created earlier in this run. They count toward
    the kept set even in dry-run mode, where zfs never saw them, so a dry run
    prints the same destroys a real run would perform. For the same reason,
    snapshots already scheduled for destruction (a dataset named twice, or a
    child of a dataset pruned with -r) are dropped before selection.
    """
    pending_snaps = [Snapshot.parse(name) for name in pending]
    destroyed: set[Snapshot] = set()
    records: list[CommandRecord] = []

    for dataset in options.datasets:
        snaps = _dataset_snapshots(dataset, engine, options.recursive)
        snaps += [s for s in pending_snaps if s.dataset == dataset]
        snaps = [s for s in snaps if not _covered(s, destroyed, options.recursive)]
        to_delete = _snapshots_to_delete(snaps, options.tag, options.keep)

        if options.verbose:
            matching = len({s for s in snaps if s.tag_matches(options.tag)})
            print(f"{dataset}: {matching} matching, deleting {len(to_delete)}",
                  file=sys.stderr)

        for snap in to_delete:
            request = Request("destroy", snap.full_name, recursive=options.recursive)
            records.append(zfs.perform(
                request, engine, dry_run=options.dry_run, verbose=options.verbose,
            ))
            destroyed.add(snap)

    return records
