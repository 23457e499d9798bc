"""ZFS snapshot engine: turns Requests into zfs(8) invocations."""
from __future__ import annotations

import shlex
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol, Sequence, runtime_checkable

from zsnap.models import TIMESTAMP_FORMAT, CommandRecord, Request

if TYPE_CHECKING:
    from zsnap.executor import Executor


def format_timestamp(when: datetime) -> str:
    """UTC timestamp safe for snapshot names (literal Z, no '+00:00')."""
    if when.tzinfo is None:
        raise ValueError("timestamp must be timezone-aware")
    return when.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def snapshot_name(dataset: str, tag: str, when: datetime) -> str:
    return f"{dataset}@{tag}-{format_timestamp(when)}"


@runtime_checkable
class SnapshotEngine(Protocol):
    def create(self, snapshot: str, recursive: bool = False) -> None:
        raise NotImplementedError

    def destroy(self, snapshot: str, recursive: bool = False) -> None:
        raise NotImplementedError

    def list_snapshots(
        self,
        datasets: Sequence[str] = (),
        recursive: bool = False,
        descending: bool = False,
    ) -> list[str]:
        """Return full snapshot names sorted by name."""
        raise NotImplementedError

    def describe(self, request: Request) -> str:
        """One-line rendering of a request for dry-run and verbose output."""
        raise NotImplementedError


class ZfsEngine:
    """SnapshotEngine backed by the zfs command, run through an Executor."""

    def __init__(self, executor: "Executor", zfs: str = "zfs"):
        self.executor = executor
        self.zfs = zfs

    def command(self, request: Request, descending: bool = False) -> list[str]:
        """Build the argv for a request.

        A list request takes at most one dataset as its target;
        list_snapshots appends any number of datasets itself.
        """
        if request.operation == "create":
            cmd = [self.zfs, "snapshot"]
        elif request.operation == "destroy":
            cmd = [self.zfs, "destroy"]
        elif request.operation == "list":
            cmd = [self.zfs, "list"]
        else:
            raise ValueError(f"Unknown operation: {request.operation!r}")

        if request.recursive:
            cmd.append("-r")

        if request.operation == "list":
            cmd += ["-H", "-t", "snapshot", "-o", "name",
                    "-S" if descending else "-s", "name"]
            if request.target:
                cmd.append(request.target)
        else:
            cmd.append(request.target)
        return cmd

    def describe(self, request: Request) -> str:
        return shlex.join(self.command(request))

    def create(self, snapshot: str, recursive: bool = False) -> None:
        self.executor.run(self.command(Request("create", snapshot, recursive)))

    def destroy(self, snapshot: str, recursive: bool = False) -> None:
        self.executor.run(self.command(Request("destroy", snapshot, recursive)))

    def list_snapshots(
        self,
        datasets: Sequence[str] = (),
        recursive: bool = False,
        descending: bool = False,
    ) -> list[str]:
        cmd = self.command(Request("list", "", recursive), descending=descending)
        cmd += list(datasets)
        output = self.executor.run(cmd)
        # One name per line; names may contain spaces, so no stripping.
        return [line for line in output.splitlines() if line]


def perform(
    request: Request,
    engine: SnapshotEngine,
    dry_run: bool = False,
    verbose: bool = False,
) -> CommandRecord:
    """Show and/or run a create or destroy request."""
    if dry_run or verbose:
        print(engine.describe(request))
    if dry_run:
        return CommandRecord(request, executed=False)
    if request.operation == "create":
        engine.create(request.target, recursive=request.recursive)
    elif request.operation == "destroy":
        engine.destroy(request.target, recursive=request.recursive)
    else:
        raise ValueError(f"Not a mutating operation: {request.operation!r}")
    return CommandRecord(request, executed=True)
