"""MockExecutor, FakeEngine and shared fixtures for testing."""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from zsnap.executor import ExecutorError
from zsnap.models import Options, Request
from zsnap.zfs import ZfsEngine


class MockExecutor:
    """
    Executor that returns pre-scripted responses for commands.

    responses: dict mapping tuple(cmd) -> stdout string (or an Exception to raise)
    If the command isn't found, raises KeyError (to catch unexpected calls in tests).
    """

    def __init__(self, responses: dict | None = None):
        self.responses: dict = responses or {}
        self.calls: list[list[str]] = []  # record of all commands run

    def run(self, cmd: list[str]) -> str:
        self.calls.append(cmd)
        key = tuple(cmd)
        if key not in self.responses:
            raise KeyError(f"MockExecutor: unexpected command: {cmd}")
        result = self.responses[key]
        if isinstance(result, Exception):
            raise result
        return result


class FakeEngine:
    """
    In-memory SnapshotEngine.

    Behaves like zfs for the operations zsnap uses: duplicate creates and
    destroys of missing snapshots fail, -r reaches child datasets, and list
    output is sorted by name. Every call is recorded in `calls`.
    """

    def __init__(self, snapshots=(), datasets=None):
        self.snapshots: set[str] = set(snapshots)
        # Known datasets; defaults to those that already carry a snapshot.
        self.datasets: set[str] = set(datasets) if datasets is not None else {
            s.partition("@")[0] for s in self.snapshots
        }
        self.calls: list[tuple[str, str, bool]] = []
        self._renderer = ZfsEngine(MockExecutor())

    @property
    def mutations(self) -> list[tuple[str, str, bool]]:
        return [c for c in self.calls if c[0] in ("create", "destroy")]

    def _children(self, dataset: str) -> list[str]:
        return sorted(d for d in self.datasets if d.startswith(dataset + "/"))

    def describe(self, request: Request) -> str:
        return self._renderer.describe(request)

    def create(self, snapshot: str, recursive: bool = False) -> None:
        self.calls.append(("create", snapshot, recursive))
        dataset, _, name = snapshot.partition("@")
        if dataset not in self.datasets:
            raise ExecutorError(["zfs", "snapshot", snapshot], 1,
                                f"cannot open '{dataset}': dataset does not exist\n")
        if snapshot in self.snapshots:
            raise ExecutorError(["zfs", "snapshot", snapshot], 1,
                                f"cannot create snapshot '{snapshot}': dataset already exists\n")
        self.snapshots.add(snapshot)
        if recursive:
            for child in self._children(dataset):
                self.snapshots.add(f"{child}@{name}")

    def destroy(self, snapshot: str, recursive: bool = False) -> None:
        self.calls.append(("destroy", snapshot, recursive))
        if snapshot not in self.snapshots:
            raise ExecutorError(["zfs", "destroy", snapshot], 1,
                                "could not find any snapshots to destroy; check snapshot names.\n")
        self.snapshots.discard(snapshot)
        if recursive:
            dataset, _, name = snapshot.partition("@")
            for child in self._children(dataset):
                self.snapshots.discard(f"{child}@{name}")

    def list_snapshots(self, datasets=(), recursive=False, descending=False) -> list[str]:
        self.calls.append(("list", " ".join(datasets), recursive))
        if not datasets:
            found = set(self.snapshots)
        else:
            found = set()
            for dataset in datasets:
                if dataset not in self.datasets:
                    raise ExecutorError(["zfs", "list", dataset], 1,
                                        f"cannot open '{dataset}': dataset does not exist\n")
                for snap in self.snapshots:
                    owner = snap.partition("@")[0]
                    if owner == dataset or (recursive and owner.startswith(dataset + "/")):
                        found.add(snap)
        return sorted(found, reverse=descending)


# ---------------------------------------------------------------------------
# Snapshot data
# ---------------------------------------------------------------------------

DATA = "pool/data"

DAILY_SNAPS = [
    f"{DATA}@daily-2024-01-01T00:00:00Z",
    f"{DATA}@daily-2024-01-02T00:00:00Z",
    f"{DATA}@daily-2024-01-03T00:00:00Z",
    f"{DATA}@daily-2024-01-04T00:00:00Z",
    f"{DATA}@daily-2024-01-05T00:00:00Z",
]

OTHER_SNAPS = [
    f"{DATA}@hourly-2024-01-05T13:00:00Z",
    f"{DATA}@dailybackup-2024-01-01T00:00:00Z",
    f"{DATA}@daily2-2024-01-01T00:00:00Z",
    f"{DATA}@manual",
]


def fixed_clock(*args):
    """Return a `now` callable that always reports the given UTC time."""
    when = datetime(*args, tzinfo=timezone.utc)
    return lambda: when


def make_options(**overrides) -> Options:
    fields = dict(tag="daily", datasets=(DATA,))
    fields.update(overrides)
    return Options(**fields)


@pytest.fixture
def engine():
    return FakeEngine(DAILY_SNAPS + OTHER_SNAPS)
