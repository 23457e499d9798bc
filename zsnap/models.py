"""Data models for zfs-snapshots."""
from __future__ import annotations

import re
from dataclasses import dataclass, field

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z")

# Characters zfs uses to split dataset, snapshot and bookmark names.
RESERVED_TAG_CHARS = "@/#"


@dataclass(frozen=True)
class Snapshot:
    """A ZFS snapshot: pool/dataset@name."""
    dataset: str
    name: str  # just the snapshot name after '@'

    @property
    def full_name(self) -> str:
        return f"{self.dataset}@{self.name}"

    @classmethod
    def parse(cls, full_name: str) -> "Snapshot":
        dataset, _, name = full_name.partition("@")
        if not name:
            raise ValueError(f"Not a snapshot: {full_name!r}")
        return cls(dataset=dataset, name=name)

    def tag_matches(self, tag: str) -> bool:
        """True if this snapshot is <tag>-<timestamp> for exactly this tag.

        "daily" does not match "daily2-..." or "daily-extra-...".
        """
        prefix = f"{tag}-"
        if not self.name.startswith(prefix):
            return False
        return bool(_TIMESTAMP_RE.fullmatch(self.name[len(prefix):]))


@dataclass(frozen=True)
class Request:
    """One zfs invocation: create, destroy or list."""
    operation: str  # "create" | "destroy" | "list"
    target: str
    recursive: bool = False


@dataclass(frozen=True)
class CommandRecord:
    request: Request
    executed: bool


@dataclass(frozen=True)
class Options:
    """Everything one run needs, resolved from flags and the config file."""
    create: bool = False
    prune: bool = False
    list: bool = False
    recursive: bool = False
    dry_run: bool = False
    verbose: bool = False
    tag: str | None = None
    keep: int | None = None
    datasets: tuple[str, ...] = field(default_factory=tuple)
