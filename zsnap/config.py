"""Load YAML defaults and validate the requested operations into Options."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import yaml

from zsnap.models import RESERVED_TAG_CHARS, Options


class ConfigError(Exception):
    pass


class UsageError(Exception):
    """Invalid combination of command-line options; no zfs call is made."""


_KNOWN_KEYS = {"tag", "keep", "recursive", "datasets", "zfs"}


@dataclass
class FileDefaults:
    tag: str | None = None
    keep: int | None = None
    recursive: bool = False
    datasets: list[str] = field(default_factory=list)
    zfs: str = "zfs"


def load_defaults(path: str) -> FileDefaults:
    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        return FileDefaults()
    if not isinstance(raw, dict):
        raise ConfigError(f"Config must be a YAML mapping: {path}")

    unknown = sorted(set(raw) - _KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config key(s): {', '.join(map(str, unknown))}")

    tag = raw.get("tag")
    if tag is not None:
        tag = str(tag)

    keep = raw.get("keep")
    if keep is not None:
        if isinstance(keep, bool) or not isinstance(keep, int):
            raise ConfigError(f"'keep' must be an integer, got {keep!r}")
        if keep < 0:
            raise ConfigError(f"'keep' must be >= 0, got {keep}")

    recursive = raw.get("recursive", False)
    if not isinstance(recursive, bool):
        raise ConfigError(f"'recursive' must be true or false, got {recursive!r}")

    datasets_raw = raw.get("datasets") or []
    if not isinstance(datasets_raw, list):
        raise ConfigError("'datasets' must be a list")
    datasets = []
    for d in datasets_raw:
        name = str(d).strip() if d is not None else ""
        if not name:
            raise ConfigError(f"Invalid dataset entry: {d!r}")
        datasets.append(name)

    zfs = raw.get("zfs", "zfs")
    if not zfs:
        raise ConfigError("'zfs' must not be empty")

    return FileDefaults(
        tag=tag,
        keep=keep,
        recursive=recursive,
        datasets=datasets,
        zfs=str(zfs),
    )


def _parse_keep(value: str) -> int:
    try:
        keep = int(value)
    except ValueError:
        raise UsageError(f"Invalid -k value: {value!r}") from None
    if keep < 0:
        raise UsageError(f"Invalid -k value: {value!r} (must be >= 0)")
    return keep


def build_options(
    create: bool = False,
    prune: bool = False,
    list_: bool = False,
    recursive: bool = False,
    dry_run: bool = False,
    verbose: bool = False,
    tag: str | None = None,
    keep: str | None = None,
    datasets: Sequence[str] = (),
    defaults: FileDefaults | None = None,
) -> Options:
    """Merge flags over file defaults and check that the run makes sense.

    Raises UsageError on the first problem found. keep is the raw -k string.
    """
    defaults = defaults or FileDefaults()

    if not (create or prune or list_):
        raise UsageError("At least one of -c, -p, and -l must be specified")

    datasets = tuple(datasets) or tuple(defaults.datasets)
    if (create or prune) and not datasets:
        raise UsageError("At least one dataset must be specified")

    # A file tag names the series to create and prune; it never filters -l.
    if not tag and (create or prune):
        tag = defaults.tag
    if (create or prune) and not tag:
        raise UsageError("Missing -t option")
    if tag and (any(c in tag for c in RESERVED_TAG_CHARS)
                or any(c.isspace() for c in tag)):
        raise UsageError(f"Invalid tag {tag!r}: must not contain whitespace or any of {RESERVED_TAG_CHARS!r}")

    if keep is not None and not prune:
        raise UsageError("-k option is only valid with -p")
    resolved_keep = None
    if prune:
        if keep is not None:
            resolved_keep = _parse_keep(keep)
        elif defaults.keep is not None:
            resolved_keep = defaults.keep
        else:
            raise UsageError("Missing -k option")

    return Options(
        create=create,
        prune=prune,
        list=list_,
        recursive=recursive or defaults.recursive,
        dry_run=dry_run,
        verbose=verbose,
        tag=tag,
        keep=resolved_keep,
        datasets=datasets,
    )
