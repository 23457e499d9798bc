"""CLI entry point for zfs-snapshots."""
from __future__ import annotations

import argparse
import os
import sys

from zsnap.config import ConfigError, UsageError, build_options, load_defaults
from zsnap.executor import ExecutorError, LocalExecutor
from zsnap.zfs import ZfsEngine

# ANSI color codes (respect NO_COLOR convention: https://no-color.org)
if os.environ.get("NO_COLOR") is not None:
    RED = RESET = ""
else:
    RED = "\033[31m"
    RESET = "\033[0m"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zsnap",
        usage="%(prog)s [-cplrnvh] [-t tag] [-k num] [--config PATH] [dataset ...]",
        description="Create, prune and list tagged ZFS snapshots",
    )
    parser.add_argument("-c", "--create", action="store_true",
                        help="create snapshot(s) (requires -t)")
    parser.add_argument("-p", "--prune", action="store_true",
                        help="prune snapshots (requires -t and -k)")
    parser.add_argument("-l", "--list", action="store_true",
                        help="list snapshots")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="recursively create, delete or list snapshots")
    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="print commands that would be executed without modifying data")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="print commands as they are executed")
    parser.add_argument("-t", "--tag", metavar="tag",
                        help="use tag as the snapshot name prefix")
    parser.add_argument("-k", "--keep", metavar="num",
                        help="keep num snapshots per dataset, including any created in this run")
    parser.add_argument("--config", metavar="PATH",
                        help="YAML file with default tag, keep, recursive, datasets and zfs path")
    parser.add_argument("datasets", nargs="*", metavar="dataset")
    return parser


def _run(parser: argparse.ArgumentParser, args, engine=None) -> int:
    from zsnap.create import run_create
    from zsnap.listing import run_list
    from zsnap.prune import run_prune

    defaults = None
    if args.config:
        try:
            defaults = load_defaults(args.config)
        except (ConfigError, OSError) as e:
            print(f"Config error: {e}", file=sys.stderr)
            return 1

    try:
        options = build_options(
            create=args.create,
            prune=args.prune,
            list_=args.list,
            recursive=args.recursive,
            dry_run=args.dry_run,
            verbose=args.verbose,
            tag=args.tag,
            keep=args.keep,
            datasets=args.datasets,
            defaults=defaults,
        )
    except UsageError as e:
        print(f"{RED}{e}{RESET}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    if engine is None:
        engine = ZfsEngine(LocalExecutor(), zfs=defaults.zfs if defaults else "zfs")

    try:
        created: list[str] = []
        if options.create:
            created = [r.request.target for r in run_create(options, engine)]
        if options.prune:
            run_prune(options, engine, pending=created)
        if options.list:
            for name in run_list(options, engine):
                print(name)
    except ExecutorError as e:
        print(f"{RED}error:{RESET} {e.stderr.strip() or e}", file=sys.stderr)
        return 1

    return 0


def main(argv=None, engine=None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    sys.exit(_run(parser, args, engine))


if __name__ == "__main__":
    main()
