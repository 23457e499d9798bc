"""Run zfs as a child process and turn failures into ExecutorError."""
from __future__ import annotations

import shlex
import subprocess
from typing import Protocol, runtime_checkable


class ExecutorError(Exception):
    """A command could not be started or exited non-zero.

    `stderr` is kept untouched so callers can show zfs's own message.
    """
    def __init__(self, cmd: list[str], returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no error output"
        super().__init__(f"{shlex.join(cmd)} failed ({returncode}): {detail}")


@runtime_checkable
class Executor(Protocol):
    def run(self, cmd: list[str]) -> str:
        """Return stdout of `cmd`; raise ExecutorError unless it exits 0."""
        raise NotImplementedError


class LocalExecutor:
    """argv goes straight to exec, so names with spaces are never re-split."""

    def run(self, cmd: list[str]) -> str:
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            # zfs not installed or not executable; 127 as a shell would report
            raise ExecutorError(cmd, 127, str(e)) from e
        if proc.returncode:
            raise ExecutorError(cmd, proc.returncode, proc.stderr)
        return proc.stdout
