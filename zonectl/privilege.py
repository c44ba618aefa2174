#!/usr/bin/env python3
"""
Scoped privilege elevation for single external commands.

A privilege is added to the inheritable set right before the wrapped call
and removed right after it, whether or not the call succeeded. Children
spawned in between inherit it; the rest of the process lifetime does not.
"""

import logging
import os
from contextlib import contextmanager
from typing import Callable, Iterator, Protocol, TypeVar

from .process import ProcessRunner

logger = logging.getLogger(__name__)

PRIV_FILE_DAC_READ = "file_dac_read"
PRIV_FILE_DAC_WRITE = "file_dac_write"
PRIV_SYS_DL_CONFIG = "sys_dl_config"
PRIV_SYS_MOUNT = "sys_mount"

T = TypeVar("T")


class PrivilegeBackend(Protocol):
    def add_inheritable(self, priv: str) -> None: ...

    def remove_inheritable(self, priv: str) -> None: ...


class PprivBackend:
    """Edits the inheritable set of this process with ppriv(1)."""

    def __init__(self, runner: ProcessRunner, pid: int = 0):
        self.runner = runner
        self.pid = pid or os.getpid()

    def _set(self, change: str) -> None:
        self.runner.run(
            "ppriv",
            ["-s", change, str(self.pid)],
            error=f"changing privileges '{change}'",
        )

    def add_inheritable(self, priv: str) -> None:
        self._set(f"I+{priv}")

    def remove_inheritable(self, priv: str) -> None:
        self._set(f"I-{priv}")


@contextmanager
def privileged(backend: PrivilegeBackend, priv: str) -> Iterator[None]:
    """Hold ``priv`` in the inheritable set for the duration of the block."""
    logger.debug("adding '%s' to the inheritable set", priv)
    backend.add_inheritable(priv)
    try:
        yield
    finally:
        logger.debug("removing '%s' from the inheritable set", priv)
        backend.remove_inheritable(priv)


def with_privilege(backend: PrivilegeBackend, priv: str, operation: Callable[[], T]) -> T:
    """Run exactly one operation with ``priv`` inheritable."""
    with privileged(backend, priv):
        return operation()
