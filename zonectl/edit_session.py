#!/usr/bin/env python3
"""
Interactive and non-interactive zone configuration editing.

An edit session produces a new configuration for a zone, either from an
editor, from piped standard input or from property overrides, and keeps
asking until the zone accepts it or the user gives up. The zone descriptor
on disk is backed up first; if it was rewritten behind our back and the
edit is abandoned, the backup is written back.
"""

import logging
import os
import sys
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TextIO, Tuple

import click

from .codec import offset_to_line
from .config import AppContext
from .errors import DecodeError, ProcessError, ValidationError
from .resource import Zone
from .utils import ask, read_stdin

logger = logging.getLogger(__name__)

CREATE_DEFAULTS_PROMPT = (
    "You did not make any changes to the default configuration,\n"
    "do you want to create the zone with all defaults [Y/n]?"
)
RETRY_PROMPT = "Do you want to retry [Y/n]?"


class EditMode(Enum):
    OVERRIDE = "override"
    INTERACTIVE = "interactive"
    PIPED = "piped"


class EditOutcome(Enum):
    """Result of an edit session."""

    COMMITTED = "committed"
    UNCHANGED = "unchanged"
    ABORTED = "aborted"
    REVERTED = "reverted"
    FAILED = "failed"

    @property
    def success(self) -> bool:
        return self in (EditOutcome.COMMITTED, EditOutcome.UNCHANGED)


class AttemptStatus(Enum):
    VALID = "valid"
    RECOVERABLE = "recoverable"


@dataclass(frozen=True)
class Attempt:
    """One decode + validate pass over the current buffer."""

    status: AttemptStatus
    error: str = ""

    @classmethod
    def valid(cls) -> "Attempt":
        return cls(AttemptStatus.VALID)

    @classmethod
    def recoverable(cls, error: str) -> "Attempt":
        return cls(AttemptStatus.RECOVERABLE, error)


@dataclass(frozen=True)
class ZoneBackup:
    """In-memory copy of a zone descriptor file."""

    path: Path
    data: bytes
    mtime_ns: int

    @classmethod
    def capture(cls, path: Path) -> Optional["ZoneBackup"]:
        if not path.is_file() or not os.access(path, os.R_OK):
            return None

        logger.debug("backing up current zone config from %s", path)
        mtime_ns = path.stat().st_mtime_ns
        return cls(path=path, data=path.read_bytes(), mtime_ns=mtime_ns)

    def changed(self) -> bool:
        try:
            return self.path.stat().st_mtime_ns != self.mtime_ns
        except FileNotFoundError:
            return True

    def restore(self) -> None:
        self.path.write_bytes(self.data)


def describe_decode_error(error: DecodeError, text: str) -> str:
    """Rephrase a character offset as an editor line number."""
    if error.offset is None:
        return str(error)
    return f"{error.message} at line {offset_to_line(text, error.offset)}"


class EditSession:
    """
    ゾーン設定の編集セッション

    1回のedit呼び出しにつき1つ。バックアップは他のセッションと共有しない。
    """

    def __init__(
        self,
        ctx: AppContext,
        zone: Zone,
        props: Optional[Mapping[str, Any]] = None,
        stdin: Optional[TextIO] = None,
    ):
        self.ctx = ctx
        self.zone = zone
        self.props: Dict[str, Any] = dict(props or {})
        self.stdin = sys.stdin if stdin is None else stdin
        self.backup: Optional[ZoneBackup] = None
        self.text = ""
        self.valid = False

    @property
    def mode(self) -> EditMode:
        if self.props:
            return EditMode.OVERRIDE
        if self.ctx.is_tty:
            return EditMode.INTERACTIVE
        return EditMode.PIPED

    @property
    def descriptor_path(self) -> Path:
        return self.ctx.zones_dir / f"{self.zone.name}.xml"

    def run(self) -> EditOutcome:
        """
        編集→検証→リトライのループを実行

        Returns:
            EditOutcome（success プロパティで成否を判定）

        Raises:
            ProcessError: エディタを起動できなかった場合
        """
        self.backup = ZoneBackup.capture(self.descriptor_path)
        mode = self.mode

        if mode is EditMode.INTERACTIVE:
            self.text = self.ctx.encode_config(self.zone.config)

        while not self.valid:
            modified, self.text = self._present(mode)

            if not modified:
                if self.zone.exists():
                    return EditOutcome.REVERTED if self._restore() else EditOutcome.UNCHANGED

                if not ask(CREATE_DEFAULTS_PROMPT):
                    return EditOutcome.ABORTED

            attempt = self._attempt(mode)
            if attempt.status is AttemptStatus.VALID:
                self.valid = True
            elif attempt.status is AttemptStatus.RECOVERABLE:
                click.echo(attempt.error, err=True)

                if not self._want_retry(mode):
                    return EditOutcome.REVERTED if self._restore() else EditOutcome.FAILED

        return EditOutcome.COMMITTED

    def _present(self, mode: EditMode) -> Tuple[bool, str]:
        if mode is EditMode.OVERRIDE:
            return True, ""
        if mode is EditMode.INTERACTIVE:
            return self._edit(self.text)
        return True, "\n".join(read_stdin(self.stdin))

    def _edit(self, text: str) -> Tuple[bool, str]:
        """
        エディタで一時ファイルを編集

        Returns:
            (変更されたか, 編集後のテキスト)
        """
        fd, name = tempfile.mkstemp(suffix=self.ctx.conffmt.suffix)
        os.close(fd)
        path = Path(name)

        try:
            path.write_text(text, encoding="utf-8")
            mtime_ns = path.stat().st_mtime_ns

            try:
                self.ctx.runner.run("editor", [str(path)])
            except ProcessError as e:
                if e.spawn_failed:
                    raise
                return False, text

            return path.stat().st_mtime_ns != mtime_ns, path.read_text(encoding="utf-8")
        finally:
            path.unlink(missing_ok=True)

    def _attempt(self, mode: EditMode) -> Attempt:
        logger.debug("validating %s", self.ctx.conffmt.value.upper())

        if mode is EditMode.OVERRIDE:
            # shallow merge, overrides win
            config = {**self.zone.config, **self.props}
        else:
            try:
                config = self.ctx.decode_config(self.text)
            except DecodeError as e:
                return Attempt.recoverable(describe_decode_error(e, self.text))

        logger.debug("validating config")
        try:
            self.zone.set_config(config)
        except ValidationError as e:
            return Attempt.recoverable(str(e))

        return Attempt.valid()

    def _want_retry(self, mode: EditMode) -> bool:
        # nothing to re-read outside the editor
        if mode is not EditMode.INTERACTIVE:
            return False
        return ask(RETRY_PROMPT)

    def _restore(self) -> bool:
        """Write the backup back if the descriptor changed since capture."""
        if self.backup is None or not self.backup.changed():
            return False

        logger.warning("restoring the zone config.")
        self.backup.restore()
        return True


def edit(
    ctx: AppContext,
    zone: Zone,
    props: Optional[Mapping[str, Any]] = None,
    stdin: Optional[TextIO] = None,
) -> bool:
    """Run an edit session, return True when the zone has a valid config."""
    return EditSession(ctx, zone, props, stdin).run().success


def edit_in_background(
    ctx: AppContext,
    zone: Zone,
    props: Optional[Mapping[str, Any]] = None,
    terminate: Callable[[int], Any] = os._exit,
) -> "Future[bool]":
    """
    Run an edit session in a worker thread.

    For image zones the image collection is flagged as being edited until
    the session finishes. The returned future resolves to True once the
    edited configuration has been assigned to ``zone.config``. A failed or
    abandoned edit terminates the process instead of resolving.
    """
    result: "Future[bool]" = Future()
    images = zone.zones.images if zone.opts.get("image") else None
    if images is not None:
        images.editing = True

    def work() -> Tuple[EditOutcome, Dict[str, Any]]:
        outcome = EditSession(ctx, zone, props).run()
        return outcome, zone.config

    def done(future: "Future[Tuple[EditOutcome, Dict[str, Any]]]") -> None:
        error = future.exception()
        if error is not None:
            logger.error("editing zone '%s' failed: %s", zone.name, error)
            terminate(1)
            return

        outcome, config = future.result()
        if not outcome.success:
            terminate(1)
            return

        # callback内の例外はconcurrent.futuresに握り潰されるため明示的に終了する
        try:
            zone.config = config
            if images is not None:
                images.editing = False
        except Exception as e:
            logger.error("applying the edited config of zone '%s' failed: %s", zone.name, e)
            terminate(1)
            return

        result.set_result(True)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="zonectl-edit")
    executor.submit(work).add_done_callback(done)
    executor.shutdown(wait=False)
    return result
