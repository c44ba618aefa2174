"""Shared fixtures for zonectl tests."""

from pathlib import Path
from types import SimpleNamespace
from typing import Callable, List, Optional

import pytest

from zonectl.codec import CodecRegistry, Format
from zonectl.config import AppContext, GlobalConfig
from zonectl.errors import ValidationError


class FakeZone:
    """Minimal zone: keeps its config in memory, optional validation hook."""

    def __init__(
        self,
        name: str = "web",
        config: Optional[dict] = None,
        exists: bool = True,
        validator: Optional[Callable[[dict], None]] = None,
        opts: Optional[dict] = None,
    ):
        self.name = name
        self._config = dict(config or {})
        self._exists = exists
        self.validator = validator
        self.opts = opts or {}
        self.zones = SimpleNamespace(images=SimpleNamespace(editing=False))
        self.applied: List[dict] = []

    def exists(self) -> bool:
        return self._exists

    @property
    def config(self) -> dict:
        return self._config

    @config.setter
    def config(self, value: dict) -> None:
        self._config = value

    def set_config(self, config: dict) -> dict:
        if self.validator is not None:
            self.validator(config)
        if not isinstance(config, dict):
            raise ValidationError("zone config must be a mapping")
        self.applied.append(config)
        self._config = dict(config)
        return self._config


class FakeRunner:
    """Records calls; the editor is simulated by a callback on the temp file."""

    def __init__(self, on_editor=None, error=None, output=None):
        self.on_editor = on_editor
        self.error = error
        self.output = output or {}
        self.calls = []

    def run(self, name, args=(), error=None, tolerate=None):
        self.calls.append((name, list(args)))
        if self.error is not None:
            raise self.error
        if name == "editor" and self.on_editor is not None:
            self.on_editor(Path(args[0]))
        return 0

    def read_proc(self, name, args=()):
        self.calls.append((name, list(args)))
        return list(self.output.get(name, []))


@pytest.fixture
def make_context(tmp_path):
    def factory(runner=None, is_tty=False, conffmt=Format.JSON, gconf=None):
        (tmp_path / "etc" / "zones").mkdir(parents=True, exist_ok=True)
        return AppContext(
            gconf=gconf or GlobalConfig(),
            codecs=CodecRegistry(),
            runner=runner or FakeRunner(),
            conffmt=conffmt,
            is_tty=is_tty,
            altroot=str(tmp_path),
        )

    return factory


@pytest.fixture
def zone_factory():
    return FakeZone


@pytest.fixture
def runner_factory():
    return FakeRunner
