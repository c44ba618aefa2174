#!/usr/bin/env python3
"""
zonectl - グローバル設定管理モジュール

The global config file is optional. When present it is decoded, validated
against GLOBAL_CONFIG_SCHEMA and frozen; an invalid file aborts startup.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .codec import CodecRegistry, Format
from .errors import ConfigurationError
from .process import ProcessRunner
from .schema import GLOBAL_CONFIG_SCHEMA
from .utils import bool_is_true, get_altroot, get_config_path, is_a_tty, is_test_mode
from .validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatConfig:
    """CONFIG セクション"""

    format: Optional[str] = None


@dataclass(frozen=True)
class ConsoleConfig:
    """CONSOLE セクション"""

    auto_connect: Optional[str] = None
    auto_disconnect: Optional[str] = None
    escape_char: Optional[str] = None


@dataclass(frozen=True)
class SnapshotConfig:
    """SNAPSHOT セクション"""

    prefix: str = ""


@dataclass(frozen=True)
class VncConfig:
    """VNC セクション"""

    bind_address: Optional[str] = None
    novnc_path: Optional[str] = None
    auto_connect: Any = None


@dataclass(frozen=True)
class GlobalConfig:
    """検証済みのグローバル設定（不変）"""

    config: FormatConfig = field(default_factory=FormatConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    vnc: VncConfig = field(default_factory=VncConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GlobalConfig":
        """辞書からGlobalConfigを作成（検証済みであること）"""
        config_data = data.get("CONFIG", {})
        console_data = data.get("CONSOLE", {})
        snapshot_data = data.get("SNAPSHOT", {})
        vnc_data = data.get("VNC", {})

        return cls(
            config=FormatConfig(format=config_data.get("format")),
            console=ConsoleConfig(
                auto_connect=console_data.get("auto_connect"),
                auto_disconnect=console_data.get("auto_disconnect"),
                escape_char=console_data.get("escape_char"),
            ),
            snapshot=SnapshotConfig(prefix=snapshot_data.get("prefix", "")),
            vnc=VncConfig(
                bind_address=vnc_data.get("bind_address"),
                novnc_path=vnc_data.get("novnc_path"),
                auto_connect=vnc_data.get("auto_connect"),
            ),
        )

    @property
    def format(self) -> Format:
        """Configured edit format, json when unset."""
        return Format(self.config.format) if self.config.format else Format.JSON

    @property
    def console_auto_connect(self) -> bool:
        return bool_is_true(self.console.auto_connect)

    @property
    def console_auto_disconnect(self) -> bool:
        return bool_is_true(self.console.auto_disconnect)

    @property
    def vnc_auto_connect(self) -> bool:
        return bool_is_true(self.vnc.auto_connect)


def format_for_path(path: Path) -> Format:
    """Pick the decoder for a config file by its suffix."""
    suffix = path.suffix.lower()
    if suffix == ".toml":
        return Format.TOML
    if suffix in (".yaml", ".yml"):
        return Format.YAML
    return Format.JSON


class ConfigManager:
    """グローバル設定ファイルの読み込みと検証"""

    def __init__(self, config_path: Optional[Path] = None, codecs: Optional[CodecRegistry] = None):
        self.config_path = Path(config_path) if config_path else get_config_path()
        self.codecs = codecs or CodecRegistry()

    def exists(self) -> bool:
        return self.config_path.is_file() and os.access(self.config_path, os.R_OK)

    def load_raw(self) -> Dict[str, Any]:
        """設定ファイルをデコードして返す（未検証）。存在しなければ空。"""
        if not self.exists():
            return {}

        fmt = format_for_path(self.config_path)
        text = self.config_path.read_text(encoding="utf-8")
        data = self.codecs.decode(fmt, text)
        return {} if data is None else data

    def validate_config(self, data: Optional[Mapping[str, Any]] = None) -> List[str]:
        """全ての違反を返す（空なら妥当）"""
        if data is None:
            data = self.load_raw()
        return validate(data, GLOBAL_CONFIG_SCHEMA)

    def load_config(self) -> GlobalConfig:
        """
        設定ファイルを読み込み、検証して返す

        Raises:
            ConfigurationError: デコード失敗、またはスキーマ違反
        """
        if not self.exists():
            return GlobalConfig()

        logger.debug("Global config found at '%s'. Validating...", self.config_path)

        try:
            data = self.load_raw()
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"{self.config_path}: {e}") from e

        errors = self.validate_config(data)
        if errors:
            raise ConfigurationError("\n".join(errors))

        return GlobalConfig.from_dict(data)


@dataclass(frozen=True)
class AppContext:
    """
    プロセス全体で共有するコンテキスト

    Built once at startup and passed to every component; nothing in here is
    recomputed afterwards.
    """

    gconf: GlobalConfig
    codecs: CodecRegistry
    runner: ProcessRunner
    conffmt: Format
    is_tty: bool
    altroot: str = ""
    test_mode: bool = False

    @classmethod
    def create(
        cls,
        env: Optional[Mapping[str, str]] = None,
        config_path: Optional[Path] = None,
        is_tty: Optional[bool] = None,
    ) -> "AppContext":
        """
        環境変数からコンテキストを構築

        グローバル設定はここで検証されるため、不正な設定は即座にエラーとなる。
        """
        env = os.environ if env is None else env
        codecs = CodecRegistry()
        gconf = ConfigManager(config_path or get_config_path(env), codecs).load_config()
        test_mode = is_test_mode(env)

        if is_tty is None:
            is_tty = is_a_tty()

        return cls(
            gconf=gconf,
            codecs=codecs,
            runner=ProcessRunner.from_env(env),
            conffmt=Format.JSON if test_mode else gconf.format,
            is_tty=is_tty and not test_mode,
            altroot=get_altroot(env),
            test_mode=test_mode,
        )

    @property
    def zones_dir(self) -> Path:
        return Path(self.altroot + "/etc/zones")

    def encode_config(self, data: Any) -> str:
        return self.codecs.encode(self.conffmt, data)

    def decode_config(self, text: str) -> Any:
        return self.codecs.decoder(self.conffmt)(text)

    def load_template(self, path: Path, name: str = "") -> Any:
        """Decode a zone template, substituting __ZONENAME__ first."""
        template = Path(path).read_text(encoding="utf-8")
        if name:
            template = template.replace("__ZONENAME__", name)
        return self.decode_config(template)

    def get_file_type(self, data: bytes, suffix: str = "") -> Optional[str]:
        """Run ``file -b`` on the given bytes."""
        with tempfile.NamedTemporaryFile(suffix=suffix) as f:
            f.write(data)
            f.flush()
            lines = self.runner.read_proc("file", ["-b", f.name])
        return lines[0] if lines else None
