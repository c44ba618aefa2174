#!/usr/bin/env python3
"""
Structured data <-> text codecs.

JSON is always available. TOML and YAML backends are imported the first time
the format is used, so a process that only deals with JSON never loads them.
"""

import importlib
import json
import logging
from dataclasses import dataclass
from enum import Enum
from types import ModuleType
from typing import Any, Callable, Dict

from .errors import ConfigurationError, DecodeError
from .utils import count_lines

logger = logging.getLogger(__name__)


class Format(str, Enum):
    JSON = "json"
    TOML = "toml"
    YAML = "yaml"

    @classmethod
    def parse(cls, name: Any) -> "Format":
        """Map a format name onto the enum, falling back to json."""
        try:
            return cls(name)
        except ValueError:
            logger.warning("unknown format '%s', defaulting to json.", name)
            return cls.JSON

    @property
    def suffix(self) -> str:
        return f".{self.value}"


@dataclass(frozen=True)
class Codec:
    format: Format
    encode: Callable[[Any], str]
    decode: Callable[[str], Any]


def offset_to_line(text: str, offset: int) -> int:
    """1-based line number of a character offset in text."""
    return count_lines(text[:offset]) + 1


def load_backend(module: str) -> ModuleType:
    try:
        return importlib.import_module(module)
    except ImportError as e:
        raise ConfigurationError(f"failed to load '{module}'.") from e


# --- JSON ---


def encode_json(data: Any) -> str:
    # canonical order so that re-encoding an unchanged value is byte-identical
    return json.dumps(data, indent=4, sort_keys=True, ensure_ascii=False) + "\n"


def decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(e.msg, offset=e.pos) from e


# --- TOML ---


def _toml_codec() -> Codec:
    tomllib = load_backend("tomllib")
    tomli_w = load_backend("tomli_w")

    def decode(text: str) -> Any:
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise DecodeError(str(e)) from e

    return Codec(Format.TOML, tomli_w.dumps, decode)


# --- YAML ---


def _yaml_codec() -> Codec:
    yaml = load_backend("yaml")

    def encode(data: Any) -> str:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=True)

    def decode(text: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DecodeError(str(e)) from e

    return Codec(Format.YAML, encode, decode)


_FACTORIES: Dict[Format, Callable[[], Codec]] = {
    Format.JSON: lambda: Codec(Format.JSON, encode_json, decode_json),
    Format.TOML: _toml_codec,
    Format.YAML: _yaml_codec,
}


class CodecRegistry:
    """Format -> Codec, backends resolved once on first use."""

    def __init__(self):
        self._codecs: Dict[Format, Codec] = {}

    def get(self, fmt: Format) -> Codec:
        if fmt not in self._codecs:
            self._codecs[fmt] = _FACTORIES[fmt]()
        return self._codecs[fmt]

    def is_loaded(self, fmt: Format) -> bool:
        return fmt in self._codecs

    def encode(self, fmt: Any, data: Any) -> str:
        """Encode data, unknown format names fall back to json with a warning."""
        return self.get(Format.parse(fmt)).encode(data)

    def decoder(self, fmt: Format) -> Callable[[str], Any]:
        return self.get(fmt).decode

    def decode(self, fmt: Format, text: str) -> Any:
        return self.decoder(fmt)(text)
