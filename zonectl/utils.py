#!/usr/bin/env python3
"""
Utility functions for zonectl
"""

import math
import os
import re
import sys
from pathlib import Path
from typing import List, Mapping, Optional, TextIO

import click

ENV_PREFIX = "__ZONECTL"

# cloud-initと同じ判定ロジック
PW_HASH_RE = re.compile(r"^\$(?:1|2a|2y|5|6)(?:\$[^$]+){2}$")
NO_RE = re.compile(r"^no?$", re.IGNORECASE)
LINE_BREAK_RE = re.compile(r"\r\n|\n|\r")


def get_package_root() -> Path:
    """パッケージルートディレクトリを取得"""
    return Path(__file__).parent


def get_config_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """グローバル設定ファイルのパスを取得（環境変数対応）

    Note:
        ZONECTL_CONFIG環境変数が設定されている場合はそれを使用、
        未設定の場合はインストール先の etc/zonectl.conf を使用
    """
    env = os.environ if env is None else env
    override = env.get("ZONECTL_CONFIG")
    if override:
        return Path(override).expanduser()

    return get_package_root().parent / "etc" / "zonectl.conf"


def get_altroot(env: Optional[Mapping[str, str]] = None) -> str:
    """Alternate root prefix for zone descriptor files."""
    env = os.environ if env is None else env
    return env.get(f"{ENV_PREFIX}_ALTROOT", "")


def is_test_mode(env: Optional[Mapping[str, str]] = None) -> bool:
    env = os.environ if env is None else env
    return bool(env.get(f"{ENV_PREFIX}TEST"))


def is_a_tty(stream: Optional[TextIO] = None) -> bool:
    """標準入力が端末かどうか"""
    stream = sys.stdin if stream is None else stream
    try:
        return os.isatty(stream.fileno())
    except (AttributeError, OSError, ValueError):
        # fileno()を持たないストリーム（テスト用StringIO等）
        return False


def read_stdin(stream: Optional[TextIO] = None) -> List[str]:
    """
    標準入力を全て読み込み行単位で返す

    端末の場合は何も読まずに空リストを返す。
    """
    stream = sys.stdin if stream is None else stream
    if is_a_tty(stream):
        return []

    return split_lines(stream.read())


def split_lines(text: str) -> List[str]:
    return LINE_BREAK_RE.split(text)


def count_lines(text: str) -> int:
    """Number of line breaks in text (CRLF counts once)."""
    return len(LINE_BREAK_RE.findall(text))


def ask(question: str) -> bool:
    """
    Y/nの確認プロンプト

    "n" または "no"（大文字小文字を区別しない）のみ拒否として扱い、
    それ以外（空入力含む）は承諾とみなす。
    """
    answer = click.prompt(
        question, default="Y", show_default=False, prompt_suffix=" "
    )
    return not NO_RE.match(answer.strip())


def bool_is_true(value) -> bool:
    """Non-boolean values are considered true, except false/off/no."""
    return bool(value) and value not in ("false", "off", "no")


def is_pw_hash(value: str) -> bool:
    return bool(PW_HASH_RE.match(value))


def pretty_size(
    size: float, fmt: str = "{:.0f}{}", units: str = "BKMGTPE"
) -> str:
    """
    バイト数を読みやすい単位に変換

    Examples:
        pretty_size(512) -> '512B'
        pretty_size(4 * 1024 ** 3) -> '4G'
    """
    i = 0 if size <= 0 else int(math.log(size) / math.log(1024.0))
    i = min(i, len(units) - 1)
    return fmt.format(size / 1024**i, units[i])
