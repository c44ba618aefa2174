#!/usr/bin/env python3
"""
Declarative schema validation.

A schema is a mapping of member name -> SchemaNode. Leaf nodes carry a
validator callable that returns None when the value is fine and an error
message otherwise. Validation never stops at the first problem: every
violation is collected so the user can fix them all in one go.
"""

import ipaddress
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

Validator = Callable[[Any], Optional[str]]


@dataclass
class SchemaNode:
    """スキーマの1ノード（leafまたはbranch）"""

    optional: bool = False
    description: str = ""
    example: str = ""
    validator: Optional[Validator] = None
    members: Optional[Dict[str, "SchemaNode"]] = None

    @property
    def is_branch(self) -> bool:
        return self.members is not None


Schema = Dict[str, SchemaNode]


def validate(data: Any, schema: Schema) -> List[str]:
    """
    データをスキーマで検証し、全ての違反を返す

    Args:
        data: 検証対象（トップレベルはmapping）
        schema: メンバー名 -> SchemaNode

    Returns:
        違反メッセージのリスト（空なら妥当）
    """
    errors: List[str] = []
    _validate_members(data, schema, "", errors)
    return errors


def _validate_members(
    data: Any, members: Mapping[str, SchemaNode], path: str, errors: List[str]
) -> None:
    if not isinstance(data, Mapping):
        errors.append(f"{path or 'root'}: expected a mapping, got {_type_name(data)}")
        return

    for key in data:
        if key not in members:
            errors.append(f"{_join(path, key)}: unknown member")

    for key, node in members.items():
        member_path = _join(path, key)
        if key not in data:
            if not node.optional:
                errors.append(f"{member_path}: mandatory member is missing")
            continue

        value = data[key]
        if node.is_branch:
            _validate_members(value, node.members, member_path, errors)
        elif node.validator is not None:
            message = node.validator(value)
            if message:
                errors.append(f"{member_path}: {message} (value: {value!r})")


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else str(key)


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


# --- validator factories ---


def elem_of(*choices: str) -> Validator:
    """Value must be exactly one of the given choices."""
    allowed = set(choices)

    def check(value: Any) -> Optional[str]:
        if isinstance(value, str) and value in allowed:
            return None
        return f"expected a value from the list: {', '.join(choices)}"

    return check


def regexp(pattern: str, message: str = "invalid value") -> Validator:
    rx = re.compile(pattern)

    def check(value: Any) -> Optional[str]:
        if isinstance(value, str) and rx.search(value):
            return None
        return message

    return check


def bool_value() -> Validator:
    words = elem_of("on", "off", "yes", "no", "true", "false")

    def check(value: Any) -> Optional[str]:
        # TOML/YAML decode these as real booleans
        if isinstance(value, bool):
            return None
        return words(value)

    return check


def ip_address() -> Validator:
    """'*', IPv4, or IPv6 with optional brackets."""

    def check(value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return "not a valid IP address"
        if value == "*":
            return None

        # either bracket may be missing
        address = value.removeprefix("[").removesuffix("]")
        if address != value:
            try:
                ipaddress.IPv6Address(address)
                return None
            except ValueError:
                return "not a valid IP address"

        try:
            ipaddress.ip_address(address)
        except ValueError:
            return "not a valid IP address"
        return None

    return check


def executable_path() -> Validator:
    def check(value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value:
            return "expected a path"
        if not os.path.isfile(value) or not os.access(value, os.X_OK):
            return f"'{value}' is not an executable file"
        return None

    return check


def novnc_path() -> Validator:
    """Directory containing a noVNC installation (vnc.html)."""

    def check(value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value:
            return "expected a path"
        path = Path(value)
        if not path.is_dir():
            return f"directory '{value}' does not exist"
        if not (path / "vnc.html").is_file():
            return f"'{value}' does not contain noVNC (vnc.html not found)"
        return None

    return check
