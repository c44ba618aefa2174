#!/usr/bin/env python3
"""
Schema definitions for the zonectl global configuration file.

GLOBAL_CONFIG_SCHEMA drives validation. get_config_file_schema() renders the
same tree as machine-readable documentation for ``zonectl config --schema``.
"""

from typing import Any

from .codec import Format
from .validator import (
    Schema,
    SchemaNode,
    bool_value,
    elem_of,
    ip_address,
    novnc_path,
    regexp,
)

FORMATS = [fmt.value for fmt in Format]


GLOBAL_CONFIG_SCHEMA: Schema = {
    "CONFIG": SchemaNode(
        optional=True,
        description="zone configuration settings",
        members={
            "format": SchemaNode(
                optional=True,
                description="config format",
                example='"format" : "toml"',
                validator=elem_of(*FORMATS),
            ),
        },
    ),
    "CONSOLE": SchemaNode(
        optional=True,
        description="zone console settings",
        members={
            "auto_connect": SchemaNode(
                optional=True,
                description="automatically connect to the console when booting a zone",
                example='"auto_connect" : "on"',
                validator=elem_of("on", "off"),
            ),
            "auto_disconnect": SchemaNode(
                optional=True,
                description="automatically disconnect from the console when a zone is shutdown",
                example='"auto_disconnect" : "on"',
                validator=elem_of("on", "off"),
            ),
            "escape_char": SchemaNode(
                optional=True,
                description="console escape character",
                example='"escape_char" : "_"',
                validator=regexp(r"^.$", "expected a single character"),
            ),
        },
    ),
    "SNAPSHOT": SchemaNode(
        optional=True,
        description="snapshot settings",
        members={
            "prefix": SchemaNode(
                optional=True,
                description="prefix for snapshot names created by zonectl",
                example='"prefix" : "zonectl__"',
                validator=regexp(
                    r"^[-\w]*$",
                    "expected a string containing alphanumeric, _ or - characters",
                ),
            ),
        },
    ),
    "VNC": SchemaNode(
        optional=True,
        description="VNC console settings",
        members={
            "bind_address": SchemaNode(
                optional=True,
                description="default address to bind",
                example='"bind_address" : "[::1]"',
                validator=ip_address(),
            ),
            "novnc_path": SchemaNode(
                optional=True,
                description="path to noVNC",
                example='"novnc_path" : "/path/to/novnc"',
                validator=novnc_path(),
            ),
            "auto_connect": SchemaNode(
                optional=True,
                description="automatically connect as soon as the page has finished loading (webvnc only)",
                example='"auto_connect" : "on"',
                validator=bool_value(),
            ),
        },
    ),
}


COMMANDS_SCHEMA: dict[str, Any] = {
    "name": "zonectl",
    "version": "1.0",
    "description": "Zone configuration helpers: global config inspection and snapshots",
    "commands": {
        "config view": {
            "description": "Display the raw global configuration file",
            "examples": ["zonectl config view"],
        },
        "config validate": {
            "description": "Validate the global configuration file against the schema",
            "examples": ["zonectl config validate"],
            "output": "All violations at once, one per line",
        },
        "snapshot list": {
            "description": "List snapshots of a dataset (oldest first)",
            "arguments": {"dataset": {"required": True, "type": "string"}},
            "examples": ["zonectl snapshot list rpool/zones/web"],
        },
        "snapshot create": {
            "description": "Create a snapshot; the configured SNAPSHOT.prefix is prepended",
            "arguments": {
                "dataset": {"required": True, "type": "string"},
                "snapshot": {"required": True, "type": "string"},
            },
            "examples": ["zonectl snapshot create rpool/zones/web before-upgrade"],
            "side_effects": ["Runs 'zfs snapshot' with sys_mount in the inheritable set"],
        },
    },
    "environment": {
        "ZONECTL_CONFIG": "Global config file (default: <install>/etc/zonectl.conf)",
        "__ZONECTL_<CMD>_ARGS": "Extra arguments appended to an external command",
        "__ZONECTL_ALTROOT": "Alternate root for /etc/zones",
        "VISUAL, EDITOR": "Editor used for interactive zone editing",
        "PAGER": "Pager for long output",
    },
}


def _describe(node: SchemaNode) -> dict[str, Any]:
    doc: dict[str, Any] = {"required": not node.optional}
    if node.description:
        doc["description"] = node.description
    if node.is_branch:
        doc["fields"] = {name: _describe(child) for name, child in node.members.items()}
    elif node.example:
        doc["example"] = node.example
    return doc


def get_config_file_schema() -> dict[str, Any]:
    """Get the global config file schema as a JSON-ready document."""
    return {
        "name": "zonectl.conf",
        "version": "1.0",
        "description": "Global zonectl configuration (json, toml or yaml by file suffix)",
        "sections": {
            name: _describe(node) for name, node in GLOBAL_CONFIG_SCHEMA.items()
        },
    }


def get_full_schema() -> dict[str, Any]:
    return {**COMMANDS_SCHEMA, "config_file": get_config_file_schema()}
