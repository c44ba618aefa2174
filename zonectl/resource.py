#!/usr/bin/env python3
"""
Contract of the zone object an edit session works on.

Zones are owned by the caller; the edit session only reads ``config``,
hands candidate configurations to ``set_config`` and, for image zones,
flips the ``editing`` flag on the owning image collection.
"""

from typing import Any, Dict, Mapping, Protocol


class ImageCollection(Protocol):
    editing: bool


class ZoneCollection(Protocol):
    images: ImageCollection


class Zone(Protocol):
    name: str
    opts: Mapping[str, Any]
    zones: ZoneCollection

    def exists(self) -> bool: ...

    @property
    def config(self) -> Dict[str, Any]: ...

    @config.setter
    def config(self, value: Dict[str, Any]) -> None: ...

    def set_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and apply config; raise ValidationError when invalid."""
        ...
