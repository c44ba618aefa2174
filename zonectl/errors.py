#!/usr/bin/env python3
"""
Exception hierarchy for zonectl.

ConfigurationError and ProcessError are fatal and propagate to the caller.
DecodeError and ValidationError are recoverable inside an edit session.
"""

from typing import Optional


class ZonectlError(Exception):
    """Base class for all zonectl errors."""


class ConfigurationError(ZonectlError):
    """Unknown command, unloadable codec backend or invalid global config."""


class DecodeError(ZonectlError):
    """Text could not be decoded in the selected format.

    Args:
        message: Backend error message
        offset: Character offset of the failure, if the backend reports one
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset


class ValidationError(ZonectlError):
    """Configuration decoded fine but was rejected by the zone."""


class ProcessError(ZonectlError):
    """External command could not be started or exited with an error.

    ``returncode`` is None when the process never started.
    """

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode

    @property
    def spawn_failed(self) -> bool:
        return self.returncode is None
