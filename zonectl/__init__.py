"""
zonectl - zone configuration editing helpers
"""

from .__version__ import __version__
from .codec import CodecRegistry, Format
from .config import AppContext, ConfigManager, GlobalConfig
from .edit_session import EditOutcome, EditSession, edit, edit_in_background
from .errors import (
    ConfigurationError,
    DecodeError,
    ProcessError,
    ValidationError,
    ZonectlError,
)
from .process import ProcessRunner

__all__ = [
    "__version__",
    "AppContext",
    "CodecRegistry",
    "ConfigManager",
    "ConfigurationError",
    "DecodeError",
    "EditOutcome",
    "EditSession",
    "Format",
    "GlobalConfig",
    "ProcessError",
    "ProcessRunner",
    "ValidationError",
    "ZonectlError",
    "edit",
    "edit_in_background",
]
