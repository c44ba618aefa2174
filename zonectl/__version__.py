#!/usr/bin/env python3
"""
Version information for zonectl
"""

__version__ = "0.3.0"


def get_version() -> str:
    """
    Get the application version

    Returns:
        Version string
    """
    return __version__


if __name__ == "__main__":
    print(get_version())
