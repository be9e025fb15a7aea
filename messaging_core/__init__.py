# =============================================================================
# messaging-core Main Package - Dynamic Version Loading
# =============================================================================
"""
messaging-core - conversations, messages and read-state fan-out service

Version is loaded from installed package metadata, falling back to
pyproject.toml when running from a source checkout.
"""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path


def _get_version() -> str:
    """
    Get package version from installed metadata.

    Returns:
        Version string (e.g., "0.3.0")
    """
    try:
        return version("messaging-core")
    except PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        with open(pyproject_path, "rb") as f:
            return tomllib.load(f)["project"]["version"]

    return "0.0.0-unknown"


__version__: str = _get_version()
__description__: str = "messaging-core - conversations, messages and read-state fan-out"
__author__: str = "messaging-core team"

__all__ = [
    "__version__",
    "__description__",
    "__author__",
]
