# messaging_core/core/__init__.py
"""
messaging-core application core: app state, lifespan, routes and
exception handlers
"""

from messaging_core import __version__, __description__, __author__

__all__ = [
    "__version__",
    "__description__",
    "__author__",
]
