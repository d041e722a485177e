"""Runtime module - Bootstrap and lifecycle management"""

from .bootstrap import (
    RuntimeComponents,
    bootstrap,
    get_current_components,
)

__all__ = [
    "bootstrap",
    "get_current_components",
    "RuntimeComponents",
]
