"""Framework wiring (Flask)."""

from .wiring import EXTENSION_KEY, Lace, LaceState, get_view

__all__ = ["EXTENSION_KEY", "Lace", "LaceState", "get_view"]
