"""Base DOM lifecycle and per-request rendering."""

from .factory import ViewFactory
from .renderer import Renderer

__all__ = ["ViewFactory", "Renderer"]
