"""Per-request renderer for one outermost view instance."""
from __future__ import annotations

from typing import TYPE_CHECKING

from lace.components.view import View
from lace.dom.nodes import Document

if TYPE_CHECKING:  # pragma: no cover
    from lace.rendering.factory import ViewFactory


class Renderer:
    def __init__(self, factory: "ViewFactory", model: View) -> None:
        self.factory = factory
        self.model = model

    def get_processed_dom(self) -> Document:
        """Clone of the base DOM with components spliced and hooks applied."""
        return self.factory.render_instance(self.model)

    def render(self) -> str:
        return self.get_processed_dom().to_html()

    def __str__(self) -> str:
        return self.render()


__all__ = ["Renderer"]
