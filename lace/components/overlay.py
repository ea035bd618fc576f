"""Overlay (master layout) components.

A ``Layout`` wraps the page that declares it instead of being inserted into
it. The page passes fragments through back-reference attributes::

    <view-master title='\\title:content' css='@link' meta='@meta'
                 body='\\body:content'>
      <html>...</html>
    </view-master>

At startup the layout builds its own DOM, ``process_overlay`` places the
extracted values in it, and the result replaces the page's base DOM.
"""
from __future__ import annotations

from lace.components.view import StartupMutator, View
from lace.dom.nodes import Document
from lace.utils.logging import get_logger

LOG = get_logger("lace.overlay")


class Layout(View, StartupMutator):
    def process_overlay(self, dom: Document) -> None:
        """Fill the layout's own DOM from the bound attributes."""

    def on_component_add(self, dom: Document) -> None:
        own = self.own_dom()
        self.process_overlay(own)
        dom.overlay(own)
        LOG.debug("%s overlaid its caller", self.identifier())


__all__ = ["Layout"]
