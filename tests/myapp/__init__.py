"""Example application used across the test suite.

``views`` holds the pages and components; ``make_registry`` wires them the
way an application would: the form widget by explicit tag and everything
else by the ``<view-*>`` convention.
"""
from __future__ import annotations

from lace.components.registry import ComponentRegistry, module_provider
from lace.widgets import Input

VIEWS_PACKAGE = "myapp.views"


def make_registry() -> ComponentRegistry:
    registry = ComponentRegistry()
    registry.register("view-input", Input)
    registry.register("view-*", module_provider(VIEWS_PACKAGE))
    return registry
