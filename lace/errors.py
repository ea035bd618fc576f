"""Engine error taxonomy.

Startup errors abort ``ViewFactory.startup()``; request errors propagate out
of ``Renderer.render()``. Nothing here is retried or swallowed by the engine.
"""
from __future__ import annotations

from typing import Optional, Sequence


class LaceError(RuntimeError):
    """Base class for every engine failure."""


class ParseError(LaceError, ValueError):
    """Raised when a template is not well-formed HTML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None) -> None:
        self.line = line
        self.column = column
        where = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{where}")


class SelectorSyntaxError(LaceError, ValueError):
    """Raised when a CSS selector cannot be parsed."""

    def __init__(self, selector: str, reason: str) -> None:
        self.selector = selector
        super().__init__(f"invalid selector {selector!r}: {reason}")


class UnknownComponent(LaceError, LookupError):
    """Raised when a component tag has no resolvable definition."""

    def __init__(self, tag: str, identifier: Optional[str] = None) -> None:
        self.tag = tag
        self.identifier = identifier
        detail = f" (looked up {identifier!r})" if identifier else ""
        super().__init__(f"no component registered for <{tag}>{detail}")


class SelectorNotFound(LaceError, LookupError):
    """Raised when a required selector lookup matched nothing."""

    def __init__(self, selector: str, attribute: Optional[str] = None) -> None:
        self.selector = selector
        self.attribute = attribute
        target = f" for attribute {attribute!r}" if attribute else ""
        super().__init__(f"selector {selector!r} matched nothing{target}")


class MissingRequiredAttribute(LaceError, ValueError):
    """Raised when a required attribute has no resolvable value."""

    def __init__(self, attribute: str, component: Optional[str] = None, path: Optional[str] = None) -> None:
        self.attribute = attribute
        self.component = component
        self.path = path
        owner = f" of {component}" if component else ""
        via = f" (path {path!r} did not resolve)" if path else ""
        super().__init__(f"missing required attribute {attribute!r}{owner}{via}")


MissingAttribute = MissingRequiredAttribute


class OwnershipError(LaceError):
    """Raised when an operation mixes nodes of two unrelated documents."""


class CycleError(LaceError):
    """Raised when a component transitively includes itself."""

    def __init__(self, chain: Sequence[str]) -> None:
        self.chain = tuple(chain)
        super().__init__("component cycle: " + " -> ".join(self.chain))


class RegistryFrozenError(LaceError):
    """Raised when registering components after startup completed."""


__all__ = [
    "LaceError",
    "ParseError",
    "SelectorSyntaxError",
    "UnknownComponent",
    "SelectorNotFound",
    "MissingRequiredAttribute",
    "MissingAttribute",
    "OwnershipError",
    "CycleError",
    "RegistryFrozenError",
]
