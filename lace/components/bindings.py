"""Attribute binding resolution for component tags.

Attribute value syntaxes on a component tag:

``literal``            the string itself
``$.a.b``              path read off the calling model (mapping keys or attributes)
``\\selector``          detached clone of the first match in the caller's DOM
``\\selector:content``  fragment with the inner nodes of every match
``@selector``          ``NodeList`` of clones of every match (``\\@selector`` too)

The implicit ``content`` binding (the tag's inner nodes) is computed by the
engine, not here. Back-references always hand out clones, so extracting
values never disturbs the caller's DOM and the order in which attributes
are declared does not matter.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Type

from lace.components.view import View
from lace.dom.nodes import Container, Element, Fragment, NodeList
from lace.dom.selectors import compile_selector
from lace.errors import MissingRequiredAttribute, SelectorNotFound

CONTENT_SUFFIX = ":content"


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


class BindingKind(str, Enum):
    LITERAL = "literal"
    MODEL = "model"
    BACKREF = "backref"
    COLLECTION = "collection"
    CONTENT = "content"


@dataclass(frozen=True)
class Binding:
    name: str
    kind: BindingKind
    expression: Optional[str]
    target: Any = None
    inner: bool = False
    required: bool = True


def attribute_name(raw_name: str) -> str:
    """``copy-date`` on a tag binds the ``copy_date`` attribute."""
    return raw_name.replace("-", "_")


def parse_binding(name: str, raw: Optional[str], required: bool = True) -> Binding:
    if raw is None:
        return Binding(name, BindingKind.LITERAL, raw, True, required=required)
    if raw.startswith("$."):
        path = raw[2:]
        if not path or any(not part for part in path.split(".")):
            raise ValueError(f"attribute {name!r}: malformed model path {raw!r}")
        return Binding(name, BindingKind.MODEL, raw, path, required=required)
    if raw.startswith("\\@") or (raw.startswith("@") and len(raw) > 1):
        selector = raw[2:] if raw.startswith("\\") else raw[1:]
        compile_selector(selector)
        return Binding(name, BindingKind.COLLECTION, raw, selector, required=required)
    if raw.startswith("\\") and len(raw) > 1:
        selector = raw[1:]
        inner = selector.endswith(CONTENT_SUFFIX)
        if inner:
            selector = selector[: -len(CONTENT_SUFFIX)]
        compile_selector(selector)
        return Binding(name, BindingKind.BACKREF, raw, selector, inner=inner, required=required)
    return Binding(name, BindingKind.LITERAL, raw, raw, required=required)


def lookup_path(model: Any, path: str) -> Any:
    """Walk ``path`` over ``model``; ``MISSING`` if a segment is absent.

    Zero-argument bound methods are called, so ``$.form.fif`` works on
    both properties and accessor methods.
    """
    current = model
    for segment in path.split("."):
        if current is None:
            return MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        else:
            current = getattr(current, segment, MISSING)
            if current is MISSING:
                return MISSING
        if inspect.ismethod(current):
            current = current()
    return current


def resolve_binding(binding: Binding, model: Any, dom: Optional[Container]) -> Any:
    kind = binding.kind
    if kind is BindingKind.LITERAL:
        return binding.target
    if kind is BindingKind.MODEL:
        value = lookup_path(model, binding.target)
        if value is MISSING and binding.required:
            raise MissingRequiredAttribute(binding.name, path=binding.expression)
        return value
    if kind is BindingKind.COLLECTION:
        matches = dom.find(binding.target) if dom is not None else NodeList()
        return NodeList(node.clone() for node in matches)
    if kind is BindingKind.BACKREF:
        matches = dom.find(binding.target) if dom is not None else NodeList()
        if not matches:
            if binding.required:
                raise SelectorNotFound(binding.target, binding.name)
            return MISSING
        if binding.inner:
            fragment = Fragment()
            for match in matches:
                fragment.append_content([child.clone() for child in match.children])
            return fragment
        return matches[0].clone()
    raise ValueError(f"binding {binding.name!r} of kind {kind.value} is computed by the engine")


def bind_attributes(view_class: Type[View], tag: Element, model: Any, dom: Optional[Container]) -> Dict[str, Any]:
    """Resolve every attribute declared on ``tag`` for ``view_class``."""
    specs = {spec.name: spec for spec in view_class.attributes()}
    values: Dict[str, Any] = {}
    for raw_name, raw in tag.attrs.items():
        name = attribute_name(raw_name)
        spec = specs.get(name)
        binding = parse_binding(name, raw, required=spec.required if spec else False)
        try:
            value = resolve_binding(binding, model, dom)
        except MissingRequiredAttribute as exc:
            raise MissingRequiredAttribute(name, view_class.identifier(), exc.path) from exc
        if value is not MISSING:
            values[name] = value
    return values


def check_declared(view_class: Type[View], tag: Element, provided: Iterable[str] = ()) -> None:
    """Startup check: every required attribute is declared on the tag.

    ``provided`` names attributes the factory supplies on its own (init
    args such as ``app`` or ``ctx``).
    """
    declared = {attribute_name(n) for n in tag.attrs} | set(provided)
    for spec in view_class.attributes():
        if spec.required and spec.name != "content" and spec.name not in declared:
            raise MissingRequiredAttribute(spec.name, view_class.identifier())


__all__ = [
    "MISSING",
    "Binding",
    "BindingKind",
    "attribute_name",
    "parse_binding",
    "lookup_path",
    "resolve_binding",
    "bind_attributes",
    "check_declared",
]
