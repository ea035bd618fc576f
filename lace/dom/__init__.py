"""DOM store: parse, query, mutate, clone and serialize HTML trees."""

from .nodes import (
    Comment,
    Container,
    Declaration,
    Document,
    Element,
    Fragment,
    Node,
    NodeList,
    Text,
)
from .parser import parse, parse_fragment
from .selectors import compile_selector


def serialize(node) -> str:
    return node.to_html()


__all__ = [
    "Comment",
    "Container",
    "Declaration",
    "Document",
    "Element",
    "Fragment",
    "Node",
    "NodeList",
    "Text",
    "parse",
    "parse_fragment",
    "serialize",
    "compile_selector",
]
