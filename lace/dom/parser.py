"""HTML template parser.

Builds ``lace.dom.nodes`` trees on top of the standard library
``html.parser``. Parsing is deliberately close to what template authors
write rather than full HTML5 tree construction: elements stay where they
are written (``<html>`` may sit inside a ``<view-master>`` tag), optional
end tags are closed implicitly and everything else must be balanced.
"""
from __future__ import annotations

from html.parser import HTMLParser
from typing import Dict, FrozenSet, List, Optional, Tuple

from lace import config as lace_config
from lace.dom.nodes import (
    VOID_ELEMENTS,
    Comment,
    Container,
    Declaration,
    Document,
    Element,
    Fragment,
    Text,
)
from lace.errors import ParseError
from lace.utils.logging import get_logger

LOG = get_logger("lace.dom")

# Elements whose end tag may be omitted.
OPTIONAL_END = frozenset({
    "p", "li", "dt", "dd", "tr", "td", "th", "option", "optgroup",
    "thead", "tbody", "tfoot", "colgroup", "caption", "html", "head", "body",
})

_BLOCK = frozenset({
    "address", "article", "aside", "blockquote", "details", "div", "dl",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3",
    "h4", "h5", "h6", "header", "hr", "main", "menu", "nav", "ol", "p",
    "pre", "section", "table", "ul",
})

# opening tag -> open elements it closes implicitly (checked at top of stack)
_IMPLIED_CLOSE: Dict[str, FrozenSet[str]] = {
    "li": frozenset({"li"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "tr": frozenset({"tr", "td", "th"}),
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
    "option": frozenset({"option"}),
    "optgroup": frozenset({"option", "optgroup"}),
    "thead": frozenset({"thead", "tbody", "tfoot", "tr", "td", "th", "caption", "colgroup"}),
    "tbody": frozenset({"thead", "tbody", "tfoot", "tr", "td", "th", "caption", "colgroup"}),
    "tfoot": frozenset({"thead", "tbody", "tfoot", "tr", "td", "th", "caption", "colgroup"}),
    "body": frozenset({"head"}),
}
for _tag in _BLOCK:
    _IMPLIED_CLOSE.setdefault(_tag, frozenset({"p"}))


class _TreeBuilder(HTMLParser):
    def __init__(self, root: Container, strict: bool) -> None:
        super().__init__(convert_charrefs=True)
        self.root = root
        self.strict = strict
        self.stack: List[Container] = [root]

    @property
    def current(self) -> Container:
        return self.stack[-1]

    def _fail(self, message: str) -> ParseError:
        line, column = self.getpos()
        return ParseError(message, line, column)

    def _append(self, node) -> None:
        parent = self.current
        node.parent = parent
        parent.children.append(node)

    def _close_implied(self, tag: str) -> None:
        closes = _IMPLIED_CLOSE.get(tag)
        if not closes:
            return
        while len(self.stack) > 1 and self.current.tag in closes:  # type: ignore[attr-defined]
            self.stack.pop()

    @staticmethod
    def _attrs(pairs: List[Tuple[str, Optional[str]]]) -> Dict[str, Optional[str]]:
        attrs: Dict[str, Optional[str]] = {}
        for name, value in pairs:
            attrs.setdefault(name, value)
        return attrs

    def handle_starttag(self, tag: str, attrs) -> None:
        self._close_implied(tag)
        el = Element(tag, self._attrs(attrs))
        self._append(el)
        if tag not in VOID_ELEMENTS:
            self.stack.append(el)

    def handle_startendtag(self, tag: str, attrs) -> None:
        self._close_implied(tag)
        self._append(Element(tag, self._attrs(attrs), self_closing=tag not in VOID_ELEMENTS))

    def handle_endtag(self, tag: str) -> None:
        for depth in range(len(self.stack) - 1, 0, -1):
            if self.stack[depth].tag == tag:  # type: ignore[attr-defined]
                break
        else:
            if tag in VOID_ELEMENTS or tag in OPTIONAL_END:
                return
            if self.strict:
                raise self._fail(f"unexpected end tag </{tag}>")
            LOG.debug("ignoring stray end tag </%s>", tag)
            return
        for open_el in self.stack[depth + 1:]:
            if open_el.tag not in OPTIONAL_END and self.strict:  # type: ignore[attr-defined]
                raise self._fail(f"<{open_el.tag}> is not closed before </{tag}>")  # type: ignore[attr-defined]
        del self.stack[depth:]

    def handle_data(self, data: str) -> None:
        if not data:
            return
        children = self.current.children
        if children and children[-1].is_text:
            children[-1].data += data  # type: ignore[attr-defined]
        else:
            self._append(Text(data))

    def handle_comment(self, data: str) -> None:
        self._append(Comment(data))

    def handle_decl(self, decl: str) -> None:
        self._append(Declaration(f"<!{decl}>"))

    def handle_pi(self, data: str) -> None:
        self._append(Declaration(f"<?{data}>"))

    def unknown_decl(self, data: str) -> None:
        self._append(Declaration(f"<![{data}]>"))

    def finish(self) -> None:
        self.close()
        for open_el in self.stack[1:]:
            if open_el.tag not in OPTIONAL_END and self.strict:  # type: ignore[attr-defined]
                raise self._fail(f"<{open_el.tag}> is never closed")  # type: ignore[attr-defined]
        del self.stack[1:]


def _build(html: str, root: Container, strict: Optional[bool]) -> None:
    if not isinstance(html, str):
        raise TypeError(f"template must be a string, not {type(html).__name__}")
    builder = _TreeBuilder(root, lace_config.strict_parse() if strict is None else strict)
    builder.feed(html)
    builder.finish()


def parse(html: str, strict: Optional[bool] = None) -> Document:
    """Parse ``html`` into an owning ``Document``."""
    doc = Document()
    _build(html, doc, strict)
    for child in doc.children:
        _own(child, doc)
    return doc


def parse_fragment(html: str, strict: Optional[bool] = False) -> Fragment:
    """Parse ``html`` into a detached ``Fragment`` (lenient by default)."""
    fragment = Fragment()
    _build(html, fragment, strict)
    return fragment


def _own(node, doc: Document) -> None:
    stack = [node]
    while stack:
        current = stack.pop()
        current.owner = doc
        stack.extend(getattr(current, "children", ()))


__all__ = ["parse", "parse_fragment", "OPTIONAL_END"]
