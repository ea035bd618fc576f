"""CSS selector compiler and matcher.

Supports type / universal / id / class / attribute selectors, the four
combinators, selector groups and a handful of structural pseudo-classes.
Matching is duck-typed over ``lace.dom.nodes`` (``tag``, ``attrs``,
``parent``, ``children``, ``is_element``) so this module has no import-time
dependency on the node classes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator, List, Optional, Tuple

from lace.errors import SelectorSyntaxError

_IDENT = r"-?(?:[A-Za-z_]|[^\x00-\x7f])(?:[\w-]|[^\x00-\x7f])*"
_IDENT_RE = re.compile(_IDENT)
_WS_RE = re.compile(r"\s*")
_ATTR_RE = re.compile(
    r"\[\s*(?P<name>" + _IDENT + r")\s*"
    r"(?:(?P<op>[~|^$*]?=)\s*(?P<value>\"[^\"]*\"|'[^']*'|" + _IDENT + r"|[^\s\]]+)\s*"
    r"(?P<flag>[iI])?\s*)?\]"
)
_NTH_RE = re.compile(r"^\s*(?:(?P<a>[+-]?\d*)n\s*(?:(?P<sign>[+-])\s*(?P<b>\d+))?|(?P<only>[+-]?\d+))\s*$")

_PSEUDOS = {"first-child", "last-child", "only-child", "nth-child", "root", "empty", "not"}


@dataclass(frozen=True)
class AttrTest:
    name: str
    op: Optional[str] = None
    value: Optional[str] = None
    ignore_case: bool = False

    def matches(self, el: Any) -> bool:
        if self.name not in el.attrs:
            return False
        if self.op is None:
            return True
        actual = el.attrs.get(self.name)
        actual = "" if actual is None else actual
        expected = self.value or ""
        if self.ignore_case:
            actual, expected = actual.lower(), expected.lower()
        if self.op == "=":
            return actual == expected
        if self.op == "~=":
            return expected in actual.split()
        if self.op == "|=":
            return actual == expected or actual.startswith(expected + "-")
        if not expected:
            return False
        if self.op == "^=":
            return actual.startswith(expected)
        if self.op == "$=":
            return actual.endswith(expected)
        return expected in actual


@dataclass(frozen=True)
class Pseudo:
    name: str
    nth: Optional[Tuple[int, int]] = None
    negated: Optional["Compound"] = None

    def matches(self, el: Any) -> bool:
        if self.name == "not":
            return self.negated is not None and not self.negated.matches(el)
        if self.name == "root":
            return not _is_element(el.parent)
        if self.name == "empty":
            return not any(_is_element(c) or (c.is_text and c.data) for c in el.children)
        siblings = _element_siblings(el)
        position = next(i for i, s in enumerate(siblings) if s is el)
        if self.name == "first-child":
            return position == 0
        if self.name == "last-child":
            return position == len(siblings) - 1
        if self.name == "only-child":
            return len(siblings) == 1
        a, b = self.nth or (0, 1)
        index = position + 1
        if a == 0:
            return index == b
        return (index - b) % a == 0 and (index - b) // a >= 0


@dataclass(frozen=True)
class Compound:
    tag: Optional[str] = None
    ids: Tuple[str, ...] = ()
    classes: Tuple[str, ...] = ()
    attrs: Tuple[AttrTest, ...] = ()
    pseudos: Tuple[Pseudo, ...] = ()

    def matches(self, el: Any) -> bool:
        if self.tag is not None and el.tag != self.tag:
            return False
        for ident in self.ids:
            if el.attrs.get("id") != ident:
                return False
        if self.classes:
            have = (el.attrs.get("class") or "").split()
            if any(c not in have for c in self.classes):
                return False
        return all(t.matches(el) for t in self.attrs) and all(p.matches(el) for p in self.pseudos)


@dataclass(frozen=True)
class Complex:
    compounds: Tuple[Compound, ...]
    combinators: Tuple[str, ...]

    def matches(self, el: Any) -> bool:
        return self._match_at(el, len(self.compounds) - 1)

    def _match_at(self, el: Any, i: int) -> bool:
        if not self.compounds[i].matches(el):
            return False
        if i == 0:
            return True
        comb = self.combinators[i - 1]
        if comb == ">":
            parent = el.parent
            return _is_element(parent) and self._match_at(parent, i - 1)
        if comb == " ":
            parent = el.parent
            while _is_element(parent):
                if self._match_at(parent, i - 1):
                    return True
                parent = parent.parent
            return False
        previous = _previous_elements(el)
        if comb == "+":
            return bool(previous) and self._match_at(previous[-1], i - 1)
        return any(self._match_at(p, i - 1) for p in previous)


class Selector:
    """A compiled selector group."""

    def __init__(self, source: str, groups: Tuple[Complex, ...]) -> None:
        self.source = source
        self.groups = groups

    def matches(self, el: Any) -> bool:
        return _is_element(el) and any(g.matches(el) for g in self.groups)

    def select(self, scope: Any) -> List[Any]:
        return [el for el in iter_elements(scope) if self.matches(el)]

    def __repr__(self) -> str:
        return f"Selector({self.source!r})"


def _is_element(node: Any) -> bool:
    return node is not None and getattr(node, "is_element", False)


def _element_siblings(el: Any) -> List[Any]:
    parent = el.parent
    if parent is None:
        return [el]
    return [c for c in parent.children if _is_element(c)]


def _previous_elements(el: Any) -> List[Any]:
    siblings = _element_siblings(el)
    for i, s in enumerate(siblings):
        if s is el:
            return siblings[:i]
    return []


def iter_elements(scope: Any) -> Iterator[Any]:
    """Descendant elements of ``scope`` in document (pre-)order."""
    stack = list(reversed(scope.children))
    while stack:
        node = stack.pop()
        if _is_element(node):
            yield node
            stack.extend(reversed(node.children))


class _Parser:
    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def error(self, reason: str) -> SelectorSyntaxError:
        return SelectorSyntaxError(self.source, f"{reason} at position {self.pos}")

    def skip_ws(self) -> bool:
        m = _WS_RE.match(self.source, self.pos)
        moved = m.end() > self.pos
        self.pos = m.end()
        return moved

    def peek(self) -> str:
        return self.source[self.pos:self.pos + 1]

    def ident(self) -> str:
        m = _IDENT_RE.match(self.source, self.pos)
        if not m:
            raise self.error("expected identifier")
        self.pos = m.end()
        return m.group(0)

    def parse_group(self) -> Tuple[Complex, ...]:
        groups: List[Complex] = []
        while True:
            self.skip_ws()
            groups.append(self.parse_complex())
            self.skip_ws()
            if self.pos >= len(self.source):
                break
            if self.peek() != ",":
                raise self.error(f"unexpected {self.peek()!r}")
            self.pos += 1
        return tuple(groups)

    def parse_complex(self) -> Complex:
        compounds = [self.parse_compound()]
        combinators: List[str] = []
        while True:
            had_ws = self.skip_ws()
            ch = self.peek()
            if not ch or ch in ",)":
                break
            if ch in ">+~":
                self.pos += 1
                self.skip_ws()
                combinators.append(ch)
            elif had_ws:
                combinators.append(" ")
            else:
                raise self.error(f"unexpected {ch!r}")
            compounds.append(self.parse_compound())
        return Complex(tuple(compounds), tuple(combinators))

    def parse_compound(self) -> Compound:
        tag: Optional[str] = None
        ids: List[str] = []
        classes: List[str] = []
        attrs: List[AttrTest] = []
        pseudos: List[Pseudo] = []
        start = self.pos
        if self.peek() == "*":
            self.pos += 1
        elif _IDENT_RE.match(self.source, self.pos):
            tag = self.ident().lower()
        while True:
            ch = self.peek()
            if ch == "#":
                self.pos += 1
                ids.append(self.ident())
            elif ch == ".":
                self.pos += 1
                classes.append(self.ident())
            elif ch == "[":
                m = _ATTR_RE.match(self.source, self.pos)
                if not m:
                    raise self.error("malformed attribute selector")
                self.pos = m.end()
                value = m.group("value")
                if value is not None and value[:1] in "\"'":
                    value = value[1:-1]
                attrs.append(AttrTest(m.group("name").lower(), m.group("op"), value, bool(m.group("flag"))))
            elif ch == ":":
                self.pos += 1
                pseudos.append(self.parse_pseudo())
            else:
                break
        if self.pos == start:
            raise self.error("expected selector")
        return Compound(tag, tuple(ids), tuple(classes), tuple(attrs), tuple(pseudos))

    def parse_pseudo(self) -> Pseudo:
        name = self.ident().lower()
        if name not in _PSEUDOS:
            raise self.error(f"unsupported pseudo-class :{name}")
        if name not in ("nth-child", "not"):
            return Pseudo(name)
        if self.peek() != "(":
            raise self.error(f":{name} needs an argument")
        self.pos += 1
        if name == "not":
            self.skip_ws()
            inner = self.parse_compound()
            self.skip_ws()
            self._close_paren()
            return Pseudo(name, negated=inner)
        end = self.source.find(")", self.pos)
        if end == -1:
            raise self.error("unterminated :nth-child(")
        arg = self.source[self.pos:end]
        self.pos = end
        self._close_paren()
        return Pseudo(name, nth=_parse_nth(arg, self))

    def _close_paren(self) -> None:
        if self.peek() != ")":
            raise self.error("expected ')'")
        self.pos += 1


def _parse_nth(arg: str, parser: _Parser) -> Tuple[int, int]:
    text = arg.strip().lower()
    if text == "odd":
        return 2, 1
    if text == "even":
        return 2, 0
    m = _NTH_RE.match(text)
    if not m:
        raise parser.error(f"bad :nth-child argument {arg!r}")
    if m.group("only") is not None:
        return 0, int(m.group("only"))
    raw_a = m.group("a")
    a = -1 if raw_a == "-" else 1 if raw_a in ("", "+") else int(raw_a)
    b = int(m.group("b") or 0)
    if m.group("sign") == "-":
        b = -b
    return a, b


@lru_cache(maxsize=512)
def compile_selector(source: str) -> Selector:
    if not source or not source.strip():
        raise SelectorSyntaxError(source, "empty selector")
    return Selector(source, _Parser(source).parse_group())


def select(scope: Any, selector: str) -> List[Any]:
    return compile_selector(selector).select(scope)


__all__ = ["Selector", "compile_selector", "select", "iter_elements"]
