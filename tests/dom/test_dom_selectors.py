"""Tests for the CSS selector engine."""
from __future__ import annotations

import pytest

from lace.dom import parse
from lace.dom.selectors import compile_selector, select
from lace.errors import SelectorSyntaxError

PAGE = """<div id="root">
  <ul class="menu main">
    <li class="item first"><a href="/a" data-x="1">A</a></li>
    <li class="item"><a href="/b">B</a></li>
    <li class="item last"><a href="http://ext/c" lang="en-US">C</a></li>
  </ul>
  <p>one</p>
  <p class="note">two</p>
  <span></span>
</div>"""


@pytest.fixture(scope="module")
def doc():
    return parse(PAGE)


def _texts(nodes):
    return [n.text.strip() for n in nodes]


@pytest.mark.parametrize(
    "selector, expected",
    [
        ("li.item", ["A", "B", "C"]),
        ("ul.menu.main > li", ["A", "B", "C"]),
        ("div li a", ["A", "B", "C"]),
        ("div > li", []),
        ("#root > p + p", ["two"]),
        ("ul ~ p", ["one", "two"]),
        ("ul ~ span", [""]),
        ("*.note", ["two"]),
        ("LI.FIRST", []),
        ("LI.first", ["A"]),
    ],
)
def test_type_class_and_combinators(doc, selector, expected):
    assert _texts(doc.find(selector)) == expected


@pytest.mark.parametrize(
    "selector, expected",
    [
        ("a[data-x]", ["A"]),
        ("a[href='/b']", ["B"]),
        ('a[href^="http"]', ["C"]),
        ("a[href$='/b']", ["B"]),
        ("a[href*=ext]", ["C"]),
        ("a[lang|=en]", ["C"]),
        ("li[class~=last] a", ["C"]),
        ("a[href='/A' i]", ["A"]),
        ("a[href='/A']", []),
    ],
)
def test_attribute_selectors(doc, selector, expected):
    assert _texts(doc.find(selector)) == expected


@pytest.mark.parametrize(
    "selector, expected",
    [
        ("li:first-child", ["A"]),
        ("li:last-child", ["C"]),
        ("li:nth-child(2)", ["B"]),
        ("li:nth-child(odd)", ["A", "C"]),
        ("li:nth-child(even)", ["B"]),
        ("li:nth-child(-n+2)", ["A", "B"]),
        ("li:not(.first)", ["B", "C"]),
        ("a:only-child", ["A", "B", "C"]),
        ("span:empty", [""]),
        ("p:empty", []),
    ],
)
def test_structural_pseudo_classes(doc, selector, expected):
    assert _texts(doc.find(selector)) == expected


def test_root_pseudo_class_matches_top_level_element(doc):
    assert [el.get("id") for el in doc.find(":root")] == ["root"]


def test_groups_are_returned_in_document_order(doc):
    found = doc.find("span, p.note, li.first")
    assert [el.tag for el in found] == ["li", "p", "span"]


def test_matches_and_module_level_select(doc):
    link = doc.first("li.last a")
    assert link.matches("ul > li > a[lang]")
    assert not link.matches("p a")
    assert select(doc, "p") == list(doc.find("p"))


def test_compiled_selectors_are_cached():
    assert compile_selector("ul > li") is compile_selector("ul > li")


@pytest.mark.parametrize(
    "selector",
    ["", "   ", "div >", "div,", "p:hover", "a[href", "li:nth-child(x)", "li:not(.a", "p!"],
)
def test_invalid_selectors_raise(selector):
    with pytest.raises(SelectorSyntaxError):
        compile_selector(selector)
