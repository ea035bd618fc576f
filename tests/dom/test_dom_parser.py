"""Tests for the template parser and serializer."""
from __future__ import annotations

import pytest

from lace.dom import Document, Fragment, parse, parse_fragment
from lace.errors import ParseError


@pytest.mark.parametrize(
    "html",
    [
        '<div id="a" class="x y"><p>Hi <b>there</b></p><br><img src="a.png"></div>',
        "<p>a &amp; b &lt;c&gt;</p>",
        "<!DOCTYPE html><html><!-- hi --><body></body></html>",
        '<view-author author="John" />',
        "<input disabled>",
        "<script>if (a < b && c) { go(); }</script>",
    ],
)
def test_parse_then_serialize_is_stable(html):
    assert parse(html).to_html() == html


def test_attribute_quotes_are_normalized():
    doc = parse("<p id='copy' title=plain>x</p>")
    assert doc.to_html() == '<p id="copy" title="plain">x</p>'


def test_text_and_attribute_values_are_escaped_on_output():
    doc = parse('<p title="a &quot;b&quot;">x</p>')
    p = doc.first("p")
    assert p["title"] == 'a "b"'
    p.set_content("<script>")
    assert doc.to_html() == '<p title="a &#34;b&#34;">&lt;script&gt;</p>'


def test_optional_end_tags_are_closed_implicitly():
    doc = parse("<ul><li>one<li>two</ul><p>x<div>y</div>")
    assert doc.to_html() == "<ul><li>one</li><li>two</li></ul><p>x</p><div>y</div>"
    assert [li.text for li in doc.find("li")] == ["one", "two"]


def test_elements_stay_where_they_are_written():
    doc = parse("<view-master><html><head><title>T</title></head><body>B</body></html></view-master>")
    assert doc.root.tag == "view-master"
    assert doc.first("view-master > html > body").text == "B"


def test_parse_sets_document_ownership():
    doc = parse("<div><p><b>x</b></p></div>")
    assert isinstance(doc, Document)
    assert all(doc.owns(el) for el in doc.elements())
    assert doc.first("b").children[0].owner is doc


@pytest.mark.parametrize(
    "html",
    [
        "<div><span>x</div>",
        "<div>x</div></section>",
        "<div><section>x</section>",
    ],
)
def test_malformed_template_raises_parse_error(html):
    with pytest.raises(ParseError) as excinfo:
        parse(html)
    assert excinfo.value.line == 1


def test_parse_error_reports_position():
    with pytest.raises(ParseError) as excinfo:
        parse("<div>\n  <span>x</div>")
    assert excinfo.value.line == 2
    assert "line 2" in str(excinfo.value)


def test_lenient_mode_from_environment(monkeypatch):
    monkeypatch.setenv("LACE_STRICT_PARSE", "0")
    doc = parse("<div><span>x</div></section>")
    assert doc.to_html() == "<div><span>x</span></div>"


def test_explicit_strict_flag_wins_over_environment(monkeypatch):
    monkeypatch.setenv("LACE_STRICT_PARSE", "0")
    with pytest.raises(ParseError):
        parse("<div>", strict=True)


def test_parse_fragment_is_unowned_and_lenient():
    fragment = parse_fragment("<em>a</em> and <b>b")
    assert isinstance(fragment, Fragment)
    assert [n.owner for n in fragment] == [None, None, None]
    assert fragment.to_html() == "<em>a</em> and <b>b</b>"


def test_parse_rejects_non_string_input():
    with pytest.raises(TypeError):
        parse(b"<p>x</p>")  # type: ignore[arg-type]
