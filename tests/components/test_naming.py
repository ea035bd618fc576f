"""Tests for tag <-> identifier conversion."""
from __future__ import annotations

import pytest

from lace.utils.naming import camel_to_snake, identifier_to_tag, snake_to_camel, tag_to_identifier


@pytest.mark.parametrize(
    "tag, identifier",
    [
        ("view-footer", "Footer"),
        ("view-form-text_input", "Form.TextInput"),
        ("view-todo_list", "TodoList"),
        ("VIEW-Footer", "Footer"),
    ],
)
def test_tag_to_identifier(tag, identifier):
    assert tag_to_identifier(tag, "view") == identifier


@pytest.mark.parametrize("tag", ["view-", "other-footer", "view-form--input", "view-bad.name"])
def test_tag_to_identifier_rejects_malformed_tags(tag):
    with pytest.raises(ValueError):
        tag_to_identifier(tag, "view")


def test_identifier_to_tag_uses_prefix():
    assert identifier_to_tag("Form.TextInput", "View") == "view-form-text_input"
    assert identifier_to_tag("Footer", "ui") == "ui-footer"


def test_segment_helpers():
    assert camel_to_snake("TextInput") == "text_input"
    assert camel_to_snake("HTMLBlock") == "html_block"
    assert snake_to_camel("html_block") == "HtmlBlock"
