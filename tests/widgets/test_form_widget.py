"""Tests for the form input widget."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from lace.components import ComponentRegistry, View
from lace.errors import MissingRequiredAttribute
from lace.rendering import ViewFactory
from lace.widgets import FormContainer, Input


@dataclass
class Signup(View):
    form: FormContainer = field(default_factory=FormContainer)

    template_source = """<form id='signup'>
  <view-input id='email' label='Email' name='email' type='email' tabindex='1' />
</form>"""


@dataclass
class ExplicitContainer(View):
    other: Any = None

    template_source = """<form>
  <view-input id='email' label='Email' name='email' container='$.other' />
</form>"""


@pytest.fixture
def factory():
    registry = ComponentRegistry()
    registry.register("view-input", Input)
    return ViewFactory(registry)


def test_value_is_filled_from_the_callers_form(factory):
    out = factory.create(Signup, form=FormContainer(fif={"email": "a@b.c"})).get_processed_dom()
    field_input = out.first("div.field > input")

    assert field_input.attrs == {
        "type": "email",
        "value": "a@b.c",
        "id": "email",
        "name": "email",
        "tabindex": "1",
    }
    assert out.first("label").text == "Email"
    assert out.first("label")["for"] == "email"
    assert out.at("div.error") is None


def test_missing_value_leaves_no_value_attribute(factory):
    out = factory.create(Signup).get_processed_dom()
    assert "value" not in out.first("input").attrs


def test_errors_are_listed_in_order(factory):
    container = FormContainer(fif={"email": "bad"}, errors={"email": ["is invalid", "is taken"]})
    out = factory.create(Signup, form=container).get_processed_dom()

    assert [li.text for li in out.find("div.error ol.errors > li")] == ["is invalid", "is taken"]


def test_explicit_container_binding(factory):
    container = FormContainer(fif={"email": "x@y.z"})
    out = factory.create(ExplicitContainer, other=container).get_processed_dom()
    assert out.first("input")["value"] == "x@y.z"


def test_missing_container_renders_empty_field(factory):
    out = factory.create(ExplicitContainer).get_processed_dom()

    assert out.first("input")["type"] == "text"
    assert "value" not in out.first("input").attrs
    assert out.at("div.error") is None


def test_input_requires_identity_attributes(factory):
    @dataclass
    class Broken(View):
        template_source = "<form><view-input label='x' name='x' /></form>"

    with pytest.raises(MissingRequiredAttribute) as excinfo:
        factory.startup([Broken])
    assert excinfo.value.attribute == "id"
