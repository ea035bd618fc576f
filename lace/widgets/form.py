"""Form input widget.

Usage in a template::

    <view-input id='item' label='Todo' name='item' type='text' />

The field value and its errors come from a form container: an object with
``fif`` (fill-in-form values by field name) and ``errors`` (messages by
field name). Pass one with ``container='$.form'``; otherwise the calling
view's ``form`` attribute is used.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lace.components.bindings import MISSING, lookup_path
from lace.components.view import View
from lace.dom.nodes import Document, Element


@dataclass
class FormContainer:
    fif: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class Input(View):
    id: str
    label: str
    name: str
    type: str = "text"
    container: Any = None
    tabindex: Optional[str] = None

    template_source = """
    <div class="field">
      <label>LABEL</label>
      <input />
    </div>
    <div class="ui error message">
      <ol class="errors">
        <li>ERROR</li>
      </ol>
    </div>
    """

    def form(self) -> Any:
        if self.container is not None:
            return self.container
        found = lookup_path(self.caller, "form")
        return None if found is MISSING else found

    @property
    def value(self) -> Any:
        form = self.form()
        fif = getattr(form, "fif", None) or {}
        return fif.get(self.name)

    @property
    def errors(self) -> List[str]:
        form = self.form()
        errors = getattr(form, "errors", None) or {}
        return list(errors.get(self.name) or [])

    def process_dom(self, dom: Document) -> None:
        dom.first("label").set_content(self.label).set_attr("for", self.name)
        dom.first("input").set_attrs(
            type=self.type,
            value=self.value,
            id=self.id,
            name=self.name,
            tabindex=self.tabindex,
        )
        errors = self.errors
        if not errors:
            dom.first("div.error").remove()
            return
        listing = dom.first("ol.errors")
        template_item: Element = listing.first("li")
        items = []
        for message in errors:
            item = template_item.clone()
            item.set_content(message)
            items.append(item)
        listing.set_content(items)


__all__ = ["FormContainer", "Input"]
