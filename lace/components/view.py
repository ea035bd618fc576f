"""View / component base class and hook capabilities.

A view is a class owning one HTML template. Declared attributes are
dataclass fields (a field without a default is required)::

    @dataclass
    class Footer(View):
        copydate: str

        template_source = '''
          <section id="footer">
            <p id="copy">copyright </p>
          </section>
        '''

        def process_dom(self, dom):
            dom.first("#copy").append_content(self.copydate)

Hooks:

* ``prepare_dom(dom)`` (classmethod) runs once on the view's own base DOM.
* ``process_dom(dom)`` runs per request on a clone (``RequestRenderer``).
* ``on_component_add(dom)`` runs once at startup against the *caller's*
  base DOM, for classes that are also ``StartupMutator``.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Tuple

from lace.dom.nodes import Document
from lace.errors import LaceError


class RequestRenderer:
    """Capability: mutate a per-request clone of the view's DOM."""

    def process_dom(self, dom: Document) -> None:
        pass


class StartupMutator:
    """Capability: mutate the caller's base DOM once, at startup.

    Components with this capability are never rendered per request; their
    tag is removed from the caller once the hook has run.
    """

    def on_component_add(self, dom: Document) -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class AttributeSpec:
    name: str
    required: bool


class View(RequestRenderer):
    template_source: ClassVar[Optional[str]] = None
    template_file: ClassVar[Optional[str]] = None
    # Identifier used for convention lookup; defaults to the class name.
    lace_name: ClassVar[Optional[str]] = None

    # Set by the factory on every instance it builds.
    caller: Any = None
    _lace_factory: Any = None

    @classmethod
    def identifier(cls) -> str:
        return cls.lace_name or cls.__name__

    @classmethod
    def template(cls) -> Optional[str]:
        """Inline template source; ``None`` means ``template_file`` is used."""
        return cls.template_source

    @classmethod
    def prepare_dom(cls, dom: Document) -> None:
        pass

    @classmethod
    def attributes(cls) -> Tuple[AttributeSpec, ...]:
        if not dataclasses.is_dataclass(cls):
            return ()
        specs = []
        for f in dataclasses.fields(cls):
            if not f.init:
                continue
            required = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING  # type: ignore[misc]
            specs.append(AttributeSpec(f.name, required))
        return tuple(specs)

    @classmethod
    def accepts_content(cls) -> bool:
        return any(spec.name == "content" for spec in cls.attributes())

    def own_dom(self) -> Document:
        """A fresh clone of this component's base DOM."""
        factory = self._lace_factory
        if factory is None:
            raise LaceError(f"{self.identifier()} is not bound to a view factory")
        return factory.base_dom(type(self)).clone()


__all__ = ["View", "RequestRenderer", "StartupMutator", "AttributeSpec"]
