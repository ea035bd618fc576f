"""View factory: base DOM lifecycle and component rendering.

Startup (``startup()`` or first use of a view):

1. parse the view's template, run ``prepare_dom``;
2. run every attach-style component (``StartupMutator``) against that DOM,
   e.g. fuse a master layout around the page;
3. resolve and pre-build every remaining component tag (unknown tags,
   missing static attributes and cycles fail here);
4. publish the finished DOM as the view's read-only base DOM.

Per request a ``Renderer`` clones the base DOM, renders and splices the
per-request components, then runs the view's ``process_dom``.
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Type, Union

from jinja2 import BaseLoader, Environment, FileSystemLoader

from lace import config as lace_config
from lace.components.bindings import bind_attributes, check_declared
from lace.components.registry import ComponentDefinition, ComponentRegistry, Constructor
from lace.components.view import View
from lace.dom.nodes import Container, Document, Element, Fragment
from lace.dom.parser import parse
from lace.errors import CycleError, LaceError
from lace.rendering.renderer import Renderer
from lace.utils.logging import get_logger

LOG = get_logger("lace.factory")

ViewRef = Union[str, Type[View]]


def _default_loader() -> Optional[BaseLoader]:
    root = lace_config.template_dir()
    return FileSystemLoader(root) if root else None


class ViewFactory:
    """Builds base DOMs and view instances for one registry.

    ``init_args`` are merged into every instance the factory builds, for
    the attributes the view declares and the tag (or caller) left out.
    ``context_args`` map an attribute name to a zero-argument getter read
    at build time, e.g. the current request. ``model_constructor`` replaces
    the class call, see ``ComponentDefinition.build``.
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        loader: Optional[BaseLoader] = None,
        init_args: Optional[Mapping[str, Any]] = None,
        context_args: Optional[Mapping[str, Callable[[], Any]]] = None,
        model_constructor: Optional[Constructor] = None,
    ) -> None:
        self.registry = registry
        self.init_args: Dict[str, Any] = dict(init_args or {})
        self.context_args: Dict[str, Callable[[], Any]] = dict(context_args or {})
        self.model_constructor = model_constructor
        self._env = Environment(loader=loader if loader is not None else _default_loader())
        self._bases: Dict[type, Document] = {}
        self._lock = threading.RLock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    # -- startup -------------------------------------------------------
    def startup(self, views: Iterable[ViewRef] = ()) -> None:
        """Build base DOMs for ``views`` and every explicitly registered
        component, then freeze the registry. Errors abort startup."""
        if self._started:
            return
        with self._lock:
            if self._started:
                return
            targets: List[type] = [self.registry.definition_for(v).view_class for v in views]
            targets.extend(self.registry.resolve(tag).view_class for tag in self.registry.explicit_tags())
            for view_class in targets:
                self._build_base(view_class, ())
            self.registry.freeze()
            self._started = True
        LOG.info("view factory ready (%d base DOMs)", len(self._bases))

    def base_dom(self, view_class: Type[View]) -> Document:
        base = self._bases.get(view_class)
        if base is not None:
            return base
        with self._lock:
            return self._build_base(view_class, ())

    def load_template(self, view_class: Type[View]) -> str:
        source = view_class.template()
        if source is not None:
            return source
        name = view_class.template_file
        if not name:
            raise LaceError(f"{view_class.identifier()} defines neither template_source nor template_file")
        loader = self._env.loader
        if loader is None:
            raise LaceError(f"no template loader configured for {name!r}")
        source, _filename, _uptodate = loader.get_source(self._env, name)
        return source

    def _build_base(self, view_class: Type[View], stack: Tuple[type, ...]) -> Document:
        if view_class in stack:
            raise CycleError([c.identifier() for c in stack] + [view_class.identifier()])
        cached = self._bases.get(view_class)
        if cached is not None:
            return cached
        chain = stack + (view_class,)
        LOG.debug("building base DOM for %s", view_class.identifier())
        dom = parse(self.load_template(view_class))
        view_class.prepare_dom(dom)
        self._attach_components(dom, chain)
        for tag in self.component_tags(dom, nested=True):
            definition = self.registry.resolve(tag.tag)
            check_declared(definition.view_class, tag, self.provided())
            self._build_base(definition.view_class, chain)
        self._bases[view_class] = dom
        return dom

    def _next_attach_tag(self, dom: Document) -> Optional[Tuple[Element, ComponentDefinition]]:
        for tag in self.component_tags(dom, nested=True):
            definition = self.registry.resolve(tag.tag)
            if definition.attach:
                return tag, definition
        return None

    def _attach_components(self, dom: Document, chain: Tuple[type, ...]) -> None:
        while True:
            found = self._next_attach_tag(dom)
            if found is None:
                return
            tag, definition = found
            self._build_base(definition.view_class, chain)
            values = bind_attributes(definition.view_class, tag, None, dom)
            if definition.view_class.accepts_content() and "content" not in values:
                values["content"] = Fragment([child.clone() for child in tag.children])
            instance = self._bind(self._build(definition, values), caller=None)
            instance.on_component_add(dom)  # type: ignore[attr-defined]
            if dom.owns(tag):
                tag.detach()
            LOG.debug("attached <%s> to %s", definition.tag, chain[-1].identifier())

    # -- per request ---------------------------------------------------
    def create(self, view: ViewRef, **attrs: Any) -> Renderer:
        """Build the outermost view from caller-supplied attributes."""
        definition = self.registry.definition_for(view)
        instance = self._bind(self._build(definition, attrs), caller=None)
        self.base_dom(definition.view_class)
        return Renderer(self, instance)

    def render_instance(self, instance: View, stack: Sequence[type] = ()) -> Document:
        view_class = type(instance)
        if view_class in stack:
            raise CycleError([c.identifier() for c in stack] + [view_class.identifier()])
        chain = tuple(stack) + (view_class,)
        dom = self.base_dom(view_class).clone()
        self.splice_components(dom, instance, dom, chain)
        instance.process_dom(dom)
        return dom

    def splice_components(self, container: Container, model: Any, scope: Document, chain: Tuple[type, ...]) -> None:
        """Render every outermost component tag in ``container`` and put the
        result in its place. Bindings of all tags are resolved first."""
        pending = []
        for tag in self.component_tags(container):
            definition = self.registry.resolve(tag.tag)
            if definition.attach:
                raise LaceError(f"<{definition.tag}> is attach-only and cannot be rendered per request")
            pending.append((tag, definition, bind_attributes(definition.view_class, tag, model, scope)))
        for tag, definition, values in pending:
            if definition.view_class.accepts_content() and "content" not in values:
                content = Fragment([child.clone() for child in tag.children])
                self.splice_components(content, model, scope, chain)
                values["content"] = content
            instance = self._bind(self._build(definition, values), caller=model)
            rendered = self.render_instance(instance, chain)
            tag.replace(rendered.extract())

    # -- helpers -------------------------------------------------------
    def component_tags(self, container: Container, nested: bool = False) -> List[Element]:
        """Component tags under ``container`` in pre-order; by default only
        the outermost ones."""
        found: List[Element] = []
        stack = list(reversed(container.children))
        while stack:
            node = stack.pop()
            if not node.is_element:
                continue
            if self.registry.is_component_tag(node.tag):  # type: ignore[attr-defined]
                found.append(node)  # type: ignore[arg-type]
                if not nested:
                    continue
            stack.extend(reversed(node.children))  # type: ignore[attr-defined]
        return found

    def provided(self) -> List[str]:
        """Attribute names the factory fills without a tag binding."""
        return sorted({*self.init_args, *self.context_args})

    def _defaults(self) -> Dict[str, Any]:
        values = dict(self.init_args)
        for name, getter in self.context_args.items():
            values[name] = getter()
        return values

    def _build(self, definition: ComponentDefinition, values: Mapping[str, Any]) -> View:
        return definition.build(values, self._defaults(), self.model_constructor)

    def _bind(self, instance: View, caller: Any) -> View:
        instance.caller = caller
        instance._lace_factory = self
        return instance


__all__ = ["ViewFactory"]
