"""Flask application wiring.

Orchestrates: component handler registration, the convention handler for
``<prefix>-*`` tags, base DOM startup (fail fast) and response helpers.

    lace = Lace()

    @lace.view()
    @dataclass
    class User(View):
        name: str
        ...

    lace.init_app(app)

    @app.get("/user")
    def user():
        return lace.create("User", name="John").http_ok()

One ``Lace`` object may serve several applications. Everything built for
an app (registry, view factory) lives in ``app.extensions["lace"]``;
``create()`` and ``get_view()`` pick it up from ``current_app``.

Configuration (``app.config`` wins over the constructor arguments):

* ``LACE_COMPONENT_PREFIX``   tag prefix for convention lookups
* ``LACE_VIEWS_PACKAGE``      package searched for views by identifier
* ``LACE_COMPONENT_HANDLERS`` extra ``{tag pattern: class or provider}``
* ``LACE_INIT_ARGS``          values merged into every view; ``app`` is always added
* ``LACE_MODEL_CONSTRUCTOR``  callable or classmethod name used to build views
* ``LACE_FACTORY_CLASS``      ``ViewFactory`` subclass (or its import path)

Views may also declare a ``ctx`` attribute: it receives the current
``flask.request`` while a request is active and ``None`` at startup.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Type, Union

from flask import current_app, has_app_context, has_request_context, request
from werkzeug.utils import import_string

from lace import config as lace_config
from lace.components.registry import ComponentRegistry, Constructor, Factory, module_provider
from lace.components.view import View
from lace.errors import LaceError
from lace.rendering.factory import ViewFactory
from lace.responses import BoundView
from lace.utils.logging import get_logger

LOG = get_logger("lace.startup")

EXTENSION_KEY = "lace"


def _request_context() -> Any:
    return request._get_current_object() if has_request_context() else None


def _factory_class(value: Union[str, Type[ViewFactory], None]) -> Type[ViewFactory]:
    if value is None:
        return ViewFactory
    cls = import_string(value) if isinstance(value, str) else value
    if not (isinstance(cls, type) and issubclass(cls, ViewFactory)):
        raise LaceError(f"factory class {value!r} is not a ViewFactory subclass")
    return cls


class LaceState:
    """Per-application engine state kept in ``app.extensions["lace"]``."""

    def __init__(self, extension: "Lace", app: Any, registry: ComponentRegistry, prefix: str, views_package: Optional[str]) -> None:
        self.extension = extension
        self.app = app
        self.registry = registry
        self.prefix = prefix
        self.views_package = views_package
        self.factory: Optional[ViewFactory] = None

    def provide(self, identifier: str) -> Optional[Type[View]]:
        cls = self.extension.views.get(identifier)
        if cls is None and self.views_package:
            cls = module_provider(self.views_package)(identifier)
        return cls

    def view_class(self, name: str) -> Type[View]:
        cls = self.provide(name)
        if cls is None:
            raise LaceError(f"no view named {name!r}")
        return cls

    def create(self, view: Union[str, Type[View]], **attrs: Any) -> BoundView:
        if self.factory is None:
            raise LaceError("Lace.init_app() has not finished for this application")
        target = self.view_class(view) if isinstance(view, str) else view
        return BoundView(self.factory.create(target, **attrs))


class Lace:
    def __init__(
        self,
        app: Any = None,
        views_package: Optional[str] = None,
        component_handlers: Optional[Mapping[str, Factory]] = None,
        prefix: Optional[str] = None,
        init_args: Optional[Mapping[str, Any]] = None,
        model_constructor: Optional[Constructor] = None,
        factory_class: Union[str, Type[ViewFactory], None] = None,
    ) -> None:
        self.app = app
        self.views_package = views_package
        self.component_handlers: Dict[str, Factory] = dict(component_handlers or {})
        self.prefix = prefix
        self.init_args: Dict[str, Any] = dict(init_args or {})
        self.model_constructor = model_constructor
        self.factory_class = factory_class
        self.views: Dict[str, Type[View]] = {}
        self._tags: Dict[str, Type[View]] = {}
        if app is not None:
            self.init_app(app)

    def view(self, name: Optional[str] = None, tag: Optional[str] = None) -> Callable[[Type[View]], Type[View]]:
        """Class decorator adding a view to this extension's view table."""

        def decorator(cls: Type[View]) -> Type[View]:
            self.views[name or cls.identifier()] = cls
            if tag:
                self._tags[tag] = cls
            return cls

        return decorator

    def init_app(self, app: Any) -> None:
        if getattr(app, "_lace_initialized", False):  # idempotent
            return
        cfg = app.config
        prefix = (cfg.get("LACE_COMPONENT_PREFIX") or self.prefix or lace_config.component_prefix()).lower()
        registry = ComponentRegistry()
        state = LaceState(self, app, registry, prefix, cfg.get("LACE_VIEWS_PACKAGE") or self.views_package)
        handlers: Dict[str, Factory] = {**self._tags, **self.component_handlers, **cfg.get("LACE_COMPONENT_HANDLERS", {})}
        for pattern, factory in handlers.items():
            registry.register(pattern, factory)
        registry.register(f"{prefix}-*", state.provide)

        factory_class = _factory_class(cfg.get("LACE_FACTORY_CLASS") or self.factory_class)
        state.factory = factory_class(
            registry,
            loader=app.jinja_loader,
            init_args={**self.init_args, **cfg.get("LACE_INIT_ARGS", {}), "app": app},
            context_args={"ctx": _request_context},
            model_constructor=cfg.get("LACE_MODEL_CONSTRUCTOR") or self.model_constructor,
        )
        state.factory.startup(list(self.views.values()))
        app.extensions[EXTENSION_KEY] = state
        setattr(app, "_lace_initialized", True)
        meta = lace_config.metadata()
        LOG.info(
            "%s %s wiring complete app=%s prefix=%s views=%d factory=%s",
            meta["name"],
            meta["version"],
            app.name,
            prefix,
            len(self.views),
            factory_class.__name__,
        )
        LOG.debug("runtime config: %s", lace_config.summarize_runtime_config())

    def state(self, app: Any = None) -> LaceState:
        """State for ``app``, the current app, or the app given to ``Lace()``."""
        if app is None:
            if has_app_context():
                app = current_app._get_current_object()
            elif self.app is not None:
                app = self.app
            else:
                raise LaceError("no application: use an app context or pass the app to Lace()")
        state = app.extensions.get(EXTENSION_KEY)
        if state is None or state.extension is not self:
            raise LaceError("Lace.init_app() has not been called for this application")
        return state

    def view_class(self, name: str) -> Type[View]:
        return self.state().view_class(name)

    def create(self, view: Union[str, Type[View]], **attrs: Any) -> BoundView:
        return self.state().create(view, **attrs)


def get_view(view: Union[str, Type[View]], **attrs: Any) -> BoundView:
    """Create a view through the current app's extension."""
    state: LaceState = current_app.extensions[EXTENSION_KEY]
    return state.create(view, **attrs)


__all__ = ["Lace", "LaceState", "get_view", "EXTENSION_KEY"]
