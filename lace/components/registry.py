"""Component registry: tag name -> component definition.

Explicit registrations (``register("view-input", Input)``) always win over
the convention fallback (``register("view-*", provider)``), which converts
the rest of the tag into an identifier and asks the provider for a class.
Resolved definitions are cached per tag, so a tag maps to the same
definition object for the life of the registry.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from importlib import import_module
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, Union

from lace import config as lace_config
from lace.components.view import StartupMutator, View
from lace.errors import LaceError, MissingRequiredAttribute, RegistryFrozenError, UnknownComponent
from lace.utils.logging import get_logger
from lace.utils.naming import camel_to_snake, identifier_to_tag, tag_to_identifier

LOG = get_logger("lace.registry")

Provider = Callable[[str], Optional[Type[View]]]
Factory = Union[Type[View], Callable[[], Type[View]]]
Constructor = Union[str, Callable[..., View]]


@dataclass(frozen=True)
class ComponentDefinition:
    tag: str
    identifier: str
    view_class: Type[View]

    @property
    def attach(self) -> bool:
        return issubclass(self.view_class, StartupMutator)

    def build(
        self,
        values: Mapping[str, Any],
        defaults: Optional[Mapping[str, Any]] = None,
        constructor: Optional[Constructor] = None,
    ) -> View:
        """Construct an instance from bound attribute values.

        ``defaults`` (application-wide init args) fill declared attributes
        the tag left out. ``constructor`` replaces the class call: either a
        callable ``constructor(view_class, **kwargs)`` or the name of a
        classmethod on the view.
        """
        defaults = defaults or {}
        kwargs: Dict[str, Any] = {}
        known = set()
        for spec in self.view_class.attributes():
            known.add(spec.name)
            if spec.name in values:
                kwargs[spec.name] = values[spec.name]
            elif spec.name in defaults:
                kwargs[spec.name] = defaults[spec.name]
            elif spec.required:
                raise MissingRequiredAttribute(spec.name, self.identifier)
        ignored = sorted(set(values) - known)
        if ignored:
            LOG.debug("<%s> ignoring undeclared attributes %s", self.tag, ignored)
        if constructor is None:
            return self.view_class(**kwargs)
        if isinstance(constructor, str):
            method = getattr(self.view_class, constructor, None)
            if method is None:
                raise LaceError(f"{self.identifier} has no constructor {constructor!r}")
            instance = method(**kwargs)
        else:
            instance = constructor(self.view_class, **kwargs)
        if not isinstance(instance, self.view_class):
            raise LaceError(f"constructor for {self.identifier} returned {instance!r}")
        return instance


def _materialize(factory: Factory) -> Type[View]:
    cls = factory if isinstance(factory, type) else factory()
    if not (isinstance(cls, type) and issubclass(cls, View)):
        raise LaceError(f"component factory produced {cls!r}, expected a View subclass")
    return cls


class ComponentRegistry:
    def __init__(self) -> None:
        self._explicit: Dict[str, Factory] = {}
        self._providers: Dict[str, Provider] = {}
        self._resolved: Dict[str, ComponentDefinition] = {}
        self._by_class: Dict[type, ComponentDefinition] = {}
        self._frozen = False
        self._lock = threading.Lock()

    # -- population (startup only) -------------------------------------
    def _check_open(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("component registry is frozen; register components before startup")

    def register(self, tag_pattern: str, factory: Union[Factory, Provider]) -> None:
        self._check_open()
        pattern = tag_pattern.strip().lower()
        if pattern.endswith("-*"):
            prefix = pattern[:-2]
            if not prefix:
                raise ValueError("prefix pattern needs a prefix, e.g. 'view-*'")
            self._providers[prefix] = factory  # type: ignore[assignment]
            LOG.debug("registered component provider for <%s-*>", prefix)
        else:
            if "-" not in pattern:
                raise ValueError(f"component tag {tag_pattern!r} must contain '-'")
            self._explicit[pattern] = factory  # type: ignore[assignment]
            LOG.debug("registered component <%s>", pattern)
        self._resolved.clear()
        self._by_class.clear()

    def register_view(self, cls: Type[View], tag: Optional[str] = None, prefix: Optional[str] = None) -> Type[View]:
        name = tag or identifier_to_tag(cls.identifier(), prefix or lace_config.component_prefix())
        self.register(name, cls)
        return cls

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def prefixes(self) -> List[str]:
        return sorted(self._providers, key=len, reverse=True)

    def explicit_tags(self) -> List[str]:
        return list(self._explicit)

    # -- lookups -------------------------------------------------------
    def is_component_tag(self, tag: str) -> bool:
        if "-" not in tag:
            return False
        if tag in self._explicit:
            return True
        return any(tag.startswith(prefix + "-") for prefix in self._providers)

    def resolve(self, tag: str) -> ComponentDefinition:
        key = tag.lower()
        cached = self._resolved.get(key)
        if cached is not None:
            return cached
        definition = self._lookup(key)
        with self._lock:
            return self._resolved.setdefault(key, definition)

    def _lookup(self, tag: str) -> ComponentDefinition:
        factory = self._explicit.get(tag)
        if factory is not None:
            cls = _materialize(factory)
            return ComponentDefinition(tag, cls.identifier(), cls)
        identifier = None
        for prefix in self.prefixes():
            if not tag.startswith(prefix + "-"):
                continue
            try:
                identifier = tag_to_identifier(tag, prefix)
            except ValueError:
                continue
            found = self._providers[prefix](identifier)
            if found is not None:
                cls = _materialize(found)
                LOG.debug("resolved <%s> by convention to %s", tag, identifier)
                return ComponentDefinition(tag, identifier, cls)
        raise UnknownComponent(tag, identifier)

    def definition_for(self, view: Union[str, Type[View]]) -> ComponentDefinition:
        """Definition for a view rendered directly (by class or tag)."""
        if isinstance(view, str):
            return self.resolve(view)
        cached = self._by_class.get(view)
        if cached is not None:
            return cached
        tag = next((t for t, f in self._explicit.items() if f is view), None)
        if tag is None:
            tag = identifier_to_tag(view.identifier(), lace_config.component_prefix())
        definition = ComponentDefinition(tag, view.identifier(), view)
        with self._lock:
            return self._by_class.setdefault(view, definition)


def module_provider(package: str) -> Provider:
    """Provider that finds ``Form.TextInput`` in ``package.form.text_input``,
    ``package.form`` or as attributes of ``package``."""

    def _import(name: str) -> Any:
        try:
            return import_module(name)
        except ModuleNotFoundError as exc:
            if exc.name and (name == exc.name or name.startswith(exc.name + ".")):
                return None
            raise

    def provide(identifier: str) -> Optional[Type[View]]:
        segments = identifier.split(".")
        snake = [camel_to_snake(s) for s in segments]
        candidates: List[Tuple[str, List[str]]] = [
            (".".join([package, *snake]), segments[-1:]),
            (".".join([package, *snake[:-1]]), segments[-1:]),
            (package, segments),
        ]
        for module_name, attrs in candidates:
            target = _import(module_name)
            for attr in attrs:
                target = getattr(target, attr, None) if target is not None else None
            if isinstance(target, type) and issubclass(target, View):
                return target
        return None

    return provide


__all__ = ["ComponentDefinition", "ComponentRegistry", "module_provider"]
