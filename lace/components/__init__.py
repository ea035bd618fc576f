"""Component model: views, registry, attribute bindings, overlays."""

from .bindings import MISSING, Binding, BindingKind, bind_attributes, lookup_path, parse_binding, resolve_binding
from .overlay import Layout
from .registry import ComponentDefinition, ComponentRegistry, module_provider
from .view import AttributeSpec, RequestRenderer, StartupMutator, View

__all__ = [
    "MISSING",
    "Binding",
    "BindingKind",
    "bind_attributes",
    "lookup_path",
    "parse_binding",
    "resolve_binding",
    "Layout",
    "ComponentDefinition",
    "ComponentRegistry",
    "module_provider",
    "AttributeSpec",
    "RequestRenderer",
    "StartupMutator",
    "View",
]
