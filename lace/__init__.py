"""Logic-less DOM component views.

Views are Python classes that own an HTML template and mutate a parsed DOM
of it. Other components are embedded with ``<view-*>`` tags; see
``lace.rendering.factory`` for the lifecycle and ``lace.startup`` for the
Flask adaptor.
"""

from lace.components import ComponentRegistry, Layout, RequestRenderer, StartupMutator, View, module_provider
from lace.dom import Document, Element, Fragment, NodeList, parse, parse_fragment, serialize
from lace.errors import (
    CycleError,
    LaceError,
    MissingAttribute,
    MissingRequiredAttribute,
    OwnershipError,
    ParseError,
    RegistryFrozenError,
    SelectorNotFound,
    SelectorSyntaxError,
    UnknownComponent,
)
from lace.rendering import Renderer, ViewFactory

__all__ = [
    "ComponentRegistry",
    "Layout",
    "RequestRenderer",
    "StartupMutator",
    "View",
    "module_provider",
    "Document",
    "Element",
    "Fragment",
    "NodeList",
    "parse",
    "parse_fragment",
    "serialize",
    "CycleError",
    "LaceError",
    "MissingAttribute",
    "MissingRequiredAttribute",
    "OwnershipError",
    "ParseError",
    "RegistryFrozenError",
    "SelectorNotFound",
    "SelectorSyntaxError",
    "UnknownComponent",
    "Renderer",
    "ViewFactory",
]
