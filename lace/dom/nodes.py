"""Mutable DOM tree used for templates.

Every node records the ``Document`` that owns it (``owner``), or ``None``
while it is detached or lives in a ``Fragment``. Nodes move freely inside
one document and detached nodes may be adopted anywhere, but attaching a
node that is still owned by another document raises ``OwnershipError``:
call ``detach()`` or ``clone()`` on it first.

Content values accepted by the mutators:

* ``str`` / numbers -> escaped text
* ``markupsafe.Markup`` (anything with ``__html__``) -> parsed as trusted HTML
* a ``Node`` / ``Fragment`` / ``NodeList`` or any iterable of those
* ``None`` -> nothing
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from markupsafe import escape

from lace.dom.selectors import compile_selector, iter_elements
from lace.errors import OwnershipError, SelectorNotFound

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "keygen",
    "link", "meta", "param", "source", "track", "wbr",
})
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})


class Node:
    is_element = False
    is_text = False

    def __init__(self) -> None:
        self.parent: Optional[Container] = None
        self.owner: Optional[Document] = None

    # -- tree position -------------------------------------------------
    @property
    def index(self) -> int:
        if self.parent is None:
            raise ValueError("detached node has no index")
        for i, child in enumerate(self.parent.children):
            if child is self:
                return i
        raise ValueError("node not found in its parent")  # pragma: no cover

    def ancestors(self) -> Iterator["Container"]:
        parent = self.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    def detach(self) -> "Node":
        """Remove this node from its tree; it becomes unowned."""
        if self.parent is not None:
            del self.parent.children[self.index]
            self.parent = None
        _set_owner(self, None)
        return self

    # -- mutation relative to siblings ---------------------------------
    def replace(self, value: Any) -> "Node":
        """Replace this node with ``value``; returns the detached node."""
        if value is self:
            return self
        parent = self._require_parent()
        # the anchor holds this node's slot while _adopt detaches the new nodes
        anchor = Text("")
        anchor.parent = parent
        parent.children.insert(self.index, anchor)
        try:
            nodes = parent._adopt(value)
        except Exception:
            del parent.children[anchor.index]
            raise
        kept = any(node is self for node in nodes)
        if not kept:
            del parent.children[self.index]
        position = anchor.index
        del parent.children[position]
        parent._attach(position, nodes)
        if not kept:
            self.parent = None
            _set_owner(self, None)
        return self

    def append(self, value: Any) -> "Node":
        """Insert ``value`` right after this node."""
        parent = self._require_parent()
        parent._insert_after(self, value)
        return self

    def prepend(self, value: Any) -> "Node":
        """Insert ``value`` right before this node."""
        parent = self._require_parent()
        parent._insert_before(self, value)
        return self

    def remove(self) -> "Node":
        return self.detach()

    def _require_parent(self) -> "Container":
        if self.parent is None:
            raise ValueError(f"{self!r} is detached")
        return self.parent

    # -- output --------------------------------------------------------
    def clone(self) -> "Node":
        raise NotImplementedError

    @property
    def text(self) -> str:
        return ""

    def to_html(self) -> str:
        parts: List[str] = []
        self._write(parts.append)
        return "".join(parts)

    def _write(self, out: Callable[[str], Any]) -> None:
        raise NotImplementedError

    def __html__(self) -> str:
        return self.to_html()

    def __str__(self) -> str:
        return self.to_html()


class Text(Node):
    is_text = True

    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    def clone(self) -> "Text":
        return Text(self.data)

    @property
    def text(self) -> str:
        return self.data

    def _write(self, out: Callable[[str], Any]) -> None:
        parent = self.parent
        if parent is not None and parent.is_element and parent.tag in RAW_TEXT_ELEMENTS:  # type: ignore[attr-defined]
            out(self.data)
        else:
            out(str(escape(self.data)))

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class Comment(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    def clone(self) -> "Comment":
        return Comment(self.data)

    def _write(self, out: Callable[[str], Any]) -> None:
        out(f"<!--{self.data}-->")

    def __repr__(self) -> str:
        return f"Comment({self.data!r})"


class Declaration(Node):
    """Doctype, processing instruction or CDATA, kept verbatim."""

    def __init__(self, markup: str) -> None:
        super().__init__()
        self.markup = markup

    def clone(self) -> "Declaration":
        return Declaration(self.markup)

    def _write(self, out: Callable[[str], Any]) -> None:
        out(self.markup)

    def __repr__(self) -> str:
        return f"Declaration({self.markup!r})"


class Container(Node):
    """A node with ordered children."""

    def __init__(self) -> None:
        super().__init__()
        self.children: List[Node] = []

    # -- queries -------------------------------------------------------
    def elements(self) -> Iterator["Element"]:
        return iter_elements(self)

    def find(self, selector: str) -> "NodeList":
        """All descendant elements matching ``selector``, in document order."""
        return NodeList(compile_selector(selector).select(self))

    def at(self, selector: str) -> Optional["Element"]:
        compiled = compile_selector(selector)
        for el in iter_elements(self):
            if compiled.matches(el):
                return el
        return None

    def first(self, selector: str) -> "Element":
        """Like ``at`` but a miss raises ``SelectorNotFound``."""
        el = self.at(selector)
        if el is None:
            raise SelectorNotFound(selector)
        return el

    @property
    def text(self) -> str:
        return "".join(child.text for child in self.children)

    @property
    def content(self) -> str:
        """Inner HTML."""
        parts: List[str] = []
        for child in self.children:
            child._write(parts.append)
        return "".join(parts)

    # -- child mutation ------------------------------------------------
    def set_content(self, value: Any) -> "Container":
        nodes = self._adopt(value)
        for child in self.children:
            child.parent = None
            _set_owner(child, None)
        self.children = []
        self._attach(len(self.children), nodes)
        return self

    def append_content(self, value: Any) -> "Container":
        self._attach(len(self.children), self._adopt(value))
        return self

    def prepend_content(self, value: Any) -> "Container":
        self._attach(0, self._adopt(value))
        return self

    def fill(self, values: Mapping[str, Any], selector: Optional[str] = None) -> "Container":
        """Set the content of ``#key, .key`` for every key of ``values``.

        ``dom.fill({"name": user.name, "age": user.age}, "#user")`` scopes the
        lookups to the first ``#user`` match. A mapping value fills each
        match recursively, so nested records map onto nested markup. A key
        with no match raises ``SelectorNotFound``.
        """
        scope: Container = self.first(selector) if selector else self
        for key, value in values.items():
            target = f"#{key}, .{key}"
            matches = scope.find(target)
            if not matches:
                raise SelectorNotFound(target)
            for match in matches:
                if isinstance(value, Mapping):
                    match.fill(value)
                else:
                    match.set_content(value)
        return self

    def _insert_after(self, ref: Node, value: Any) -> None:
        nodes = self._adopt(value)
        self._attach(ref.index + 1, nodes)

    def _insert_before(self, ref: Node, value: Any) -> None:
        nodes = self._adopt(value)
        self._attach(ref.index, nodes)

    def _attach(self, position: int, nodes: List[Node]) -> None:
        self.children[position:position] = nodes
        for node in nodes:
            node.parent = self
            _set_owner(node, self.owner)

    def _adopt(self, value: Any) -> List[Node]:
        """Coerce ``value`` to nodes and detach them, checking ownership."""
        nodes = _unique(coerce_nodes(value))
        for node in nodes:
            if node is self or any(a is node for a in self.ancestors()):
                raise ValueError("cannot insert a node into its own subtree")
            if node.owner is not None and node.owner is not self.owner:
                raise OwnershipError(
                    f"{node!r} belongs to another document; detach() or clone() it first"
                )
        for node in nodes:
            if node.parent is not None:
                del node.parent.children[node.index]
                node.parent = None
        return nodes

    def _clone_children_into(self, target: "Container") -> None:
        for child in self.children:
            copy = child.clone()
            copy.parent = target
            target.children.append(copy)

    def _write(self, out: Callable[[str], Any]) -> None:
        for child in self.children:
            child._write(out)


class Element(Container):
    is_element = True

    def __init__(
        self,
        tag: str,
        attrs: Optional[Dict[str, Optional[str]]] = None,
        children: Optional[Iterable[Any]] = None,
        self_closing: bool = False,
    ) -> None:
        super().__init__()
        self.tag = tag.lower()
        self.attrs: Dict[str, Optional[str]] = dict(attrs or {})
        self.self_closing = self_closing
        if children is not None:
            self.append_content(list(children))

    # -- attributes ----------------------------------------------------
    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(name, default)

    def __getitem__(self, name: str) -> Optional[str]:
        return self.attrs[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.set_attr(name, value)

    def __delitem__(self, name: str) -> None:
        del self.attrs[name]

    def __contains__(self, name: object) -> bool:
        return name in self.attrs

    def attr(self, name: str, *value: Any) -> Any:
        """Read an attribute, or set it when a value is given."""
        if not value:
            return self.attrs.get(name.lower())
        return self.set_attr(name, value[0])

    def set_attr(self, name: str, value: Any) -> "Element":
        """Set one attribute. ``None`` removes it, ``True`` makes it bare."""
        key = name.lower()
        if value is None or value is False:
            self.attrs.pop(key, None)
        elif value is True:
            self.attrs[key] = None
        else:
            self.attrs[key] = str(value)
        return self

    def set_attrs(self, mapping: Optional[Dict[str, Any]] = None, **kwargs: Any) -> "Element":
        for name, value in {**(mapping or {}), **kwargs}.items():
            self.set_attr(name, value)
        return self

    @property
    def classes(self) -> List[str]:
        return (self.attrs.get("class") or "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, *names: str) -> "Element":
        current = self.classes
        current.extend(n for n in names if n not in current)
        self.attrs["class"] = " ".join(current)
        return self

    def remove_class(self, *names: str) -> "Element":
        remaining = [c for c in self.classes if c not in names]
        if remaining:
            self.attrs["class"] = " ".join(remaining)
        else:
            self.attrs.pop("class", None)
        return self

    def matches(self, selector: str) -> bool:
        return compile_selector(selector).matches(self)

    # -- copy & output -------------------------------------------------
    def clone(self) -> "Element":
        copy = Element(self.tag, self.attrs, self_closing=self.self_closing)
        self._clone_children_into(copy)
        return copy

    def _write(self, out: Callable[[str], Any]) -> None:
        out(f"<{self.tag}")
        for name, value in self.attrs.items():
            if value is None:
                out(f" {name}")
            else:
                out(f' {name}="{escape(value)}"')
        if self.tag in VOID_ELEMENTS:
            out(">")
            return
        if self.self_closing and not self.children:
            out(" />")
            return
        out(">")
        super()._write(out)
        out(f"</{self.tag}>")

    def __repr__(self) -> str:
        ident = f"#{self.attrs['id']}" if self.attrs.get("id") else ""
        return f"<Element {self.tag}{ident}>"


class Fragment(Container):
    """Detached, unowned sequence of nodes (a document fragment)."""

    def __init__(self, children: Optional[Iterable[Any]] = None) -> None:
        super().__init__()
        if children is not None:
            self.append_content(list(children))

    def clone(self) -> "Fragment":
        copy = Fragment()
        self._clone_children_into(copy)
        return copy

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self.children))

    def __bool__(self) -> bool:
        return bool(self.children)

    def __repr__(self) -> str:
        return f"Fragment({self.children!r})"


class Document(Container):
    """Root of an owning tree.

    The document-level operations (``replace``, ``set_content``, ``set_attr``,
    ``remove``) take a node that must belong to this document.
    """

    def __init__(self) -> None:
        super().__init__()
        self.owner = self

    @property
    def root(self) -> Optional[Element]:
        for child in self.children:
            if child.is_element:
                return child  # type: ignore[return-value]
        return None

    def owns(self, node: Node) -> bool:
        return node is self or node.owner is self

    def _check(self, node: Node) -> None:
        if not isinstance(node, Node):
            raise TypeError(f"expected a node of this document, got {node!r}")
        if not self.owns(node):
            raise OwnershipError(f"{node!r} does not belong to this document")

    def replace(self, node: Node, value: Any = None) -> Node:  # type: ignore[override]
        self._check(node)
        if node is self:
            raise ValueError("cannot replace the document itself; use overlay()")
        return node.replace(value)

    def set_content(self, node: Any, value: Any = None) -> Any:  # type: ignore[override]
        self._check(node)
        if not isinstance(node, Container):
            raise TypeError(f"{node!r} cannot hold content")
        return Container.set_content(node, value)

    def set_attr(self, node: Element, name: str, value: Any) -> Element:
        self._check(node)
        return node.set_attr(name, value)

    def remove(self, node: Optional[Node] = None) -> Node:  # type: ignore[override]
        if node is None or node is self:
            raise ValueError("cannot remove the document itself")
        self._check(node)
        return node.detach()

    def overlay(self, other: "Document") -> "Document":
        """Move every top-level node of ``other`` into this document,
        discarding the current content."""
        if other is self:
            return self
        incoming = list(other.children)
        for node in incoming:
            node.detach()
        Container.set_content(self, incoming)
        return self

    def extract(self) -> Fragment:
        """Detach all top-level nodes into a fragment."""
        nodes = list(self.children)
        for node in nodes:
            node.detach()
        return Fragment(nodes)

    def clone(self) -> "Document":
        copy = Document()
        self._clone_children_into(copy)
        for child in copy.children:
            _set_owner(child, copy)
        return copy

    def serialize(self) -> str:
        return self.to_html()

    def __repr__(self) -> str:
        root = self.root
        return f"<Document {root.tag if root is not None else 'empty'}>"


class NodeList(list):
    """Ordered list of nodes returned by queries and collection bindings."""

    def join(self, separator: str = "") -> Fragment:
        """Fragment of the nodes (moved) separated by text ``separator``."""
        nodes: List[Any] = []
        for i, node in enumerate(self):
            if i and separator:
                nodes.append(Text(separator))
            nodes.append(node)
        return Fragment(nodes)

    def to_html(self) -> str:
        return "".join(node.to_html() for node in self)

    def __html__(self) -> str:
        return self.to_html()

    def each(self, fn: Callable[[Any], Any]) -> "NodeList":
        for node in self:
            fn(node)
        return self

    def clone(self) -> "NodeList":
        return NodeList(node.clone() for node in self)

    @property
    def text(self) -> str:
        return "".join(node.text for node in self)

    def detach(self) -> "NodeList":
        for node in self:
            node.detach()
        return self


def _set_owner(node: Node, owner: Optional[Document]) -> None:
    stack = [node]
    while stack:
        current = stack.pop()
        current.owner = owner
        if isinstance(current, Container) and not isinstance(current, Document):
            stack.extend(current.children)


def coerce_nodes(value: Any) -> List[Node]:
    if value is None:
        return []
    if isinstance(value, (Fragment, Document)):
        return list(value.children)
    if isinstance(value, Node):
        return [value]
    if isinstance(value, (NodeList, list, tuple)):
        return _coerce_each(value)
    if hasattr(value, "__html__"):
        from lace.dom.parser import parse_fragment

        return list(parse_fragment(str(value.__html__())).children)
    if isinstance(value, (str, int, float)):
        return [Text(str(value))]
    if isinstance(value, Iterable):
        return _coerce_each(value)
    return [Text(str(value))]


def _coerce_each(values: Iterable[Any]) -> List[Node]:
    nodes: List[Node] = []
    for item in values:
        nodes.extend(coerce_nodes(item))
    return nodes


def _unique(nodes: List[Node]) -> List[Node]:
    seen = set()
    result = []
    for node in nodes:
        if id(node) not in seen:
            seen.add(id(node))
            result.append(node)
    return result


Content = Union[None, str, Node, Iterable[Any]]

__all__ = [
    "VOID_ELEMENTS",
    "RAW_TEXT_ELEMENTS",
    "Node",
    "Text",
    "Comment",
    "Declaration",
    "Container",
    "Element",
    "Fragment",
    "Document",
    "NodeList",
    "coerce_nodes",
]
