"""A small DOM for the hosted environment.

Parsing is done with :mod:`html.parser`; selectors support the compound
forms used by fixtures (``tag``, ``#id``, ``.class``, ``[attr]`` and
``[attr="value"]``) joined by the descendant combinator.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

VOID_TAGS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}
)

Listener = Callable[["Event"], Any]


class DomError(Exception):
    """Raised for invalid tree operations."""


@dataclass
class Event:
    type: str
    target: Any = None
    bubbles: bool = True
    detail: Any = None
    propagation_stopped: bool = field(default=False, init=False)

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class EventTarget:
    """Listener registry shared by nodes, documents and the host window."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        bucket = self._listeners.setdefault(event_type, [])
        if listener not in bucket:
            bucket.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        bucket = self._listeners.get(event_type, [])
        if listener in bucket:
            bucket.remove(listener)

    def dispatch_event(self, event: Union[Event, str]) -> Event:
        if isinstance(event, str):
            event = Event(event)
        if event.target is None:
            event.target = self
        current: Optional[EventTarget] = self
        while current is not None:
            for listener in list(current._listeners.get(event.type, ())):
                listener(event)
            if not event.bubbles or event.propagation_stopped:
                break
            current = current._event_parent()
        return event

    def _event_parent(self) -> Optional["EventTarget"]:
        return None


class Node(EventTarget):
    def __init__(self) -> None:
        super().__init__()
        self.parent: Optional[Node] = None
        self.owner_document: Optional[Document] = None

    @property
    def text_content(self) -> str:  # pragma: no cover - overridden
        raise NotImplementedError

    def clone_node(self, deep: bool = False) -> "Node":  # pragma: no cover - overridden
        raise NotImplementedError

    @property
    def is_connected(self) -> bool:
        node: Optional[Node] = self
        while node is not None:
            if isinstance(node, Element) and node.owner_document is not None:
                if node is node.owner_document.document_element:
                    return True
            node = node.parent
        return False

    def _event_parent(self) -> Optional[EventTarget]:
        if self.parent is not None:
            return self.parent
        if self.is_connected:
            return self.owner_document
        return None


class Text(Node):
    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    @property
    def text_content(self) -> str:
        return self.data

    def clone_node(self, deep: bool = False) -> "Text":
        clone = Text(self.data)
        clone.owner_document = self.owner_document
        return clone

    def __repr__(self) -> str:
        return f"Text({self.data!r})"


class ParentNode(Node):
    """Node that owns an ordered list of children."""

    def __init__(self) -> None:
        super().__init__()
        self.children: List[Node] = []

    def append_child(self, node: Node) -> Node:
        if isinstance(node, DocumentFragment):
            for child in list(node.children):
                self.append_child(child)
            return node
        if node is self or (isinstance(node, ParentNode) and node.contains(self)):
            raise DomError("Cannot insert a node into its own subtree")
        if node.parent is not None:
            node.parent.remove_child(node)
        node.parent = self
        _adopt(node, self.owner_document)
        self.children.append(node)
        return node

    def remove_child(self, node: Node) -> Node:
        if node.parent is not self:
            raise DomError("The node to be removed is not a child of this node")
        self.children.remove(node)
        node.parent = None
        return node

    def contains(self, node: Optional[Node]) -> bool:
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def elements(self) -> List["Element"]:
        return [child for child in self.children if isinstance(child, Element)]

    @property
    def text_content(self) -> str:
        return "".join(child.text_content for child in self.children)

    @text_content.setter
    def text_content(self, value: Any) -> None:
        for child in list(self.children):
            self.remove_child(child)
        if value is not None and str(value):
            self.append_child(Text(str(value)))

    def iter_descendants(self) -> Iterator["Element"]:
        """Pre-order walk over element descendants (template content excluded)."""

        for child in self.children:
            if isinstance(child, Element):
                yield child
                yield from child.iter_descendants()

    def query_selector(self, selector: str) -> Optional["Element"]:
        for element in self.query_selector_all(selector):
            return element
        return None

    def query_selector_all(self, selector: str) -> List["Element"]:
        groups = parse_selector(selector)
        return [
            element
            for element in self.iter_descendants()
            if any(_matches_chain(element, chain) for chain in groups)
        ]

    @property
    def inner_html(self) -> str:
        return "".join(serialize(child) for child in self.children)

    @inner_html.setter
    def inner_html(self, markup: str) -> None:
        for child in list(self.children):
            self.remove_child(child)
        fragment = parse_fragment(markup, self.owner_document)
        self.append_child(fragment)


class DocumentFragment(ParentNode):
    def clone_node(self, deep: bool = False) -> "DocumentFragment":
        clone = DocumentFragment()
        clone.owner_document = self.owner_document
        if deep:
            for child in self.children:
                clone.append_child(child.clone_node(deep=True))
        return clone

    def __repr__(self) -> str:
        return f"DocumentFragment(children={len(self.children)})"


class Element(ParentNode):
    def __init__(self, tag_name: str, attributes: Optional[Dict[str, str]] = None) -> None:
        super().__init__()
        self.tag_name = tag_name.lower()
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.style: Dict[str, str] = {}

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get("id")

    @property
    def class_list(self) -> List[str]:
        return self.attributes.get("class", "").split()

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name.lower())

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name.lower()] = "" if value is None else str(value)

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name.lower(), None)

    def matches(self, selector: str) -> bool:
        return any(_matches_chain(self, chain) for chain in parse_selector(selector))

    def click(self) -> Event:
        return self.dispatch_event(Event("click", target=self))

    def clone_node(self, deep: bool = False) -> "Element":
        clone = _new_element(self.tag_name, self.attributes)
        clone.style = dict(self.style)
        clone.owner_document = self.owner_document
        if deep:
            for child in self.children:
                clone.append_child(child.clone_node(deep=True))
        return clone

    @property
    def outer_html(self) -> str:
        return serialize(self)

    def __repr__(self) -> str:
        return f"<{self.tag_name}{_render_attributes(self)}>"


class TemplateElement(Element):
    """``<template>``: children are parsed into :attr:`content`, not the tree."""

    def __init__(self, tag_name: str = "template", attributes: Optional[Dict[str, str]] = None) -> None:
        super().__init__(tag_name, attributes)
        self.content = DocumentFragment()

    def clone_node(self, deep: bool = False) -> "TemplateElement":
        clone = super().clone_node(deep)
        assert isinstance(clone, TemplateElement)
        if deep:
            clone.content = self.content.clone_node(deep=True)
        return clone


class Document(ParentNode):
    """Document root with ``html``/``head``/``body`` elements."""

    def __init__(self, url: str = "about:blank") -> None:
        super().__init__()
        self.url = url
        self.owner_document = self
        self.document_element = self.create_element("html")
        self.head = self.create_element("head")
        self.body = self.create_element("body")
        ParentNode.append_child(self, self.document_element)
        self.document_element.append_child(self.head)
        self.document_element.append_child(self.body)

    @classmethod
    def from_html(cls, markup: str, url: str = "about:blank") -> "Document":
        document = cls(url=url)
        _DocumentParser(document).parse(markup)
        return document

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Document":
        source = Path(path).expanduser().resolve()
        return cls.from_html(source.read_text(encoding="utf-8"), url=source.as_uri())

    def create_element(self, tag_name: str) -> Element:
        element = _new_element(tag_name)
        element.owner_document = self
        return element

    def create_text_node(self, data: str) -> Text:
        node = Text(data)
        node.owner_document = self
        return node

    def _event_parent(self) -> Optional[EventTarget]:
        return None

    def __repr__(self) -> str:
        return f"Document({self.url!r})"


# --- selectors -------------------------------------------------------------

_COMPOUND_RE = re.compile(
    r"""
    (?P<tag>\*|[a-zA-Z][\w-]*)
    |\#(?P<id>[\w-]+)
    |\.(?P<cls>[\w-]+)
    |\[\s*(?P<attr>[\w:-]+)\s*(?:=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\]\s]+))\s*)?\]
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Compound:
    tag: Optional[str] = None
    ids: Tuple[str, ...] = ()
    classes: Tuple[str, ...] = ()
    attributes: Tuple[Tuple[str, Optional[str]], ...] = ()

    def matches(self, element: "Element") -> bool:
        if self.tag and self.tag != "*" and element.tag_name != self.tag:
            return False
        if any(element.id != value for value in self.ids):
            return False
        classes = element.class_list
        if any(name not in classes for name in self.classes):
            return False
        for name, value in self.attributes:
            if not element.has_attribute(name):
                return False
            if value is not None and element.get_attribute(name) != value:
                return False
        return True


def parse_selector(selector: str) -> List[Tuple[Compound, ...]]:
    """Parse a selector list into chains of compounds (descendant combinator only)."""

    text = (selector or "").strip()
    if not text:
        raise DomError("Empty selector")
    groups = []
    for group in _split_outside_brackets(text, ","):
        parts = [part for part in _split_outside_brackets(group.strip(), None) if part]
        if not parts:
            raise DomError(f"Invalid selector: {selector!r}")
        groups.append(tuple(_parse_compound(part, selector) for part in parts))
    return groups


def _parse_compound(text: str, selector: str) -> Compound:
    tag = None
    ids: List[str] = []
    classes: List[str] = []
    attributes: List[Tuple[str, Optional[str]]] = []
    pos = 0
    while pos < len(text):
        match = _COMPOUND_RE.match(text, pos)
        if not match or (match.group("tag") and pos != 0):
            raise DomError(f"Unsupported selector: {selector!r}")
        if match.group("tag"):
            tag = match.group("tag").lower()
        elif match.group("id"):
            ids.append(match.group("id"))
        elif match.group("cls"):
            classes.append(match.group("cls"))
        else:
            value = next(
                (match.group(key) for key in ("dq", "sq", "bare") if match.group(key) is not None),
                None,
            )
            attributes.append((match.group("attr").lower(), value))
        pos = match.end()
    return Compound(tag=tag, ids=tuple(ids), classes=tuple(classes), attributes=tuple(attributes))


def _split_outside_brackets(text: str, separator: Optional[str]) -> List[str]:
    parts: List[str] = []
    depth = 0
    quote: Optional[str] = None
    current: List[str] = []
    for char in text:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        elif depth == 0 and (char == separator if separator else char.isspace()):
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def _matches_chain(element: Element, chain: Sequence[Compound]) -> bool:
    if not chain[-1].matches(element):
        return False
    if len(chain) == 1:
        return True
    ancestor = element.parent
    while ancestor is not None:
        if isinstance(ancestor, Element) and _matches_chain(ancestor, chain[:-1]):
            return True
        ancestor = ancestor.parent
    return False


# --- parsing and serialisation ---------------------------------------------


def _new_element(tag_name: str, attributes: Optional[Dict[str, str]] = None) -> Element:
    if tag_name.lower() == "template":
        return TemplateElement(attributes=attributes)
    return Element(tag_name, attributes)


def _adopt(node: Node, document: Optional["Document"]) -> None:
    node.owner_document = document
    if isinstance(node, ParentNode):
        for child in node.children:
            _adopt(child, document)
    if isinstance(node, TemplateElement):
        _adopt(node.content, document)


class _TreeBuilder(HTMLParser):
    def __init__(self, root: ParentNode) -> None:
        super().__init__(convert_charrefs=True)
        self.stack: List[ParentNode] = [root]

    @property
    def current(self) -> ParentNode:
        return self.stack[-1]

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        element = _new_element(tag, {name: value or "" for name, value in attrs})
        self.current.append_child(element)
        if element.tag_name in VOID_TAGS:
            return
        if isinstance(element, TemplateElement):
            element.content.owner_document = element.owner_document
            self.stack.append(element)
            self.stack.append(element.content)
        else:
            self.stack.append(element)

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self.handle_starttag(tag, attrs)
        if tag.lower() not in VOID_TAGS:
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        name = tag.lower()
        for index in range(len(self.stack) - 1, 0, -1):
            node = self.stack[index]
            if isinstance(node, Element) and node.tag_name == name:
                del self.stack[index:]
                return

    def handle_data(self, data: str) -> None:
        self.current.append_child(Text(data))

    def parse(self, markup: str) -> None:
        self.feed(markup)
        self.close()


class _DocumentParser(_TreeBuilder):
    """Maps ``html``/``head``/``body`` tags onto the document's own elements."""

    def __init__(self, document: Document) -> None:
        super().__init__(document.body)
        self.document = document

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        name = tag.lower()
        if name in ("html", "head", "body"):
            target = getattr(self.document, "document_element" if name == "html" else name)
            target.attributes.update({key: value or "" for key, value in attrs})
            if name != "html":
                self.stack = [target]
            return
        super().handle_starttag(tag, attrs)

    def handle_endtag(self, tag: str) -> None:
        name = tag.lower()
        if name == "head":
            self.stack = [self.document.body]
            return
        if name in ("html", "body"):
            return
        super().handle_endtag(tag)

    def handle_decl(self, decl: str) -> None:
        return


def parse_fragment(markup: str, document: Optional[Document] = None) -> DocumentFragment:
    fragment = DocumentFragment()
    fragment.owner_document = document
    _TreeBuilder(fragment).parse(markup)
    return fragment


def serialize(node: Node) -> str:
    if isinstance(node, Text):
        return html.escape(node.data, quote=False)
    if isinstance(node, Element):
        inner = node.content.inner_html if isinstance(node, TemplateElement) else node.inner_html
        if node.tag_name in VOID_TAGS:
            return f"<{node.tag_name}{_render_attributes(node)}>"
        return f"<{node.tag_name}{_render_attributes(node)}>{inner}</{node.tag_name}>"
    if isinstance(node, ParentNode):
        return node.inner_html
    return ""


def _render_attributes(element: Element) -> str:
    attributes = dict(element.attributes)
    if element.style:
        attributes["style"] = "; ".join(f"{key}: {value}" for key, value in element.style.items())
    return "".join(f' {key}="{html.escape(value)}"' for key, value in attributes.items())
