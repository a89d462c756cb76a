"""Hosted environment primitives: document and console."""
from .console import Console
from .dom import Document, DocumentFragment, DomError, Element, Event, TemplateElement, Text

__all__ = [
    "Console",
    "Document",
    "DocumentFragment",
    "DomError",
    "Element",
    "Event",
    "TemplateElement",
    "Text",
]
