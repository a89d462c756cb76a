"""Scoped DOM fixtures for UI tests."""
from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Union

from pagetest.host.dom import Document, DocumentFragment, Element
from pagetest.utils import maybe_await

SANDBOX_TEMPLATE_SELECTOR = 'template[name="ui-test-sandbox"]'
SANDBOX_SECTION_SELECTOR = 'section[name="ui-test-sandbox"]'

HIDDEN_STYLE = {
    "position": "fixed",
    "inset": "0",
    "pointer-events": "none",
    "visibility": "hidden",
}

SandboxCallback = Callable[[Element], Union[Any, Awaitable[Any]]]


class FixtureError(Exception):
    """A UI test fixture could not be prepared."""


class TemplateNotFoundError(FixtureError):
    pass


class TemplateCloneError(FixtureError):
    pass


@dataclass(frozen=True)
class UiContext:
    """Handed to UI test bodies; ``container`` is the attached sandbox."""

    container: Element
    document: Document


def create_sandbox(document: Document) -> Element:
    """Build the sandbox container, preferring the document's declared template."""

    template = document.query_selector(SANDBOX_TEMPLATE_SELECTOR)
    if template is not None:
        content = getattr(template, "content", None)
        section = content.query_selector(SANDBOX_SECTION_SELECTOR) if content is not None else None
        if section is None:
            raise FixtureError(
                f"Sandbox template declares no {SANDBOX_SECTION_SELECTOR} element"
            )
        return section.clone_node(deep=True)
    container = document.create_element("div")
    container.set_attribute("data-test-sandbox", "true")
    container.style.update(HIDDEN_STYLE)
    return container


@asynccontextmanager
async def sandbox(document: Document) -> AsyncIterator[Element]:
    container = create_sandbox(document)
    document.body.append_child(container)
    try:
        yield container
    finally:
        if container.parent is not None:
            container.parent.remove_child(container)


async def with_sandbox(document: Document, callback: SandboxCallback) -> Any:
    """Run ``callback(container)`` with a sandbox attached to ``document.body``.

    The container is detached before this coroutine returns, whether the
    callback returned, raised or was cancelled.
    """

    async with sandbox(document) as container:
        return await maybe_await(callback(container))


def make_test_dom(document: Document, selector: str) -> DocumentFragment:
    template = document.query_selector(selector)
    if template is None:
        raise TemplateNotFoundError(f"register_ui_test(): Template not found: {selector}")
    try:
        return template.content.clone_node(deep=True)  # type: ignore[attr-defined]
    except Exception as exc:
        raise TemplateCloneError(
            f"register_ui_test(): Failed to clone template content: {exc}"
        ) from exc
