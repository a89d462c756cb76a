"""Registration interface bound to one runner and one document."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from pagetest.host.dom import Document, Element
from pagetest.utils import maybe_await

from .models import TestAction
from .runner import TestRunner
from .sandbox import UiContext, make_test_dom, with_sandbox

UiAction = Callable[[UiContext], Union[Any, Awaitable[Any]]]
F = TypeVar("F", bound=Callable[..., Any])


class TestSuite:
    """Registers tests with an explicit runner instead of a process-wide one.

    Both registration methods work directly or as decorators::

        @suite.register_test("addition works")
        def _() -> None:
            assertions.equal(2 + 2, 4)
    """

    __test__ = False

    def __init__(self, runner: TestRunner, document: Document) -> None:
        self.runner = runner
        self.document = document

    def register_test(self, name: str, action: Optional[TestAction] = None) -> Any:
        if action is None:
            def decorator(func: F) -> F:
                self.runner.enqueue_test(name, func)
                return func

            return decorator
        self.runner.enqueue_test(name, action)
        return action

    def register_ui_test(self, name: str, selector: str, action: Optional[UiAction] = None) -> Any:
        """Register a test whose body runs against a fresh copy of a template.

        The template matched by ``selector`` is cloned into a sandbox attached
        to the document; ``action`` receives a :class:`UiContext`.
        """

        if action is None:
            def decorator(func: F) -> F:
                self.register_ui_test(name, selector, func)
                return func

            return decorator

        document = self.document

        async def run_ui_test() -> None:
            async def with_fixture(container: Element) -> None:
                container.append_child(make_test_dom(document, selector))
                await maybe_await(action(UiContext(container=container, document=document)))

            await with_sandbox(document, with_fixture)

        self.runner.enqueue_test(name, run_ui_test)
        return action
