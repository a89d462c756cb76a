from __future__ import annotations

from typing import Callable, List, Tuple

import pytest

from pagetest.host import Console, Document
from pagetest.host.environment import HostEnvironment

PAGE = """<!DOCTYPE html>
<html>
  <body>
    <div id="app"></div>
    <template id="card">
      <div class="card"><span class="title">Hello</span><button class="go">go</button></div>
    </template>
  </body>
</html>
"""


@pytest.fixture
def console_lines() -> List[Tuple[str, str]]:
    return []


@pytest.fixture
def console(console_lines) -> Console:
    return Console(echo=False, capture=console_lines)


@pytest.fixture
def make_env(console) -> Callable[..., HostEnvironment]:
    """Build a host environment on ``PAGE`` with instant scheduling."""

    def factory(markup: str = PAGE, **kwargs) -> HostEnvironment:
        kwargs.setdefault("debounce", 0)
        kwargs.setdefault("load_delay", 0)
        kwargs.setdefault("alert_handler", lambda message: None)
        return HostEnvironment(Document.from_html(markup), console=console, **kwargs)

    return factory
