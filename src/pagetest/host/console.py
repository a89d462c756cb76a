"""Console channel of the hosted environment."""
from __future__ import annotations

from typing import Any, List, Optional, Tuple

import click


class Console:
    """Line-oriented console backed by :func:`click.echo`.

    ``log``/``info``/``debug`` go to stdout and ``error`` to stderr. When a
    ``capture`` list is given every emitted line is also appended to it as
    ``(level, text)``, which is how in-process callers observe the output.
    """

    def __init__(
        self,
        *,
        use_color: bool = False,
        echo: bool = True,
        capture: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        self.use_color = use_color
        self._echo = echo
        self._capture = capture

    def log(self, *parts: Any) -> None:
        self._write("log", parts, err=False)

    def info(self, *parts: Any) -> None:
        self._write("info", parts, err=False)

    def debug(self, *parts: Any) -> None:
        self._write("debug", parts, err=False)

    def error(self, *parts: Any) -> None:
        self._write("error", parts, err=True)

    def style(self, text: str, **styles: Any) -> str:
        return click.style(text, **styles) if self.use_color else text

    @property
    def lines(self) -> List[str]:
        return [text for _, text in self._capture or ()]

    def _write(self, level: str, parts: Tuple[Any, ...], *, err: bool) -> None:
        text = " ".join(str(part) for part in parts)
        if self._capture is not None:
            for line in text.split("\n"):
                self._capture.append((level, line))
        if self._echo:
            click.echo(text, err=err)
