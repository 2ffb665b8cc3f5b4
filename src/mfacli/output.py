"""Terminal output for mfacli, split between a data stream and a diagnostic stream.

* **stdout** carries only what a wrapper script wants to capture: the access
  token printed at the end of a grant and the authenticator listing.
* **stderr** carries the flow narration ("MFA required. Got MFA token!"),
  warnings, errors and, with ``--verbose``, the HTTP trace.

Colour follows `clig.dev <https://clig.dev/>`_: it is off when ``NO_COLOR``
is set, when ``TERM=dumb``, or when ``--no-color`` is passed. With colour off
every line is written with a plain :func:`print`, so redirected output never
contains escape codes.

:class:`OutputManager` holds the flags and the two Rich consoles. The root
callback installs one with :func:`set_output`; library code reaches it
through :func:`get_output` or the module-level shortcuts (:func:`info`,
:func:`error`, ...).
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax


class OutputManager:
    """Routes CLI messages to stdout or stderr.

    Args:
        no_color: Write plain text only.
        quiet: Drop ``info``, ``success`` and ``suggest`` messages. Errors,
            warnings and data are always written.
        verbose: Show ``debug`` messages, which is where the HTTP trace goes.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._rich = _is_tty() and not self._no_color

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._rich,
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
            highlight=False,
        )

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    def enable_verbose(self) -> None:
        """Turn on ``debug`` output after construction."""
        self._verbose = True

    # --- stdout ---

    def format_response(self, data: Any) -> None:
        """Write a JSON payload, highlighted when stdout is a colour terminal."""
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._rich:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
            return
        self.print_data(text)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # --- stderr ---

    def _emit(
        self,
        message: str,
        style: Optional[str] = None,
        label: str = "",
        label_markup: str = "",
    ) -> None:
        if self._no_color:
            print(f"{label}{message}", file=sys.stderr, flush=True)
            return
        if label_markup:
            self._stderr.print(label_markup, end="")
        self._stderr.print(message, style=style, markup=False)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._emit(message, style="green")

    def warning(self, message: str) -> None:
        self._emit(message, label="Warning: ", label_markup="[yellow]Warning:[/yellow] ")

    def error(self, message: str) -> None:
        self._emit(message, label="Error: ", label_markup="[bold red]Error:[/bold red] ")

    def suggest(self, message: str) -> None:
        """Point the operator at the command to try next."""
        if not self._quiet:
            self._emit(f"→ {message}", style="dim")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._emit(message, style="dim")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager. Tests call this between runs."""
    global _output
    _output = None


# --- shortcuts ---


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
