"""Line-based interactive prompts.

The resolver and the CLI depend only on the InteractivePrompt protocol so
tests can drive them with scripted answers instead of a real console.
"""

from __future__ import annotations

import sys
from typing import Protocol, TextIO

# Methods offered when none was supplied on the command line or in config.
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


class PromptError(Exception):
    """Base class for prompt errors."""


class InputExhaustedError(PromptError):
    """Raised when the input stream ends before an answer was entered."""


class InteractivePrompt(Protocol):
    """Blocking prompts answered by the operator."""

    def select_index(self, max_exclusive: int) -> int:
        """Return a 1-based index in [1, max_exclusive)."""
        ...

    def read_line(self, label: str) -> str:
        """Return one line of free text."""
        ...


class ConsolePrompt:
    """InteractivePrompt backed by text streams (stdin/stdout by default).

    Usage:
        prompt = ConsolePrompt()
        choice = prompt.select_index(len(items) + 1)
    """

    def __init__(
        self,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
    ) -> None:
        self._in = input_stream if input_stream is not None else sys.stdin
        self._out = output_stream if output_stream is not None else sys.stdout

    def select_index(self, max_exclusive: int) -> int:
        """Block until a number in [1, max_exclusive) is entered.

        Non-numeric and out-of-range entries are reported and re-prompted.

        Raises:
            InputExhaustedError: If the input stream ends first.
        """
        self._write("enter number > ")
        while True:
            text = self._next_line()
            try:
                num = int(text)
            except ValueError:
                self._write(f"[{text}] is illegal format. enter number > ")
                continue
            if num < 1 or num >= max_exclusive:
                self._write(f"[{num}] is unknown number. enter number > ")
                continue
            self._write(f"You selected: {num}\n")
            return num

    def read_line(self, label: str) -> str:
        """Prompt with 'enter <label> > ' and return the entered line.

        Raises:
            InputExhaustedError: If the input stream ends first.
        """
        self._write(f"enter {label} > ")
        return self._next_line()

    def _next_line(self) -> str:
        line = self._in.readline()
        if line == "":
            raise InputExhaustedError("Input ended before a value was entered")
        return line.rstrip("\r\n")

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()


def select_method(prompt: InteractivePrompt, out: TextIO | None = None) -> str:
    """Let the operator pick an HTTP method from a numbered menu."""
    out = out if out is not None else sys.stdout
    for i, method in enumerate(HTTP_METHODS, start=1):
        print(f"[{i}] {method}", file=out)
    num = prompt.select_index(len(HTTP_METHODS) + 1)
    return HTTP_METHODS[num - 1]
