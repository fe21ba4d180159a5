from __future__ import annotations

import sys
from typing import Callable, Optional, Protocol, Sequence


InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


class Prompter(Protocol):
    """
    User-interaction capability handed to the resolver and the orchestrator.

    `choose` returns the index of the picked option, or None when the user aborted
    or typed something unrecognized.
    """

    def confirm(self, question: str, *, default: bool = False) -> bool: ...
    def choose(self, question: str, options: Sequence[str], *, default: int = 0) -> Optional[int]: ...


def has_tty() -> bool:
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


class TerminalPrompter:
    def __init__(self, input_fn: InputFn = input, output_fn: OutputFn = print):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def _ask(self, prompt: str) -> Optional[str]:
        try:
            return self.input_fn(prompt)
        except EOFError:
            return None

    def confirm(self, question: str, *, default: bool = False) -> bool:
        suffix = " [Y/n] " if default else " [y/N] "
        resp = self._ask(question + suffix)
        if resp is None:
            return default
        resp = resp.strip().lower()
        if resp == "":
            return default
        return resp in {"y", "yes"}

    def choose(self, question: str, options: Sequence[str], *, default: int = 0) -> Optional[int]:
        self.output_fn(question)
        for i, opt in enumerate(options, start=1):
            self.output_fn(f"  {i}) {opt}")
        resp = self._ask(f"Select [1-{len(options)}] (default {default + 1}): ")
        if resp is None:
            return None
        resp = resp.strip()
        if resp == "":
            return default
        try:
            idx = int(resp) - 1
        except ValueError:
            return None
        if 0 <= idx < len(options):
            return idx
        return None
