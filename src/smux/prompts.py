"""Blocking user prompts used by interactive creation and switching."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Protocol, TextIO

_AFFIRMATIVE = {"y", "yes"}


class Prompter(Protocol):
    def confirm(self, message: str) -> bool: ...

    def ask(self, message: str) -> str: ...


def is_affirmative(answer: str) -> bool:
    return answer.strip().lower() in _AFFIRMATIVE


class ConsolePrompter:
    def __init__(
        self,
        *,
        input_func: Callable[[], str] = input,
        stream: TextIO | None = None,
    ) -> None:
        self.input_func = input_func
        self.stream = stream or sys.stdout

    def _read(self) -> str:
        try:
            return self.input_func()
        except EOFError:
            return ""

    def ask(self, message: str) -> str:
        print(message, file=self.stream, flush=True)
        return self._read().strip()

    def confirm(self, message: str) -> bool:
        print(f"{message} (y/N)", file=self.stream, flush=True)
        return is_affirmative(self._read())
