"""Ordered record of switch steps and their outcomes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StepEvent:
    step: str
    state: str
    message: str


class SwitchProgress:
    def __init__(self) -> None:
        self.events: list[StepEvent] = []

    def record_started(self, step: str, message: str = "") -> None:
        self.events.append(StepEvent(step=step, state="started", message=message))

    def record_success(self, step: str, message: str = "") -> None:
        self.events.append(StepEvent(step=step, state="success", message=message))

    def record_error(self, step: str, message: str) -> None:
        self.events.append(StepEvent(step=step, state="error", message=message))

    def record_skipped(self, step: str, message: str = "") -> None:
        self.events.append(StepEvent(step=step, state="skipped", message=message))
