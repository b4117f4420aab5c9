"""Test doubles shared by the test modules."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from spinwin.services.notification_service import PlayEvent


class FixedRandom:
    """Random source returning a fixed draw and a chosen no-win slot."""

    def __init__(self, draw: float, choice_index: int = 0) -> None:
        self.draw = draw
        self.choice_index = choice_index
        self.choices: list[list[Any]] = []

    def random(self) -> float:
        return self.draw

    def choice(self, seq: Sequence[Any]) -> Any:
        self.choices.append(list(seq))
        return seq[self.choice_index]


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[PlayEvent] = []

    def notify(self, event: PlayEvent) -> None:
        self.events.append(event)
