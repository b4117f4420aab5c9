"""Lottery outcome resolution for a spin of the wheel.

The wheel has two segments per prize: prize segments sit on even indices in
prize order, "no win" segments on odd indices. The draw itself is independent
from the wheel layout; the segment index only tells the client where to stop.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


class RandomSource(Protocol):
    """Subset of `random.Random` used by the resolver."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence[Any]) -> Any: ...


_SYSTEM_RANDOM = random.SystemRandom()


@dataclass(frozen=True)
class PrizeSnapshot:
    """Read-only view of a prize at resolution time."""

    id: int
    name: str
    probability: float
    total_quantity: int | None
    awarded_count: int

    @property
    def is_available(self) -> bool:
        return self.total_quantity is None or self.awarded_count < self.total_quantity

    @classmethod
    def from_prize(cls, prize: Any) -> "PrizeSnapshot":
        return cls(
            id=int(prize.id),
            name=str(prize.name),
            probability=float(prize.probability),
            total_quantity=None if prize.total_quantity is None else int(prize.total_quantity),
            awarded_count=int(prize.awarded_count or 0),
        )


@dataclass(frozen=True)
class LotteryResult:
    won: bool
    prize_id: int | None
    prize_name: str | None
    segment_index: int


def total_segments_for(prizes: Sequence[object]) -> int:
    return 2 * len(prizes)


def determine_outcome(
    prizes: Sequence[PrizeSnapshot],
    total_segments: int,
    rng: RandomSource | None = None,
) -> LotteryResult:
    """Draw once and map the draw onto the prize catalog.

    Exhausted prizes are skipped: their probability mass falls through to
    "no win" and is not redistributed. Among available prizes, in catalog
    order, the first with ``draw < cumulative probability`` wins, so a draw
    exactly on a boundary goes to the next prize.

    Args:
        prizes: Prizes in campaign order (sort_order).
        total_segments: Wheel size, must be ``2 * len(prizes)``.
        rng: Random source; defaults to the system CSPRNG.

    Raises:
        ValueError: No prizes, or a wheel size that does not match them.
    """

    if not prizes:
        raise ValueError("At least one prize is required")
    if total_segments != total_segments_for(prizes):
        raise ValueError(f"total_segments must be {total_segments_for(prizes)}, got {total_segments}")

    source = rng or _SYSTEM_RANDOM
    draw = source.random()

    cumulative = 0.0
    for index, prize in enumerate(prizes):
        if not prize.is_available:
            continue
        cumulative += prize.probability
        if draw < cumulative:
            return LotteryResult(
                won=True,
                prize_id=prize.id,
                prize_name=prize.name,
                segment_index=2 * index,
            )

    no_win_segments = list(range(1, total_segments, 2))
    return LotteryResult(
        won=False,
        prize_id=None,
        prize_name=None,
        segment_index=int(source.choice(no_win_segments)),
    )
