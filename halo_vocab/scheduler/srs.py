from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from halo_vocab.timeutil import DAY_MS

Grade = Literal["again", "good"]

DEFAULT_EASE = 2.5
MIN_EASE = 1.3
MAX_EASE = 3.0
# keeps due dates well inside datetime's range
MAX_INTERVAL_DAYS = 36_500


@dataclass(frozen=True)
class SrsState:
    ease: float
    interval: int
    reps: int
    lapses: int
    due: int


def default_srs(now: int) -> SrsState:
    return SrsState(ease=DEFAULT_EASE, interval=0, reps=0, lapses=0, due=now)


def is_due(state: SrsState, now: int) -> bool:
    return state.due <= now


def update_srs(previous: SrsState, grade: Grade, now: int) -> SrsState:
    ease = previous.ease
    interval = previous.interval
    reps = previous.reps
    lapses = previous.lapses

    if grade == "again":
        lapses += 1
        reps = 0
        ease = max(MIN_EASE, ease - 0.2)
        interval = 1
    elif grade == "good":
        if reps == 0:
            interval = 1
        elif reps == 1:
            interval = 6
        else:
            interval = min(MAX_INTERVAL_DAYS, max(1, _round_half_up(interval * ease)))
        reps += 1
        ease = min(MAX_EASE, ease + 0.05)
    else:
        raise ValueError(f"unsupported grade: {grade}")

    return SrsState(
        ease=ease,
        interval=interval,
        reps=reps,
        lapses=lapses,
        due=now + interval * DAY_MS,
    )


def grade_for(correct: bool) -> Grade:
    return "good" if correct else "again"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
