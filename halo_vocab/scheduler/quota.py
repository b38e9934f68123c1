from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from halo_vocab.config import DEFAULT_LIMITS, LIMIT_BOUNDS, SrsLimits
from halo_vocab.storage.codec import as_int, read_json, write_json
from halo_vocab.storage.keys import SRS_DAILY_KEY, SRS_LIMITS_KEY
from halo_vocab.storage.kv import KeyValueStore
from halo_vocab.timeutil import local_datetime


@dataclass(frozen=True)
class DailyStats:
    day: str
    new_used: int = 0
    review_used: int = 0

    def to_record(self) -> dict:
        return {"day": self.day, "newUsed": self.new_used, "reviewUsed": self.review_used}


def current_day_id(value: date | datetime | None = None) -> str:
    # Day and month are swapped relative to yyyymmdd; existing installs store this form.
    value = value or datetime.now()
    return f"{value.year:04d}{value.day:02d}{value.month:02d}"


class DailyQuotaTracker:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def get(self, *, now: int | None = None) -> DailyStats:
        today = current_day_id(local_datetime(now))
        decoded = read_json(
            self.kv,
            SRS_DAILY_KEY,
            expect=dict,
            default_factory=lambda: DailyStats(day=today).to_record(),
        )
        record = decoded.value
        if record.get("day") != today:
            return DailyStats(day=today)
        return DailyStats(
            day=today,
            new_used=max(0, as_int(record.get("newUsed"), 0)),
            review_used=max(0, as_int(record.get("reviewUsed"), 0)),
        )

    def bump(self, *, new_used: int = 0, review_used: int = 0, now: int | None = None) -> DailyStats:
        today = current_day_id(local_datetime(now))
        current = self.get(now=now)
        if current.day != today:
            current = DailyStats(day=today)
        updated = DailyStats(
            day=today,
            new_used=max(0, current.new_used + int(new_used or 0)),
            review_used=max(0, current.review_used + int(review_used or 0)),
        )
        write_json(self.kv, SRS_DAILY_KEY, updated.to_record())
        return updated


class SrsLimitsStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def get(self) -> SrsLimits:
        decoded = read_json(self.kv, SRS_LIMITS_KEY, expect=dict, default_factory=lambda: limits_record(DEFAULT_LIMITS))
        record = decoded.value
        return clamp_limits(
            new_limit=as_int(record.get("dailyNewLimit"), DEFAULT_LIMITS.daily_new_limit),
            review_limit=as_int(record.get("dailyReviewLimit"), DEFAULT_LIMITS.daily_review_limit),
        )

    def save(self, *, daily_new_limit: object = None, daily_review_limit: object = None) -> SrsLimits:
        current = self.get()
        updated = clamp_limits(
            new_limit=as_int(daily_new_limit, current.daily_new_limit),
            review_limit=as_int(daily_review_limit, current.daily_review_limit),
        )
        write_json(self.kv, SRS_LIMITS_KEY, limits_record(updated))
        return updated


def clamp_limits(*, new_limit: int, review_limit: int) -> SrsLimits:
    return SrsLimits(
        daily_new_limit=max(LIMIT_BOUNDS.new_min, min(new_limit, LIMIT_BOUNDS.new_max)),
        daily_review_limit=max(LIMIT_BOUNDS.review_min, min(review_limit, LIMIT_BOUNDS.review_max)),
    )


def limits_record(limits: SrsLimits) -> dict:
    return {"dailyNewLimit": limits.daily_new_limit, "dailyReviewLimit": limits.daily_review_limit}
