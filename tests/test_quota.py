from __future__ import annotations

import json
from datetime import date

from conftest import NOW

from halo_vocab.config import SrsLimits
from halo_vocab.scheduler.quota import DailyStats, current_day_id
from halo_vocab.storage.keys import SRS_DAILY_KEY, SRS_LIMITS_KEY
from halo_vocab.timeutil import local_datetime


def _today() -> str:
    return current_day_id(local_datetime(NOW))


def test_day_id_puts_day_before_month():
    assert current_day_id(date(2024, 3, 7)) == "20240703"
    assert current_day_id(date(2024, 12, 31)) == "20243112"


def test_fresh_stats_are_zero(quota):
    assert quota.get(now=NOW) == DailyStats(day=_today())


def test_bump_accumulates_within_a_day(quota, kv):
    quota.bump(new_used=1, now=NOW)
    quota.bump(review_used=2, now=NOW)
    stats = quota.bump(new_used=1, now=NOW)
    assert stats == DailyStats(day=_today(), new_used=2, review_used=2)
    assert json.loads(kv.get(SRS_DAILY_KEY)) == {"day": _today(), "newUsed": 2, "reviewUsed": 2}


def test_bump_resets_counters_on_a_new_day(quota, kv):
    kv.set(SRS_DAILY_KEY, json.dumps({"day": "19990101", "newUsed": 5, "reviewUsed": 7}))
    assert quota.get(now=NOW) == DailyStats(day=_today())
    stats = quota.bump(new_used=1, now=NOW)
    assert stats == DailyStats(day=_today(), new_used=1, review_used=0)


def test_malformed_daily_entry_is_reset(quota, kv):
    kv.set(SRS_DAILY_KEY, "not json")
    assert quota.get(now=NOW) == DailyStats(day=_today())
    assert json.loads(kv.get(SRS_DAILY_KEY)) == {"day": _today(), "newUsed": 0, "reviewUsed": 0}


def test_limits_default_and_clamp(limits, kv):
    assert limits.get() == SrsLimits(daily_new_limit=10, daily_review_limit=100)

    saved = limits.save(daily_new_limit=500, daily_review_limit=-3)
    assert saved == SrsLimits(daily_new_limit=100, daily_review_limit=0)
    assert json.loads(kv.get(SRS_LIMITS_KEY)) == {"dailyNewLimit": 100, "dailyReviewLimit": 0}


def test_limits_save_keeps_unspecified_values(limits):
    limits.save(daily_new_limit=20, daily_review_limit=200)
    assert limits.save(daily_new_limit=5) == SrsLimits(daily_new_limit=5, daily_review_limit=200)


def test_limits_round_and_fallback(limits, kv):
    kv.set(SRS_LIMITS_KEY, json.dumps({"dailyNewLimit": 7.5, "dailyReviewLimit": "lots"}))
    assert limits.get() == SrsLimits(daily_new_limit=8, daily_review_limit=100)
