"""Review session: bounded queue of due and new cards with an in-session retry queue."""

from __future__ import annotations

import logging
import random
from typing import Iterable

from halo_vocab.config import SrsLimits
from halo_vocab.scheduler.quota import DailyQuotaTracker, DailyStats, SrsLimitsStore
from halo_vocab.tags.paths import REVIEW_TAG, canonical_tag
from halo_vocab.timeutil import ms_from_iso, now_ms
from halo_vocab.words.models import Word
from halo_vocab.words.store import WordStore

logger = logging.getLogger(__name__)


def split_candidates(words: Iterable[Word], *, now: int, tag: str = REVIEW_TAG) -> tuple[list[Word], list[Word]]:
    """Return ``(due, new)`` among words carrying ``tag``; new means never reviewed and not due."""
    due: list[Word] = []
    new: list[Word] = []
    for word in words:
        if tag not in word.tags:
            continue
        due_at = ms_from_iso(word.srs_due)
        if due_at is not None and due_at <= now:
            due.append(word)
        elif (word.srs_reps or 0) == 0:
            new.append(word)
    return due, new


def build_review_queue(
    words: Iterable[Word],
    *,
    limits: SrsLimits,
    stats: DailyStats,
    now: int,
    tag: str = REVIEW_TAG,
    rng: random.Random | None = None,
) -> list[Word]:
    rng = rng or random.Random()
    due, new = split_candidates(words, now=now, tag=tag)
    review_allow = max(0, limits.daily_review_limit - stats.review_used)
    new_allow = max(0, limits.daily_new_limit - stats.new_used)

    rng.shuffle(due)
    rng.shuffle(new)
    queue = due[:review_allow]
    taken = {word.key for word in queue}
    for word in new:
        if new_allow <= 0:
            break
        if word.key in taken:
            continue
        queue.append(word)
        taken.add(word.key)
        new_allow -= 1
    return queue


class ReviewSession:
    def __init__(
        self,
        words: WordStore,
        quota: DailyQuotaTracker,
        limits: SrsLimitsStore,
        *,
        tag: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.words = words
        self.quota = quota
        self.limits = limits
        self.tag = canonical_tag(tag) if tag else REVIEW_TAG
        self.rng = rng or random.Random()
        self.queue: list[Word] = []
        self.current: Word | None = None
        self.reviewed = 0
        self.answered: set[str] = set()
        self.finished = False

    def refill(self, *, now: int | None = None) -> list[Word]:
        now = now_ms() if now is None else now
        if self.tag is None:
            self.queue = []
        else:
            self.queue = build_review_queue(
                [word for word in self.words.load(now=now) if word.key not in self.answered],
                limits=self.limits.get(),
                stats=self.quota.get(now=now),
                now=now,
                tag=self.tag,
                rng=self.rng,
            )
        self.finished = not self.queue
        return list(self.queue)

    def next(self, *, now: int | None = None) -> Word | None:
        if not self.queue:
            self.refill(now=now)
        if not self.queue:
            self.current = None
            self.finished = True
            return None
        self.current = self.queue.pop(0)
        return self.current

    def answer(self, en: str, correct: bool, *, now: int | None = None) -> Word | None:
        now = now_ms() if now is None else now
        before = self.words.get(en)
        if before is None:
            return None
        # srs_answer is a no-op outside Review; those words are still counted and retried
        updated = self.words.srs_answer(en, correct, now=now) or before
        if (before.srs_reps or 0) == 0:
            self.quota.bump(new_used=1, now=now)
        else:
            self.quota.bump(review_used=1, now=now)
        self.reviewed += 1
        self.answered.add(updated.key)
        if not correct:
            self.queue.append(updated)
            logger.debug("requeued %s after a miss", updated.en)
        if self.current is not None and self.current.key == updated.key:
            self.current = None
        return updated

    def drop(self, en: str) -> Word | None:
        """Take a word out of the review flow and out of this session's queue."""
        key = str(en or "").lower()
        self.queue = [word for word in self.queue if word.key != key]
        if self.current is not None and self.current.key == key:
            self.current = None
        return self.words.toggle_word_tag(en, REVIEW_TAG, False)

    @property
    def remaining(self) -> int:
        return len(self.queue)
