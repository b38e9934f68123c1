from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable

from halo_vocab.config import LEARNING_THRESHOLD, MASTERED_THRESHOLD, REVIEW_DEBOUNCE_MS
from halo_vocab.scheduler.srs import DEFAULT_EASE, grade_for, update_srs
from halo_vocab.storage.codec import read_json, write_json
from halo_vocab.storage.keys import WORDS_KEY
from halo_vocab.storage.kv import KeyValueStore
from halo_vocab.tags.paths import REVIEW_TAG, canonical_tag
from halo_vocab.timeutil import iso_from_ms, ms_from_iso, now_ms
from halo_vocab.words.models import WORD_STATUSES, Word
from halo_vocab.words.sanitize import sanitize_record, sanitize_words

logger = logging.getLogger(__name__)

SEED_WORDS = (
    ("apple", "蘋果", "learning"),
    ("book", "書本", "unknown"),
    ("cat", "貓", "mastered"),
)


class WordStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def load(self, *, now: int | None = None) -> list[Word]:
        now = now_ms() if now is None else now
        if self.kv.get(WORDS_KEY) is None:
            seeded = [
                Word(en=en, zh=zh, status=status, created_at=iso_from_ms(now), review_count=0, tags=[])
                for en, zh, status in SEED_WORDS
            ]
            self.save(seeded)
            return seeded

        decoded = read_json(self.kv, WORDS_KEY, expect=list, default_factory=list)
        words, changes = sanitize_words(decoded.value, now=now)
        if changes:
            logger.info("migrated %d word field(s) on load", len(changes))
            self.save(words)
        return words

    def save(self, words: Iterable[Word]) -> None:
        write_json(self.kv, WORDS_KEY, [word.to_record() for word in words])

    def get(self, en: str) -> Word | None:
        words = self.load()
        idx = _find(words, en)
        return words[idx] if idx >= 0 else None

    def add(self, word: Word, *, now: int | None = None) -> Word | None:
        now = now_ms() if now is None else now
        words = self.load(now=now)
        if not str(word.en or "").strip() or _find(words, word.en) >= 0:
            return None
        record = word.to_record()
        record.setdefault("createdAt", iso_from_ms(now))
        created = sanitize_record(record, now=now)
        if created is None:
            return None
        added = Word.from_record(created)
        words.append(added)
        self.save(words)
        return added

    def delete(self, en: str) -> bool:
        words = self.load()
        idx = _find(words, en)
        if idx < 0:
            return False
        del words[idx]
        self.save(words)
        return True

    def set_status(self, en: str, status: str) -> Word | None:
        def mutate(word: Word) -> Word:
            if status not in WORD_STATUSES:
                return word
            return replace(word, status=status)

        return self._mutate(en, mutate)

    def set_word_tags(self, en: str, tags: Iterable[str], *, now: int | None = None) -> Word | None:
        now = now_ms() if now is None else now

        def mutate(word: Word) -> Word:
            next_tags: list[str] = []
            for tag in tags:
                name = canonical_tag(tag)
                if name is not None and name not in next_tags:
                    next_tags.append(name)
            updated = replace(word, tags=next_tags)
            if REVIEW_TAG in next_tags:
                updated = _ensure_srs_defaults(updated, now)
            return updated

        return self._mutate(en, mutate, now=now)

    def toggle_word_tag(self, en: str, tag: str, enabled: bool, *, now: int | None = None) -> Word | None:
        now = now_ms() if now is None else now

        def mutate(word: Word) -> Word:
            name = canonical_tag(tag)
            if name is None:
                logger.debug("toggle ignored, invalid tag %r", tag)
                return word
            tags = [item for item in word.tags if item != name]
            if enabled:
                tags.append(name)
            updated = replace(word, tags=tags)
            if enabled and name == REVIEW_TAG:
                updated = _ensure_srs_defaults(updated, now)
            return updated

        return self._mutate(en, mutate, now=now)

    def bump_review(self, en: str, window_ms: int = REVIEW_DEBOUNCE_MS, *, now: int | None = None) -> Word | None:
        now = now_ms() if now is None else now

        def mutate(word: Word) -> Word:
            last = ms_from_iso(word.last_reviewed_at) or 0
            if now - last < window_ms:
                return word
            count = word.review_count + 1
            status = word.status
            if count > MASTERED_THRESHOLD:
                status = "mastered"
            elif count > LEARNING_THRESHOLD and status == "unknown":
                status = "learning"
            return replace(word, status=status, review_count=count, last_reviewed_at=iso_from_ms(now))

        return self._mutate(en, mutate, now=now)

    def srs_answer(self, en: str, correct: bool, *, now: int | None = None) -> Word | None:
        now = now_ms() if now is None else now

        def mutate(word: Word) -> Word:
            if not word.in_review:
                return word
            return word.with_srs(update_srs(word.srs_state(now), grade_for(correct), now))

        return self._mutate(en, mutate, now=now)

    def list_due(self, *, now: int | None = None) -> list[Word]:
        now = now_ms() if now is None else now
        return [word for word in self.load(now=now) if word.is_due(now)]

    def due_count(self, *, now: int | None = None) -> int:
        return len(self.list_due(now=now))

    def list_by_tag(self, tag: str) -> list[Word]:
        name = canonical_tag(tag)
        if name is None:
            return []
        return [word for word in self.load() if name in word.tags]

    def rewrite_tags(self, transform: Callable[[list[str]], list[str]]) -> int:
        """Apply ``transform`` to every word's tag list and persist; returns how many words changed."""
        words = self.load()
        changed = 0
        updated: list[Word] = []
        for word in words:
            tags: list[str] = []
            for tag in transform(list(word.tags)):
                if tag not in tags:
                    tags.append(tag)
            if tags != word.tags:
                changed += 1
                word = replace(word, tags=tags)
            updated.append(word)
        if changed:
            self.save(updated)
        return changed

    def _mutate(self, en: str, mutate: Callable[[Word], Word], *, now: int | None = None) -> Word | None:
        words = self.load(now=now)
        idx = _find(words, en)
        if idx < 0:
            return None
        current = words[idx]
        updated = mutate(current)
        if updated is not current:
            words[idx] = updated
            self.save(words)
        return updated


def _find(words: list[Word], en: str) -> int:
    key = str(en or "").lower()
    for idx, word in enumerate(words):
        if word.key == key:
            return idx
    return -1


def _ensure_srs_defaults(word: Word, now: int) -> Word:
    return replace(
        word,
        srs_ease=word.srs_ease if word.srs_ease is not None else DEFAULT_EASE,
        srs_interval=word.srs_interval if word.srs_interval is not None else 0,
        srs_reps=word.srs_reps if word.srs_reps is not None else 0,
        srs_lapses=word.srs_lapses if word.srs_lapses is not None else 0,
        srs_due=word.srs_due or iso_from_ms(now),
    )
