from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

from halo_vocab.scheduler.srs import DEFAULT_EASE, SrsState
from halo_vocab.tags.paths import REVIEW_TAG
from halo_vocab.timeutil import iso_from_ms, ms_from_iso

WordStatus = Literal["unknown", "learning", "mastered"]
WORD_STATUSES = ("unknown", "learning", "mastered")

# persisted key -> attribute name
FIELD_KEYS = {
    "en": "en",
    "zh": "zh",
    "exampleEn": "example_en",
    "exampleZh": "example_zh",
    "phonetic": "phonetic",
    "note": "note",
    "status": "status",
    "createdAt": "created_at",
    "reviewCount": "review_count",
    "lastReviewedAt": "last_reviewed_at",
    "tags": "tags",
    "srsEase": "srs_ease",
    "srsInterval": "srs_interval",
    "srsReps": "srs_reps",
    "srsLapses": "srs_lapses",
    "srsDue": "srs_due",
}


@dataclass
class Word:
    en: str
    zh: str = ""
    example_en: str | None = None
    example_zh: str | None = None
    phonetic: str | None = None
    note: str | None = None
    status: WordStatus = "unknown"
    created_at: str | None = None
    review_count: int = 0
    last_reviewed_at: str | None = None
    tags: list[str] = field(default_factory=list)
    srs_ease: float | None = None
    srs_interval: int | None = None
    srs_reps: int | None = None
    srs_lapses: int | None = None
    srs_due: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.en.lower()

    @property
    def in_review(self) -> bool:
        return REVIEW_TAG in self.tags

    @property
    def has_srs(self) -> bool:
        return all(
            value is not None
            for value in (self.srs_ease, self.srs_interval, self.srs_reps, self.srs_lapses, self.srs_due)
        )

    def srs_state(self, now: int) -> SrsState:
        due = ms_from_iso(self.srs_due)
        return SrsState(
            ease=self.srs_ease if self.srs_ease is not None else DEFAULT_EASE,
            interval=self.srs_interval if self.srs_interval is not None else 0,
            reps=self.srs_reps if self.srs_reps is not None else 0,
            lapses=self.srs_lapses if self.srs_lapses is not None else 0,
            due=due if due is not None else now,
        )

    def with_srs(self, state: SrsState) -> Word:
        return replace(
            self,
            srs_ease=state.ease,
            srs_interval=state.interval,
            srs_reps=state.reps,
            srs_lapses=state.lapses,
            srs_due=iso_from_ms(state.due),
            tags=list(self.tags),
            extra=dict(self.extra),
        )

    def is_due(self, now: int) -> bool:
        due = ms_from_iso(self.srs_due)
        return self.in_review and due is not None and due <= now

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = dict(self.extra)
        for key, attr in FIELD_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                record.pop(key, None)
                continue
            record[key] = list(value) if attr == "tags" else value
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Word:
        """Build a word from an already-sanitized persisted record."""
        values = {attr: record.get(key) for key, attr in FIELD_KEYS.items() if record.get(key) is not None}
        values["tags"] = list(values.get("tags") or [])
        extra = {key: value for key, value in record.items() if key not in FIELD_KEYS}
        return cls(**values, extra=extra)
