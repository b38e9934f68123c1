from __future__ import annotations

import re
from typing import Any

from halo_vocab.scheduler.srs import DEFAULT_EASE, MAX_EASE, MIN_EASE
from halo_vocab.storage.codec import as_float, as_int
from halo_vocab.tags.paths import REVIEW_TAG, canonical_tag
from halo_vocab.timeutil import iso_from_ms, ms_from_iso
from halo_vocab.words.models import WORD_STATUSES, Word

_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
TEXT_FIELDS = ("en", "zh", "exampleEn", "exampleZh", "phonetic", "note")
SRS_INT_FIELDS = ("srsInterval", "srsReps", "srsLapses")


def decode_unicode_escapes(text: str) -> str:
    if "\\u" not in text:
        return text
    decoded = _ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 16)), text)
    try:
        return decoded.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeError:
        return text


def sanitize_tags(values: object) -> list[str]:
    if not isinstance(values, list):
        return []
    tags: list[str] = []
    for value in values:
        if not isinstance(value, str):
            continue
        tag = canonical_tag(decode_unicode_escapes(value))
        if tag is not None and tag not in tags:
            tags.append(tag)
    return tags


def sanitize_record(raw: dict[str, Any], *, now: int) -> dict[str, Any] | None:
    record = dict(raw)

    for key in TEXT_FIELDS:
        value = record.get(key)
        if isinstance(value, str):
            record[key] = decode_unicode_escapes(value)
        elif key == "zh":
            record[key] = ""
        else:
            record.pop(key, None)

    en = str(record.get("en") or "").strip()
    if not en:
        return None
    record["en"] = en

    if record.get("status") not in WORD_STATUSES:
        record["status"] = "unknown"

    created_at = record.get("createdAt")
    if not isinstance(created_at, str) or not created_at.strip():
        record["createdAt"] = iso_from_ms(now)

    count = record.get("reviewCount")
    if isinstance(count, bool) or not isinstance(count, (int, float)):
        record["reviewCount"] = 0
    else:
        record["reviewCount"] = max(0, as_int(count, 0))

    last_reviewed = record.get("lastReviewedAt")
    if not isinstance(last_reviewed, str) or ms_from_iso(last_reviewed) is None:
        record.pop("lastReviewedAt", None)

    record["tags"] = sanitize_tags(record.get("tags"))
    _sanitize_srs_fields(record, in_review=REVIEW_TAG in record["tags"], now=now)
    return record


def sanitize_words(raw: object, *, now: int) -> tuple[list[Word], list[str]]:
    """Normalize persisted word records; returns the words and a description of every change."""
    if not isinstance(raw, list):
        return [], ["words payload is not a list"]

    words: list[Word] = []
    changes: list[str] = []
    for idx, item in enumerate(raw):
        if not isinstance(item, dict):
            changes.append(f"#{idx}: dropped non-object record")
            continue
        record = sanitize_record(item, now=now)
        if record is None:
            changes.append(f"#{idx}: dropped record without en")
            continue
        for key in sorted(set(item) | set(record)):
            if item.get(key) != record.get(key):
                changes.append(f"{record['en']}: {key}")
        words.append(Word.from_record(record))
    return words, changes


def _sanitize_srs_fields(record: dict[str, Any], *, in_review: bool, now: int) -> None:
    ease = as_float(record.get("srsEase"), None)
    if ease is None:
        if in_review:
            record["srsEase"] = DEFAULT_EASE
        else:
            record.pop("srsEase", None)
    else:
        record["srsEase"] = min(MAX_EASE, max(MIN_EASE, ease))

    for key in SRS_INT_FIELDS:
        value = as_float(record.get(key), None)
        if value is None:
            if in_review:
                record[key] = 0
            else:
                record.pop(key, None)
        else:
            record[key] = max(0, as_int(value, 0))

    due = ms_from_iso(record.get("srsDue")) if isinstance(record.get("srsDue"), str) else None
    if due is None:
        if in_review:
            record["srsDue"] = iso_from_ms(now)
        else:
            record.pop("srsDue", None)
    else:
        record["srsDue"] = iso_from_ms(due)
