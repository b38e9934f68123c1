from __future__ import annotations

import json

from conftest import NOW

from halo_vocab.storage.kv import MemoryStore
from halo_vocab.storage.keys import WORDS_KEY
from halo_vocab.tags.paths import EXAM_TAG, REVIEW_TAG
from halo_vocab.timeutil import DAY_MS, iso_from_ms, ms_from_iso
from halo_vocab.words.models import Word
from halo_vocab.words.store import WordStore


def test_first_load_seeds_example_words():
    kv = MemoryStore()
    store = WordStore(kv)
    words = store.load(now=NOW)
    assert [(w.en, w.zh, w.status) for w in words] == [
        ("apple", "蘋果", "learning"),
        ("book", "書本", "unknown"),
        ("cat", "貓", "mastered"),
    ]
    assert all(w.review_count == 0 and w.tags == [] for w in words)
    assert len(json.loads(kv.get(WORDS_KEY))) == 3


def test_load_writes_back_migrated_records(kv, words):
    kv.set(
        WORDS_KEY,
        json.dumps(
            [
                {"en": "apple", "zh": "\\u860b\\u679c", "status": "learning", "tags": ["複�?", "複習", " A>B "]},
                {"en": "book", "zh": "書", "tags": "oops", "custom": 1},
            ],
            ensure_ascii=False,
        ),
    )

    loaded = words.load(now=NOW)

    apple, book = loaded
    assert apple.zh == "蘋果"
    assert apple.tags == [REVIEW_TAG, "A > B"]
    assert apple.review_count == 0
    assert apple.created_at == iso_from_ms(NOW)
    assert apple.srs_ease == 2.5
    assert apple.srs_due == iso_from_ms(NOW)
    assert book.tags == []
    assert book.status == "unknown"
    assert book.srs_due is None

    stored = json.loads(kv.get(WORDS_KEY))
    assert stored[0]["tags"] == [REVIEW_TAG, "A > B"]
    assert stored[0]["srsReps"] == 0
    assert stored[1]["custom"] == 1
    assert "srsEase" not in stored[1]


def test_malformed_words_entry_is_reset(kv, words):
    kv.set(WORDS_KEY, "{broken")
    assert words.load(now=NOW) == []
    assert kv.get(WORDS_KEY) == "[]"


def test_add_rejects_duplicates_case_insensitively(words):
    assert words.add(Word(en="Apple", zh="蘋果"), now=NOW) is not None
    assert words.add(Word(en="apple", zh="x"), now=NOW) is None
    assert len(words.load(now=NOW)) == 1
    assert words.get("APPLE").zh == "蘋果"


def test_delete_does_not_cascade(words):
    words.add(Word(en="apple", tags=["A"]), now=NOW)
    words.add(Word(en="book", tags=["A"]), now=NOW)
    assert words.delete("apple")
    assert not words.delete("apple")
    assert [w.en for w in words.load(now=NOW)] == ["book"]
    assert words.get("book").tags == ["A"]


def test_bump_review_debounces_within_window(words):
    words.add(Word(en="apple"), now=NOW)
    first = words.bump_review("apple", now=NOW)
    second = words.bump_review("apple", now=NOW + 1_000)
    assert first.review_count == 1
    assert second.review_count == 1
    assert second.last_reviewed_at == iso_from_ms(NOW)

    third = words.bump_review("apple", now=NOW + 120_000)
    assert third.review_count == 2


def test_bump_review_upgrades_status(kv, words):
    kv.set(
        WORDS_KEY,
        json.dumps(
            [
                {"en": "a", "zh": "", "status": "unknown", "reviewCount": 15, "tags": []},
                {"en": "b", "zh": "", "status": "learning", "reviewCount": 30, "tags": []},
                {"en": "c", "zh": "", "status": "learning", "reviewCount": 15, "tags": []},
            ]
        ),
    )
    assert words.bump_review("a", now=NOW).status == "learning"
    assert words.bump_review("b", now=NOW).status == "mastered"
    assert words.bump_review("c", now=NOW).status == "learning"
    assert words.bump_review("missing", now=NOW) is None


def test_toggle_review_tag_initializes_srs(words):
    words.add(Word(en="apple", zh="蘋果"), now=NOW)
    updated = words.toggle_word_tag("apple", REVIEW_TAG, True, now=NOW)
    assert updated.tags == [REVIEW_TAG]
    assert (updated.srs_ease, updated.srs_interval, updated.srs_reps, updated.srs_lapses) == (2.5, 0, 0, 0)
    assert ms_from_iso(updated.srs_due) == NOW


def test_toggle_review_tag_keeps_existing_history(words):
    words.add(Word(en="apple"), now=NOW)
    words.toggle_word_tag("apple", REVIEW_TAG, True, now=NOW)
    words.srs_answer("apple", True, now=NOW)
    words.toggle_word_tag("apple", REVIEW_TAG, False, now=NOW)
    again = words.toggle_word_tag("apple", "複�?", True, now=NOW + DAY_MS * 3)
    assert again.tags == [REVIEW_TAG]
    assert again.srs_reps == 1
    assert ms_from_iso(again.srs_due) == NOW + DAY_MS


def test_toggle_ignores_invalid_tags(words):
    words.add(Word(en="apple", tags=["A"]), now=NOW)
    unchanged = words.toggle_word_tag("apple", "A > B > C > D", True, now=NOW)
    assert unchanged.tags == ["A"]
    assert words.toggle_word_tag("nobody", EXAM_TAG, True, now=NOW) is None
    removed = words.toggle_word_tag("apple", "A", False, now=NOW)
    assert removed.tags == []


def test_srs_answer_requires_review_tag(words):
    words.add(Word(en="apple"), now=NOW)
    plain = words.srs_answer("apple", True, now=NOW)
    assert plain.srs_reps is None
    assert words.srs_answer("missing", True, now=NOW) is None


def test_list_due_only_returns_review_words(words):
    words.add(Word(en="apple", tags=[REVIEW_TAG]), now=NOW)
    words.add(Word(en="book", tags=[REVIEW_TAG]), now=NOW)
    words.add(Word(en="cat", tags=["A"]), now=NOW)
    words.srs_answer("book", True, now=NOW)
    assert [w.en for w in words.list_due(now=NOW)] == ["apple"]
    assert words.due_count(now=NOW + DAY_MS) == 2


def test_end_to_end_review_flow(words):
    words.add(Word(en="apple", zh="蘋果"), now=NOW)

    tagged = words.toggle_word_tag("apple", REVIEW_TAG, True, now=NOW)
    assert tagged.tags == ["複習"]
    assert ms_from_iso(tagged.srs_due) == NOW

    answered = words.srs_answer("apple", True, now=NOW)
    assert ms_from_iso(answered.srs_due) == NOW + DAY_MS
    assert answered.srs_reps == 1

    words.bump_review("apple", now=NOW)
    bumped = words.bump_review("apple", now=NOW + 500)
    assert bumped.review_count == 1


def test_set_status_and_tags(words):
    words.add(Word(en="apple"), now=NOW)
    assert words.set_status("apple", "mastered").status == "mastered"
    assert words.set_status("apple", "bogus").status == "mastered"
    updated = words.set_word_tags("apple", ["A>B", "A > B", "", REVIEW_TAG], now=NOW)
    assert updated.tags == ["A > B", REVIEW_TAG]
    assert updated.srs_reps == 0


def test_long_streak_of_correct_answers_keeps_a_valid_due_date(words):
    words.add(Word(en="apple", tags=[REVIEW_TAG]), now=NOW)
    for _ in range(20):
        answered = words.srs_answer("apple", True, now=NOW)
    assert answered.srs_reps == 20
    assert answered.srs_interval == 36_500
    assert ms_from_iso(answered.srs_due) == NOW + 36_500 * DAY_MS
