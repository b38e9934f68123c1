from __future__ import annotations

from halo_vocab.tags.paths import REVIEW_TAG
from halo_vocab.timeutil import iso_from_ms
from halo_vocab.words.sanitize import decode_unicode_escapes, sanitize_words

NOW = 1_771_000_000_000


def test_decode_unicode_escapes():
    assert decode_unicode_escapes("\\u860b\\u679c") == "蘋果"
    assert decode_unicode_escapes("plain") == "plain"
    assert decode_unicode_escapes("\\ud83d\\ude00") == "\U0001F600"


def test_sanitize_reports_changes_without_side_effects():
    raw = [{"en": "apple", "zh": "蘋果", "tags": [REVIEW_TAG], "srsEase": 9, "srsDue": "garbage"}]
    words, changes = sanitize_words(raw, now=NOW)

    assert raw[0]["srsEase"] == 9
    word = words[0]
    assert word.srs_ease == 3.0
    assert word.srs_due == iso_from_ms(NOW)
    assert word.srs_interval == 0
    assert "apple: srsEase" in changes
    assert "apple: srsDue" in changes
    assert "apple: createdAt" in changes


def test_sanitize_is_idempotent():
    raw = [
        {"en": "apple", "zh": "\\u860b", "tags": ["複�?", "A>B", 7]},
        {"en": "book", "zh": "書", "status": "weird", "reviewCount": "3"},
    ]
    first, _ = sanitize_words(raw, now=NOW)
    second, changes = sanitize_words([w.to_record() for w in first], now=NOW + 5_000)
    assert changes == []
    assert [w.to_record() for w in second] == [w.to_record() for w in first]


def test_sanitize_drops_unusable_records():
    words, changes = sanitize_words([None, {"zh": "no en"}, {"en": "  "}, {"en": "ok"}], now=NOW)
    assert [w.en for w in words] == ["ok"]
    assert len([c for c in changes if c.startswith("#")]) == 3


def test_sanitize_non_list_payload():
    words, changes = sanitize_words({"en": "apple"}, now=NOW)
    assert words == []
    assert changes
