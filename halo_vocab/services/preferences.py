from __future__ import annotations

from halo_vocab.config import FONT_SIZE
from halo_vocab.storage.codec import as_int
from halo_vocab.storage.keys import PREF_WORD_FONT_SIZE_KEY
from halo_vocab.storage.kv import KeyValueStore


def get_word_font_size(kv: KeyValueStore) -> int:
    raw = kv.get(PREF_WORD_FONT_SIZE_KEY)
    if not raw:
        return FONT_SIZE.default
    return _clamp_font_size(as_int(raw.strip(), FONT_SIZE.default))


def save_word_font_size(kv: KeyValueStore, size: object) -> int:
    try:
        number = float(size)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        number = 0.0
    # zero and NaN fall back to the default before rounding
    if not number or number != number:
        number = FONT_SIZE.default
    value = _clamp_font_size(as_int(number, FONT_SIZE.default))
    kv.set(PREF_WORD_FONT_SIZE_KEY, str(value))
    return value


def _clamp_font_size(value: int) -> int:
    return max(FONT_SIZE.minimum, min(value, FONT_SIZE.maximum))
