from __future__ import annotations

WORDS_KEY = "@halo_words"
TAGS_KEY = "@halo_tags"
TAG_ORDER_KEY = "@halo_tag_order"
SRS_LIMITS_KEY = "@srs_limits"
SRS_DAILY_KEY = "@srs_daily_stats"
PREF_WORD_FONT_SIZE_KEY = "@pref_word_font_size"

CORE_KEYS = (
    WORDS_KEY,
    TAGS_KEY,
    TAG_ORDER_KEY,
    SRS_LIMITS_KEY,
    SRS_DAILY_KEY,
    PREF_WORD_FONT_SIZE_KEY,
)

# Playback and locale preferences travel with backups untouched.
PASSTHROUGH_KEYS = (
    "@tts_rate_percent",
    "@tts_gender",
    "@tts_pitch_percent",
    "@tts_voice_en",
    "@tts_voice_zh",
    "@tts_rate_zh",
    "@tts_pause_comma_ms",
    "@tts_pause_sentence_ms",
    "@word_sort_desc",
    "@lang_locale",
)

BACKUP_KEYS = CORE_KEYS + PASSTHROUGH_KEYS
