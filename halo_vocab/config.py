from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[1]
ARTIFACTS_DIR = PROJECT_ROOT / "artifacts"
BACKUPS_DIR = ARTIFACTS_DIR / "backups"
DB_PATH = Path(os.getenv("HALO_VOCAB_DB_PATH") or PROJECT_ROOT / "halo_vocab.db")
LOG_LEVEL = os.getenv("HALO_VOCAB_LOG_LEVEL", "INFO").strip().upper() or "INFO"

MAX_TAG_DEPTH = 3
REVIEW_DEBOUNCE_MS = 120_000
LEARNING_THRESHOLD = 15
MASTERED_THRESHOLD = 30


@dataclass(frozen=True)
class SrsLimits:
    daily_new_limit: int = 10
    daily_review_limit: int = 100


@dataclass(frozen=True)
class LimitBounds:
    new_min: int = 0
    new_max: int = 100
    review_min: int = 0
    review_max: int = 1000


@dataclass(frozen=True)
class FontSizePref:
    default: int = 18
    minimum: int = 12
    maximum: int = 48


DEFAULT_LIMITS = SrsLimits()
LIMIT_BOUNDS = LimitBounds()
FONT_SIZE = FontSizePref()


def ensure_dirs() -> None:
    for path in [ARTIFACTS_DIR, BACKUPS_DIR]:
        path.mkdir(parents=True, exist_ok=True)
