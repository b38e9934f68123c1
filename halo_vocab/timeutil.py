from __future__ import annotations

import time
from datetime import datetime, timezone

UTC = timezone.utc
DAY_MS = 24 * 60 * 60 * 1000
MAX_MS = int(datetime(9999, 12, 31, 23, 59, 59, 999000, tzinfo=UTC).timestamp() * 1000)


def now_ms() -> int:
    return int(time.time() * 1000)


def iso_from_ms(ms: int | float) -> str:
    stamp = datetime.fromtimestamp(min(ms, MAX_MS) / 1000, UTC).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def ms_from_iso(value: object) -> int | None:
    text = str(value or "").strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(round(parsed.timestamp() * 1000))


def local_datetime(ms: int | float | None = None) -> datetime:
    stamp = now_ms() if ms is None else ms
    return datetime.fromtimestamp(stamp / 1000)
