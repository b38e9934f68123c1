from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

from halo_vocab.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)


@dataclass
class Decoded:
    value: Any
    missing: bool = False
    malformed: bool = False


def json_dumps(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


def decode_json(raw: str | None, *, expect: type, default_factory: Callable[[], Any]) -> Decoded:
    if raw is None or not str(raw).strip():
        return Decoded(value=default_factory(), missing=True)
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return Decoded(value=default_factory(), malformed=True)
    if not isinstance(parsed, expect):
        return Decoded(value=default_factory(), malformed=True)
    return Decoded(value=parsed)


def read_json(
    kv: KeyValueStore,
    key: str,
    *,
    expect: type,
    default_factory: Callable[[], Any],
) -> Decoded:
    decoded = decode_json(kv.get(key), expect=expect, default_factory=default_factory)
    if decoded.malformed:
        logger.warning("resetting malformed entry %s", key)
        kv.set(key, json_dumps(decoded.value))
    return decoded


def write_json(kv: KeyValueStore, key: str, value: object) -> None:
    kv.set(key, json_dumps(value))


def as_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return int(math.floor(number + 0.5))


def as_float(value: object, default: float | None) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    number = float(value)
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return number
