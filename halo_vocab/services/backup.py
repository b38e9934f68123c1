from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from halo_vocab.config import BACKUPS_DIR
from halo_vocab.scheduler.quota import DailyQuotaTracker, SrsLimitsStore
from halo_vocab.storage.codec import json_dumps
from halo_vocab.storage.keys import BACKUP_KEYS
from halo_vocab.storage.kv import KeyValueStore, multi_get, multi_set
from halo_vocab.tags.order import TagOrderStore
from halo_vocab.tags.registry import TagRegistry
from halo_vocab.timeutil import iso_from_ms, now_ms
from halo_vocab.words.store import WordStore

UTC = timezone.utc
SCHEMA_VERSION = 1
logger = logging.getLogger(__name__)


def build_backup_payload(kv: KeyValueStore, *, now: int | None = None) -> dict:
    now = now_ms() if now is None else now
    return {
        "schemaVersion": SCHEMA_VERSION,
        "updatedAt": iso_from_ms(now),
        "payload": dict(multi_get(kv, BACKUP_KEYS)),
    }


def apply_backup_payload(kv: KeyValueStore, bundle: object) -> list[str]:
    if not isinstance(bundle, dict) or not isinstance(bundle.get("payload"), dict):
        logger.warning("ignoring backup without a payload object")
        return []
    pairs: list[tuple[str, str]] = []
    for key, value in bundle["payload"].items():
        if key not in BACKUP_KEYS or value is None:
            continue
        pairs.append((key, value if isinstance(value, str) else json_dumps(value)))
    multi_set(kv, pairs)
    normalize_storage(kv)
    return [key for key, _ in pairs]


def normalize_storage(kv: KeyValueStore) -> None:
    """Run every store's load pass so imported or legacy entries are repaired in place."""
    words = WordStore(kv)
    order = TagOrderStore(kv)
    words.load()
    order.load()
    TagRegistry(kv, words, order).load()
    SrsLimitsStore(kv).get()
    DailyQuotaTracker(kv).get()


def create_backup_bundle(kv: KeyValueStore, directory: Path = BACKUPS_DIR) -> Path:
    ts = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    directory.mkdir(parents=True, exist_ok=True)
    backup_path = directory / f"halo_vocab_backup_{ts}.json"
    backup_path.write_text(json_dumps(build_backup_payload(kv)), encoding="utf-8")
    return backup_path


def restore_backup_bundle(kv: KeyValueStore, bundle_path: Path) -> list[str]:
    if not bundle_path.exists():
        raise FileNotFoundError(bundle_path)
    try:
        bundle = json.loads(bundle_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("backup file %s is not valid json", bundle_path)
        return []
    return apply_backup_payload(kv, bundle)
