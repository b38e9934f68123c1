from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from halo_vocab.api.schemas import (
    BackupRestoreRequest,
    FontSizeUpdateRequest,
    ReviewAnswerRequest,
    ReviewBumpRequest,
    SrsLimitsUpdateRequest,
    TagCreateRequest,
    TagMoveRequest,
    TagRenameRequest,
    TagReorderRequest,
    WordCreateRequest,
    WordStatusUpdateRequest,
    WordTagToggleRequest,
)
from halo_vocab.config import LOG_LEVEL, ensure_dirs
from halo_vocab.scheduler.quota import DailyQuotaTracker, SrsLimitsStore, limits_record
from halo_vocab.scheduler.session import ReviewSession
from halo_vocab.services.backup import apply_backup_payload, build_backup_payload, normalize_storage
from halo_vocab.services.preferences import get_word_font_size, save_word_font_size
from halo_vocab.storage.kv import SqliteStore
from halo_vocab.tags.order import TagOrderStore
from halo_vocab.tags.paths import EXAM_TAG, REVIEW_TAG
from halo_vocab.tags.registry import TagRegistry
from halo_vocab.words.models import Word
from halo_vocab.words.store import WordStore

logger = logging.getLogger(__name__)

store = SqliteStore()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logging.basicConfig(level=LOG_LEVEL)
    ensure_dirs()
    store.initialize()
    normalize_storage(store)
    yield


app = FastAPI(title="Halo Vocab", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _words() -> WordStore:
    return WordStore(store)


def _order() -> TagOrderStore:
    return TagOrderStore(store)


def _registry() -> TagRegistry:
    return TagRegistry(store, _words(), _order())


def _session(tag: str | None = None) -> ReviewSession:
    return ReviewSession(_words(), DailyQuotaTracker(store), SrsLimitsStore(store), tag=tag)


def _tag_payload(registry: TagRegistry, *, before: list[str] | None = None) -> dict:
    tags = registry.load()
    payload = {
        "ok": True,
        "tags": tags,
        "system_tags": [REVIEW_TAG, EXAM_TAG],
        "tree": [node.to_dict() for node in registry.tree()],
        "order": registry.order.load(),
    }
    if before is not None:
        payload["changed"] = tags != before
    return payload


def _word_or_404(word: Word | None) -> dict:
    if word is None:
        raise HTTPException(status_code=404, detail="word not found")
    return word.to_record()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/api/tags")
def list_tags() -> dict:
    return _tag_payload(_registry())


@app.get("/api/tags/order")
def tag_order() -> dict:
    return {"ok": True, "order": _order().load()}


@app.post("/api/tags")
def add_tag(req: TagCreateRequest) -> dict:
    registry = _registry()
    before = registry.load()
    registry.add(req.path)
    return _tag_payload(registry, before=before)


@app.post("/api/tags/rename")
def rename_tag(req: TagRenameRequest) -> dict:
    registry = _registry()
    before = registry.load()
    registry.rename_subtree(req.src, req.dst)
    return _tag_payload(registry, before=before)


@app.post("/api/tags/move")
def move_tag(req: TagMoveRequest) -> dict:
    registry = _registry()
    before = registry.load()
    registry.move_subtree(req.src, req.target_parent)
    return _tag_payload(registry, before=before)


@app.post("/api/tags/copy")
def copy_tag(req: TagRenameRequest) -> dict:
    registry = _registry()
    before = registry.load()
    registry.copy_subtree(req.src, req.dst)
    return _tag_payload(registry, before=before)


@app.delete("/api/tags")
def delete_tag(path: str = Query(...)) -> dict:
    registry = _registry()
    before = registry.load()
    registry.remove_subtree(path)
    return _tag_payload(registry, before=before)


@app.post("/api/tags/reorder")
def reorder_tag(req: TagReorderRequest) -> dict:
    registry = _registry()
    registry.reorder_sibling(req.parent, req.name, req.direction)
    return _tag_payload(registry)


@app.get("/api/words")
def list_words(tag: str | None = Query(default=None)) -> dict:
    words = _words()
    items = words.list_by_tag(tag) if tag else words.load()
    return {"ok": True, "items": [word.to_record() for word in items], "total": len(items)}


@app.post("/api/words")
def create_word(req: WordCreateRequest) -> dict:
    created = _words().add(
        Word(
            en=req.en,
            zh=req.zh,
            example_en=req.example_en,
            example_zh=req.example_zh,
            phonetic=req.phonetic,
            note=req.note,
            tags=list(req.tags),
        )
    )
    if created is None:
        raise HTTPException(status_code=409, detail="word already exists")
    registry = _registry()
    for tag in created.tags:
        registry.add(tag)
    return {"ok": True, "word": created.to_record()}


@app.get("/api/words/{en}")
def get_word(en: str) -> dict:
    return {"ok": True, "word": _word_or_404(_words().get(en))}


@app.delete("/api/words/{en}")
def delete_word(en: str) -> dict:
    if not _words().delete(en):
        raise HTTPException(status_code=404, detail="word not found")
    return {"ok": True}


@app.post("/api/words/{en}/tags")
def toggle_word_tag(en: str, req: WordTagToggleRequest) -> dict:
    word = _word_or_404(_words().toggle_word_tag(en, req.tag, req.enabled))
    if req.enabled:
        _registry().add(req.tag)
    return {"ok": True, "word": word}


@app.post("/api/words/{en}/status")
def update_word_status(en: str, req: WordStatusUpdateRequest) -> dict:
    return {"ok": True, "word": _word_or_404(_words().set_status(en, req.status))}


@app.post("/api/words/{en}/bump")
def bump_review(en: str, req: ReviewBumpRequest | None = None) -> dict:
    window_ms = req.window_ms if req is not None else ReviewBumpRequest().window_ms
    return {"ok": True, "word": _word_or_404(_words().bump_review(en, window_ms))}


@app.get("/api/review/due")
def review_due() -> dict:
    items = _words().list_due()
    return {"ok": True, "items": [word.to_record() for word in items], "count": len(items)}


@app.get("/api/review/queue")
def review_queue(tag: str | None = Query(default=None)) -> dict:
    queue = _session(tag).refill()
    return {
        "ok": True,
        "items": [word.to_record() for word in queue],
        "limits": limits_record(SrsLimitsStore(store).get()),
        "daily": DailyQuotaTracker(store).get().to_record(),
    }


@app.post("/api/review/answer")
def review_answer(req: ReviewAnswerRequest) -> dict:
    updated = _session().answer(req.en, req.correct)
    return {
        "ok": True,
        "word": _word_or_404(updated),
        "daily": DailyQuotaTracker(store).get().to_record(),
    }


@app.get("/api/srs/limits")
def get_limits() -> dict:
    return {"ok": True, "limits": limits_record(SrsLimitsStore(store).get())}


@app.put("/api/srs/limits")
def update_limits(req: SrsLimitsUpdateRequest) -> dict:
    limits = SrsLimitsStore(store).save(
        daily_new_limit=req.daily_new_limit,
        daily_review_limit=req.daily_review_limit,
    )
    return {"ok": True, "limits": limits_record(limits)}


@app.get("/api/srs/daily")
def daily_stats() -> dict:
    return {"ok": True, "daily": DailyQuotaTracker(store).get().to_record()}


@app.get("/api/preferences/font-size")
def font_size() -> dict:
    return {"ok": True, "size": get_word_font_size(store)}


@app.put("/api/preferences/font-size")
def update_font_size(req: FontSizeUpdateRequest) -> dict:
    return {"ok": True, "size": save_word_font_size(store, req.size)}


@app.get("/api/backup")
def export_backup() -> dict:
    return build_backup_payload(store)


@app.post("/api/backup/restore")
def restore_backup(req: BackupRestoreRequest) -> dict:
    restored = apply_backup_payload(store, req.model_dump())
    logger.info("restored %d key(s) from backup", len(restored))
    return {"ok": True, "restored": restored}
