from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import halo_vocab.app as app_module
from halo_vocab.scheduler.quota import DailyQuotaTracker, SrsLimitsStore
from halo_vocab.storage.kv import MemoryStore, SqliteStore
from halo_vocab.tags.order import TagOrderStore
from halo_vocab.tags.registry import TagRegistry
from halo_vocab.words.store import WordStore

NOW = 1_771_000_000_000


@pytest.fixture()
def kv():
    # "[]" skips first-run seeding so tests start from an empty notebook.
    return MemoryStore({"@halo_words": "[]"})


@pytest.fixture()
def words(kv):
    return WordStore(kv)


@pytest.fixture()
def order(kv):
    return TagOrderStore(kv)


@pytest.fixture()
def registry(kv, words, order):
    return TagRegistry(kv, words, order)


@pytest.fixture()
def quota(kv):
    return DailyQuotaTracker(kv)


@pytest.fixture()
def limits(kv):
    return SrsLimitsStore(kv)


@pytest.fixture()
def temp_store(tmp_path):
    store = SqliteStore(tmp_path / "halo_vocab_test.db")
    store.initialize()
    return store


@pytest.fixture()
def client(temp_store, monkeypatch, tmp_path):
    monkeypatch.setattr(app_module, "store", temp_store)
    monkeypatch.setattr(app_module, "ensure_dirs", lambda: None)
    with TestClient(app_module.app) as c:
        yield c
