from __future__ import annotations

import logging
from typing import Sequence

from halo_vocab.storage.codec import read_json, write_json
from halo_vocab.storage.keys import TAG_ORDER_KEY
from halo_vocab.storage.kv import KeyValueStore
from halo_vocab.tags.paths import normalize_tag_path, parse_tag_path, path_starts_with, rebase_path

logger = logging.getLogger(__name__)

TagOrder = dict[str, list[str]]


def normalize_tag_order(raw: object) -> TagOrder:
    if not isinstance(raw, dict):
        return {}
    normalized: TagOrder = {}
    for key, values in raw.items():
        parent = _normalize_parent_key(key)
        if parent is None or not isinstance(values, list):
            continue
        names = normalized.setdefault(parent, [])
        for value in values:
            name = _normalize_segment(value)
            if name is not None and name not in names:
                names.append(name)
    return normalized


class TagOrderStore:
    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def load(self) -> TagOrder:
        decoded = read_json(self.kv, TAG_ORDER_KEY, expect=dict, default_factory=dict)
        order = normalize_tag_order(decoded.value)
        if not decoded.missing and not decoded.malformed and order != decoded.value:
            self.save(order)
        return order

    def save(self, order: TagOrder) -> TagOrder:
        normalized = normalize_tag_order(order)
        write_json(self.kv, TAG_ORDER_KEY, normalized)
        return normalized

    def siblings(self, parent: str) -> list[str]:
        return list(self.load().get(parent, []))

    def append_child(self, parent: str, name: str) -> TagOrder:
        order = self.load()
        names = order.setdefault(parent, [])
        if name not in names:
            names.append(name)
            self.save(order)
        return order

    def remove_child(self, parent: str, name: str) -> TagOrder:
        order = self.load()
        names = order.get(parent)
        if names and name in names:
            names.remove(name)
            self.save(order)
        return order

    def rename_child(self, parent: str, old: str, new: str) -> TagOrder:
        order = self.load()
        names = order.setdefault(parent, [])
        if old in names and new not in names:
            names[names.index(old)] = new
        else:
            if old in names:
                names.remove(old)
            if new not in names:
                names.append(new)
        self.save(order)
        return order

    def drop_subtree(self, path: str) -> TagOrder:
        order = self.load()
        stale = [key for key in order if key and path_starts_with(key, path)]
        for key in stale:
            del order[key]
        if stale:
            self.save(order)
        return order

    def rebase_subtree(self, src: str, dst: str, *, keep_source: bool) -> TagOrder:
        """Carry order entries keyed under ``src`` over to the matching keys under ``dst``."""
        order = self.load()
        moved: TagOrder = {}
        for key in list(order):
            if not key or not path_starts_with(key, src):
                continue
            target = rebase_path(key, src, dst)
            if target is None:
                continue
            moved[target] = list(order[key])
            if not keep_source:
                del order[key]
        if not moved and keep_source:
            return order
        for key, names in moved.items():
            merged = order.setdefault(key, [])
            for name in names:
                if name not in merged:
                    merged.append(name)
        self.save(order)
        return order

    def move_sibling(self, parent: str, name: str, direction: str, *, current: Sequence[str]) -> TagOrder:
        order = self.load()
        names = list(current) if current else list(order.get(parent) or [])
        if name not in names:
            logger.debug("reorder ignored, %r not under %r", name, parent)
            return order
        idx = names.index(name)
        swap = idx - 1 if direction == "up" else idx + 1
        if direction not in {"up", "down"} or swap < 0 or swap >= len(names):
            return order
        names[idx], names[swap] = names[swap], names[idx]
        order[parent] = names
        self.save(order)
        return order


def _normalize_parent_key(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    if not value.strip():
        return ""
    return normalize_tag_path(value)


def _normalize_segment(value: object) -> str | None:
    norm = normalize_tag_path(value)
    if norm is None or len(parse_tag_path(norm)) != 1:
        return None
    return norm
