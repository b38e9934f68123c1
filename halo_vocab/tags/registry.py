from __future__ import annotations

import logging
from typing import Iterable

from halo_vocab.storage.codec import read_json, write_json
from halo_vocab.storage.keys import TAGS_KEY
from halo_vocab.storage.kv import KeyValueStore
from halo_vocab.tags.order import TagOrderStore
from halo_vocab.tags.paths import (
    SYSTEM_TAGS,
    ancestor_paths,
    canonical_system_tag,
    is_system_tag,
    join_tag_path,
    leaf_name,
    normalize_tag_path,
    parent_path,
    path_starts_with,
    rebase_path,
    under_system_tag,
)
from halo_vocab.tags.tree import TagNode, build_ordered_tag_tree
from halo_vocab.words.store import WordStore

logger = logging.getLogger(__name__)


def normalize_tag_list(values: object) -> list[str]:
    """Canonical tag set: valid paths closed under ancestors, plus both system tags."""
    tags: list[str] = []
    if isinstance(values, list):
        for value in values:
            system = canonical_system_tag(value)
            if system is not None:
                if system not in tags:
                    tags.append(system)
                continue
            norm = normalize_tag_path(value)
            if norm is None or under_system_tag(norm):
                continue
            for path in ancestor_paths(norm):
                if path not in tags:
                    tags.append(path)
    for system in SYSTEM_TAGS:
        if system not in tags:
            tags.append(system)
    return tags


class TagRegistry:
    def __init__(self, kv: KeyValueStore, words: WordStore, order: TagOrderStore) -> None:
        self.kv = kv
        self.words = words
        self.order = order

    def load(self) -> list[str]:
        decoded = read_json(self.kv, TAGS_KEY, expect=list, default_factory=list)
        tags = normalize_tag_list(decoded.value)
        if not decoded.missing and not decoded.malformed and tags != decoded.value:
            self.save(tags)
        return tags

    def save(self, tags: Iterable[object]) -> list[str]:
        normalized = normalize_tag_list(list(tags))
        write_json(self.kv, TAGS_KEY, normalized)
        return normalized

    def tree(self) -> list[TagNode]:
        return build_ordered_tag_tree(self.load(), self.order)

    def add(self, path: str) -> list[str]:
        current = self.load()
        if is_system_tag(path):
            return current
        norm = normalize_tag_path(path)
        if norm is None or under_system_tag(norm):
            logger.debug("add ignored, invalid tag %r", path)
            return current
        updated = self.save(current + [norm])
        self._register_order(current, updated)
        self.order.append_child(parent_path(norm), leaf_name(norm))
        return updated

    def rename_subtree(self, src: str, dst: str) -> list[str]:
        current = self.load()
        pair = self._structural_pair(src, dst)
        if pair is None:
            return current
        src_norm, dst_norm = pair
        if path_starts_with(dst_norm, src_norm):
            logger.debug("rename ignored, %r lies inside %r", dst_norm, src_norm)
            return current
        mapping = self._subtree_mapping(current, src_norm, dst_norm)
        if not mapping:
            return current

        updated = self.save([mapping.get(tag, tag) for tag in current] + [dst_norm])
        moved = self.words.rewrite_tags(lambda tags: _rebase_tags(tags, src_norm, dst_norm))
        logger.info("renamed tag subtree %r -> %r (%d words)", src_norm, dst_norm, moved)

        src_parent, dst_parent = parent_path(src_norm), parent_path(dst_norm)
        self.order.rebase_subtree(src_norm, dst_norm, keep_source=False)
        if src_parent == dst_parent:
            self.order.rename_child(src_parent, leaf_name(src_norm), leaf_name(dst_norm))
        else:
            self.order.remove_child(src_parent, leaf_name(src_norm))
            self.order.append_child(dst_parent, leaf_name(dst_norm))
        self._register_order(current, updated)
        return updated

    def move_subtree(self, src: str, target_parent: str) -> list[str]:
        src_norm = normalize_tag_path(src)
        if src_norm is None:
            return self.load()
        if not str(target_parent or "").strip():
            return self.rename_subtree(src_norm, leaf_name(src_norm))
        parent_norm = normalize_tag_path(target_parent)
        if parent_norm is None:
            return self.load()
        return self.rename_subtree(src_norm, join_tag_path([parent_norm, leaf_name(src_norm)]))

    def remove_subtree(self, path: str) -> list[str]:
        current = self.load()
        if is_system_tag(path):
            return current
        norm = normalize_tag_path(path)
        if norm is None:
            return current

        updated = self.save([tag for tag in current if not path_starts_with(tag, norm)])
        detagged = self.words.rewrite_tags(
            lambda tags: [tag for tag in tags if not path_starts_with(tag, norm)]
        )
        logger.info("removed tag subtree %r (%d words detagged)", norm, detagged)
        self.order.remove_child(parent_path(norm), leaf_name(norm))
        self.order.drop_subtree(norm)
        return updated

    def copy_subtree(self, src: str, dst: str) -> list[str]:
        current = self.load()
        pair = self._structural_pair(src, dst)
        if pair is None:
            return current
        src_norm, dst_norm = pair
        mapping = self._subtree_mapping(current, src_norm, dst_norm)
        if not mapping:
            return current

        updated = self.save(current + list(mapping.values()))
        copied = self.words.rewrite_tags(lambda tags: _mirror_tags(tags, src_norm, dst_norm))
        logger.info("copied tag subtree %r -> %r (%d words)", src_norm, dst_norm, copied)

        self.order.rebase_subtree(src_norm, dst_norm, keep_source=True)
        self.order.append_child(parent_path(dst_norm), leaf_name(dst_norm))
        self._register_order(current, updated)
        return updated

    def reorder_sibling(self, parent: str, name: str, direction: str) -> list[str]:
        parent_norm = "" if not str(parent or "").strip() else normalize_tag_path(parent)
        if parent_norm is None:
            return self.load()
        siblings = [node.name for node in _children_of(self.tree(), parent_norm)]
        self.order.move_sibling(parent_norm, str(name or "").strip(), direction, current=siblings)
        return self.load()

    def _structural_pair(self, src: str, dst: str) -> tuple[str, str] | None:
        if is_system_tag(src) or is_system_tag(dst):
            logger.debug("structural edit of system tag rejected: %r -> %r", src, dst)
            return None
        src_norm = normalize_tag_path(src)
        dst_norm = normalize_tag_path(dst)
        if src_norm is None or dst_norm is None or src_norm == dst_norm:
            return None
        if under_system_tag(dst_norm):
            return None
        return src_norm, dst_norm

    def _subtree_mapping(self, tags: list[str], src: str, dst: str) -> dict[str, str] | None:
        mapping: dict[str, str] = {}
        for tag in tags:
            if not path_starts_with(tag, src):
                continue
            target = rebase_path(tag, src, dst)
            if target is None:
                logger.debug("subtree edit rejected, %r would exceed depth", tag)
                return None
            mapping[tag] = target
        return mapping

    def _register_order(self, before: list[str], after: list[str]) -> None:
        known = set(before)
        for tag in after:
            if tag in known or is_system_tag(tag):
                continue
            self.order.append_child(parent_path(tag), leaf_name(tag))


def _rebase_tags(tags: list[str], src: str, dst: str) -> list[str]:
    rebased: list[str] = []
    for tag in tags:
        if path_starts_with(tag, src):
            target = rebase_path(tag, src, dst)
            if target is None:
                continue
            tag = target
        rebased.append(tag)
    return rebased


def _mirror_tags(tags: list[str], src: str, dst: str) -> list[str]:
    mirrored = list(tags)
    for tag in tags:
        if path_starts_with(tag, src):
            target = rebase_path(tag, src, dst)
            if target is not None:
                mirrored.append(target)
    return mirrored


def _children_of(nodes: list[TagNode], parent: str) -> list[TagNode]:
    if not parent:
        return nodes
    for node in nodes:
        if node.path == parent:
            return node.children
        if path_starts_with(parent, node.path):
            return _children_of(node.children, parent)
    return []
