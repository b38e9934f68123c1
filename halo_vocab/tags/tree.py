from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from halo_vocab.tags.order import TagOrder, TagOrderStore
from halo_vocab.tags.paths import (
    is_system_tag,
    join_tag_path,
    normalize_tag_path,
    parse_tag_path,
    under_system_tag,
)


@dataclass
class TagNode:
    name: str
    path: str
    children: list[TagNode] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "children": [child.to_dict() for child in self.children],
        }


def build_tag_tree(paths: Iterable[object]) -> list[TagNode]:
    roots: list[TagNode] = []
    index: dict[str, TagNode] = {}
    for raw in paths:
        if is_system_tag(raw) or under_system_tag(raw):
            continue
        norm = normalize_tag_path(raw)
        if norm is None:
            continue
        siblings = roots
        segments = parse_tag_path(norm)
        for depth in range(len(segments)):
            path = join_tag_path(segments[: depth + 1])
            node = index.get(path)
            if node is None:
                node = TagNode(name=segments[depth], path=path)
                index[path] = node
                siblings.append(node)
            siblings = node.children
    return roots


def apply_order_to_tree(nodes: list[TagNode], parent_path: str, order: TagOrder) -> list[TagNode]:
    ranking = {name: idx for idx, name in enumerate(order.get(parent_path, []))}
    ordered = sorted(nodes, key=lambda node: _sort_key(node.name, ranking))
    return [
        TagNode(
            name=node.name,
            path=node.path,
            children=apply_order_to_tree(node.children, node.path, order),
        )
        for node in ordered
    ]


def build_ordered_tag_tree(paths: Iterable[object], order_store: TagOrderStore) -> list[TagNode]:
    return apply_order_to_tree(build_tag_tree(paths), "", order_store.load())


def flatten_tree(nodes: Iterable[TagNode]) -> list[str]:
    flat: list[str] = []
    for node in nodes:
        flat.append(node.path)
        flat.extend(flatten_tree(node.children))
    return flat


def _sort_key(name: str, ranking: dict[str, int]) -> tuple:
    if name in ranking:
        return (0, ranking[name], "", name)
    return (1, 0, name.casefold(), name)
