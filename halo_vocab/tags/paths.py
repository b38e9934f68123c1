from __future__ import annotations

from typing import Iterable

from halo_vocab.config import MAX_TAG_DEPTH

TAG_DELIM = ">"
TAG_JOINER = f" {TAG_DELIM} "

# Literal values stored by existing installs; not translation keys.
REVIEW_TAG = "複習"
EXAM_TAG = "考試"
SYSTEM_TAGS = (REVIEW_TAG, EXAM_TAG)
LEGACY_TAG_ALIASES = {
    "複�?": REVIEW_TAG,
}


def parse_tag_path(path: object) -> list[str]:
    if not isinstance(path, str):
        return []
    return [segment.strip() for segment in path.strip().split(TAG_DELIM) if segment.strip()]


def join_tag_path(segments: Iterable[str]) -> str:
    return TAG_JOINER.join(segments)


def normalize_tag_path(path: object) -> str | None:
    segments = parse_tag_path(path)
    if not segments or len(segments) > MAX_TAG_DEPTH:
        return None
    if any(TAG_DELIM in segment for segment in segments):
        return None
    return join_tag_path(segments)


def path_starts_with(child: object, parent: object) -> bool:
    child_norm = normalize_tag_path(child)
    parent_norm = normalize_tag_path(parent)
    if child_norm is None or parent_norm is None:
        return False
    return child_norm == parent_norm or child_norm.startswith(parent_norm + TAG_JOINER)


def tag_depth(path: object) -> int:
    return len(parse_tag_path(path))


def parent_path(path: str) -> str:
    segments = parse_tag_path(path)
    return join_tag_path(segments[:-1])


def leaf_name(path: str) -> str:
    segments = parse_tag_path(path)
    return segments[-1] if segments else ""


def ancestor_paths(path: str) -> list[str]:
    """Return every prefix of ``path`` from the root down to ``path`` itself."""
    segments = parse_tag_path(path)
    return [join_tag_path(segments[: idx + 1]) for idx in range(len(segments))]


def canonical_system_tag(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    name = value.strip()
    if name in SYSTEM_TAGS:
        return name
    return LEGACY_TAG_ALIASES.get(name)


def is_system_tag(value: object) -> bool:
    return canonical_system_tag(value) is not None


def under_system_tag(value: object) -> bool:
    segments = parse_tag_path(value)
    return len(segments) > 1 and is_system_tag(segments[0])


def canonical_tag(value: object) -> str | None:
    return canonical_system_tag(value) or normalize_tag_path(value)


def rebase_path(path: str, src: str, dst: str) -> str | None:
    """Rewrite the ``src`` prefix of ``path`` to ``dst``; ``None`` if it falls outside or gets too deep."""
    if not path_starts_with(path, src):
        return None
    src_len = len(parse_tag_path(src))
    return normalize_tag_path(join_tag_path(parse_tag_path(dst) + parse_tag_path(path)[src_len:]))
