"""Outline reconstruction from a flat list of headings.

Headings arrive in document order, each tagged with a rank taken from the
position of its tag name in a caller-supplied list (``["h1", "h2", ...]``).
The builder keeps its nodes in an arena indexed by integer id so that parent
links are plain indices; they never leave this module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .types import HeadingNode, OutlineEntry

LOGGER = logging.getLogger("paged_printer.outline")

ROOT_ID = 0


@dataclass
class _ArenaNode:
    depth: int
    parent: Optional[int]
    title: str = ""
    anchor_id: str = ""
    children: List[int] = field(default_factory=list)


def normalize_tags(tags: Sequence[str]) -> List[str]:
    """Lower-case and strip tag names, dropping empty ones."""

    return [tag.strip().lower() for tag in tags if tag and tag.strip()]


def headings_from_elements(tags: Sequence[str], elements: Iterable[Mapping[str, Any]]) -> List[HeadingNode]:
    """Convert raw heading records from the rendered page into :class:`HeadingNode`."""

    order = normalize_tags(tags)
    headings: List[HeadingNode] = []
    for index, element in enumerate(elements):
        tag_name = str(element.get("tagName", "")).lower()
        if tag_name not in order:
            LOGGER.debug("Skipping heading with unknown tag %r", tag_name)
            continue
        headings.append(
            HeadingNode(
                tag_name=tag_name,
                rank=order.index(tag_name),
                text=str(element.get("text") or "").strip(),
                anchor_id=str(element.get("id") or ""),
                document_order=index,
            )
        )
    return headings


def build_outline(tags: Sequence[str], headings: Iterable[HeadingNode]) -> List[OutlineEntry]:
    """Return the outline tree for ``headings`` as a list of top-level entries.

    A heading ranked below the current node becomes its child, one ranked
    equal becomes its sibling, and one ranked above walks back up the tree
    until one of the first two cases applies. The virtual root has depth -1,
    so every heading eventually finds a parent.

    Ranks come from the position of each heading's tag in ``tags``; a
    heading whose tag is not listed keeps its own ``rank``.
    """

    order = normalize_tags(tags)
    arena: List[_ArenaNode] = [_ArenaNode(depth=-1, parent=None)]
    current = ROOT_ID

    for heading in headings:
        tag_name = heading.tag_name.lower()
        rank = order.index(tag_name) if tag_name in order else heading.rank
        while current != ROOT_ID and rank < arena[current].depth:
            current = arena[current].parent or ROOT_ID

        if rank == arena[current].depth:
            parent_id = arena[current].parent
            if parent_id is None:
                parent_id = ROOT_ID
        else:
            parent_id = current

        arena.append(
            _ArenaNode(
                depth=rank,
                parent=parent_id,
                title=heading.text,
                anchor_id=heading.anchor_id,
            )
        )
        node_id = len(arena) - 1
        arena[parent_id].children.append(node_id)
        current = node_id

    return [_export(arena, child) for child in arena[ROOT_ID].children]


def _export(arena: List[_ArenaNode], node_id: int) -> OutlineEntry:
    node = arena[node_id]
    return OutlineEntry(
        title=node.title,
        anchor_id=node.anchor_id,
        children=[_export(arena, child) for child in node.children],
    )


def count_entries(entries: Iterable[OutlineEntry]) -> int:
    """Return the number of entries in ``entries`` and all their descendants."""

    return sum(1 + count_entries(entry.children) for entry in entries)


def iter_entries(entries: Iterable[OutlineEntry]) -> Iterable[OutlineEntry]:
    """Yield every entry depth-first, in document order."""

    for entry in entries:
        yield entry
        yield from iter_entries(entry.children)


__all__ = [
    "build_outline",
    "count_entries",
    "headings_from_elements",
    "iter_entries",
    "normalize_tags",
]
