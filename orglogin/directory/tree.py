"""
Materialized tree paths.

An org's ``tree_path`` lists its ancestors root first, separated by "/":

    /            a root node
    /1/          child of 1
    /1/5/        child of 5, grandchild of 1

The root ancestor is therefore the first id in the path, with no recursive
lookups needed.
"""

from __future__ import annotations

TREE_SPLIT = "/"
ROOT_PATH = "/"


def ancestor_ids(tree_path: str | None) -> list[int]:
    """Return the ancestor ids in ``tree_path``, root first."""

    if not tree_path:
        return []

    ids: list[int] = []
    for part in tree_path.split(TREE_SPLIT):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError as exc:
            raise ValueError(f"Invalid segment {part!r} in tree path {tree_path!r}") from exc
    return ids


def top_node_id(tree_path: str | None) -> int | None:
    """Root id of the path, or None when the node has no ancestor."""

    ids = ancestor_ids(tree_path)
    return ids[0] if ids else None


def child_tree_path(parent_tree_path: str, parent_id: int) -> str:
    """Tree path for a direct child of ``parent_id``."""

    base = parent_tree_path if parent_tree_path.endswith(TREE_SPLIT) else parent_tree_path + TREE_SPLIT
    return f"{base}{parent_id}{TREE_SPLIT}"
