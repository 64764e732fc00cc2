"""Structural operations on the WBS tree.

All functions take the current tuple of nodes and return a new tuple, keeping
parent/children links bidirectional and levels equal to parent level + 1.
"""

from __future__ import annotations

from enum import StrEnum

from pmflow.errors import NotFoundError, ValidationError
from pmflow.models.wbs import WBSNode


class WBSDeletePolicy(StrEnum):
    """What happens to the children of a deleted node."""

    REPARENT = "reparent"  # children move up to the deleted node's parent
    CASCADE = "cascade"  # the whole subtree is deleted


def _by_id(nodes: tuple[WBSNode, ...]) -> dict[str, WBSNode]:
    return {node.id: node for node in nodes}


def _rebuild(nodes: tuple[WBSNode, ...], by_id: dict[str, WBSNode]) -> tuple[WBSNode, ...]:
    """Reassemble ``by_id`` in the original sequence, appending new ids last."""
    seen = [node.id for node in nodes if node.id in by_id]
    known = set(seen)
    extra = [node_id for node_id in by_id if node_id not in known]
    return tuple(by_id[node_id] for node_id in seen + extra)


def _get(by_id: dict[str, WBSNode], node_id: str) -> WBSNode:
    try:
        return by_id[node_id]
    except KeyError:
        raise NotFoundError("wbs", node_id) from None


def subtree_ids(nodes: tuple[WBSNode, ...], root_id: str) -> list[str]:
    """Ids of ``root_id`` and all its descendants, depth first."""
    by_id = _by_id(nodes)
    result: list[str] = []
    stack = [root_id]
    while stack:
        current = stack.pop()
        if current in result or current not in by_id:
            continue
        result.append(current)
        stack.extend(reversed(by_id[current].children))
    return result


def _suffix(code: str) -> int:
    tail = code.rsplit(".", 1)[-1]
    return int(tail) if tail.isdigit() else 0


def next_code(by_id: dict[str, WBSNode], parent: WBSNode | None) -> str:
    """Next free code under ``parent`` (``"<parent>.<n>"``) or among roots (``"<n>"``)."""
    if parent is None:
        siblings = [n for n in by_id.values() if n.parent_id is None]
        return str(max((_suffix(n.code) for n in siblings), default=0) + 1)
    siblings = [by_id[c] for c in parent.children if c in by_id]
    highest = max((_suffix(n.code) for n in siblings), default=0)
    return f"{parent.code}.{highest + 1}" if parent.code else str(highest + 1)


def _relevel(by_id: dict[str, WBSNode], node_id: str, level: int, code: str | None) -> None:
    """Set level (and optionally code) on a subtree, renumbering child codes."""
    node = by_id[node_id]
    changes: dict = {"level": level}
    if code is not None:
        changes["code"] = code
    by_id[node_id] = node.evolve(**changes)
    for position, child_id in enumerate(node.children, start=1):
        if child_id in by_id:
            child_code = f"{code}.{position}" if code is not None else None
            _relevel(by_id, child_id, level + 1, child_code)


def attach(nodes: tuple[WBSNode, ...], node: WBSNode) -> tuple[WBSNode, ...]:
    """Insert a new node, linking it under ``node.parent_id`` when set."""
    by_id = _by_id(nodes)
    parent = _get(by_id, node.parent_id) if node.parent_id else None
    code = node.code or next_code(by_id, parent)
    level = parent.level + 1 if parent else 0
    by_id[node.id] = node.evolve(code=code, level=level, children=())
    if parent is not None:
        by_id[parent.id] = parent.evolve(children=(*parent.children, node.id))
    return _rebuild(nodes, by_id)


def recode(nodes: tuple[WBSNode, ...], node_id: str, code: str) -> tuple[WBSNode, ...]:
    """Give a node a new code and renumber its descendants under it."""
    if not code:
        raise ValidationError("WBS code cannot be empty")
    by_id = _by_id(nodes)
    node = _get(by_id, node_id)
    _relevel(by_id, node_id, node.level, code)
    return _rebuild(nodes, by_id)


def move(
    nodes: tuple[WBSNode, ...], node_id: str, new_parent_id: str | None
) -> tuple[WBSNode, ...]:
    """Re-parent a node (``None`` makes it a root). Codes of the moved subtree are renumbered."""
    by_id = _by_id(nodes)
    node = _get(by_id, node_id)
    if new_parent_id is not None:
        _get(by_id, new_parent_id)
        if new_parent_id in subtree_ids(nodes, node_id):
            raise ValidationError(f"Cannot move WBS node {node_id} under its own subtree")
    if node.parent_id == new_parent_id:
        return nodes

    if node.parent_id and node.parent_id in by_id:
        old_parent = by_id[node.parent_id]
        by_id[old_parent.id] = old_parent.evolve(
            children=tuple(c for c in old_parent.children if c != node_id)
        )
    by_id[node_id] = node.evolve(parent_id=new_parent_id)
    new_parent = by_id[new_parent_id] if new_parent_id else None
    code = next_code({k: v for k, v in by_id.items() if k != node_id}, new_parent)
    if new_parent is not None:
        by_id[new_parent.id] = new_parent.evolve(children=(*new_parent.children, node_id))
    _relevel(by_id, node_id, new_parent.level + 1 if new_parent else 0, code)
    return _rebuild(nodes, by_id)


def remove(
    nodes: tuple[WBSNode, ...], node_id: str, policy: WBSDeletePolicy
) -> tuple[tuple[WBSNode, ...], list[str]]:
    """Delete a node under ``policy``. Returns the new nodes and every removed id."""
    by_id = _by_id(nodes)
    node = by_id.get(node_id)
    if node is None:
        return nodes, []

    if policy is WBSDeletePolicy.CASCADE:
        removed = subtree_ids(nodes, node_id)
    else:
        removed = [node_id]
        parent = by_id.get(node.parent_id) if node.parent_id else None
        orphans = [c for c in node.children if c in by_id]
        if parent is not None:
            siblings: list[str] = []
            for child_id in parent.children:
                siblings.extend(orphans if child_id == node_id else [child_id])
            by_id[parent.id] = parent.evolve(children=tuple(siblings))
        del by_id[node_id]
        # Orphans not yet renumbered don't count as siblings when picking codes
        pending = set(orphans)
        for orphan_id in orphans:
            by_id[orphan_id] = by_id[orphan_id].evolve(parent_id=parent.id if parent else None)
            siblings_view = {k: v for k, v in by_id.items() if k not in pending}
            code = next_code(siblings_view, by_id[parent.id] if parent else None)
            _relevel(by_id, orphan_id, parent.level + 1 if parent else 0, code)
            pending.discard(orphan_id)
        return _rebuild(nodes, by_id), removed

    for removed_id in removed:
        by_id.pop(removed_id, None)
    if node.parent_id and node.parent_id in by_id:
        parent = by_id[node.parent_id]
        by_id[parent.id] = parent.evolve(
            children=tuple(c for c in parent.children if c != node_id)
        )
    return _rebuild(nodes, by_id), removed
