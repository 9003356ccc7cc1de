# python
"""
sitesmith/mutator.py
User-driven tree operations. Each takes a snapshot and returns a new one.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Optional, Set, Tuple

from .errors import CycleDetected, InvalidNode, NodeNotFound
from .nodes import (
    FILE,
    FOLDER,
    KINDS,
    Clock,
    FileNode,
    IdGenerator,
    Snapshot,
    index_by_id,
    make_file,
    make_folder,
    renamed,
    resolve_clock,
    resolve_ids,
    with_content,
)
from .paths import SEPARATOR, descendant_ids

logger = logging.getLogger(__name__)


def _require(by_id: Dict[str, FileNode], node_id: str) -> FileNode:
    node = by_id.get(node_id)
    if node is None:
        raise NodeNotFound(node_id)
    return node


def _check_name(name: str) -> str:
    name = (name or "").strip()
    if not name or SEPARATOR in name or name in (".", ".."):
        raise InvalidNode(f"invalid name: {name!r}")
    return name


def _replace_node(snapshot: Snapshot, updated: FileNode) -> Snapshot:
    return tuple(updated if node.id == updated.id else node for node in snapshot)


def create_node(
    snapshot: Snapshot,
    name: str,
    kind: str,
    parent_id: Optional[str] = None,
    ids: Optional[IdGenerator] = None,
    clock: Optional[Clock] = None,
) -> Tuple[Snapshot, FileNode]:
    """Append a new empty file or folder. Siblings with the same name are allowed."""
    if kind not in KINDS:
        raise InvalidNode(f"unknown kind: {kind!r}")
    name = _check_name(name)
    if parent_id is not None:
        parent = _require(index_by_id(snapshot), parent_id)
        if not parent.is_folder:
            raise InvalidNode(f"parent {parent_id!r} is not a folder")
    node_id = resolve_ids(ids)(kind)
    now = resolve_clock(clock)()
    if kind == FILE:
        node = make_file(node_id, name, "", parent_id, now)
    else:
        node = make_folder(node_id, name, parent_id, now)
    return snapshot + (node,), node


def rename_node(snapshot: Snapshot, node_id: str, new_name: str, clock: Optional[Clock] = None) -> Snapshot:
    node = _require(index_by_id(snapshot), node_id)
    new_name = _check_name(new_name)
    return _replace_node(snapshot, renamed(node, new_name, resolve_clock(clock)()))


def write_content(snapshot: Snapshot, node_id: str, content: str, clock: Optional[Clock] = None) -> Snapshot:
    node = _require(index_by_id(snapshot), node_id)
    if not node.is_file:
        raise InvalidNode(f"{node_id!r} is a folder and has no content")
    return _replace_node(snapshot, with_content(node, content or "", resolve_clock(clock)()))


def delete_node(snapshot: Snapshot, node_id: str) -> Snapshot:
    """Remove a node and everything below it."""
    _require(index_by_id(snapshot), node_id)
    doomed: Set[str] = descendant_ids(snapshot, node_id)
    return tuple(node for node in snapshot if node.id not in doomed)


def ensure_not_ancestor(snapshot: Snapshot, node_id: str, new_parent_id: Optional[str]) -> None:
    """Raise CycleDetected if ``node_id`` is ``new_parent_id`` or one of its ancestors."""
    by_id = index_by_id(snapshot)
    seen: Set[str] = set()
    current = new_parent_id
    while current is not None:
        if current == node_id:
            raise CycleDetected(f"cannot move {node_id!r} under itself or a descendant")
        if current in seen:
            raise CycleDetected(f"parent chain loops through {current!r}")
        seen.add(current)
        parent = by_id.get(current)
        current = parent.parent_id if parent is not None else None


def move_node(snapshot: Snapshot, node_id: str, new_parent_id: Optional[str]) -> Snapshot:
    """
    Re-parent a node. Returns ``snapshot`` itself when the move is rejected:
    the target is the node or one of its descendants, the target is a file,
    or the node already sits under the target.
    """
    by_id = index_by_id(snapshot)
    node = _require(by_id, node_id)
    if new_parent_id is not None:
        target = _require(by_id, new_parent_id)
        if target.kind != FOLDER:
            logger.warning("move_node: %s is not a folder; move of %s ignored", new_parent_id, node_id)
            return snapshot
    try:
        ensure_not_ancestor(snapshot, node_id, new_parent_id)
    except CycleDetected as exc:
        logger.warning("move_node: rejected: %s", exc)
        return snapshot
    if node.parent_id == new_parent_id:
        return snapshot
    return _replace_node(snapshot, replace(node, parent_id=new_parent_id))
