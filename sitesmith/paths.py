# python
"""
sitesmith/paths.py
Path resolution over a snapshot: full paths, path indexes and path splitting.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .errors import CycleDetected, MalformedAction
from .nodes import FILE, FileNode, index_by_id

logger = logging.getLogger(__name__)

SEPARATOR = "/"


def full_path(node: FileNode, snapshot: Iterable[FileNode], by_id: Optional[Mapping[str, FileNode]] = None) -> str:
    """
    Join names from the root down to ``node``.

    Raises CycleDetected if the parent chain revisits a node. A parent id that
    is not in the snapshot ends the walk, so the node is treated as a root.
    """
    if by_id is None:
        by_id = index_by_id(snapshot)
    parts: List[str] = []
    seen: Set[str] = set()
    current: Optional[FileNode] = node
    while current is not None:
        if current.id in seen:
            raise CycleDetected(f"parent chain of {node.id!r} loops through {current.id!r}")
        seen.add(current.id)
        parts.append(current.name)
        if current.parent_id is None:
            break
        current = by_id.get(current.parent_id)
    parts.reverse()
    return SEPARATOR.join(parts)


def build_path_index(snapshot: Iterable[FileNode], kind: Optional[str] = None) -> Dict[str, str]:
    """
    Map every path to its node id by one descent from the roots.

    Roots are nodes without a parent, or whose parent is missing. With ``kind``
    only nodes of that kind are recorded, but folders are always descended.
    When siblings share a name the later node in snapshot order wins.
    """
    nodes = list(snapshot)
    ids = {node.id for node in nodes}
    children: Dict[Optional[str], List[FileNode]] = {}
    for node in nodes:
        parent = node.parent_id if node.parent_id in ids else None
        children.setdefault(parent, []).append(node)

    index: Dict[str, str] = {}
    expanded: Set[str] = set()
    stack: List[Tuple[Optional[str], str]] = [(None, "")]
    while stack:
        parent_id, prefix = stack.pop()
        for child in children.get(parent_id, ()):
            path = f"{prefix}{SEPARATOR}{child.name}" if prefix else child.name
            if kind is None or child.kind == kind:
                index[path] = child.id
            if child.is_folder and child.id not in expanded:
                expanded.add(child.id)
                stack.append((child.id, path))
    return index


def split_path(path: str) -> Tuple[List[str], str]:
    """
    Split ``css/style.css`` into (["css"], "style.css").

    Leading ``./`` and ``/`` are stripped. Empty paths and empty, ``.`` or
    ``..`` segments raise MalformedAction.
    """
    if not isinstance(path, str):
        raise MalformedAction(f"path must be a string, got {type(path).__name__}")
    cleaned = path.strip()
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    cleaned = cleaned.lstrip(SEPARATOR)
    if not cleaned:
        raise MalformedAction(f"empty path: {path!r}")
    parts = cleaned.split(SEPARATOR)
    for part in parts:
        if not part or part in (".", ".."):
            raise MalformedAction(f"bad segment in path {path!r}")
    return parts[:-1], parts[-1]


def list_files(snapshot: Iterable[FileNode]) -> List[Tuple[str, str]]:
    """(full_path, content) for every file node, in snapshot order."""
    nodes = list(snapshot)
    by_id = index_by_id(nodes)
    return [(full_path(node, nodes, by_id), node.content or "") for node in nodes if node.kind == FILE]


def descendant_ids(snapshot: Iterable[FileNode], node_id: str) -> Set[str]:
    """Transitive closure of ``node_id`` over parent links, including the node itself."""
    children: Dict[str, List[str]] = {}
    for node in snapshot:
        if node.parent_id is not None:
            children.setdefault(node.parent_id, []).append(node.id)
    found: Set[str] = {node_id}
    stack = [node_id]
    while stack:
        current = stack.pop()
        for child_id in children.get(current, ()):
            if child_id not in found:
                found.add(child_id)
                stack.append(child_id)
    return found
