# python
"""
sitesmith/edit_applier.py
Apply an ordered batch of AI-suggested create/update/delete actions to a snapshot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .errors import MalformedAction
from .nodes import (
    FILE,
    FOLDER,
    Clock,
    FileNode,
    IdGenerator,
    Snapshot,
    make_file,
    make_folder,
    resolve_clock,
    resolve_ids,
    with_content,
)
from .paths import SEPARATOR, build_path_index, split_path

logger = logging.getLogger(__name__)

CREATE = "create"
UPDATE = "update"
DELETE = "delete"
ACTION_TYPES: Tuple[str, ...] = (CREATE, UPDATE, DELETE)


@dataclass(frozen=True)
class EditAction:
    type: str
    path: str
    content: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EditAction":
        return cls(type=data.get("type") or "", path=data.get("path") or "", content=data.get("content"))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "path": self.path}
        if self.content is not None:
            data["content"] = self.content
        return data


@dataclass
class EditResult:
    snapshot: Snapshot
    applied: List[EditAction] = field(default_factory=list)
    skipped: List[Tuple[EditAction, str]] = field(default_factory=list)
    # false when every applied action was a delete that matched nothing
    changed: bool = False


def _coerce(action: Any) -> EditAction:
    if isinstance(action, EditAction):
        return action
    if isinstance(action, Mapping):
        return EditAction.from_dict(action)
    raise MalformedAction(f"unsupported action object: {type(action).__name__}")


class _Batch:
    """Working state for one batch: the node list plus the live folder index."""

    def __init__(self, snapshot: Snapshot, ids: IdGenerator, now: float):
        self.nodes: List[FileNode] = list(snapshot)
        self.folders: Dict[str, str] = build_path_index(self.nodes, kind=FOLDER)
        self.ids = ids
        self.now = now

    def _parent_of(self, node: FileNode, known: Set[str]) -> Optional[str]:
        return node.parent_id if node.parent_id in known else None

    def _file_ids(self) -> Dict[str, str]:
        return build_path_index(self.nodes, kind=FILE)

    def ensure_folders(self, segments: List[str]) -> Optional[str]:
        parent_id: Optional[str] = None
        current_path = ""
        file_paths: Optional[Dict[str, str]] = None
        for segment in segments:
            current_path = f"{current_path}{SEPARATOR}{segment}" if current_path else segment
            folder_id = self.folders.get(current_path)
            if folder_id is None:
                if file_paths is None:
                    file_paths = self._file_ids()
                if current_path in file_paths:
                    raise MalformedAction(f"{current_path!r} is a file, not a folder")
                folder_id = self.ids(FOLDER)
                self.nodes.append(make_folder(folder_id, segment, parent_id, self.now))
                self.folders[current_path] = folder_id
            parent_id = folder_id
        return parent_id

    def write_file(self, parent_id: Optional[str], leaf: str, content: str) -> None:
        existing = None
        known = {node.id for node in self.nodes}
        for position, node in enumerate(self.nodes):
            if node.kind == FILE and node.name == leaf and self._parent_of(node, known) == parent_id:
                existing = position
        if existing is not None:
            self.nodes[existing] = with_content(self.nodes[existing], content, self.now)
            return
        self.nodes.append(make_file(self.ids(FILE), leaf, content, parent_id, self.now))

    def remove(self, segments: List[str], leaf: str) -> int:
        parent_id: Optional[str] = None
        if segments:
            parent_id = self.folders.get(SEPARATOR.join(segments))
            if parent_id is None:
                return 0
        known = {node.id for node in self.nodes}
        kept = [
            node for node in self.nodes
            if not (node.name == leaf and self._parent_of(node, known) == parent_id)
        ]
        removed = len(self.nodes) - len(kept)
        if removed:
            self.nodes = kept
            self.folders = build_path_index(self.nodes, kind=FOLDER)
        return removed


def apply_edits(
    snapshot: Snapshot,
    actions: Iterable[Any],
    ids: Optional[IdGenerator] = None,
    clock: Optional[Clock] = None,
) -> EditResult:
    """
    Apply ``actions`` in order and return the new snapshot with what was applied and skipped.

    create/update replace the content of an existing same-named file under the
    resolved folder (id kept; a node whose parent is gone counts as a root) or append a new file, synthesizing missing folders.
    delete removes every node named like the leaf directly under the resolved
    folder and does not cascade to that node's children.
    A malformed action is skipped and the rest of the batch still applies.
    """
    batch = _Batch(tuple(snapshot), resolve_ids(ids), resolve_clock(clock)())
    result = EditResult(snapshot=tuple(snapshot))

    for raw in actions:
        try:
            action = _coerce(raw)
        except MalformedAction as exc:
            logger.warning("apply_edits: skipping action: %s", exc)
            result.skipped.append((EditAction(type="", path=""), str(exc)))
            continue
        try:
            if action.type not in ACTION_TYPES:
                raise MalformedAction(f"unsupported action type {action.type!r}")
            segments, leaf = split_path(action.path)
            if action.type == DELETE:
                removed = batch.remove(segments, leaf)
                if removed:
                    result.changed = True
                else:
                    logger.debug("apply_edits: delete %s matched nothing", action.path)
            else:
                parent_id = batch.ensure_folders(segments)
                batch.write_file(parent_id, leaf, action.content or "")
                result.changed = True
        except MalformedAction as exc:
            logger.warning("apply_edits: skipping %s %r: %s", action.type, action.path, exc)
            result.skipped.append((action, str(exc)))
            continue
        result.applied.append(action)

    result.snapshot = tuple(batch.nodes)
    return result
