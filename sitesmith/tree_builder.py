# python
"""
sitesmith/tree_builder.py
Build a node snapshot from the flat {path, content} list returned by initial generation.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

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
from .paths import SEPARATOR, split_path

logger = logging.getLogger(__name__)


def _entry_path(entry: Any) -> str:
    if isinstance(entry, Mapping):
        return entry.get("path") or ""
    return getattr(entry, "path", "") or ""


def _entry_content(entry: Any) -> str:
    if isinstance(entry, Mapping):
        content = entry.get("content")
    else:
        content = getattr(entry, "content", None)
    return content if content is not None else ""


def build_tree(entries: Iterable[Any], ids: Optional[IdGenerator] = None, clock: Optional[Clock] = None) -> Snapshot:
    """
    Turn ``[{"path": "css/style.css", "content": ...}, ...]`` into folder and file nodes.

    Shorter paths are processed first so each folder is synthesized once.
    Every node gets a fresh id. A repeated path replaces the earlier file's content.
    """
    ids = resolve_ids(ids)
    now = resolve_clock(clock)()
    ordered = sorted(entries, key=lambda entry: len(_entry_path(entry)))

    nodes: List[FileNode] = []
    folders: Dict[str, str] = {}
    files: Dict[str, int] = {}

    for entry in ordered:
        raw_path = _entry_path(entry)
        try:
            segments, leaf = split_path(raw_path)
        except MalformedAction as exc:
            logger.warning("build_tree: skipping entry: %s", exc)
            continue

        parent_id: Optional[str] = None
        current_path = ""
        for segment in segments:
            current_path = f"{current_path}{SEPARATOR}{segment}" if current_path else segment
            folder_id = folders.get(current_path)
            if folder_id is None:
                folder_id = ids(FOLDER)
                nodes.append(make_folder(folder_id, segment, parent_id, now))
                folders[current_path] = folder_id
            parent_id = folder_id

        file_path = f"{current_path}{SEPARATOR}{leaf}" if current_path else leaf
        content = _entry_content(entry)
        if file_path in files:
            position = files[file_path]
            nodes[position] = with_content(nodes[position], content, now)
            continue
        files[file_path] = len(nodes)
        nodes.append(make_file(ids(FILE), leaf, content, parent_id, now))

    logger.debug("build_tree: %d folders, %d files", len(folders), len(files))
    return tuple(nodes)
