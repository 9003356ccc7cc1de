# python
"""
sitesmith/nodes.py
FileNode data model, snapshot helpers and id generation.
"""
from __future__ import annotations

import itertools
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, Iterator, Literal, Mapping, Optional, Tuple

NodeKind = Literal["file", "folder"]
FILE: NodeKind = "file"
FOLDER: NodeKind = "folder"
KINDS: Tuple[str, ...] = (FILE, FOLDER)

DEFAULT_LANGUAGE = "txt"

Clock = Callable[[], float]


def language_for(name: str) -> str:
    """
    Language tag for a file name: its trailing extension, or "txt" when there is none.
    """
    if "." not in name:
        return DEFAULT_LANGUAGE
    ext = name.rsplit(".", 1)[-1]
    return ext or DEFAULT_LANGUAGE


@dataclass(frozen=True)
class FileNode:
    id: str
    name: str
    kind: NodeKind
    content: Optional[str] = None
    language: Optional[str] = None
    parent_id: Optional[str] = None
    last_modified: Optional[float] = field(default=None, compare=False)

    @property
    def is_file(self) -> bool:
        return self.kind == FILE

    @property
    def is_folder(self) -> bool:
        return self.kind == FOLDER

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name, "type": self.kind}
        if self.content is not None:
            data["content"] = self.content
        if self.language is not None:
            data["language"] = self.language
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        if self.last_modified is not None:
            data["lastModified"] = self.last_modified
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FileNode":
        kind = data.get("type", FILE)
        if kind not in KINDS:
            raise ValueError(f"unknown node type: {kind!r}")
        content = data.get("content")
        if kind == FILE and content is None:
            content = ""
        if kind == FOLDER:
            content = None
        language = data.get("language")
        if kind == FILE and not language:
            language = language_for(data["name"])
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            kind=kind,
            content=content,
            language=language if kind == FILE else None,
            parent_id=data.get("parentId"),
            last_modified=data.get("lastModified"),
        )


Snapshot = Tuple[FileNode, ...]


def make_file(node_id: str, name: str, content: str = "", parent_id: Optional[str] = None,
              last_modified: Optional[float] = None) -> FileNode:
    return FileNode(
        id=node_id,
        name=name,
        kind=FILE,
        content=content if content is not None else "",
        language=language_for(name),
        parent_id=parent_id,
        last_modified=last_modified,
    )


def make_folder(node_id: str, name: str, parent_id: Optional[str] = None,
                last_modified: Optional[float] = None) -> FileNode:
    return FileNode(id=node_id, name=name, kind=FOLDER, parent_id=parent_id, last_modified=last_modified)


def renamed(node: FileNode, new_name: str, now: Optional[float] = None) -> FileNode:
    language = language_for(new_name) if node.is_file else node.language
    return replace(node, name=new_name, language=language, last_modified=now)


def with_content(node: FileNode, content: str, now: Optional[float] = None) -> FileNode:
    return replace(node, content=content, last_modified=now)


def index_by_id(snapshot: Iterable[FileNode]) -> Dict[str, FileNode]:
    return {node.id: node for node in snapshot}


def next_sequence(snapshot: Iterable[FileNode]) -> int:
    highest = 0
    for node in snapshot:
        suffix = node.id.rpartition("_")[2]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest + 1


class SequentialIds:
    """
    Monotonic id generator: ``file_1``, ``folder_2``, ...

    The default instance shares one process-wide counter so ids never repeat
    within a process. Tests pass a fresh instance for predictable ids.
    """

    _shared = itertools.count(1)

    def __init__(self, counter: Optional[Iterator[int]] = None):
        self._counter = counter if counter is not None else itertools.count(1)

    @classmethod
    def process_wide(cls) -> "SequentialIds":
        return cls(cls._shared)

    @classmethod
    def following(cls, snapshot: Iterable[FileNode]) -> "SequentialIds":
        """Fresh generator that starts past every numeric suffix already in ``snapshot``."""
        return cls(itertools.count(next_sequence(snapshot)))

    def __call__(self, kind: str) -> str:
        return f"{kind}_{next(self._counter)}"


class UuidIds:
    def __call__(self, kind: str) -> str:
        return f"{kind}_{uuid.uuid4().hex}"


IdGenerator = Callable[[str], str]

DEFAULT_IDS: IdGenerator = SequentialIds.process_wide()


def resolve_ids(ids: Optional[IdGenerator]) -> IdGenerator:
    return ids if ids is not None else DEFAULT_IDS


def resolve_clock(clock: Optional[Clock]) -> Clock:
    return clock if clock is not None else time.time
