# python
"""
sitesmith/project.py
Project record, tech stack choice and the JSON snapshot used to persist both.
"""
from __future__ import annotations

import json
import logging
import pathlib
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from .nodes import FileNode, Snapshot

logger = logging.getLogger(__name__)

FRAMEWORKS = ("HTML/JS", "React")
STYLINGS = ("CSS", "Tailwind")
DEFAULT_PROJECT_NAME = "New Project"
FORMAT_VERSION = 1


@dataclass(frozen=True)
class TechStack:
    framework: str = "HTML/JS"
    styling: str = "CSS"

    def __post_init__(self):
        if self.framework not in FRAMEWORKS:
            raise ValueError(f"unknown framework {self.framework!r}; expected one of {FRAMEWORKS}")
        if self.styling not in STYLINGS:
            raise ValueError(f"unknown styling {self.styling!r}; expected one of {STYLINGS}")

    def label(self) -> str:
        return f"{self.framework} + {self.styling}"

    def to_dict(self) -> Dict[str, str]:
        return {"framework": self.framework, "styling": self.styling}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "TechStack":
        data = data or {}
        return cls(framework=data.get("framework", "HTML/JS"), styling=data.get("styling", "CSS"))


@dataclass
class Project:
    id: str
    name: str
    created_at: float
    last_modified: float
    files: Snapshot = ()
    stack: TechStack = field(default_factory=TechStack)

    @classmethod
    def new(cls, name: Optional[str], files: Snapshot, stack: Optional[TechStack] = None,
            now: Optional[float] = None) -> "Project":
        now = time.time() if now is None else now
        return cls(
            id=f"proj_{uuid.uuid4().hex[:12]}",
            name=(name or "").strip() or DEFAULT_PROJECT_NAME,
            created_at=now,
            last_modified=now,
            files=tuple(files),
            stack=stack or TechStack(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": FORMAT_VERSION,
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "lastModified": self.last_modified,
            "techStack": self.stack.to_dict(),
            "files": [node.to_dict() for node in self.files],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        if not isinstance(data, Mapping) or "id" not in data:
            raise ValueError("not a project: missing 'id'")
        try:
            files = tuple(FileNode.from_dict(item) for item in data.get("files", []))
        except (AttributeError, KeyError, TypeError) as exc:
            raise ValueError(f"malformed file entry: {exc}") from exc
        return cls(
            id=str(data["id"]),
            name=data.get("name") or DEFAULT_PROJECT_NAME,
            created_at=float(data.get("createdAt", 0)),
            last_modified=float(data.get("lastModified", 0)),
            files=files,
            stack=TechStack.from_dict(data.get("techStack")),
        )


def save_project(project: Project, path: Union[str, pathlib.Path]) -> pathlib.Path:
    path = pathlib.Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(project.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    logger.debug("saved project %s to %s", project.id, path)
    return path


def load_project(path: Union[str, pathlib.Path]) -> Project:
    text = pathlib.Path(path).read_text(encoding="utf-8")
    return Project.from_dict(json.loads(text))
