# python
"""
sitesmith/workspace.py
A project opened for editing: the checkpoint history, user operations and
chat edits driven by the edit-suggestion collaborator.
"""
from __future__ import annotations

import asyncio
import logging
import pathlib
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Sequence, Union

from .edit_applier import EditResult, apply_edits
from .errors import MissingCollaboratorResponse, RequestInFlight
from .events import EventLog
from .history import DEFAULT_LIMIT, CheckpointHistory
from .lang import detect_language
from .llm import Attachment, LLMClient
from .mutator import create_node, delete_node, move_node, rename_node, write_content
from .nodes import FILE, Clock, FileNode, IdGenerator, SequentialIds, Snapshot, make_file, resolve_clock, resolve_ids
from .paths import list_files
from .project import Project, TechStack
from .tree_builder import build_tree

logger = logging.getLogger(__name__)

README_NAME = "README.md"
README_TEMPLATE = "# {name}\n\n{description}\n\nGenerated with sitesmith.\nStack: {stack}"


@dataclass
class ChatReply:
    explanation: str
    result: EditResult


def _readme_node(site: dict, stack: TechStack, ids: IdGenerator, now: float) -> FileNode:
    content = README_TEMPLATE.format(
        name=site.get("siteName") or "",
        description=site.get("description") or "",
        stack=stack.label(),
    )
    return replace(make_file(ids(FILE), README_NAME, content, None, now), language="markdown")


def build_project(
    client: LLMClient,
    prompt: str,
    stack: Optional[TechStack] = None,
    attachments: Sequence[Attachment] = (),
    language: Optional[str] = None,
    ids: Optional[IdGenerator] = None,
    clock: Optional[Clock] = None,
) -> Project:
    """
    Ask the generation collaborator for a site and turn it into a new Project.
    A README.md is added when the model did not produce one.
    Raises MissingCollaboratorResponse on any collaborator failure.
    """
    stack = stack or TechStack()
    language = language or detect_language(prompt)
    ids = resolve_ids(ids)
    clock = resolve_clock(clock)
    site = client.generate_site(prompt, stack, attachments=attachments, language=language)
    if not isinstance(site, dict) or not isinstance(site.get("files"), list):
        raise MissingCollaboratorResponse("the model did not return a file list")
    files = build_tree(site["files"], ids=ids, clock=clock)
    if not any(node.name.lower() == "readme.md" for node in files):
        files = files + (_readme_node(site, stack, ids, clock()),)
    project = Project.new(site.get("siteName"), files, stack, now=clock())
    logger.info("built project %s (%s) with %d nodes", project.id, project.name, len(files))
    return project


class Workspace:
    """
    Owns the checkpoint history for one project. Every mutation produces a new
    snapshot, commits it, and mirrors it into ``project.files``.
    """

    def __init__(
        self,
        project: Project,
        client: Optional[LLMClient] = None,
        limit: int = DEFAULT_LIMIT,
        events_file: Optional[Union[str, pathlib.Path]] = None,
        ids: Optional[IdGenerator] = None,
        clock: Optional[Clock] = None,
    ):
        self.project = project
        self.client = client
        self.history = CheckpointHistory(project.files, limit=limit)
        self.events = EventLog(events_file, project_id=project.id)
        # ids restored from disk come from another process's counter
        self.ids = ids if ids is not None else SequentialIds.following(project.files)
        self.clock = resolve_clock(clock)
        self._in_flight = False

    @property
    def files(self) -> Snapshot:
        return self.history.current

    @property
    def version(self) -> str:
        return f"v{self.history.index + 1}"

    @property
    def busy(self) -> bool:
        return self._in_flight

    def _sync_project(self) -> None:
        self.project.files = self.history.current
        self.project.last_modified = self.clock()

    def _commit(self, snapshot: Snapshot, event: str, **fields: Any) -> bool:
        if snapshot is self.files:
            logger.debug("%s: nothing changed, no checkpoint", event)
            return False
        index = self.history.commit(snapshot)
        self._sync_project()
        self.events.log(event, checkpoint=index, **fields)
        return True

    def create(self, name: str, kind: str, parent_id: Optional[str] = None) -> FileNode:
        snapshot, node = create_node(self.files, name, kind, parent_id, ids=self.ids, clock=self.clock)
        self._commit(snapshot, "tree.create", id=node.id, name=node.name, kind=kind, parent_id=parent_id)
        return node

    def rename(self, node_id: str, new_name: str) -> None:
        snapshot = rename_node(self.files, node_id, new_name, clock=self.clock)
        self._commit(snapshot, "tree.rename", id=node_id, name=new_name)

    def delete(self, node_id: str) -> None:
        snapshot = delete_node(self.files, node_id)
        self._commit(snapshot, "tree.delete", id=node_id, removed=len(self.files) - len(snapshot))

    def move(self, node_id: str, new_parent_id: Optional[str]) -> bool:
        """Returns False when the move was rejected or redundant."""
        snapshot = move_node(self.files, node_id, new_parent_id)
        return self._commit(snapshot, "tree.move", id=node_id, parent_id=new_parent_id)

    def write_content(self, node_id: str, content: str) -> None:
        snapshot = write_content(self.files, node_id, content, clock=self.clock)
        self._commit(snapshot, "tree.write", id=node_id, bytes=len(content.encode("utf-8")))

    def undo(self) -> bool:
        moved = self.history.undo()
        if moved:
            self._sync_project()
            self.events.log("history.undo", checkpoint=self.history.index)
        return moved

    def redo(self) -> bool:
        moved = self.history.redo()
        if moved:
            self._sync_project()
            self.events.log("history.redo", checkpoint=self.history.index)
        return moved

    def apply_actions(self, actions: Iterable[Any]) -> EditResult:
        """Apply an action batch as a single checkpoint."""
        result = apply_edits(self.files, actions, ids=self.ids, clock=self.clock)
        if result.changed:
            self._commit(
                result.snapshot,
                "tree.apply_actions",
                applied=[action.to_dict() for action in result.applied],
                skipped=[{"path": action.path, "reason": reason} for action, reason in result.skipped],
            )
        return result

    async def chat_edit(
        self,
        instruction: str,
        attachments: Sequence[Attachment] = (),
        language: Optional[str] = None,
    ) -> ChatReply:
        """
        Send the current files and ``instruction`` to the edit collaborator and
        apply the returned actions. Only one request may be outstanding; the tree
        is not touched until a valid response arrives.
        """
        if self.client is None:
            raise MissingCollaboratorResponse("no LLM client configured")
        if self._in_flight:
            raise RequestInFlight("an edit request is already in progress")
        language = language or detect_language(instruction)
        files = list_files(self.files)
        self._in_flight = True
        self.events.log("chat.request", checkpoint=self.history.index, instruction=instruction, language=language)
        try:
            response = await asyncio.to_thread(
                self.client.suggest_edits, files, instruction, attachments, language
            )
        except asyncio.CancelledError:
            raise
        except MissingCollaboratorResponse as exc:
            logger.warning("chat_edit failed: %s", exc)
            self.events.log("chat.error", checkpoint=self.history.index, error=str(exc))
            raise
        except Exception as exc:
            logger.exception("edit collaborator raised")
            self.events.log("chat.error", checkpoint=self.history.index, error=str(exc))
            raise MissingCollaboratorResponse(f"edit request failed: {exc}") from exc
        finally:
            self._in_flight = False

        if not isinstance(response, dict) or not isinstance(response.get("actions"), list):
            self.events.log("chat.error", checkpoint=self.history.index, error="malformed response")
            raise MissingCollaboratorResponse("the model did not return an action list")
        result = self.apply_actions(response["actions"])
        explanation = response.get("explanation") or ""
        self.events.log(
            "chat.response",
            checkpoint=self.history.index,
            explanation=explanation,
            applied=len(result.applied),
            skipped=len(result.skipped),
        )
        return ChatReply(explanation=explanation, result=result)
