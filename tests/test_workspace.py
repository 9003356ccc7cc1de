# python
"""
tests/test_workspace.py
Workspace checkpoints, chat edits through a stub collaborator, and the initial build flow.
"""
from pathlib import Path
import asyncio
import json
import time

import pytest

from sitesmith.errors import MissingCollaboratorResponse, RequestInFlight
from sitesmith.paths import full_path
from sitesmith.nodes import SequentialIds
from sitesmith.project import Project, TechStack, load_project, save_project
from sitesmith.tree_builder import build_tree
from sitesmith.workspace import Workspace, build_project


class DummyEditClient:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def suggest_edits(self, files, instruction, attachments=(), language="en"):
        self.calls.append((files, instruction, language))
        return self.response


class FailingEditClient:
    def suggest_edits(self, *args, **kwargs):
        raise MissingCollaboratorResponse("the model did not return usable edits")


class BrokenEditClient:
    def suggest_edits(self, *args, **kwargs):
        raise RuntimeError("socket closed")


class DummySiteClient:
    def __init__(self, site):
        self.site = site
        self.calls = []

    def generate_site(self, prompt, stack, attachments=(), language="en"):
        self.calls.append((prompt, stack, language))
        return self.site


def _project(ids, files=None) -> Project:
    files = files if files is not None else [
        {"path": "index.html", "content": "<html></html>"},
        {"path": "css/style.css", "content": "body {}"},
    ]
    return Project.new("Demo", build_tree(files, ids=ids), now=0.0)


def _paths(snapshot):
    return sorted(full_path(n, snapshot) for n in snapshot)


def test_operations_commit_checkpoints(ids, clock) -> None:
    ws = Workspace(_project(ids), ids=ids, clock=clock)
    assert ws.version == "v1"
    folder = ws.create("js", "folder")
    node = ws.create("app.js", "file", folder.id)
    ws.write_content(node.id, "run()")
    ws.rename(node.id, "main.js")
    assert ws.version == "v5"
    assert "js/main.js" in _paths(ws.files)
    assert ws.project.files is ws.files
    assert ws.project.last_modified > 0


def test_undo_redo_restores_project_files(ids, clock) -> None:
    ws = Workspace(_project(ids), ids=ids, clock=clock)
    original = ws.files
    css = next(n for n in ws.files if n.name == "css")
    ws.delete(css.id)
    assert _paths(ws.files) == ["index.html"]
    assert ws.undo() is True
    assert ws.files == original
    assert ws.project.files == original
    assert ws.undo() is False
    assert ws.redo() is True
    assert _paths(ws.files) == ["index.html"]


def test_rejected_move_creates_no_checkpoint(ids, clock) -> None:
    ws = Workspace(_project(ids), ids=ids, clock=clock)
    css = next(n for n in ws.files if n.name == "css")
    sub = ws.create("vendor", "folder", css.id)
    assert len(ws.history) == 2
    assert ws.move(css.id, sub.id) is False
    assert ws.move(sub.id, css.id) is False
    assert len(ws.history) == 2
    assert ws.move(sub.id, None) is True
    assert len(ws.history) == 3


def test_commit_after_undo_discards_redo(ids, clock) -> None:
    ws = Workspace(_project(ids), ids=ids, clock=clock)
    ws.create("a.txt", "file")
    ws.undo()
    ws.create("b.txt", "file")
    assert ws.redo() is False
    assert "a.txt" not in _paths(ws.files)


def test_apply_actions_is_one_checkpoint(ids, clock) -> None:
    ws = Workspace(_project(ids), ids=ids, clock=clock)
    result = ws.apply_actions(
        [
            {"type": "create", "path": "js/app.js", "content": "1"},
            {"type": "update", "path": "css/style.css", "content": "body { color: red }"},
            {"type": "delete", "path": "index.html"},
        ]
    )
    assert len(result.applied) == 3
    assert len(ws.history) == 2
    assert _paths(ws.files) == ["css", "css/style.css", "js", "js/app.js"]


def test_delete_of_missing_path_adds_no_checkpoint(ids, clock) -> None:
    ws = Workspace(_project(ids), ids=ids, clock=clock)
    result = ws.apply_actions([{"type": "delete", "path": "nowhere.html"}])
    assert len(result.applied) == 1
    assert len(ws.history) == 1
    assert ws.version == "v1"


def test_reloaded_project_gets_fresh_ids(tmp_path: Path) -> None:
    # the saved ids came from a counter that a new process would restart
    saved = save_project(_project(SequentialIds()), tmp_path / "site.json")
    ws = Workspace(load_project(saved))
    ws.apply_actions([{"type": "create", "path": "pages/about.html", "content": "<p>about</p>"}])
    ws.create("notes.txt", "file")
    node_ids = [n.id for n in ws.files]
    assert len(node_ids) == len(set(node_ids)) == 6


def test_chat_edit_applies_actions_and_logs(tmp_path: Path, ids, clock) -> None:
    events = tmp_path / "logs" / "events.jsonl"
    client = DummyEditClient(
        {
            "explanation": "Added a script.",
            "actions": [
                {"type": "create", "path": "js/app.js", "content": "console.log('hi')"},
                {"type": "create", "path": "", "content": "bad"},
            ],
        }
    )
    ws = Workspace(_project(ids), client=client, events_file=events, ids=ids, clock=clock)
    reply = asyncio.run(ws.chat_edit("add a script"))
    assert reply.explanation == "Added a script."
    assert len(reply.result.applied) == 1
    assert len(reply.result.skipped) == 1
    assert "js/app.js" in _paths(ws.files)
    files, instruction, language = client.calls[0]
    assert ("css/style.css", "body {}") in files
    assert instruction == "add a script"
    assert language == "en"
    records = [json.loads(line) for line in events.read_text().splitlines()]
    assert [r["event"] for r in records] == ["chat.request", "tree.apply_actions", "chat.response"]
    assert records[1]["checkpoint"] == 1
    assert records[2]["payload"]["skipped"] == 1


def test_chat_edit_detects_language(ids) -> None:
    client = DummyEditClient({"explanation": "Готово", "actions": []})
    ws = Workspace(_project(ids), client=client, ids=ids)
    asyncio.run(ws.chat_edit("сделай фон синим"))
    assert client.calls[0][2] == "ru"


@pytest.mark.parametrize("client", [FailingEditClient(), BrokenEditClient(), DummyEditClient({"explanation": "?"})])
def test_chat_edit_failure_leaves_history(client, ids) -> None:
    ws = Workspace(_project(ids), client=client, ids=ids)
    before = ws.files
    with pytest.raises(MissingCollaboratorResponse):
        asyncio.run(ws.chat_edit("anything"))
    assert ws.files is before
    assert len(ws.history) == 1
    assert not ws.busy


def test_chat_edit_requires_client(ids) -> None:
    ws = Workspace(_project(ids), ids=ids)
    with pytest.raises(MissingCollaboratorResponse):
        asyncio.run(ws.chat_edit("anything"))


def test_single_request_in_flight(ids) -> None:
    class SlowClient:
        def suggest_edits(self, files, instruction, attachments=(), language="en"):
            time.sleep(0.2)
            return {"explanation": "ok", "actions": [{"type": "create", "path": "x.js", "content": ""}]}

    ws = Workspace(_project(ids), client=SlowClient(), ids=ids)

    async def scenario():
        first = asyncio.create_task(ws.chat_edit("one"))
        await asyncio.sleep(0.05)
        assert ws.busy
        with pytest.raises(RequestInFlight):
            await ws.chat_edit("two")
        return await first

    reply = asyncio.run(scenario())
    assert reply.explanation == "ok"
    assert len(ws.history) == 2
    assert not ws.busy


def test_build_project_adds_readme(ids, clock) -> None:
    client = DummySiteClient(
        {
            "siteName": "Bakery",
            "description": "Fresh bread daily",
            "files": [
                {"path": "index.html", "content": "<html></html>"},
                {"path": "css/style.css", "content": "body {}"},
                {"path": "js/script.js", "content": ""},
            ],
        }
    )
    project = build_project(client, "a bakery site", TechStack(styling="Tailwind"), ids=ids, clock=clock)
    assert project.name == "Bakery"
    readme = next(n for n in project.files if n.name == "README.md")
    assert readme.parent_id is None
    assert readme.language == "markdown"
    assert readme.content.startswith("# Bakery\n\nFresh bread daily")
    assert "Stack: HTML/JS + Tailwind" in readme.content
    assert client.calls[0][2] == "en"


def test_build_project_keeps_existing_readme(ids) -> None:
    client = DummySiteClient(
        {"siteName": "", "description": "", "files": [{"path": "docs/readme.md", "content": "mine"}]}
    )
    project = build_project(client, "docs", ids=ids)
    assert project.name == "New Project"
    assert [n.name for n in project.files if n.is_file] == ["readme.md"]
