# python
"""
tests/test_mutator.py
User-driven create/rename/delete/move operations.
"""
import pytest

from sitesmith.errors import InvalidNode, NodeNotFound
from sitesmith.mutator import create_node, delete_node, move_node, rename_node, write_content
from sitesmith.paths import full_path
from sitesmith.tree_builder import build_tree


def _by_name(snapshot):
    return {n.name: n for n in snapshot}


@pytest.fixture
def site(ids):
    return build_tree(
        [
            {"path": "index.html", "content": "<html></html>"},
            {"path": "assets/css/style.css", "content": "body{}"},
            {"path": "assets/img/logo.svg", "content": "<svg/>"},
            {"path": "js/app.js", "content": "run()"},
        ],
        ids=ids,
    )


def test_create_appends_without_collision_check(site, ids) -> None:
    js = _by_name(site)["js"]
    snapshot, first = create_node(site, "app.js", "file", js.id, ids=ids)
    assert first.content == "" and first.language == "js"
    assert snapshot[-1] == first
    snapshot, folder = create_node(snapshot, "lib", "folder", None, ids=ids)
    assert folder.content is None and folder.language is None
    assert len(snapshot) == len(site) + 2


def test_create_rejects_bad_input(site, ids) -> None:
    index = _by_name(site)["index.html"]
    with pytest.raises(InvalidNode):
        create_node(site, "x.js", "file", index.id, ids=ids)
    with pytest.raises(InvalidNode):
        create_node(site, "a/b.js", "file", None, ids=ids)
    with pytest.raises(InvalidNode):
        create_node(site, "x", "symlink", None, ids=ids)
    with pytest.raises(NodeNotFound):
        create_node(site, "x.js", "file", "nope", ids=ids)


def test_rename_updates_language_and_child_paths(site, clock) -> None:
    nodes = _by_name(site)
    snapshot = rename_node(site, nodes["app.js"].id, "main.ts", clock=clock)
    renamed = _by_name(snapshot)["main.ts"]
    assert renamed.id == nodes["app.js"].id
    assert renamed.language == "ts"
    assert renamed.last_modified is not None

    snapshot = rename_node(snapshot, nodes["assets"].id, "static", clock=clock)
    style = _by_name(snapshot)["style.css"]
    assert full_path(style, snapshot) == "static/css/style.css"


def test_delete_cascades(site) -> None:
    nodes = _by_name(site)
    snapshot = delete_node(site, nodes["assets"].id)
    assert sorted(n.name for n in snapshot) == ["app.js", "index.html", "js"]


def test_delete_unknown_raises(site) -> None:
    with pytest.raises(NodeNotFound):
        delete_node(site, "missing")


def test_move_and_move_back_restores_shape(site) -> None:
    nodes = _by_name(site)
    logo = nodes["logo.svg"]
    moved = move_node(site, logo.id, nodes["js"].id)
    assert full_path(_by_name(moved)["logo.svg"], moved) == "js/logo.svg"
    restored = move_node(moved, logo.id, logo.parent_id)
    assert restored == site


def test_move_to_root(site) -> None:
    nodes = _by_name(site)
    moved = move_node(site, nodes["css"].id, None)
    assert full_path(_by_name(moved)["style.css"], moved) == "css/style.css"


def test_move_into_self_or_descendant_is_rejected(site) -> None:
    nodes = _by_name(site)
    assets = nodes["assets"]
    assert move_node(site, assets.id, assets.id) is site
    assert move_node(site, assets.id, nodes["css"].id) is site


def test_redundant_move_is_noop(site) -> None:
    nodes = _by_name(site)
    style = nodes["style.css"]
    assert move_node(site, style.id, style.parent_id) is site
    assert move_node(site, nodes["index.html"].id, None) is site


def test_move_under_file_is_rejected(site) -> None:
    nodes = _by_name(site)
    assert move_node(site, nodes["app.js"].id, nodes["index.html"].id) is site


def test_write_content(site, clock) -> None:
    nodes = _by_name(site)
    snapshot = write_content(site, nodes["app.js"].id, "start()", clock=clock)
    assert _by_name(snapshot)["app.js"].content == "start()"
    with pytest.raises(InvalidNode):
        write_content(site, nodes["js"].id, "x")
