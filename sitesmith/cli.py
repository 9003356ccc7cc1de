# python
"""
sitesmith/cli.py
Command-line entry point: generate a project, edit it through chat, inspect,
export and preview it.

Usage:
    python -m sitesmith generate "a landing page for a bakery" -o bakery.json
    python -m sitesmith edit bakery.json "make the header sticky"
    python -m sitesmith tree bakery.json
    python -m sitesmith export bakery.json -o bakery.zip
    python -m sitesmith preview bakery.json -o bakery.html
"""
import argparse
import asyncio
import logging
import pathlib
import sys
from typing import Dict, List, Optional

from .config import create_configured_llm_client, load_config
from .errors import SitesmithError
from .export import archive_name, export_zip
from .llm import Attachment
from .nodes import FileNode
from .preview import render_preview
from .project import FRAMEWORKS, STYLINGS, TechStack, load_project, save_project
from .workspace import Workspace, build_project

logger = logging.getLogger(__name__)


def format_tree(snapshot) -> str:
    """Indented listing, folders first, then files, each group by name."""
    nodes = list(snapshot)
    ids = {node.id for node in nodes}
    children: Dict[Optional[str], List[FileNode]] = {}
    for node in nodes:
        parent = node.parent_id if node.parent_id in ids else None
        children.setdefault(parent, []).append(node)
    for group in children.values():
        group.sort(key=lambda n: (not n.is_folder, n.name))

    lines: List[str] = []
    stack = [(node, 0) for node in reversed(children.get(None, []))]
    seen = set()
    while stack:
        node, depth = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        suffix = "/" if node.is_folder else ""
        lines.append(f"{'  ' * depth}{node.name}{suffix}")
        for child in reversed(children.get(node.id, [])):
            stack.append((child, depth + 1))
    return "\n".join(lines)


def _client_or_exit(config):
    client = create_configured_llm_client(config)
    if client is None:
        print("error: no LLM provider configured (set GEMINI_API_KEY or OPENAI_API_KEY/OPENAI_MODEL)", file=sys.stderr)
        raise SystemExit(2)
    return client


def cmd_generate(args, config) -> int:
    client = _client_or_exit(config)
    stack = TechStack(framework=args.framework, styling=args.styling)
    attachments = [Attachment.from_path(p) for p in args.attach or []]
    project = build_project(client, args.prompt, stack, attachments=attachments, language=args.language)
    out = args.output or pathlib.Path(archive_name(project.name)).with_suffix(".json")
    save_project(project, out)
    print(f"{project.name}: {len(project.files)} nodes -> {out}")
    return 0


def cmd_edit(args, config) -> int:
    client = _client_or_exit(config)
    project = load_project(args.project)
    workspace = Workspace(
        project,
        client=client,
        limit=config["history"]["limit"],
        events_file=config["paths"]["events_file"],
    )
    attachments = [Attachment.from_path(p) for p in args.attach or []]
    reply = asyncio.run(workspace.chat_edit(args.instruction, attachments=attachments, language=args.language))
    save_project(workspace.project, args.project)
    print(reply.explanation)
    for action, reason in reply.result.skipped:
        print(f"skipped {action.type} {action.path}: {reason}", file=sys.stderr)
    return 0


def cmd_tree(args, config) -> int:
    project = load_project(args.project)
    print(format_tree(project.files))
    return 0


def cmd_export(args, config) -> int:
    project = load_project(args.project)
    out = args.output or archive_name(project.name)
    export_zip(project.files, out)
    print(out)
    return 0


def cmd_preview(args, config) -> int:
    project = load_project(args.project)
    page = render_preview(project.files)
    if args.output:
        pathlib.Path(args.output).write_text(page, encoding="utf-8")
        print(args.output)
    else:
        print(page)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sitesmith")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="generate a new project from a prompt")
    gen.add_argument("prompt")
    gen.add_argument("-o", "--output", type=pathlib.Path)
    gen.add_argument("--framework", choices=FRAMEWORKS, default="HTML/JS")
    gen.add_argument("--styling", choices=STYLINGS, default="CSS")
    gen.add_argument("--language")
    gen.add_argument("--attach", action="append", type=pathlib.Path)
    gen.set_defaults(func=cmd_generate)

    edit = sub.add_parser("edit", help="apply a chat instruction to a saved project")
    edit.add_argument("project", type=pathlib.Path)
    edit.add_argument("instruction")
    edit.add_argument("--language")
    edit.add_argument("--attach", action="append", type=pathlib.Path)
    edit.set_defaults(func=cmd_edit)

    tree = sub.add_parser("tree", help="print the project tree")
    tree.add_argument("project", type=pathlib.Path)
    tree.set_defaults(func=cmd_tree)

    exp = sub.add_parser("export", help="write the project as a zip archive")
    exp.add_argument("project", type=pathlib.Path)
    exp.add_argument("-o", "--output")
    exp.set_defaults(func=cmd_export)

    prev = sub.add_parser("preview", help="render index.html with inlined assets")
    prev.add_argument("project", type=pathlib.Path)
    prev.add_argument("-o", "--output")
    prev.set_defaults(func=cmd_preview)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = load_config()
    try:
        return args.func(args, config)
    except (SitesmithError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
