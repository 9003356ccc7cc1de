# python
"""
sitesmith/preview.py
Render index.html as one self-contained page, with relative src/href values
pointing at data: URIs built from the project's files.
"""
import base64
import html
import logging
import re
from typing import Dict, Iterable, List, Optional

from .nodes import FileNode, index_by_id
from .paths import full_path

logger = logging.getLogger(__name__)

MIME_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
}
DEFAULT_MIME_TYPE = "text/plain"

_ASSET_ATTR = re.compile(r"""(src|href)=["']([^"']+)["']""")
_LEADING_RELATIVE = re.compile(r"^(\./|/)")

MISSING_INDEX_TEMPLATE = """<div style="font-family:sans-serif; padding: 20px; color: #666;">
  <h1>No index.html found</h1>
  <p>Please create an index.html file to preview your project.</p>
  <h3>Available files:</h3>
  <ul>{items}</ul>
</div>"""


def mime_type_for(name: str) -> str:
    lowered = name.lower()
    for ext, mime in MIME_TYPES.items():
        if lowered.endswith(ext):
            return mime
    return DEFAULT_MIME_TYPE


def data_uri(node: FileNode) -> str:
    payload = base64.b64encode((node.content or "").encode("utf-8")).decode("ascii")
    return f"data:{mime_type_for(node.name)};base64,{payload}"


def asset_map(snapshot: Iterable[FileNode]) -> Dict[str, str]:
    """
    Map full paths to data URIs. Nested files are also reachable by bare name,
    but a full path always takes precedence over a bare-name alias.
    """
    nodes = list(snapshot)
    by_id = index_by_id(nodes)
    by_path: Dict[str, str] = {}
    by_name: Dict[str, str] = {}
    for node in nodes:
        if not node.is_file:
            continue
        uri = data_uri(node)
        path = full_path(node, nodes, by_id)
        by_path[path] = uri
        if path != node.name:
            by_name[node.name] = uri
    return {**by_name, **by_path}


def find_index(snapshot: Iterable[FileNode]) -> Optional[FileNode]:
    for node in snapshot:
        if node.is_file and node.name.lower() == "index.html":
            return node
    return None


def rewrite_assets(page: str, assets: Dict[str, str]) -> str:
    def _swap(match: "re.Match[str]") -> str:
        attr, value = match.group(1), match.group(2)
        uri = assets.get(_LEADING_RELATIVE.sub("", value, count=1))
        if uri is None:
            return match.group(0)
        return f'{attr}="{uri}"'

    return _ASSET_ATTR.sub(_swap, page)


def render_preview(snapshot: Iterable[FileNode]) -> str:
    nodes = list(snapshot)
    index = find_index(nodes)
    if index is None:
        names: List[str] = [html.escape(node.name) for node in nodes if node.is_file]
        logger.debug("render_preview: no index.html among %d files", len(names))
        return MISSING_INDEX_TEMPLATE.format(items="".join(f"<li>{name}</li>" for name in names))
    return rewrite_assets(index.content or "", asset_map(nodes))
