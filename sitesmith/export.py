# python
"""
sitesmith/export.py
Zip export of a snapshot: one directory entry per folder, one member per file.
"""
import io
import logging
import pathlib
import re
import zipfile
from typing import Dict, Iterable, Optional, Union

from .nodes import FileNode, index_by_id
from .paths import full_path

logger = logging.getLogger(__name__)


def archive_name(project_name: str) -> str:
    """``"My Site"`` -> ``"My_Site.zip"``."""
    stem = re.sub(r"\s+", "_", (project_name or "").strip()) or "project"
    return f"{stem}.zip"


def export_zip(snapshot: Iterable[FileNode], target: Optional[Union[str, pathlib.Path]] = None) -> bytes:
    """
    Build the archive in memory and return its bytes; also write it to ``target`` when given.
    Folders are added before files so empty folders survive.
    """
    nodes = list(snapshot)
    by_id = index_by_id(nodes)
    folders: Dict[str, None] = {}
    files: Dict[str, str] = {}
    # same-named siblings share a path; the later node wins
    for node in nodes:
        path = full_path(node, nodes, by_id)
        if node.is_folder:
            folders[path + "/"] = None
        else:
            files[path] = node.content or ""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name in folders:
            zf.writestr(name, b"")
        for name, content in files.items():
            zf.writestr(name, content.encode("utf-8"))
    data = buf.getvalue()
    if target is not None:
        target = pathlib.Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("exported %d nodes to %s", len(nodes), target)
    return data
