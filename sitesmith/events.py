# python
"""
sitesmith/events.py
JSONL event log for workspace operations.
"""
import datetime
import json
import pathlib
from typing import Any, Optional, Union


def iso_ts() -> str:
    """
    Return a timezone-aware UTC ISO timestamp (Z suffix) for logging.
    """
    dt = datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def ensure_dir(path: pathlib.Path):
    path.mkdir(parents=True, exist_ok=True)


class EventLog:
    """Append-only JSONL writer. With no path configured, records are dropped."""

    def __init__(self, path: Optional[Union[str, pathlib.Path]] = None, project_id: str = ""):
        self.path = pathlib.Path(path) if path else None
        self.project_id = project_id

    def log(self, event: str, checkpoint: Optional[int] = None, **fields: Any) -> None:
        if self.path is None:
            return
        rec = {
            "ts": iso_ts(),
            "project_id": self.project_id,
            "event": event,
            "checkpoint": checkpoint,
            "payload": fields or {},
        }
        ensure_dir(self.path.parent)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")
