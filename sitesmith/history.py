# python
"""
sitesmith/history.py
Bounded linear undo/redo over tree snapshots.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

from .nodes import Snapshot

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20


class CheckpointHistory:
    """
    A list of snapshots plus a cursor on the active one.

    Committing after an undo drops the redo branch. When the list grows past
    ``limit`` the oldest checkpoint is evicted and the cursor shifts with it.
    Undo at the first checkpoint and redo at the last are silent no-ops.
    """

    def __init__(self, initial: Snapshot = (), limit: int = DEFAULT_LIMIT):
        if limit < 1:
            raise ValueError("history limit must be at least 1")
        self.limit = int(limit)
        self._checkpoints: List[Snapshot] = [tuple(initial)]
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._checkpoints)

    @property
    def index(self) -> int:
        return self._cursor

    @property
    def current(self) -> Snapshot:
        return self._checkpoints[self._cursor]

    @property
    def checkpoints(self) -> Tuple[Snapshot, ...]:
        return tuple(self._checkpoints)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._checkpoints) - 1

    def commit(self, snapshot: Snapshot) -> int:
        """Make ``snapshot`` the active checkpoint and return its index."""
        del self._checkpoints[self._cursor + 1 :]
        self._checkpoints.append(tuple(snapshot))
        self._cursor = len(self._checkpoints) - 1
        if len(self._checkpoints) > self.limit:
            self._checkpoints.pop(0)
            self._cursor -= 1
        logger.debug("checkpoint %d/%d committed", self._cursor + 1, len(self._checkpoints))
        return self._cursor

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._cursor -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._cursor += 1
        return True
