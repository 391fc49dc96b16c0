from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from .clock import Clock
from .errors import NotFoundFailure, PersistenceFailure
from .schemas import HistorySnapshot, Message
from .store import HistoryStore


logger = logging.getLogger(__name__)

HistoryIndex = Dict[str, HistorySnapshot]


def session_key(saved_ms: int) -> str:
    # two saves within one millisecond share a key; the later one overwrites
    return f"chat_{saved_ms}"


class HistoryManager:
    """Log of session snapshots, one entry per messages mutation."""

    def __init__(self, store: HistoryStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.clock = clock or Clock()
        self._index: HistoryIndex = {}
        self._loaded = False

    @property
    def index(self) -> HistoryIndex:
        return dict(self._index)

    def load_index(self) -> HistoryIndex:
        raw = self.store.load()
        index: HistoryIndex = {}
        for key, entry in (raw or {}).items():
            try:
                index[key] = HistorySnapshot.from_json(entry)
            except (ValueError, ValidationError) as e:
                raise PersistenceFailure(f"Failed to load history entry {key}: {e}") from e
        if not self._loaded:
            # snapshots taken before the first successful load
            index.update(self._index)
        self._index = index
        self._loaded = True
        return self.index

    def save_snapshot(self, messages: Sequence[Message]) -> Tuple[str, HistoryIndex]:
        """Insert a snapshot of ``messages`` and persist the whole index.

        The in-memory index keeps the new entry even when persisting fails;
        the failure is raised as :class:`PersistenceFailure`.
        Until the stored index has been read, it is never overwritten: the
        load is retried first and a failed retry keeps the snapshot in memory.
        """
        key = session_key(self.clock.now_ms())
        snapshot = HistorySnapshot(messages=list(messages), saved_at=self.clock.datetime_string())
        if not self._loaded:
            try:
                self.load_index()
            except PersistenceFailure:
                self._index[key] = snapshot
                logger.warning("History snapshot %s kept in memory only", key)
                raise
        self._index[key] = snapshot
        payload = {k: snap.to_json() for k, snap in self._index.items()}
        try:
            self.store.save(payload)
        except PersistenceFailure:
            logger.warning("History snapshot %s kept in memory only", key)
            raise
        return key, self.index

    def resume(self, key: str) -> List[Message]:
        snap = self._index.get(key)
        if snap is None:
            raise NotFoundFailure(key)
        return list(snap.messages)

    def entries(self) -> Iterator[Tuple[str, HistorySnapshot]]:
        # index iteration order, no sorting
        return iter(list(self._index.items()))
