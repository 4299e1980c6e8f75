from __future__ import annotations

"""
EMBED_SUMMARY: Per-tournament participant snapshot feed (subscribe/publish) and the cache it keeps fresh.
EMBED_TAGS: feed, subscriptions, snapshots, cache, participants

Every write to a tournament's participants publishes the full ordered participant list.
Subscribers receive that snapshot; a late subscriber is handed the latest one immediately.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from .schemas import ParticipantRecord


Snapshot = List[ParticipantRecord]
SnapshotHandler = Callable[[Snapshot], None]

logger = logging.getLogger("feed")


class ParticipantFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Dict[int, SnapshotHandler]] = {}
        self._latest: Dict[str, Snapshot] = {}
        self._next_id = 0

    def subscribe(self, tournament_id: str, on_snapshot: SnapshotHandler) -> Callable[[], None]:
        with self._lock:
            self._next_id += 1
            token = self._next_id
            self._subscribers.setdefault(tournament_id, {})[token] = on_snapshot
            latest = self._latest.get(tournament_id)

        if latest is not None:
            self._deliver(tournament_id, on_snapshot, latest)

        def unsubscribe() -> None:
            with self._lock:
                handlers = self._subscribers.get(tournament_id)
                if handlers is None:
                    return
                handlers.pop(token, None)
                if not handlers:
                    del self._subscribers[tournament_id]

        return unsubscribe

    def publish(self, tournament_id: str, snapshot: Snapshot) -> None:
        snapshot = list(snapshot)
        with self._lock:
            self._latest[tournament_id] = snapshot
            handlers = list(self._subscribers.get(tournament_id, {}).values())
        for handler in handlers:
            self._deliver(tournament_id, handler, snapshot)

    def latest(self, tournament_id: str) -> Optional[Snapshot]:
        with self._lock:
            return self._latest.get(tournament_id)

    def subscriber_count(self, tournament_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(tournament_id, {}))

    def _deliver(self, tournament_id: str, handler: SnapshotHandler, snapshot: Snapshot) -> None:
        try:
            handler(snapshot)
        except Exception:
            logger.exception("snapshot handler failed tournament=%s", tournament_id)


class ParticipantCache:
    """Participant lists keyed by tournament id, refreshed through the feed."""

    def __init__(self, feed: ParticipantFeed) -> None:
        self._feed = feed
        # re-entrant: subscribing replays the latest snapshot into _store on this thread
        self._lock = threading.RLock()
        self._entries: Dict[str, Snapshot] = {}
        self._unsubscribers: Dict[str, Callable[[], None]] = {}

    def get(self, tournament_id: str, loader: Callable[[], Snapshot]) -> Snapshot:
        with self._lock:
            cached = self._entries.get(tournament_id)
        if cached is not None:
            return cached

        loaded = list(loader())
        with self._lock:
            if tournament_id not in self._entries:
                self._entries[tournament_id] = loaded
            if tournament_id not in self._unsubscribers:
                self._unsubscribers[tournament_id] = self._feed.subscribe(
                    tournament_id, lambda snapshot: self._store(tournament_id, snapshot)
                )
            return self._entries[tournament_id]

    def invalidate(self, tournament_id: str) -> None:
        with self._lock:
            unsubscribe = self._unsubscribers.pop(tournament_id, None)
            self._entries.pop(tournament_id, None)
        if unsubscribe is not None:
            unsubscribe()

    def clear(self) -> None:
        with self._lock:
            tournament_ids = list(self._unsubscribers)
        for tournament_id in tournament_ids:
            self.invalidate(tournament_id)
        with self._lock:
            self._entries.clear()

    def _store(self, tournament_id: str, snapshot: Snapshot) -> None:
        with self._lock:
            self._entries[tournament_id] = list(snapshot)


participant_feed = ParticipantFeed()
participant_cache = ParticipantCache(participant_feed)
