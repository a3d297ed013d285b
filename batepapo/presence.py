"""
Presence tracking over the participants collection.

A participant's liveness is its lastStatus timestamp (ms since epoch), set on
registration and refreshed by every heartbeat. Nothing here is scheduled; the
Reaper drives eviction.
"""
import logging
from typing import Callable, List, Optional

from .exceptions import NotFound
from .models import DEPARTED_AT, Participant, now_millis
from .store import PARTICIPANTS, Store

logger = logging.getLogger(__name__)


class PresenceTracker:
    def __init__(self, store: Store, clock: Callable[[], int] = now_millis):
        self.store = store
        self.clock = clock

    async def touch(self, name: Optional[str]) -> int:
        """Mark `name` as seen now. Returns the new lastStatus."""
        if not name:
            raise NotFound('participant name missing')
        now = self.clock()
        matched = await self.store.update_one(PARTICIPANTS, {'name': name}, {'lastStatus': now}, unset=[DEPARTED_AT])
        if not matched:
            raise NotFound(f'participant {name!r} not found')
        return now

    async def list_expired(self, threshold_ms: int, now: Optional[int] = None) -> List[Participant]:
        """Participants whose last heartbeat is strictly older than `threshold_ms`."""
        if now is None:
            now = self.clock()
        # now - lastStatus > threshold  <=>  lastStatus < now - threshold
        docs = await self.store.find(PARTICIPANTS, {'lastStatus': {'$lt': now - threshold_ms}})
        return [Participant.model_validate(doc) for doc in docs]
