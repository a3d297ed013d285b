"""
Periodic eviction of inactive participants.

Every `interval` seconds the Reaper asks the PresenceTracker for participants
idle longer than the threshold, writes a departure notice for each one and
deletes it. One participant failing does not stop the others; the outcome of
every sweep is collected in a SweepResult and logged.

The loop is an asyncio task owned by the application lifespan: start() spawns
it, stop() lets the in-flight sweep finish within a grace period and cancels
it otherwise.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .exceptions import StoreError
from .models import DEPARTED_AT, LEAVE_TEXT, Message, now_millis
from .presence import PresenceTracker
from .store import MESSAGES, PARTICIPANTS, Store

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    started_at: int
    removed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    # expired at query time but gone before eviction
    skipped: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class Reaper:
    def __init__(self, store: Store, presence: PresenceTracker, threshold_ms: int = 10_000,
                 interval: float = 15.0, clock: Callable[[], int] = now_millis):
        self.store = store
        self.presence = presence
        self.threshold_ms = threshold_ms
        self.interval = interval
        self.clock = clock
        self.last_result: Optional[SweepResult] = None
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> SweepResult:
        """One tick. Raises StoreError only if the expiry query itself fails."""
        now = self.clock()
        result = SweepResult(started_at=now)
        expired = await self.presence.list_expired(self.threshold_ms, now)
        for participant in expired:
            try:
                evicted = await self._evict(participant.name, now)
            except StoreError as e:
                result.failed[participant.name] = e.message
                logger.error('could not evict %s: %s', participant.name, e.message)
            else:
                if evicted:
                    result.removed.append(participant.name)
                else:
                    result.skipped.append(participant.name)
        self.last_result = result
        if result.removed or result.failed:
            logger.info('sweep removed %d participant(s), %d failure(s)', len(result.removed), len(result.failed))
        return result

    async def _evict(self, name: str, now: int) -> bool:
        """Announce and delete `name`. Returns False if it was already gone."""
        participant = await self.store.find_one(PARTICIPANTS, {'name': name})
        if participant is None:
            logger.debug('%s was already gone', name)
            return False
        # departedAt marks a notice written by an earlier tick whose delete failed
        if not participant.get(DEPARTED_AT):
            notice = Message.status(name, LEAVE_TEXT, now)
            await self.store.insert_one(MESSAGES, notice.to_document())
            await self.store.update_one(PARTICIPANTS, {'name': name}, {DEPARTED_AT: now})
        deleted = await self.store.delete_one(PARTICIPANTS, {'name': name})
        if not deleted:
            logger.debug('%s was already gone', name)
        return bool(deleted)

    def start(self):
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name='reaper')
        logger.info('reaper started (every %.1fs, threshold %dms)', self.interval, self.threshold_ms)

    async def stop(self, grace: float = 5.0):
        if not self.running:
            return
        self._stopping.set()
        try:
            await asyncio.wait_for(asyncio.shield(self._task), timeout=grace)
        except asyncio.TimeoutError:
            logger.warning('reaper sweep still running after %.1fs, cancelling', grace)
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info('reaper stopped')

    async def _run(self):
        while True:
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self.sweep()
            except StoreError as e:
                # abandon this tick, the next interval tries again
                logger.error('sweep abandoned: %s', e.message)
            except Exception:
                logger.exception('sweep crashed')
