"""
In-memory abuse tracker adapter - Implements AbuseTracker protocol.

Tracks counted failures per actor and turns them into temporary blocks.
State is process-local and lost on restart.

Concurrency Design:
-------------------
Every actor has its own entry with its own lock. The registry lock only
guards the OrderedDict itself and is never held while waiting on an
entry lock, so work for one actor never waits on another actor's.

An entry removed from the registry (on success or eviction) is flagged
``removed`` while both locks are held; a caller that acquired a stale
entry sees the flag and retries against the live registry, so no
update is ever applied to a detached record.

Idle records are swept whenever a new actor is admitted and the sweep
interval has elapsed. Storage is also bounded by ``max_actors``: on
overflow idle records are swept first, then the least recently used
non-blocked records, then (only if every record is a live block) the
oldest blocks.
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field

from synapse_signup.domain.ports import AbuseDecision, Actor

logger = logging.getLogger(__name__)


@dataclass
class AttemptRecord:
    """Failure bookkeeping for a single actor."""

    failure_count: int = 0
    blocked_until: float | None = None
    last_failure: float | None = None

    def is_blocked(self, now: float) -> bool:
        return self.blocked_until is not None and now < self.blocked_until

    def is_idle(self, now: float, window: float) -> bool:
        """No live block and no failure inside the counting window."""
        if self.is_blocked(now):
            return False
        return self.last_failure is None or now - self.last_failure > window


@dataclass
class _Entry:
    record: AttemptRecord = field(default_factory=AttemptRecord)
    lock: threading.Lock = field(default_factory=threading.Lock)
    removed: bool = False


class InMemoryAbuseTracker:
    """
    Implements AbuseTracker protocol with a bounded in-memory map.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        max_failures: int = 5,
        block_seconds: float = 6 * 60 * 60,
        failure_window_seconds: float = 24 * 60 * 60,
        max_actors: int = 10_000,
        sweep_interval_seconds: float = 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize tracker.

        Args:
            max_failures: Counted failures that trigger a block
            block_seconds: How long a block lasts
            failure_window_seconds: Failures further apart than this restart the count
            max_actors: Upper bound on tracked actors
            sweep_interval_seconds: Minimum time between sweeps of idle records
            clock: Monotonic time source in seconds
        """
        if max_failures < 1:
            raise ValueError("max_failures must be at least 1")
        if max_actors < 1:
            raise ValueError("max_actors must be at least 1")
        self._max_failures = max_failures
        self._block_seconds = block_seconds
        self._window = failure_window_seconds
        self._max_actors = max_actors
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._next_sweep = clock() + sweep_interval_seconds
        self._records: OrderedDict[Actor, _Entry] = OrderedDict()
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._records)

    def check(self, actor: Actor) -> AbuseDecision:
        entry = self._acquire(actor, create=False)
        if entry is None:
            return AbuseDecision.ALLOWED
        try:
            record = entry.record
            now = self._clock()
            if record.is_blocked(now):
                return AbuseDecision.BLOCKED
            if record.blocked_until is not None:
                logger.info("Block expired for %s", actor)
                record.blocked_until = None
            return AbuseDecision.ALLOWED
        finally:
            entry.lock.release()

    def record_failure(self, actor: Actor) -> AbuseDecision:
        entry = self._acquire(actor, create=True)
        assert entry is not None
        try:
            record = entry.record
            now = self._clock()
            if record.is_blocked(now):
                # Already blocked: do not extend the block
                return AbuseDecision.BLOCKED

            if record.last_failure is not None and now - record.last_failure > self._window:
                record.failure_count = 0
            record.blocked_until = None
            record.failure_count += 1
            record.last_failure = now

            if record.failure_count >= self._max_failures:
                record.blocked_until = now + self._block_seconds
                record.failure_count = 0
                logger.warning(
                    "Blocking %s for %d seconds after %d failures",
                    actor,
                    self._block_seconds,
                    self._max_failures,
                )
                return AbuseDecision.BLOCKED
            return AbuseDecision.ALLOWED
        finally:
            entry.lock.release()

    def record_success(self, actor: Actor) -> None:
        entry = self._acquire(actor, create=False)
        if entry is None:
            return
        try:
            with self._registry_lock:
                self._remove(actor, entry)
        finally:
            entry.lock.release()

    def _acquire(self, actor: Actor, create: bool) -> _Entry | None:
        """Return the actor's live entry with its lock held."""
        while True:
            with self._registry_lock:
                entry = self._records.get(actor)
                if entry is None:
                    if not create:
                        return None
                    entry = _Entry()
                    self._records[actor] = entry
                    self._sweep_if_due_locked(keep=actor)
                    if len(self._records) > self._max_actors:
                        self._evict_locked(keep=actor)
                else:
                    self._records.move_to_end(actor)
            entry.lock.acquire()
            if not entry.removed:
                return entry
            entry.lock.release()

    def _remove(self, actor: Actor, entry: _Entry) -> None:
        # Caller holds both the registry lock and entry.lock
        entry.removed = True
        if self._records.get(actor) is entry:
            del self._records[actor]

    def _try_remove(self, actor: Actor, entry: _Entry) -> bool:
        # Caller holds the registry lock; never block on an entry lock here
        if not entry.lock.acquire(blocking=False):
            return False
        try:
            self._remove(actor, entry)
        finally:
            entry.lock.release()
        return True

    def _sweep_if_due_locked(self, keep: Actor) -> None:
        now = self._clock()
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_interval
        swept = self._sweep_locked(now, keep=keep)
        if swept:
            logger.debug("Swept %d idle abuse records", swept)

    def _sweep_locked(self, now: float, keep: Actor) -> int:
        idle = [
            (actor, entry)
            for actor, entry in self._records.items()
            if actor != keep and entry.record.is_idle(now, self._window)
        ]
        return sum(1 for actor, entry in idle if self._try_remove(actor, entry))

    def _evict_locked(self, keep: Actor) -> None:
        now = self._clock()
        swept = self._sweep_locked(now, keep=keep)
        if swept:
            logger.debug("Swept %d idle abuse records", swept)

        overflow = len(self._records) - self._max_actors
        if overflow <= 0:
            return

        # Least recently used first, live blocks last
        candidates = [actor for actor in self._records if actor != keep]
        candidates.sort(key=lambda actor: self._records[actor].record.is_blocked(now))
        evicted = 0
        for actor in candidates:
            if evicted >= overflow:
                break
            if self._try_remove(actor, self._records[actor]):
                evicted += 1
        logger.warning("Abuse tracker at capacity, evicted %d records", evicted)
