"""
Aggregate favorite counters kept in the Firebase Realtime Database.

Layout: ``{COUNTER_ROOT}/{slug}/count -> int``. A missing key means the
counter was never touched; readers fall back to the article's baseline
``favoriteCount``. All writes go through RTDB transactions so concurrent
likes from different clients never lose an update and the value never drops
below zero.
"""

import asyncio
import logging
import re
import threading
from typing import AsyncIterator, Optional

from firebase_admin import db as firebase_db, exceptions as firebase_exceptions

from app.config import settings
from app.exceptions import TransientStoreError
from app.services.firebase_service import FirebaseService, firebase_service

logger = logging.getLogger(__name__)

# RTDB keys cannot contain . $ # [ ] /
_VALID_KEY = re.compile(r"^[^.$#\[\]/]+$")

_STORE_ERRORS = (firebase_exceptions.FirebaseError, OSError)


def seed_value(baseline: Optional[int]) -> int:
    """Value of a counter that does not exist yet"""
    return max(0, int(baseline or 0))


def merge_delta(current: Optional[int], delta: int, baseline: Optional[int]) -> int:
    """Merge function run inside the RTDB transaction"""
    start = seed_value(baseline) if current is None else int(current)
    return max(0, start + delta)


class CounterStore:
    """Per-article favorite counters with atomic deltas and live updates"""

    def __init__(self, firebase: Optional[FirebaseService] = None, root: Optional[str] = None):
        self.firebase = firebase or firebase_service
        self.root = (root or settings.COUNTER_ROOT).strip("/")

    def _entry_path(self, slug: str) -> str:
        if not slug or not _VALID_KEY.match(slug):
            raise ValueError(f"Invalid counter key: {slug!r}")
        return f"{self.root}/{slug}"

    def _count_ref(self, slug: str):
        return self.firebase.rtdb_reference(f"{self._entry_path(slug)}/count")

    async def get(self, slug: str, baseline: int = 0) -> int:
        """Current count, or the clamped baseline if the counter is absent"""
        ref = self._count_ref(slug)
        try:
            value = await asyncio.to_thread(ref.get)
        except _STORE_ERRORS as e:
            raise TransientStoreError(f"Could not read counter for {slug}: {e}", slug=slug) from e
        return seed_value(baseline) if value is None else max(0, int(value))

    async def apply_delta(self, slug: str, delta: int, fallback_baseline: int = 0) -> int:
        """
        Atomically add ``delta`` (+1 or -1) to the counter.

        An absent counter is seeded from ``max(0, fallback_baseline)`` before
        the delta is applied; the result is clamped at zero. The RTDB SDK
        retries the transaction on concurrent writes and gives up with
        ``TransactionAbortedError`` when contention persists.

        Returns:
            The committed value
        """
        if delta not in (1, -1):
            raise ValueError(f"delta must be +1 or -1, got {delta!r}")

        ref = self._count_ref(slug)

        def _merge(current):
            return merge_delta(current, delta, fallback_baseline)

        try:
            new_value = await asyncio.to_thread(ref.transaction, _merge)
        except firebase_db.TransactionAbortedError as e:
            logger.warning("Counter transaction for %s aborted after retries", slug)
            raise TransientStoreError(f"Counter contention on {slug}", slug=slug) from e
        except _STORE_ERRORS as e:
            raise TransientStoreError(f"Could not update counter for {slug}: {e}", slug=slug) from e

        logger.debug("Counter %s %+d -> %s", slug, delta, new_value)
        return int(new_value)

    async def observe(self, slug: str, baseline: int = 0) -> AsyncIterator[int]:
        """
        Live stream of the counter value.

        The RTDB listener is opened on first iteration and closed when the
        generator is closed or the consuming task is cancelled. The first
        value is the current count (or the clamped baseline); later values
        arrive whenever the stored count changes.
        """
        ref = self._count_ref(slug)
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        closed = threading.Event()
        seed = seed_value(baseline)

        def _on_event(event):
            # Runs on the SDK's listener thread
            if closed.is_set() or event.path != "/":
                return
            try:
                loop.call_soon_threadsafe(queue.put_nowait, event.data)
            except RuntimeError:
                # loop already closed during teardown
                pass

        registration = None
        listening = asyncio.ensure_future(asyncio.to_thread(ref.listen, _on_event))
        try:
            try:
                registration = await asyncio.shield(listening)
            except asyncio.CancelledError:
                # The SDK call keeps running on its thread; wait for the
                # registration so it can be closed below.
                closed.set()
                try:
                    registration = await listening
                except _STORE_ERRORS:
                    pass
                raise
            except _STORE_ERRORS as e:
                raise TransientStoreError(f"Could not subscribe to {slug}: {e}", slug=slug) from e
            logger.debug("Subscribed to counter %s", slug)

            last = None
            while True:
                data = await queue.get()
                value = seed if data is None else max(0, int(data))
                if value != last:
                    last = value
                    yield value
        finally:
            closed.set()
            if registration is not None:
                await asyncio.to_thread(registration.close)
                logger.debug("Unsubscribed from counter %s", slug)

    async def on_article_deleted(self, slug: str) -> bool:
        """Best-effort removal of a deleted article's counter"""
        try:
            ref = self.firebase.rtdb_reference(self._entry_path(slug))
            await asyncio.to_thread(ref.delete)
        except (ValueError, *_STORE_ERRORS) as e:
            logger.warning("Could not remove counter for deleted article %s: %s", slug, e)
            return False
        logger.info("Removed counter for deleted article %s", slug)
        return True


# Global counter store instance
counter_store = CounterStore()
