"""
Like coordinator: the only writer of "does this user like this article".

A coordinator is scoped to one session (one authenticated uid, or an
anonymous visitor). It keeps the user's like set in Firestore and the
article's aggregate counter in the Realtime Database in step, applies
optimistic local state while a toggle is in flight, compensates when one of
the two writes fails, and derives the ranked article list from live counter
values.

The two stores are updated independently, so consistency between them is
best effort. If the process dies between the two writes nothing repairs the
difference.
"""

import asyncio
import logging
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable, Dict, Iterable, List, Mapping, Optional, Set

from firebase_admin import exceptions as firebase_exceptions
from google.api_core import exceptions as gcp_exceptions

from app.exceptions import (
    ArticleNotFoundError,
    AuthRequiredError,
    LikeError,
    PersistenceError,
    TransientStoreError,
)
from app.models.article import Article
from app.services.counter_store import CounterStore, counter_store, seed_value
from app.services.firebase_service import FirebaseService, firebase_service
from app.services.like_set_service import LikeSetService, like_set_service

logger = logging.getLogger(__name__)


class LikeState(str, Enum):
    UNLIKED = "unliked"
    LIKED = "liked"
    PENDING = "pending"


@dataclass
class RankedArticle:
    article: Article
    favorite_count: int
    liked_by_me: bool
    state: LikeState


@dataclass
class ToggleResult:
    slug: str
    liked: bool
    count: int
    # False when the toggle was ignored because another one was in flight
    accepted: bool = True


def sort_articles(
    articles: Iterable[Article],
    user_liked_slugs: Set[str],
    counts: Optional[Mapping[str, int]] = None,
) -> List[Article]:
    """
    Rank articles: liked by the current user first, then by favorite count
    descending. Ties keep their input order.
    """
    counts = counts or {}

    def _key(article: Article):
        count = counts.get(article.slug, seed_value(article.baseline_favorite_count))
        return (article.slug not in user_liked_slugs, -count)

    return sorted(articles, key=_key)


class LikeCoordinator:
    """Per-session like state, toggles and ranked views"""

    def __init__(
        self,
        user_id: Optional[str],
        counters: Optional[CounterStore] = None,
        like_set: Optional[LikeSetService] = None,
        articles: Optional[FirebaseService] = None,
    ):
        self.user_id = user_id
        self.counters = counters or counter_store
        self.like_set = like_set or like_set_service
        self.articles = articles or firebase_service

        self._articles: List[Article] = []
        self._by_slug: Dict[str, Article] = {}
        self._liked: Set[str] = set()
        self._counts: Dict[str, int] = {}
        self._live_seq: Dict[str, int] = {}
        self._pending: Dict[str, bool] = {}
        self._subscriptions: Dict[str, asyncio.Task] = {}
        self._changed = asyncio.Event()

        self.live = False
        self.started = False
        self.closed = False

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self, live: bool = True) -> "LikeCoordinator":
        """Load the article list and like set; subscribe to counters if live"""
        if self.started:
            if live and not self.live and not self.closed:
                self.live = True
                self._sync_subscriptions()
            return self
        self.started = True
        self.live = live
        await self.reload_liked_slugs()
        await self.reload_articles()
        return self

    async def close(self) -> None:
        """Cancel every counter subscription and wake up watchers"""
        if self.closed:
            return
        self.closed = True
        tasks = list(self._subscriptions.values())
        self._subscriptions.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._notify()

    async def __aenter__(self) -> "LikeCoordinator":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def _notify(self) -> None:
        event, self._changed = self._changed, asyncio.Event()
        event.set()

    # ------------------------------------------------------------------
    # loading
    # ------------------------------------------------------------------

    async def reload_liked_slugs(self) -> None:
        if self.user_id is None:
            liked: Set[str] = set()
        else:
            liked = await self.like_set.get_liked_slugs(self.user_id)
        # in-flight toggles keep their optimistic value
        for slug, target in self._pending.items():
            if target:
                liked.add(slug)
            else:
                liked.discard(slug)
        self._liked = liked
        self._notify()

    async def reload_articles(self) -> None:
        articles = await self.articles.list_published_articles()
        self._articles = list(articles)
        self._by_slug = {a.slug: a for a in self._articles}

        fresh = [a for a in self._articles if a.slug not in self._counts]
        values = await asyncio.gather(
            *(self.counters.get(a.slug, a.baseline_favorite_count) for a in fresh),
            return_exceptions=True,
        )
        for article, value in zip(fresh, values):
            if isinstance(value, Exception):
                logger.warning("Using baseline for %s: %s", article.slug, value)
                value = seed_value(article.baseline_favorite_count)
            self._counts[article.slug] = value

        if self.live and not self.closed:
            self._sync_subscriptions()
        self._notify()

    def _sync_subscriptions(self) -> None:
        for slug in list(self._subscriptions):
            if slug not in self._by_slug:
                self._subscriptions.pop(slug).cancel()
        for article in self._articles:
            if article.slug not in self._subscriptions:
                self._subscriptions[article.slug] = asyncio.create_task(
                    self._follow(article), name=f"counter:{article.slug}")

    async def _follow(self, article: Article) -> None:
        slug = article.slug
        try:
            async with aclosing(self.counters.observe(slug, article.baseline_favorite_count)) as stream:
                async for value in stream:
                    self._live_seq[slug] = self._live_seq.get(slug, 0) + 1
                    if self._counts.get(slug) != value:
                        self._counts[slug] = value
                        self._notify()
        except TransientStoreError as e:
            logger.warning("Live counter for %s stopped: %s", slug, e)

    async def _resolve(self, slug: str) -> Article:
        article = self._by_slug.get(slug)
        if article is not None:
            return article
        try:
            article = await self.articles.get_article_by_slug(slug)
        except (gcp_exceptions.GoogleAPICallError, firebase_exceptions.FirebaseError) as e:
            raise TransientStoreError(f"Could not load article {slug}: {e}", slug=slug) from e
        if article is None or not article.is_published:
            raise ArticleNotFoundError(slug=slug)
        return article

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def is_liked_by_me(self, slug: str) -> bool:
        return slug in self._liked

    def state_of(self, slug: str) -> LikeState:
        if slug in self._pending:
            return LikeState.PENDING
        return LikeState.LIKED if slug in self._liked else LikeState.UNLIKED

    def count_of(self, slug: str) -> int:
        if slug in self._counts:
            return self._counts[slug]
        article = self._by_slug.get(slug)
        return seed_value(article.baseline_favorite_count) if article else 0

    def get_article(self, slug: str) -> Optional[Article]:
        return self._by_slug.get(slug)

    def sorted_articles(self) -> List[RankedArticle]:
        ordered = sort_articles(self._articles, self._liked, self._counts)
        return [
            RankedArticle(
                article=a,
                favorite_count=self.count_of(a.slug),
                liked_by_me=a.slug in self._liked,
                state=self.state_of(a.slug),
            )
            for a in ordered
        ]

    async def watch(self) -> AsyncIterator[List[RankedArticle]]:
        """Yield the ranked list now and again after every change"""
        while not self.closed:
            changed = self._changed
            yield self.sorted_articles()
            await changed.wait()

    async def live_count(self, slug: str) -> AsyncIterator[int]:
        """Live favorite count of one article"""
        article = await self._resolve(slug)
        async with aclosing(self.counters.observe(slug, article.baseline_favorite_count)) as stream:
            async for value in stream:
                yield value

    # ------------------------------------------------------------------
    # toggling
    # ------------------------------------------------------------------

    async def toggle_like(self, slug: str) -> ToggleResult:
        """
        Flip the current user's like on ``slug``.

        Raises:
            AuthRequiredError: anonymous session, nothing is written
            ArticleNotFoundError: unknown or unpublished slug
            TransientStoreError / PersistenceError: a write failed; local
                state has been reverted and the successful side compensated
        """
        if self.user_id is None:
            raise AuthRequiredError(slug=slug)

        if slug in self._pending:
            logger.info("Ignoring toggle of %s by %s: already pending", slug, self.user_id)
            return ToggleResult(slug=slug, liked=self._pending[slug],
                                count=self.count_of(slug), accepted=False)

        # claimed before the first await so a second toggle sees it
        self._pending[slug] = slug not in self._liked
        try:
            return await self._run_toggle(slug)
        finally:
            self._pending.pop(slug, None)
            self._notify()

    async def _run_toggle(self, slug: str) -> ToggleResult:
        article = await self._resolve(slug)

        # The cached set may be stale if the user liked elsewhere since
        # the session loaded; the stored membership decides the target.
        stored = await self.like_set.get_liked_slugs(self.user_id)
        currently_liked = slug in stored
        target = not currently_liked
        self._pending[slug] = target

        delta = 1 if target else -1
        previous_count = self.count_of(slug)
        optimistic_count = max(0, previous_count + delta)
        seq_before = self._live_seq.get(slug, 0)

        self._set_liked(slug, target)
        self._counts[slug] = optimistic_count
        self._notify()

        membership_result, counter_result = await asyncio.gather(
            self.like_set.set_membership(self.user_id, slug, target),
            self.counters.apply_delta(slug, delta, article.baseline_favorite_count),
            return_exceptions=True,
        )
        membership_error = membership_result if isinstance(membership_result, BaseException) else None
        counter_error = counter_result if isinstance(counter_result, BaseException) else None
        live_moved = self._live_seq.get(slug, 0) != seq_before

        if membership_error is None and counter_error is None:
            if not live_moved:
                self._counts[slug] = counter_result
            logger.info("%s %s %s (count %s)", self.user_id,
                        "liked" if target else "unliked", slug, counter_result)
            return ToggleResult(slug=slug, liked=target, count=self.count_of(slug))

        await self._compensate(slug, target, delta, article,
                               membership_ok=membership_error is None,
                               counter_ok=counter_error is None)
        self._set_liked(slug, currently_liked)
        if not live_moved and self._counts.get(slug) == optimistic_count:
            self._counts[slug] = previous_count
        raise self._classify(slug, membership_error, counter_error)

    def _set_liked(self, slug: str, liked: bool) -> None:
        if liked:
            self._liked.add(slug)
        else:
            self._liked.discard(slug)

    async def _compensate(self, slug: str, target: bool, delta: int, article: Article,
                          membership_ok: bool, counter_ok: bool) -> None:
        # Failures here leave the stores disagreeing; they are logged only.
        if membership_ok:
            try:
                await self.like_set.set_membership(self.user_id, slug, not target)
            except Exception as e:
                logger.error("Could not undo like set change %s/%s: %s", self.user_id, slug, e)
        if counter_ok:
            # A decrement clamped at 0 is still undone with +1, which leaves
            # the counter one above the number of likers.
            try:
                await self.counters.apply_delta(slug, -delta, article.baseline_favorite_count)
            except Exception as e:
                logger.error("Could not undo counter change on %s: %s", slug, e)

    @staticmethod
    def _classify(slug: str, *errors: Optional[BaseException]) -> LikeError:
        failures = [e for e in errors if e is not None]
        for e in failures:
            if isinstance(e, PersistenceError):
                return e
        for e in failures:
            if isinstance(e, LikeError):
                return e
        err = TransientStoreError(f"Like update failed: {failures[0]}", slug=slug)
        err.__cause__ = failures[0]
        return err


class LikeSessionRegistry:
    """
    Coordinators shared by the requests and streams of one user.

    A session exists only while something holds it: concurrent requests of
    the same uid share one coordinator, so a toggle sent while another is in
    flight is still ignored, and the last holder to leave closes it along
    with its counter subscriptions.
    """

    def __init__(self, factory: Optional[Callable[[Optional[str]], LikeCoordinator]] = None):
        self._factory = factory or LikeCoordinator
        self._sessions: Dict[str, LikeCoordinator] = {}
        self._holders: Dict[str, int] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    @asynccontextmanager
    async def session(self, user_id: str, live: bool = False):
        """
        Hold the user's coordinator for the duration of the block.

        Only ``live`` holders (SSE streams) make it subscribe to counters;
        once subscribed it stays live until it is closed.
        """
        coordinator = await self._acquire(user_id, live)
        try:
            yield coordinator
        finally:
            await self._release(user_id, coordinator)

    async def _acquire(self, user_id: str, live: bool) -> LikeCoordinator:
        async with self._lock:
            coordinator = self._sessions.get(user_id)
            if coordinator is None or coordinator.closed:
                coordinator = self._factory(user_id)
                await coordinator.start(live=live)
                self._sessions[user_id] = coordinator
                self._holders[user_id] = 0
                logger.info("Opened like session for %s", user_id)
            elif live and not coordinator.live:
                await coordinator.start(live=True)
            self._holders[user_id] += 1
            return coordinator

    async def _release(self, user_id: str, coordinator: LikeCoordinator) -> None:
        async with self._lock:
            if self._sessions.get(user_id) is not coordinator:
                # ended while held
                return
            self._holders[user_id] -= 1
            if self._holders[user_id] > 0:
                return
            del self._sessions[user_id]
            del self._holders[user_id]
        await coordinator.close()
        logger.info("Closed like session for %s", user_id)

    @asynccontextmanager
    async def anonymous(self, live: bool = False):
        """Short-lived coordinator for a visitor without identity"""
        coordinator = self._factory(None)
        try:
            await coordinator.start(live=live)
            yield coordinator
        finally:
            await coordinator.close()

    async def end(self, user_id: str) -> bool:
        """Close the user's session now, even if requests still hold it"""
        async with self._lock:
            coordinator = self._sessions.pop(user_id, None)
            self._holders.pop(user_id, None)
        if coordinator is None:
            return False
        await coordinator.close()
        logger.info("Ended like session for %s", user_id)
        return True

    async def articles_changed(self) -> None:
        """Reload the article list of every open session"""
        for user_id, coordinator in list(self._sessions.items()):
            try:
                await coordinator.reload_articles()
            except Exception as e:
                logger.warning("Could not refresh articles for session %s: %s", user_id, e)

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._holders.clear()
        await asyncio.gather(*(c.close() for c in sessions), return_exceptions=True)


# Global session registry
like_sessions = LikeSessionRegistry()
