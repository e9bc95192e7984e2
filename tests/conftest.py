import asyncio
from typing import Dict, List, Optional, Set

import pytest

from app.models.article import Article, ArticleContent, ArticleStatus, firestore_article_to_model
from app.models.catalog import SAMPLE_ARTICLES
from app.models.user import User
from app.services.counter_store import merge_delta, seed_value
from app.services.like_coordinator import LikeCoordinator, LikeSessionRegistry


def make_article(slug: str, favorite_count: int = 0, status: str = "published") -> Article:
    return Article(
        article_id=f"id-{slug}",
        slug=slug,
        title=slug.replace("-", " ").title(),
        short_description="",
        category="Seguridad Vial",
        content=ArticleContent(introduction="Intro", points=["Uno"]),
        baseline_favorite_count=favorite_count,
        status=ArticleStatus(status),
    )


class FakeCounterStore:
    """In-memory counter store; `failures` holds one entry per apply_delta call (None = succeed)"""

    def __init__(self):
        self.values: Dict[str, int] = {}
        self.failures: List[Optional[Exception]] = []
        self.calls: List[tuple] = []
        self.deleted: List[str] = []
        self.gate: Optional[asyncio.Event] = None
        self._watchers: Dict[str, List[asyncio.Queue]] = {}

    async def get(self, slug: str, baseline: int = 0) -> int:
        return self.values.get(slug, seed_value(baseline))

    async def apply_delta(self, slug: str, delta: int, fallback_baseline: int = 0) -> int:
        self.calls.append((slug, delta))
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure
        value = merge_delta(self.values.get(slug), delta, fallback_baseline)
        self.set(slug, value)
        return value

    def set(self, slug: str, value: int) -> None:
        """Write a value as another client would"""
        self.values[slug] = value
        for queue in self._watchers.get(slug, []):
            queue.put_nowait(value)

    async def observe(self, slug: str, baseline: int = 0):
        queue: asyncio.Queue = asyncio.Queue()
        self._watchers.setdefault(slug, []).append(queue)
        try:
            yield self.values.get(slug, seed_value(baseline))
            while True:
                yield await queue.get()
        finally:
            self._watchers[slug].remove(queue)

    def watcher_count(self, slug: str) -> int:
        return len(self._watchers.get(slug, []))

    async def on_article_deleted(self, slug: str) -> bool:
        self.deleted.append(slug)
        self.values.pop(slug, None)
        return True


class FakeLikeSet:
    """In-memory like sets; `failures` holds one entry per set_membership call"""

    def __init__(self):
        self.sets: Dict[str, Set[str]] = {}
        self.failures: List[Optional[Exception]] = []
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def get_liked_slugs(self, user_id: str) -> Set[str]:
        return set(self.sets.get(user_id, set()))

    async def set_membership(self, user_id: str, slug: str, present: bool) -> None:
        self.calls.append((user_id, slug, present))
        if self.gate is not None:
            await self.gate.wait()
        if self.failures:
            failure = self.failures.pop(0)
            if failure is not None:
                raise failure
        liked = self.sets.setdefault(user_id, set())
        if present:
            liked.add(slug)
        else:
            liked.discard(slug)


class FakeArticleSource:
    def __init__(self, articles: List[Article]):
        self.articles = list(articles)

    async def list_published_articles(self) -> List[Article]:
        return [a for a in self.articles if a.is_published]

    async def get_article_by_slug(self, slug: str) -> Optional[Article]:
        return next((a for a in self.articles if a.slug == slug), None)


@pytest.fixture
def counters():
    return FakeCounterStore()


@pytest.fixture
def like_set():
    return FakeLikeSet()


@pytest.fixture
def sample_articles():
    return [firestore_article_to_model(doc, doc_id) for doc_id, doc in SAMPLE_ARTICLES.items()]


@pytest.fixture
def article_source(sample_articles):
    return FakeArticleSource(sample_articles)


@pytest.fixture
def make_coordinator(counters, like_set, article_source):
    async def _make(user_id: Optional[str] = "u1", live: bool = False) -> LikeCoordinator:
        coordinator = LikeCoordinator(
            user_id, counters=counters, like_set=like_set, articles=article_source)
        await coordinator.start(live=live)
        return coordinator

    return _make


@pytest.fixture
def sessions(counters, like_set, article_source):
    return LikeSessionRegistry(
        lambda uid: LikeCoordinator(uid, counters=counters, like_set=like_set, articles=article_source)
    )


@pytest.fixture
def reader():
    return User(uid="u1", username="Ana", email="ana@example.com")


@pytest.fixture
def admin():
    return User(uid="admin1", username="Admin", email="admin@example.com", is_admin=True)
