import asyncio
import threading
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from firebase_admin import db as firebase_db, exceptions as firebase_exceptions

from app.exceptions import TransientStoreError
from app.services.counter_store import CounterStore, merge_delta, seed_value


@pytest.fixture
def counter_ref():
    return MagicMock()


@pytest.fixture
def mock_firebase(counter_ref):
    firebase = MagicMock()
    firebase.rtdb_reference.return_value = counter_ref
    return firebase


@pytest.fixture
def store(mock_firebase):
    return CounterStore(firebase=mock_firebase, root="article_favorites")


def test_seed_value_clamps_baseline():
    assert seed_value(10) == 10
    assert seed_value(-3) == 0
    assert seed_value(None) == 0


def test_merge_delta():
    assert merge_delta(None, 1, 10) == 11
    assert merge_delta(None, -1, 10) == 9
    assert merge_delta(4, 1, 10) == 5
    assert merge_delta(0, -1, 10) == 0
    assert merge_delta(None, 1, -5) == 1


@pytest.mark.asyncio
async def test_get_falls_back_to_baseline(store, counter_ref, mock_firebase):
    counter_ref.get.return_value = None

    assert await store.get("importancia-semaforos", 95) == 95
    mock_firebase.rtdb_reference.assert_called_with("article_favorites/importancia-semaforos/count")


@pytest.mark.asyncio
async def test_get_returns_stored_value(store, counter_ref):
    counter_ref.get.return_value = 42

    assert await store.get("importancia-semaforos", 95) == 42


@pytest.mark.asyncio
async def test_apply_delta_seeds_absent_counter(store, counter_ref):
    counter_ref.transaction.side_effect = lambda merge: merge(None)

    assert await store.apply_delta("entendiendo-limites-velocidad", 1, fallback_baseline=10) == 11


@pytest.mark.asyncio
async def test_apply_delta_clamps_at_zero(store, counter_ref):
    counter_ref.transaction.side_effect = lambda merge: merge(0)

    assert await store.apply_delta("entendiendo-limites-velocidad", -1, fallback_baseline=10) == 0


@pytest.mark.asyncio
async def test_concurrent_decrements_never_go_negative(store, counter_ref):
    stored = {"count": 1}
    lock = threading.Lock()

    def transaction(merge):
        with lock:
            stored["count"] = merge(stored["count"])
            return stored["count"]

    counter_ref.transaction.side_effect = transaction

    results = await asyncio.gather(
        *(store.apply_delta("importancia-semaforos", -1, fallback_baseline=95) for _ in range(4)))

    assert stored["count"] == 0
    assert sorted(results) == [0, 0, 0, 0]


@pytest.mark.asyncio
async def test_apply_delta_rejects_other_deltas(store, counter_ref):
    with pytest.raises(ValueError):
        await store.apply_delta("entendiendo-limites-velocidad", 2)

    counter_ref.transaction.assert_not_called()


@pytest.mark.asyncio
async def test_apply_delta_rejects_invalid_keys(store):
    with pytest.raises(ValueError):
        await store.apply_delta("bad.slug", 1)


@pytest.mark.asyncio
async def test_apply_delta_contention_is_transient(store, counter_ref):
    counter_ref.transaction.side_effect = firebase_db.TransactionAbortedError("too many retries")

    with pytest.raises(TransientStoreError) as exc_info:
        await store.apply_delta("importancia-semaforos", 1)

    assert exc_info.value.slug == "importancia-semaforos"


@pytest.mark.asyncio
async def test_apply_delta_network_failure_is_transient(store, counter_ref):
    counter_ref.transaction.side_effect = firebase_exceptions.UnavailableError("offline")

    with pytest.raises(TransientStoreError):
        await store.apply_delta("importancia-semaforos", -1)


@pytest.mark.asyncio
async def test_observe_streams_distinct_values_and_unsubscribes(store, counter_ref):
    registration = MagicMock()
    callbacks = []

    def listen(callback):
        callbacks.append(callback)
        return registration

    counter_ref.listen.side_effect = listen

    stream = store.observe("importancia-semaforos", baseline=7)
    first = asyncio.ensure_future(stream.__anext__())
    for _ in range(100):
        if callbacks:
            break
        await asyncio.sleep(0.01)

    on_event = callbacks[0]
    on_event(SimpleNamespace(event_type="put", path="/", data=None))
    assert await asyncio.wait_for(first, timeout=1) == 7

    on_event(SimpleNamespace(event_type="put", path="/", data=12))
    on_event(SimpleNamespace(event_type="put", path="/", data=12))
    on_event(SimpleNamespace(event_type="patch", path="/nested", data=99))
    on_event(SimpleNamespace(event_type="put", path="/", data=13))

    assert await asyncio.wait_for(stream.__anext__(), timeout=1) == 12
    assert await asyncio.wait_for(stream.__anext__(), timeout=1) == 13

    await stream.aclose()
    registration.close.assert_called_once()


@pytest.mark.asyncio
async def test_observe_cancelled_while_subscribing_still_unsubscribes(store, counter_ref):
    registration = MagicMock()

    def slow_listen(callback):
        time.sleep(0.2)
        return registration

    counter_ref.listen.side_effect = slow_listen

    async def consume():
        async for value in store.observe("importancia-semaforos", baseline=7):
            return value

    task = asyncio.create_task(consume())
    await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    counter_ref.listen.assert_called_once()
    registration.close.assert_called_once()


@pytest.mark.asyncio
async def test_observe_subscription_failure_is_transient(store, counter_ref):
    counter_ref.listen.side_effect = firebase_exceptions.UnavailableError("offline")

    with pytest.raises(TransientStoreError):
        await store.observe("importancia-semaforos").__anext__()


@pytest.mark.asyncio
async def test_on_article_deleted_removes_entry(store, counter_ref, mock_firebase):
    assert await store.on_article_deleted("importancia-semaforos") is True

    mock_firebase.rtdb_reference.assert_called_with("article_favorites/importancia-semaforos")
    counter_ref.delete.assert_called_once()


@pytest.mark.asyncio
async def test_on_article_deleted_is_best_effort(store, counter_ref):
    counter_ref.delete.side_effect = firebase_exceptions.UnavailableError("offline")

    assert await store.on_article_deleted("importancia-semaforos") is False
