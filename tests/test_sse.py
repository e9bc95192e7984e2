import asyncio

import pytest

from app.exceptions import TransientStoreError
from app.utils.sse import event_stream, format_event


def test_format_event_keeps_spanish_text():
    assert format_event({"detail": "Artículo"}) == 'data: {"detail": "Artículo"}\n\n'


@pytest.mark.asyncio
async def test_event_stream_relays_items():
    async def source():
        yield 1
        yield 2

    events = [e async for e in event_stream(source(), encode=lambda n: {"count": n}, keepalive=5)]

    assert events == [
        ": stream open\n\n",
        'data: {"count": 1}\n\n',
        'data: {"count": 2}\n\n',
    ]


@pytest.mark.asyncio
async def test_event_stream_sends_keepalive_while_idle():
    async def source():
        await asyncio.sleep(0.2)
        yield "tarde"

    events = [e async for e in event_stream(source(), keepalive=0.05)]

    assert ": keep-alive\n\n" in events
    assert events[-1] == 'data: "tarde"\n\n'


@pytest.mark.asyncio
async def test_event_stream_reports_like_errors():
    async def source():
        yield 1
        raise TransientStoreError("offline")

    events = [e async for e in event_stream(source(), keepalive=5)]

    assert events[-1] == format_event({
        "error": "transient_store_error",
        "detail": TransientStoreError.public_message,
    })


@pytest.mark.asyncio
async def test_event_stream_closes_source_on_disconnect():
    closed = []

    async def source():
        try:
            yield 1
            await asyncio.Event().wait()
        finally:
            closed.append(True)

    stream = event_stream(source(), keepalive=5)
    assert await stream.__anext__() == ": stream open\n\n"
    assert await stream.__anext__() == "data: 1\n\n"
    await asyncio.sleep(0)

    await stream.aclose()

    assert closed == [True]
