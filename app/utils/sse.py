"""
Server-Sent Events helpers
"""

import asyncio
import json
from typing import Any, AsyncIterator, Callable, Optional

from app.config import settings
from app.exceptions import LikeError


def format_event(data: Any) -> str:
    """One SSE `data:` event carrying JSON"""
    payload = json.dumps(data, ensure_ascii=False, default=str)
    return f"data: {payload}\n\n"


async def event_stream(
    source: AsyncIterator[Any],
    encode: Callable[[Any], Any] = lambda item: item,
    keepalive: Optional[float] = None,
) -> AsyncIterator[str]:
    """
    Relay items from `source` as SSE events, with keep-alive comments while
    the source is idle. The source is always closed when the client goes away.
    """
    keepalive = keepalive or settings.SSE_KEEPALIVE_SECONDS
    iterator = source.__aiter__()
    pending = asyncio.ensure_future(iterator.__anext__())
    yield ": stream open\n\n"
    try:
        while True:
            done, _ = await asyncio.wait({pending}, timeout=keepalive)
            if not done:
                yield ": keep-alive\n\n"
                continue
            try:
                item = pending.result()
            except StopAsyncIteration:
                break
            except LikeError as e:
                yield format_event({"error": e.code, "detail": e.public_message})
                break
            yield format_event(encode(item))
            pending = asyncio.ensure_future(iterator.__anext__())
    finally:
        pending.cancel()
        await asyncio.gather(pending, return_exceptions=True)
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
