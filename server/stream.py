"""Server-sent events transport.

One `data: <json>` frame per projected event, handed to the response as
soon as it is produced.
"""

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from helixrun.projection import build_ui_event
from helixrun.runner import EventStream

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def encode_frame(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def error_frame(message: str) -> str:
    """Frame used when no event can carry the failure."""
    return encode_frame({"type": "error", "error": {"message": message}})


async def sse_frames(
    events: EventStream,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
) -> AsyncIterator[str]:
    """Project and encode each event in order.

    Stops without writing once the client has gone. A projection or
    encoding failure ends the stream with a single error frame. The event
    stream is always closed on exit, which stops its producer.
    """
    try:
        async for event in events:
            if is_disconnected is not None and await is_disconnected():
                logger.debug("client disconnected, stopping stream at event %s", event.id)
                return
            try:
                ui_event = build_ui_event(event)
                frame = encode_frame({"type": ui_event.type, "event": ui_event.to_wire()})
            except Exception as e:
                logger.exception("failed to encode event %s", event.id)
                yield error_frame(f"failed to encode event: {e}")
                return
            yield frame
    except Exception as e:
        logger.exception("event stream failed")
        yield error_frame(str(e))
    finally:
        await events.aclose()
