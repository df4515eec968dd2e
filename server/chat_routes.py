"""POST /chat: run an agent and stream its events as SSE."""

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from helixrun.errors import BuildError
from helixrun.runner import DEFAULT_USER_ID, Runner
from server.stream import SSE_HEADERS, error_frame, sse_frames

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    """request body for a chat run."""

    agent_id: str = ""
    message: str = ""
    user_id: str | None = None
    session_id: str | None = None


def get_runner(request: Request) -> Runner:
    return request.app.state.runner


async def _single_frame(frame: str):
    yield frame


@router.post("/chat")
async def chat(body: ChatRequest, request: Request) -> StreamingResponse:
    """Stream one agent run.

    Build failures are reported as a single error frame on an otherwise
    empty stream.
    """
    if not body.agent_id:
        raise HTTPException(status_code=400, detail="agent_id is required")
    if not body.message:
        raise HTTPException(status_code=400, detail="message is required")

    runner = get_runner(request)
    try:
        events = await runner.run(
            body.agent_id,
            body.user_id or DEFAULT_USER_ID,
            body.session_id,
            body.message,
        )
    except BuildError as e:
        logger.warning("build agent %r failed: %s", body.agent_id, e)
        return StreamingResponse(
            _single_frame(error_frame(str(e))),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    headers = {**SSE_HEADERS}
    if events.session is not None:
        headers["X-Session-Id"] = events.session.id
    return StreamingResponse(
        sse_frames(events, request.is_disconnected),
        media_type="text/event-stream",
        headers=headers,
    )
