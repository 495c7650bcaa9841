# api/v1/events.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
import asyncio
import logging

from dependencies.auth import get_current_session
from models.event import Event
from models.session import Session
from services.events import ALL_TOPICS, get_event_bus

router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)

KEEP_ALIVE_SECONDS = 15

@router.get("/stream")
async def stream_events(request: Request, session: Session = Depends(get_current_session)):
    """
    Server-sent events telling the client which of its views to refresh
    ("invitations", "connections", "affirmations", "persons").
    """
    queue: asyncio.Queue = asyncio.Queue()

    def enqueue(event: Event):
        if session.user_id in event.user_ids:
            queue.put_nowait(event)

    def close():
        queue.put_nowait(None)

    unsubscribe = get_event_bus().subscribe(ALL_TOPICS, enqueue, owner=str(session.user_id), on_reset=close)
    logger.info(f"Event stream opened for {session.user_id}")

    async def event_source():
        try:
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEP_ALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                if event is None:
                    # subscription dropped at sign-out
                    break
                yield f"event: {event.topic}\ndata: {event.model_dump_json()}\n\n"
        finally:
            unsubscribe()
            logger.info(f"Event stream closed for {session.user_id}")

    return StreamingResponse(event_source(), media_type="text/event-stream")
