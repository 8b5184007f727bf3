"""Events controller — live upload progress as a server-sent event stream."""

from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from landrop.api.events.services.broadcaster import EventBroadcaster
from landrop.dependencies import get_broadcaster

router = APIRouter(tags=["Events"])


async def stream_events(broadcaster: EventBroadcaster) -> AsyncIterator[str]:
    """Yield one SSE frame per event until the broadcaster closes.

    The subscription is released when the stream ends or when the client goes
    away and the response task is cancelled.
    """
    with broadcaster.subscribe() as subscription:
        async for event in subscription:
            yield f"data: {event.to_json()}\n\n"


@router.get("/events")
async def events(broadcaster: EventBroadcaster = Depends(get_broadcaster)):
    return StreamingResponse(
        stream_events(broadcaster),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
