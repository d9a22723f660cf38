import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from longpoll.models import ClientRegistry, Janitor, PollCoordinator, PollResult, PollStatus, PublishCoordinator, PublishOutcome
from longpoll.schemas import EventOut, PublishRequest
from longpoll.utilities import Settings, configure_logging, get_settings, make_ack, make_error
from longpoll.utilities.errors import register_exception_handlers

logger = logging.getLogger(__name__)

router = APIRouter()

# -------------- Utilities --------------
def require_client_id(client_id: str) -> str:
    if not client_id:
        raise HTTPException(status_code=400, detail="clientId is required")
    return client_id

async def wait_for_disconnect(request: Request, interval: float):
    while not await request.is_disconnected():
        await asyncio.sleep(interval)

async def poll_until_disconnect(request: Request, client_id: str) -> Optional[PollResult]:
    """
    Run the poll, cancelling it if the HTTP client goes away first.
    Returns None for an abandoned poll.
    """
    state = request.app.state
    poll_task = asyncio.ensure_future(state.poller.poll(client_id))
    watch_task = asyncio.ensure_future(wait_for_disconnect(request, state.settings.disconnect_check_interval))
    try:
        await asyncio.wait({poll_task, watch_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        pending = [task for task in (poll_task, watch_task) if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    if watch_task.done() and not watch_task.cancelled() and watch_task.exception() is not None:
        logger.warning("Disconnect check failed for client: %s", client_id, exc_info=watch_task.exception())
    if poll_task.cancelled():
        logger.info("Poll abandoned by client: %s", client_id)
        return None
    return poll_task.result()

# -------------- REST endpoints --------------

@router.get("/poll/{client_id}", response_model=EventOut, responses={204: {"description": "No event before the poll timeout"}})
async def rest_poll(client_id: str, request: Request):
    client_id = require_client_id(client_id)
    result = await poll_until_disconnect(request, client_id)
    # timeouts, evictions and abandoned polls all look the same to the client
    if result is None or result.status != PollStatus.DELIVERED:
        return Response(status_code=204)
    return EventOut(**result.event.to_dict())

@router.post("/publish/{client_id}")
async def rest_publish(client_id: str, req: PublishRequest, request: Request):
    client_id = require_client_id(client_id)
    outcome = request.app.state.publisher.publish(client_id, req.message)
    if outcome == PublishOutcome.NOT_FOUND:
        return JSONResponse(status_code=404, content=make_error("Client not found"))
    if outcome == PublishOutcome.DROPPED:
        return JSONResponse(status_code=503, content=make_error("Client channel is full, skipping event."))
    return make_ack("Event published.")

@router.get("/health")
async def rest_health(request: Request):
    state = request.app.state
    now = datetime.now(timezone.utc)
    uptime_sec = int((now - state.started_at).total_seconds())
    return {"uptime_sec": uptime_sec, "clients": len(state.registry)}

@router.get("/stats")
async def rest_stats(request: Request):
    state = request.app.state
    published = state.publisher.counts
    polls = state.poller.counts
    return {
        "clients": len(state.registry),
        "published": published[PublishOutcome.DELIVERED],
        "dropped": published[PublishOutcome.DROPPED],
        "not_found": published[PublishOutcome.NOT_FOUND],
        "polls": {status.value: count for status, count in polls.items()},
    }

# -------------- App factory --------------

def create_app(settings: Optional[Settings] = None, registry: Optional[ClientRegistry] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    registry = registry or ClientRegistry()
    janitor = Janitor(registry, settings.cleanup_interval, settings.client_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        janitor.start()
        try:
            yield
        finally:
            await janitor.stop()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.janitor = janitor
    app.state.poller = PollCoordinator(registry, settings.poll_timeout)
    app.state.publisher = PublishCoordinator(registry)
    app.state.started_at = datetime.now(timezone.utc)
    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()
