import asyncio
import logging
from typing import Optional, Set

import httpx
import uvicorn
from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.background import BackgroundTask

from .commands.dispatcher import CommandDispatcher
from .commands.interactions import COMMANDS, CommandEvent
from .config import Settings
from .discord_utils import (
    APPLICATION_COMMAND,
    PING,
    WebhookInteraction,
    pong,
    register_commands,
    verify_signature,
)
from .interaction_state import InteractionReply
from .log import configure_logging
from .services.fetch import StatsClient
from .health_server import router as health_router
from .version import __version__

log = logging.getLogger("progressbot.interactions")


def create_app(
    settings: Optional[Settings] = None,
    dispatcher: Optional[CommandDispatcher] = None,
    discord_http: Optional[httpx.AsyncClient] = None,
    register_on_startup: bool = True,
) -> FastAPI:
    """
    Build the interaction server.

    ``discord_http`` is the client used to edit deferred replies; when omitted
    each edit opens its own client.
    """
    settings = settings or Settings.load()
    if dispatcher is None:
        stats_client = StatsClient(settings.api_base_url, timeout=settings.fetch_timeout)
        dispatcher = CommandDispatcher(settings, stats_client)

    app = FastAPI(title="Progress Report Bot", version=__version__)
    app.state.settings = settings
    app.state.dispatcher = dispatcher
    app.include_router(health_router)

    # Strong references so running commands are not garbage collected.
    running: Set[asyncio.Task] = set()
    app.state.running = running

    # ─────────────────────────────────────────────────────────────
    # Startup: register commands WITHOUT blocking interaction ACKs
    # ─────────────────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        async def _register():
            try:
                await asyncio.to_thread(register_commands, COMMANDS, settings)
            except Exception:
                log.exception("Command registration failed")

        if register_on_startup:
            running.add(asyncio.create_task(_register()))
        log.info("Interaction server started, version %s", __version__)

    # ─────────────────────────────────────────────────────────────
    # Interaction handler
    # ─────────────────────────────────────────────────────────────
    @app.post("/discord/interactions")
    async def interactions(request: Request):
        signature = request.headers.get("X-Signature-Ed25519")
        timestamp = request.headers.get("X-Signature-Timestamp")
        body = await request.body()

        if not signature or not timestamp:
            raise HTTPException(status_code=401, detail="Missing signature")

        if not verify_signature(settings.public_key, signature, timestamp, body):
            raise HTTPException(status_code=401, detail="Invalid request signature")

        payload = await request.json()
        t = payload.get("type")

        # Discord PING
        if t == PING:
            return JSONResponse(pong())

        if t == APPLICATION_COMMAND:
            return await _dispatch(payload)

        return JSONResponse({"error": "Unsupported interaction type"}, status_code=400)

    async def _dispatch(payload: dict) -> JSONResponse:
        interaction = WebhookInteraction(
            application_id=str(payload.get("application_id") or settings.application_id),
            token=str(payload.get("token") or ""),
            http=discord_http,
            delivery_timeout=settings.ack_deadline,
        )
        event = CommandEvent.from_payload(payload)
        task = asyncio.create_task(dispatcher.handle(event, InteractionReply(interaction)))
        running.add(task)
        task.add_done_callback(running.discard)
        task.add_done_callback(_log_outcome)

        await asyncio.wait(
            {interaction.initial, task},
            timeout=settings.ack_deadline,
            return_when=asyncio.FIRST_COMPLETED,
        )

        if interaction.initial.done() and not interaction.initial.cancelled():
            return JSONResponse(
                interaction.initial.result(),
                background=BackgroundTask(interaction.mark_delivered),
            )

        interaction.close()
        if task.done():
            return JSONResponse({"error": "Interaction not handled"}, status_code=400)

        log.error("No initial response for /%s within %.1fs", event.command_name, settings.ack_deadline)
        return JSONResponse({"error": "Interaction not acknowledged in time"}, status_code=500)

    return app


def _log_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        log.warning("Command task was cancelled")
        return
    exc = task.exception()
    if exc is not None:
        log.error("Command task crashed", exc_info=exc)
        return
    log.info("Command finished: %s", task.result().value)


def main() -> int:
    settings = Settings.load()
    configure_logging(level_name=settings.log_level)
    settings.log_summary()
    log.info("🌐 Web server listening on port %s", settings.port)
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
