import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
import requests
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .config import Settings
from .errors import AcknowledgeError, InteractionError

log = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"

# Interaction types
PING = 1
APPLICATION_COMMAND = 2

# Interaction callback types
PONG = 1
CHANNEL_MESSAGE_WITH_SOURCE = 4
DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE = 5

EPHEMERAL_FLAG = 64
EDIT_TIMEOUT = 10


def verify_signature(public_key: str, signature: str, timestamp: str, body: bytes) -> bool:
    if not public_key:
        log.error("DISCORD_PUBLIC_KEY not set")
        return False
    try:
        vk = VerifyKey(bytes.fromhex(public_key))
        vk.verify(f"{timestamp}".encode() + body, bytes.fromhex(signature))
        return True
    except (BadSignatureError, ValueError):
        log.warning("Invalid Discord signature")
        return False


def discord_headers(bot_token: str) -> dict:
    return {
        "Authorization": f"Bot {bot_token}",
        "Content-Type": "application/json",
    }


def commands_url(settings: Settings, global_scope: bool = False) -> str:
    if global_scope:
        return f"{DISCORD_API_BASE}/applications/{settings.application_id}/commands"
    return (
        f"{DISCORD_API_BASE}/applications/"
        f"{settings.application_id}/guilds/{settings.guild_id}/commands"
    )


def register_commands(
    commands: List[Dict[str, Any]],
    settings: Settings,
    global_scope: bool = False,
) -> Optional[int]:
    """Overwrite the bot's slash commands. Returns the HTTP status, or None if skipped."""
    if not (settings.bot_token and settings.application_id):
        log.warning("DISCORD_BOT_TOKEN or DISCORD_APPLICATION_ID not set; skipping command registration")
        return None
    if not global_scope and not settings.guild_id:
        log.warning("DISCORD_GUILD_ID not set; skipping guild command registration")
        return None

    resp = requests.put(
        commands_url(settings, global_scope),
        headers=discord_headers(settings.bot_token),
        data=json.dumps(commands),
        timeout=EDIT_TIMEOUT,
    )

    scope = "global" if global_scope else "GUILD"
    if resp.status_code not in (200, 201):
        log.error(
            "Failed to register %s commands: %s %s",
            scope,
            resp.status_code,
            resp.text,
        )
    else:
        log.info("Registered %d %s commands with Discord", len(commands), scope)
    return resp.status_code


def interaction_response(content: str, ephemeral: bool = True) -> dict:
    data = {"content": content}
    if ephemeral:
        data["flags"] = EPHEMERAL_FLAG
    return {"type": CHANNEL_MESSAGE_WITH_SOURCE, "data": data}


def deferred_response() -> dict:
    return {"type": DEFERRED_CHANNEL_MESSAGE_WITH_SOURCE}


def pong():
    return {"type": PONG}


class WebhookInteraction:
    """
    Transport for one interaction delivered over Discord's outgoing webhook.

    The initial response (ACK or immediate reply) travels back as the HTTP
    response to Discord's POST, so ``send_initial`` hands the body to the
    waiting request handler and returns once the response has been written.
    Later edits go to the interaction webhook.
    """

    def __init__(
        self,
        application_id: str,
        token: str,
        http: Optional[httpx.AsyncClient] = None,
        delivery_timeout: float = 2.5,
    ):
        self.application_id = application_id
        self.token = token
        self.delivery_timeout = delivery_timeout
        self._http = http
        loop = asyncio.get_running_loop()
        self.initial = loop.create_future()
        self._delivered = asyncio.Event()

    @property
    def original_message_url(self) -> str:
        return f"{DISCORD_API_BASE}/webhooks/{self.application_id}/{self.token}/messages/@original"

    async def mark_delivered(self) -> None:
        self._delivered.set()

    def close(self) -> None:
        """Stop accepting an initial response (the HTTP request gave up)."""
        if not self.initial.done():
            self.initial.cancel()

    async def send_initial(self, body: dict) -> None:
        if self.initial.done():
            raise AcknowledgeError("initial response window has closed")
        self.initial.set_result(body)
        try:
            await asyncio.wait_for(self._delivered.wait(), timeout=self.delivery_timeout)
        except asyncio.TimeoutError:
            raise AcknowledgeError("initial response was not delivered in time") from None

    async def edit_original(self, body: dict) -> None:
        if self._http is not None:
            resp = await self._http.patch(self.original_message_url, json=body)
        else:
            async with httpx.AsyncClient(timeout=EDIT_TIMEOUT) as client:
                resp = await client.patch(self.original_message_url, json=body)
        if resp.status_code >= 400:
            raise InteractionError(f"editing original response failed: {resp.status_code} {resp.text}")
