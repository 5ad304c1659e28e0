"""Command dispatch: channel check, ACK, single-flight gate, fetch, render, reply."""
import enum
import logging
from datetime import datetime, timezone
from typing import Optional

from ..config import Settings
from ..errors import FetchError, InteractionError, PayloadError
from ..interaction_state import InteractionReply
from ..models.layout import layout_for
from ..models.report import Report
from ..services.derive import derive
from ..services.fetch import StatsClient, StatsQuery
from ..services.gate import ProcessingGate
from ..services.report_service import render_report
from .interactions import CommandEvent, CommandName, CommandRequest

log = logging.getLogger("progressbot.dispatcher")

WRONG_CHANNEL_MESSAGE = "❌ Commands can only be used in the designated channel."
BUSY_MESSAGE = "⏳ Bot is busy processing another request. Please wait a moment."
UNKNOWN_COMMAND_MESSAGE = "❌ Unknown command."
MISSING_ID_MESSAGE = "❌ Missing player ID."
NO_DATA_MESSAGE = "❌ No data found or API returned failure."
GENERIC_FAILURE_MESSAGE = "❌ An error occurred while processing your request."


def fetch_failure_message(status: int) -> str:
    return f"❌ Failed to fetch data: {status}"


class Outcome(enum.Enum):
    IGNORED = "ignored"
    CHANNEL_REJECTED = "channel_rejected"
    ACK_FAILED = "ack_failed"
    BUSY = "busy"
    UNKNOWN_COMMAND = "unknown_command"
    INVALID_OPTIONS = "invalid_options"
    FETCH_ERROR = "fetch_error"
    PARSE_ERROR = "parse_error"
    FAILED = "failed"
    SUCCESS = "success"


class CommandDispatcher:
    def __init__(
        self,
        settings: Settings,
        stats_client: StatsClient,
        gate: Optional[ProcessingGate] = None,
    ):
        self.settings = settings
        self.stats_client = stats_client
        self.gate = gate or ProcessingGate()
        self.layout = layout_for(settings.render_mode)

    async def handle(self, event: CommandEvent, reply: InteractionReply) -> Outcome:
        if not event.is_command:
            return Outcome.IGNORED

        if event.channel_id != self.settings.channel_id:
            log.info("Rejected /%s from channel %s", event.command_name, event.channel_id)
            await self._send(reply, WRONG_CHANNEL_MESSAGE, ephemeral=True)
            return Outcome.CHANNEL_REJECTED

        try:
            await reply.acknowledge()
        except InteractionError:
            log.exception("Failed to defer reply for /%s", event.command_name)
            return Outcome.ACK_FAILED
        log.info("Deferred reply for command /%s", event.command_name)

        if self.gate.busy:
            log.info("Busy; rejecting /%s", event.command_name)
            await self._send(reply, BUSY_MESSAGE)
            return Outcome.BUSY

        command = CommandName.parse(event.command_name)
        if command is None:
            await self._send(reply, UNKNOWN_COMMAND_MESSAGE)
            return Outcome.UNKNOWN_COMMAND

        subject_id = (event.option("id") or "").strip()
        if not subject_id:
            await self._send(reply, MISSING_ID_MESSAGE)
            return Outcome.INVALID_OPTIONS

        request = CommandRequest(command=command, subject_id=subject_id, channel_id=event.channel_id)

        # No await between the busy check above and taking the gate here.
        with self.gate.hold():
            return await self._process(request, reply)

    async def _process(self, request: CommandRequest, reply: InteractionReply) -> Outcome:
        log.info("Processing command /%s with ID: %s", request.command.value, request.subject_id)
        try:
            report = await self.build_report(request)
        except FetchError as exc:
            if exc.status is None:
                await self._send(reply, GENERIC_FAILURE_MESSAGE)
            else:
                await self._send(reply, fetch_failure_message(exc.status))
            return Outcome.FETCH_ERROR
        except PayloadError as exc:
            log.warning("Invalid stats payload for %s: %s", request.subject_id, exc)
            await self._send(reply, NO_DATA_MESSAGE)
            return Outcome.PARSE_ERROR
        except Exception:
            log.exception("Error processing command /%s", request.command.value)
            await self._send(reply, GENERIC_FAILURE_MESSAGE)
            return Outcome.FAILED

        try:
            await reply.edit_reply(embeds=[report.to_embed(timestamp=datetime.now(timezone.utc))])
        except InteractionError:
            log.exception("Failed to send report for /%s", request.command.value)
            await self._send(reply, GENERIC_FAILURE_MESSAGE)
            return Outcome.FAILED
        log.info("✅ Reply sent successfully.")
        return Outcome.SUCCESS

    async def build_report(self, request: CommandRequest) -> Report:
        row = await self.stats_client.fetch(
            StatsQuery(type=request.command.value, id=request.subject_id)
        )
        stats = derive(row, self.layout, fallback_id=request.subject_id)
        return render_report(request.command.value, stats)

    async def _send(self, reply: InteractionReply, content: str, ephemeral: bool = False) -> None:
        try:
            await reply.respond(content, ephemeral=ephemeral)
        except InteractionError:
            log.exception("Failed to send reply: %s", content)
