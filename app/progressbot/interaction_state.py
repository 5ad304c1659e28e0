"""Reply lifecycle for a single interaction.

Discord accepts exactly one initial response per interaction (an immediate
reply or a deferred ACK) and edits of the original message only after it.
``InteractionReply`` enforces that order instead of trusting call sites.

    RECEIVED --reply--> REPLIED
    RECEIVED --acknowledge--> DEFERRED --edit_reply--> REPLIED

A failed acknowledge or reply moves it to FAILED. A failed edit leaves it
DEFERRED so a fallback message can still be sent. REPLIED and FAILED are
terminal.
"""
import enum
from typing import List, Optional, Protocol

from .discord_utils import deferred_response, interaction_response
from .errors import AcknowledgeError, InteractionError, InteractionStateError


class ReplyState(enum.Enum):
    RECEIVED = "received"
    DEFERRED = "deferred"
    REPLIED = "replied"
    FAILED = "failed"


class ReplyTransport(Protocol):
    async def send_initial(self, body: dict) -> None: ...

    async def edit_original(self, body: dict) -> None: ...


class InteractionReply:
    def __init__(self, transport: ReplyTransport):
        self._transport = transport
        self.state = ReplyState.RECEIVED

    @property
    def deferred(self) -> bool:
        return self.state is ReplyState.DEFERRED

    def _require(self, expected: ReplyState, action: str) -> None:
        if self.state is not expected:
            raise InteractionStateError(
                f"cannot {action} an interaction in state {self.state.value}"
            )

    async def _send(self, send, body: dict, error_cls, action: str, on_error: ReplyState) -> None:
        try:
            await send(body)
        except InteractionError:
            self.state = on_error
            raise
        except Exception as exc:
            self.state = on_error
            raise error_cls(f"{action} failed: {exc}") from exc

    async def acknowledge(self) -> None:
        self._require(ReplyState.RECEIVED, "acknowledge")
        await self._send(
            self._transport.send_initial,
            deferred_response(),
            AcknowledgeError,
            "acknowledge",
            ReplyState.FAILED,
        )
        self.state = ReplyState.DEFERRED

    async def reply(self, content: str, ephemeral: bool = False) -> None:
        self._require(ReplyState.RECEIVED, "reply to")
        body = interaction_response(content, ephemeral=ephemeral)
        await self._send(self._transport.send_initial, body, InteractionError, "reply", ReplyState.FAILED)
        self.state = ReplyState.REPLIED

    async def edit_reply(
        self,
        content: Optional[str] = None,
        embeds: Optional[List[dict]] = None,
    ) -> None:
        self._require(ReplyState.DEFERRED, "edit")
        body = {"content": content or "", "embeds": embeds or []}
        await self._send(self._transport.edit_original, body, InteractionError, "edit", ReplyState.DEFERRED)
        self.state = ReplyState.REPLIED

    async def respond(self, content: str, ephemeral: bool = False) -> None:
        """Reply if nothing was sent yet, otherwise edit the deferred reply."""
        if self.state is ReplyState.RECEIVED:
            await self.reply(content, ephemeral=ephemeral)
        else:
            await self.edit_reply(content)
