import asyncio

import httpx

from progressbot.commands.dispatcher import (
    BUSY_MESSAGE,
    GENERIC_FAILURE_MESSAGE,
    MISSING_ID_MESSAGE,
    NO_DATA_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
    WRONG_CHANNEL_MESSAGE,
    CommandDispatcher,
    Outcome,
)
from progressbot.commands.interactions import CommandEvent
from progressbot.config import Settings
from progressbot.errors import AcknowledgeError, FetchError, InteractionError
from progressbot.interaction_state import InteractionReply, ReplyState
from progressbot.models.layout import RenderMode
from progressbot.services.fetch import StatsClient

CHANNEL = "555"


class _Transport:
    def __init__(self, fail_initial=None):
        self.initial = []
        self.edits = []
        self.fail_initial = fail_initial

    async def send_initial(self, body):
        if self.fail_initial:
            raise self.fail_initial
        self.initial.append(body)

    async def edit_original(self, body):
        self.edits.append(body)


class _EmbedRejectingTransport(_Transport):
    async def edit_original(self, body):
        if body["embeds"]:
            raise InteractionError("edit failed: 400 Bad Request")
        self.edits.append(body)


class _Stats:
    def __init__(self, row=None, error=None, gate=None):
        self.row = row if row is not None else []
        self.error = error
        self.gate = gate
        self.calls = []

    async def fetch(self, query):
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.row


def _settings(mode=RenderMode.COMBINED):
    return Settings(channel_id=CHANNEL, api_base_url="https://stats.example/api", render_mode=mode)


def _event(name="daily", channel=CHANNEL, player_id="7", interaction_type=2):
    options = {"id": player_id} if player_id is not None else {}
    return CommandEvent(interaction_type, name, channel, options)


def _row(length=47, **cells):
    row = ["0"] * length
    for key, value in cells.items():
        row[int(key.lstrip("i"))] = value
    return row


def _run(dispatcher, event, transport=None):
    transport = transport or _Transport()
    reply = InteractionReply(transport)
    outcome = asyncio.run(dispatcher.handle(event, reply))
    return outcome, transport, reply


def _run_with_stats_api(handler, event):
    transport = _Transport()

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            dispatcher = CommandDispatcher(
                _settings(), StatsClient("https://stats.example/api", client=http)
            )
            outcome = await dispatcher.handle(event, InteractionReply(transport))
            return outcome, dispatcher

    outcome, dispatcher = asyncio.run(run())
    return outcome, transport, dispatcher


def test_non_command_events_are_ignored():
    stats = _Stats()
    outcome, transport, _ = _run(CommandDispatcher(_settings(), stats), _event(interaction_type=3))

    assert outcome is Outcome.IGNORED
    assert transport.initial == [] and transport.edits == []
    assert stats.calls == []


def test_wrong_channel_gets_ephemeral_rejection():
    dispatcher = CommandDispatcher(_settings(), _Stats())

    outcome, transport, _ = _run(dispatcher, _event(channel="other"))

    assert outcome is Outcome.CHANNEL_REJECTED
    assert transport.initial == [
        {"type": 4, "data": {"content": WRONG_CHANNEL_MESSAGE, "flags": 64}}
    ]
    assert not dispatcher.gate.busy


def test_success_edits_deferred_reply_with_report():
    row = _row(i3="Alice", i5="7", i8="100", i9="50")
    stats = _Stats(row=row)
    dispatcher = CommandDispatcher(_settings(), stats)

    outcome, transport, reply = _run(dispatcher, _event())

    assert outcome is Outcome.SUCCESS
    assert transport.initial == [{"type": 5}]
    embed = transport.edits[0]["embeds"][0]
    assert embed["title"] == "DAILY stats for Alice ID: 7"
    assert embed["fields"][0] == {"name": "Power", "value": "100 + 50", "inline": True}
    assert "timestamp" in embed
    assert stats.calls[0].type == "daily" and stats.calls[0].id == "7"
    assert reply.state is ReplyState.REPLIED
    assert not dispatcher.gate.busy


def test_delta_mode_renders_power_change():
    stats = _Stats(row=_row(i9="1000", i10="-25"))
    dispatcher = CommandDispatcher(_settings(RenderMode.DELTA), stats)

    _, transport, _ = _run(dispatcher, _event("weekly"))

    assert transport.edits[0]["embeds"][0]["fields"][0]["value"] == "1,000 (🔴 -25)"


def test_http_500_reports_status_and_releases_gate():
    def handler(request):
        return httpx.Response(500)

    outcome, transport, dispatcher = _run_with_stats_api(handler, _event())

    assert outcome is Outcome.FETCH_ERROR
    assert transport.edits == [{"content": "❌ Failed to fetch data: 500", "embeds": []}]
    assert not dispatcher.gate.busy


def test_row_data_not_a_list_reports_no_data():
    def handler(request):
        return httpx.Response(200, json={"rowData": "not-an-array"})

    outcome, transport, dispatcher = _run_with_stats_api(handler, _event())

    assert outcome is Outcome.PARSE_ERROR
    assert transport.edits[0]["content"] == NO_DATA_MESSAGE
    assert not dispatcher.gate.busy


def test_rejected_report_edit_falls_back_to_generic_message():
    stats = _Stats(row=_row(i3="N" * 300, i5="7"))
    dispatcher = CommandDispatcher(_settings(), stats)

    outcome, transport, reply = _run(dispatcher, _event(), _EmbedRejectingTransport())

    assert outcome is Outcome.FAILED
    assert transport.edits == [{"content": GENERIC_FAILURE_MESSAGE, "embeds": []}]
    assert reply.state is ReplyState.REPLIED
    assert not dispatcher.gate.busy


def test_network_failure_reports_generic_message():
    dispatcher = CommandDispatcher(_settings(), _Stats(error=FetchError(None)))

    outcome, transport, _ = _run(dispatcher, _event())

    assert outcome is Outcome.FETCH_ERROR
    assert transport.edits[0]["content"] == GENERIC_FAILURE_MESSAGE


def test_unexpected_exception_releases_gate():
    dispatcher = CommandDispatcher(_settings(), _Stats(error=KeyError("boom")))

    outcome, transport, _ = _run(dispatcher, _event())

    assert outcome is Outcome.FAILED
    assert transport.edits[0]["content"] == GENERIC_FAILURE_MESSAGE
    assert not dispatcher.gate.busy


def test_unknown_command_does_not_touch_gate_or_fetch():
    stats = _Stats()
    dispatcher = CommandDispatcher(_settings(), stats)

    outcome, transport, _ = _run(dispatcher, _event("monthly"))

    assert outcome is Outcome.UNKNOWN_COMMAND
    assert transport.edits[0]["content"] == UNKNOWN_COMMAND_MESSAGE
    assert stats.calls == []


def test_command_name_is_case_insensitive():
    stats = _Stats(row=_row())
    outcome, _, _ = _run(CommandDispatcher(_settings(), stats), _event("Season"))

    assert outcome is Outcome.SUCCESS
    assert stats.calls[0].type == "season"


def test_missing_id_is_rejected():
    stats = _Stats()
    outcome, transport, _ = _run(CommandDispatcher(_settings(), stats), _event(player_id="  "))

    assert outcome is Outcome.INVALID_OPTIONS
    assert transport.edits[0]["content"] == MISSING_ID_MESSAGE
    assert stats.calls == []


def test_failed_acknowledge_aborts_without_further_replies():
    stats = _Stats()
    transport = _Transport(fail_initial=AcknowledgeError("deadline missed"))

    outcome, transport, reply = _run(CommandDispatcher(_settings(), stats), _event(), transport)

    assert outcome is Outcome.ACK_FAILED
    assert transport.edits == []
    assert stats.calls == []
    assert reply.state is ReplyState.FAILED


def test_second_command_while_busy_is_rejected_not_queued():
    async def run():
        release = asyncio.Event()
        stats = _Stats(row=_row(i3="Alice"), gate=release)
        dispatcher = CommandDispatcher(_settings(), stats)
        first_transport, second_transport = _Transport(), _Transport()

        first = asyncio.create_task(
            dispatcher.handle(_event(), InteractionReply(first_transport))
        )
        while not stats.calls:
            await asyncio.sleep(0)
        assert dispatcher.gate.busy

        second = await dispatcher.handle(_event("weekly"), InteractionReply(second_transport))
        assert second is Outcome.BUSY
        assert second_transport.edits == [{"content": BUSY_MESSAGE, "embeds": []}]
        assert len(stats.calls) == 1
        assert dispatcher.gate.busy

        release.set()
        assert await first is Outcome.SUCCESS
        assert not dispatcher.gate.busy

        third = await dispatcher.handle(_event("season"), InteractionReply(_Transport()))
        assert third is Outcome.SUCCESS
        assert len(stats.calls) == 2

    asyncio.run(run())
