import asyncio

import httpx
import pytest

from progressbot.errors import FetchError, PayloadError
from progressbot.services.fetch import StatsClient, StatsQuery


def _fetch(handler, query, base_url="https://stats.example/api"):
    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await StatsClient(base_url, timeout=5, client=http).fetch(query)

    return asyncio.run(run())


def test_fetch_appends_type_and_id_to_base_url():
    seen = []

    def handler(request):
        seen.append(request.url)
        return httpx.Response(200, json={"rowData": [1, 2, 3]})

    row = _fetch(
        handler,
        StatsQuery(type="daily", id="42"),
        base_url="https://stats.example/api?key=abc",
    )

    assert row == [1, 2, 3]
    assert seen[0].params["key"] == "abc"
    assert seen[0].params["type"] == "daily"
    assert seen[0].params["id"] == "42"
    assert seen[0].path == "/api"


def test_non_success_status_raises_fetch_error_with_status():
    with pytest.raises(FetchError) as excinfo:
        _fetch(lambda request: httpx.Response(500, text="boom"), StatsQuery(type="daily", id="1"))

    assert excinfo.value.status == 500


def test_network_error_raises_fetch_error_without_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as excinfo:
        _fetch(handler, StatsQuery(type="weekly", id="1"))

    assert excinfo.value.status is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_timeout_is_a_fetch_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(FetchError):
        _fetch(handler, StatsQuery(type="season", id="1"))


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"rowData": "not-an-array"}),
        httpx.Response(200, json={"success": False}),
        httpx.Response(200, json=[1, 2, 3]),
        httpx.Response(200, json=None),
        httpx.Response(200, text="<html>oops</html>"),
    ],
)
def test_malformed_payload_raises_payload_error(response):
    with pytest.raises(PayloadError):
        _fetch(lambda request: response, StatsQuery(type="daily", id="1"))
