import httpx
import pytest

from article_reader.errors import FetchError
from article_reader.services.fetcher import DEFAULT_USER_AGENT, ArticleFetcher


def _fetcher(handler) -> ArticleFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    return ArticleFetcher(client)


@pytest.mark.anyio
async def test_fetch_returns_body_and_sends_user_agent():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["user_agent"] = request.headers.get("user-agent")
        return httpx.Response(200, text="<html><title>Hi</title></html>")

    fetcher = _fetcher(handler)

    html = await fetcher.fetch("https://example.com/story")

    assert html == "<html><title>Hi</title></html>"
    assert seen["user_agent"] == DEFAULT_USER_AGENT


@pytest.mark.anyio
async def test_fetch_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200, text="moved here")

    fetcher = _fetcher(handler)

    assert await fetcher.fetch("https://example.com/old") == "moved here"


@pytest.mark.anyio
async def test_non_success_status_raises_fetch_error():
    fetcher = _fetcher(lambda request: httpx.Response(404, text="nope"))

    with pytest.raises(FetchError) as excinfo:
        await fetcher.fetch("https://example.com/missing")

    assert excinfo.value.upstream_status == 404
    assert excinfo.value.detail == "Failed to fetch URL: 404"
    assert excinfo.value.url == "https://example.com/missing"


@pytest.mark.anyio
async def test_transport_error_raises_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    fetcher = _fetcher(handler)

    with pytest.raises(FetchError) as excinfo:
        await fetcher.fetch("https://example.com/down")

    assert excinfo.value.upstream_status is None
    assert excinfo.value.status_code == 502
