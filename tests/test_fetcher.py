"""Tests for HttpFetcher."""

import asyncio

import httpx
import pytest

from komikproxy.config import DEFAULT_USER_AGENT
from komikproxy.core import FetchResult, HttpFetcher
from komikproxy.errors import FetchTimeout, NetworkError, TooManyRedirects, UpstreamStatus

BASE = "https://komiku.test"


@pytest.fixture
async def fetcher():
    fetcher = HttpFetcher(timeout=5.0, max_redirects=5)
    yield fetcher
    await fetcher.close()


def add_redirect_chain(httpx_mock, hops: int, final: bool = True):
    """Register /hop/0 -> /hop/1 -> ... -> /hop/<hops>."""
    for i in range(hops):
        httpx_mock.add_response(
            url=f"{BASE}/hop/{i}",
            status_code=302,
            headers={"Location": f"/hop/{i + 1}"},
        )
    if final:
        httpx_mock.add_response(url=f"{BASE}/hop/{hops}", content=b"final page")


class TestHttpFetcher:
    async def test_fetch_returns_fetch_result(self, fetcher, httpx_mock):
        """Fetch should return body, status and lower-cased headers."""
        httpx_mock.add_response(
            url=f"{BASE}/page",
            content=b"<html>ok</html>",
            headers={"Content-Type": "text/html"},
        )

        result = await fetcher.fetch(f"{BASE}/page")

        assert isinstance(result, FetchResult)
        assert result.status == 200
        assert result.url == f"{BASE}/page"
        assert result.body == b"<html>ok</html>"
        assert result.headers["content-type"] == "text/html"

    async def test_fetch_sends_baseline_headers(self, fetcher, httpx_mock):
        """Baseline user agent and cache headers should be sent."""
        httpx_mock.add_response(url=f"{BASE}/page")

        await fetcher.fetch(f"{BASE}/page")

        request = httpx_mock.get_requests()[0]
        assert request.headers["User-Agent"] == DEFAULT_USER_AGENT
        assert request.headers["Cache-Control"] == "no-cache"
        assert "text/html" in request.headers["Accept"]

    async def test_extra_headers_override_baseline(self, fetcher, httpx_mock):
        """Caller headers should win regardless of name case."""
        httpx_mock.add_response(url=f"{BASE}/image.jpg")

        await fetcher.fetch(f"{BASE}/image.jpg", {"accept": "image/*", "Referer": f"{BASE}/"})

        request = httpx_mock.get_requests()[0]
        assert request.headers.get_list("Accept") == ["image/*"]
        assert request.headers["Referer"] == f"{BASE}/"


class TestHttpFetcherRedirects:
    async def test_follows_four_redirects(self, fetcher, httpx_mock):
        """A chain of four redirects should return the final page."""
        add_redirect_chain(httpx_mock, 4)

        result = await fetcher.fetch(f"{BASE}/hop/0")

        assert result.body == b"final page"
        assert result.url == f"{BASE}/hop/4"
        assert len(httpx_mock.get_requests()) == 5

    async def test_follows_exactly_max_redirects(self, fetcher, httpx_mock):
        """A chain as long as the bound should still succeed."""
        add_redirect_chain(httpx_mock, 5)

        result = await fetcher.fetch(f"{BASE}/hop/0")

        assert result.body == b"final page"

    async def test_six_redirects_fail(self, fetcher, httpx_mock):
        """A chain of six redirects should exceed the bound."""
        add_redirect_chain(httpx_mock, 6, final=False)

        with pytest.raises(TooManyRedirects) as exc_info:
            await fetcher.fetch(f"{BASE}/hop/0")

        assert exc_info.value.max_redirects == 5
        assert len(httpx_mock.get_requests()) == 6

    async def test_redirect_loop_is_bounded(self, httpx_mock):
        """A redirect loop should stop after max_redirects hops."""
        fetcher = HttpFetcher(max_redirects=2)
        for _ in range(3):
            httpx_mock.add_response(url=f"{BASE}/loop", status_code=301, headers={"Location": "/loop"})
        try:
            with pytest.raises(TooManyRedirects):
                await fetcher.fetch(f"{BASE}/loop")
        finally:
            await fetcher.close()

    async def test_redirect_preserves_extra_headers(self, fetcher, httpx_mock):
        """Extra headers should be sent on every hop."""
        add_redirect_chain(httpx_mock, 2)

        await fetcher.fetch(f"{BASE}/hop/0", {"Referer": f"{BASE}/"})

        for request in httpx_mock.get_requests():
            assert request.headers["Referer"] == f"{BASE}/"

    async def test_absolute_location_to_other_host(self, fetcher, httpx_mock):
        """Absolute Location headers should be followed as given."""
        httpx_mock.add_response(
            url=f"{BASE}/old",
            status_code=308,
            headers={"Location": "https://cdn.example/new"},
        )
        httpx_mock.add_response(url="https://cdn.example/new", content=b"moved")

        result = await fetcher.fetch(f"{BASE}/old")

        assert result.body == b"moved"
        assert result.url == "https://cdn.example/new"

    async def test_redirect_without_location(self, fetcher, httpx_mock):
        """A redirect with no Location should be an upstream status error."""
        httpx_mock.add_response(url=f"{BASE}/broken", status_code=302)

        with pytest.raises(UpstreamStatus) as exc_info:
            await fetcher.fetch(f"{BASE}/broken")

        assert exc_info.value.code == 302


class TestHttpFetcherErrors:
    async def test_not_found_status(self, fetcher, httpx_mock):
        """404 should map to UpstreamStatus with a 404 http status."""
        httpx_mock.add_response(url=f"{BASE}/missing", status_code=404)

        with pytest.raises(UpstreamStatus) as exc_info:
            await fetcher.fetch(f"{BASE}/missing")

        assert exc_info.value.code == 404
        assert exc_info.value.http_status == 404

    async def test_server_error_status(self, fetcher, httpx_mock):
        """5xx should map to UpstreamStatus with a 502 http status."""
        httpx_mock.add_response(url=f"{BASE}/down", status_code=503)

        with pytest.raises(UpstreamStatus) as exc_info:
            await fetcher.fetch(f"{BASE}/down")

        assert exc_info.value.code == 503
        assert exc_info.value.http_status == 502

    async def test_connect_error(self, fetcher, httpx_mock):
        """Transport failures should map to NetworkError."""
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"), url=f"{BASE}/page")

        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch(f"{BASE}/page")

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    async def test_timeout(self, fetcher, httpx_mock):
        """httpx timeouts should map to FetchTimeout."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url=f"{BASE}/slow")

        with pytest.raises(FetchTimeout) as exc_info:
            await fetcher.fetch(f"{BASE}/slow")

        assert exc_info.value.http_status == 504

    async def test_redirect_chain_exceeding_total_timeout(self):
        """Hops that each finish in time should still time out as a chain."""
        async def slow_hop(request):
            await asyncio.sleep(0.2)
            hop = int(request.url.path.rsplit("/", 1)[-1])
            return httpx.Response(302, headers={"Location": f"/hop/{hop + 1}"})

        fetcher = HttpFetcher(timeout=0.5, max_redirects=5)
        fetcher._client = httpx.AsyncClient(transport=httpx.MockTransport(slow_hop))
        try:
            with pytest.raises(FetchTimeout) as exc_info:
                await fetcher.fetch(f"{BASE}/hop/0")
        finally:
            await fetcher.close()

        assert exc_info.value.http_status == 504

    async def test_error_message_hides_url(self, fetcher, httpx_mock):
        """Client-facing messages should not contain the upstream URL."""
        httpx_mock.add_response(url=f"{BASE}/secret/path", status_code=500)

        with pytest.raises(UpstreamStatus) as exc_info:
            await fetcher.fetch(f"{BASE}/secret/path")

        assert "komiku.test" not in str(exc_info.value)
        assert "komiku.test" not in str(exc_info.value.to_dict())
        assert exc_info.value.context["url"] == f"{BASE}/secret/path"


class TestFetchResult:
    def test_text_property(self):
        """Verify text property decodes content."""
        result = FetchResult(url=BASE, status=200, body=b"Hello, World!", headers={})
        assert result.text == "Hello, World!"

    def test_text_handles_invalid_utf8(self):
        """Verify text property handles invalid UTF-8."""
        result = FetchResult(url=BASE, status=200, body=b"\xff\xfe", headers={})
        assert isinstance(result.text, str)
