"""Tests for feed retrieval."""

import httpx
import pytest

from conftest import mock_client
from servers.ical_aggregator.errors import FetchError
from servers.ical_aggregator.sources.fetcher import fetch_feed, normalize_feed_url

FEED_URL = "https://congresssquarepark.org/events/?ical=1"


class TestNormalizeFeedUrl:
    """Tests for webcal rewriting."""

    def test_webcal_becomes_https(self):
        assert normalize_feed_url("webcal://example.org/cal.ics") == "https://example.org/cal.ics"

    def test_webcal_case_insensitive(self):
        assert normalize_feed_url("WEBCAL://example.org/cal.ics") == "https://example.org/cal.ics"

    def test_https_unchanged(self):
        assert normalize_feed_url(FEED_URL) == FEED_URL


class TestFetchFeed:
    """Tests for fetch_feed."""

    @pytest.mark.asyncio
    async def test_returns_body_text(self):
        async with mock_client({FEED_URL: httpx.Response(200, text="BEGIN:VCALENDAR")}) as client:
            text = await fetch_feed(FEED_URL, client=client)

        assert text == "BEGIN:VCALENDAR"

    @pytest.mark.asyncio
    async def test_webcal_url_fetched_over_https(self):
        routes = {"https://example.org/cal.ics": httpx.Response(200, text="ok")}
        async with mock_client(routes) as client:
            text = await fetch_feed("webcal://example.org/cal.ics", client=client)

        assert text == "ok"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        async with mock_client({FEED_URL: httpx.Response(503)}) as client:
            with pytest.raises(FetchError) as exc:
                await fetch_feed(FEED_URL, client=client)

        assert exc.value.url == FEED_URL
        assert exc.value.reason == "HTTP 503"

    @pytest.mark.asyncio
    async def test_not_found_raises(self):
        async with mock_client({}) as client:
            with pytest.raises(FetchError):
                await fetch_feed(FEED_URL, client=client)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        async def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client({FEED_URL: refuse}) as client:
            with pytest.raises(FetchError) as exc:
                await fetch_feed(FEED_URL, client=client)

        assert "connection refused" in exc.value.reason

    @pytest.mark.asyncio
    async def test_timeout_raises(self):
        async def slow(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        async with mock_client({FEED_URL: slow}) as client:
            with pytest.raises(FetchError) as exc:
                await fetch_feed(FEED_URL, client=client, timeout=2.0)

        assert "timed out" in exc.value.reason
