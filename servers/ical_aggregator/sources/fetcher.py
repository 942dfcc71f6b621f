"""
Feed retrieval over HTTP.

One unauthenticated GET per call: no caching, no retries. Every transport
problem, timeout or non-2xx status surfaces as a FetchError.
"""

from typing import Awaitable, Callable, Optional

import httpx
import structlog

from ..errors import FetchError

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "ical-aggregator/1.0 (community events calendar)"


def normalize_feed_url(url: str) -> str:
    """Rewrite webcal:// subscription links to https://."""
    if url.lower().startswith("webcal://"):
        return "https://" + url[len("webcal://"):]
    return url


def create_client(
    timeout: float = DEFAULT_TIMEOUT,
    user_agent: str = USER_AGENT,
    request_guard: Optional[Callable[[httpx.Request], Awaitable[None]]] = None,
) -> httpx.AsyncClient:
    """
    Create an HTTP client suitable for sharing across concurrent fetches.

    Redirects are followed. When request_guard is given it runs before every
    request, redirect hops included, and may raise to refuse the request.
    """
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": user_agent},
        event_hooks={"request": [request_guard]} if request_guard else None,
    )


async def fetch_feed(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """
    Fetch the raw text of a calendar feed.

    Args:
        url: Feed URL (http, https or webcal)
        client: Shared client; a short-lived one is created when omitted
        timeout: Request timeout in seconds

    Returns:
        Response body as text

    Raises:
        FetchError: On transport failure, timeout or non-2xx status
    """
    target = normalize_feed_url(url)

    try:
        if client is None:
            async with create_client(timeout=timeout) as own_client:
                response = await own_client.get(target)
        else:
            response = await client.get(target, timeout=timeout)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise FetchError(url, f"HTTP {e.response.status_code}") from e
    except httpx.TimeoutException as e:
        raise FetchError(url, f"timed out after {timeout}s") from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(url, str(e) or type(e).__name__) from e

    logger.debug("feed_fetched", url=url, bytes=len(response.content))
    return response.text
