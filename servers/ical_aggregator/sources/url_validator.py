"""
URL validation for caller-supplied feed URLs.

The single-feed path fetches whatever URL the caller passes, so it is
checked before the first request and again on every redirect hop to block:
- Requests to internal/private networks
- Requests to localhost/loopback addresses
- Schemes other than http(s) and webcal
"""

import asyncio
import ipaddress
import socket
from typing import Awaitable, Callable, Optional
from urllib.parse import urlparse

import httpx

from ..errors import ValidationError


class SSRFError(ValidationError):
    """Raised when a feed URL fails validation."""


FEED_SCHEMES = {"http", "https", "webcal"}

# Private/reserved IP ranges that should be blocked
BLOCKED_IP_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),        # Class A private
    ipaddress.ip_network("172.16.0.0/12"),     # Class B private
    ipaddress.ip_network("192.168.0.0/16"),    # Class C private
    ipaddress.ip_network("127.0.0.0/8"),       # Loopback
    ipaddress.ip_network("169.254.0.0/16"),    # Link-local
    ipaddress.ip_network("0.0.0.0/8"),         # "This" network
    ipaddress.ip_network("100.64.0.0/10"),     # Carrier-grade NAT
    ipaddress.ip_network("fc00::/7"),          # IPv6 unique local
    ipaddress.ip_network("fe80::/10"),         # IPv6 link-local
    ipaddress.ip_network("::1/128"),           # IPv6 loopback
]

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
}


def validate_feed_url(
    url: Optional[str],
    require_https: bool = False,
    resolve_dns: bool = True,
) -> str:
    """
    Validate a caller-supplied feed URL.

    Args:
        url: The feed URL to validate
        require_https: If True, reject plain http:// feeds
        resolve_dns: If True, resolve the hostname and check the resulting
                    addresses against the blocked ranges

    Returns:
        The validated URL (whitespace stripped)

    Raises:
        SSRFError: If the URL fails validation
    """
    if not url or not url.strip():
        raise SSRFError("URL parameter is required")

    url = url.strip()
    parsed = urlparse(url)

    scheme = parsed.scheme.lower()
    if scheme not in FEED_SCHEMES:
        raise SSRFError(f"Only http(s) and webcal feed URLs are allowed (got {scheme or 'no scheme'})")
    if require_https and scheme == "http":
        raise SSRFError("Only HTTPS feed URLs are allowed")

    hostname = parsed.hostname
    if not hostname:
        raise SSRFError("URL must include a hostname")

    hostname_lower = hostname.lower()
    if hostname_lower in BLOCKED_HOSTNAMES or hostname_lower.endswith(".localhost"):
        raise SSRFError(f"Access to {hostname} is blocked (localhost addresses are not allowed)")

    ip_addr = _parse_ip_address(hostname)
    if ip_addr:
        if _is_blocked_ip(ip_addr):
            raise SSRFError(f"Access to {hostname} is blocked (private/internal IP addresses are not allowed)")
    elif resolve_dns:
        for ip_str in _resolve_hostname(hostname):
            resolved = _parse_ip_address(ip_str)
            if resolved and _is_blocked_ip(resolved):
                raise SSRFError(f"Access to {hostname} is blocked (resolves to private/internal IP {ip_str})")

    return url


def request_guard(
    require_https: bool = False,
    resolve_dns: bool = True,
) -> Callable[[httpx.Request], Awaitable[None]]:
    """
    Build an httpx request hook that validates every outgoing request.

    The client invokes request hooks for each redirect hop as well, so a
    public feed answering 3xx with an internal Location is refused.
    """

    async def check_request(request: httpx.Request) -> None:
        await asyncio.to_thread(
            validate_feed_url,
            str(request.url),
            require_https=require_https,
            resolve_dns=resolve_dns,
        )

    return check_request


def _parse_ip_address(hostname: str) -> Optional[ipaddress.IPv4Address | ipaddress.IPv6Address]:
    """Try to parse hostname as an IP address."""
    try:
        return ipaddress.ip_address(hostname)
    except ValueError:
        return None


def _is_blocked_ip(ip_addr: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    """Check if an IP address is in a blocked range."""
    return any(
        ip_addr in network
        for network in BLOCKED_IP_RANGES
        if network.version == ip_addr.version
    )


def _resolve_hostname(hostname: str) -> list[str]:
    """Resolve hostname to IP addresses.

    Unresolvable names return no addresses; the fetch fails on its own.
    """
    try:
        results = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC)
    except socket.gaierror:
        return []
    return list({result[4][0] for result in results})
