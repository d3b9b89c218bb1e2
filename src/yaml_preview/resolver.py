"""
Content-source resolution.

Decision order, first match wins:
  1. configured remote is an https URL           -> RemoteSource
  2. insecure local allowed and a server starts  -> LocalServedSource
  3. otherwise                                   -> LocalBundledSource

A plaintext remote is never trusted directly. The loopback server only exists
to give the bundled page a real origin for postMessage targeting.
"""

import logging
from typing import Awaitable, Callable, Optional

import httpx

from yaml_preview.errors import ResolutionDegradation
from yaml_preview.models.source import (
    ContentSource,
    LocalBundledSource,
    LocalServedSource,
    RemoteSource,
)
from yaml_preview.transport.server import ContentServer

logger = logging.getLogger(__name__)

SECURE_SCHEME = "https"

LocalServerFactory = Callable[[], Awaitable[ContentServer]]


def _parse_url(value: Optional[str]) -> Optional[httpx.URL]:
    if not value or not isinstance(value, str):
        return None
    try:
        url = httpx.URL(value.strip())
    except (httpx.InvalidURL, TypeError, ValueError):
        return None
    if not url.scheme or not url.host:
        return None
    return url


def is_https_url(value: Optional[str]) -> bool:
    url = _parse_url(value)
    return url is not None and url.scheme.lower() == SECURE_SCHEME


def origin_of(value: str) -> str:
    """scheme://host[:port] with default ports omitted.

    The host is the ASCII (punycode) form a browser reports as the origin.
    """
    url = _parse_url(value)
    if url is None:
        raise ValueError(f"Not an absolute URL: {value!r}")
    host = url.raw_host.decode("ascii").lower()
    if ":" in host:
        host = f"[{host}]"
    origin = f"{url.scheme.lower()}://{host}"
    if url.port is not None:
        origin += f":{url.port}"
    return origin


class Resolution:
    """A chosen ContentSource plus the server it needs, if any.

    The server (only present for LocalServedSource) is owned by the session
    that asked for the resolution.
    """

    __slots__ = ("source", "server")

    def __init__(self, source: ContentSource, server: Optional[ContentServer] = None):
        self.source = source
        self.server = server

    def __repr__(self) -> str:
        return f"Resolution(source={self.source!r}, server={'yes' if self.server else 'no'})"


async def _start_local_server(factory: LocalServerFactory) -> ContentServer:
    try:
        return await factory()
    except Exception as e:
        raise ResolutionDegradation(f"Local content server failed to start: {e}") from e


async def resolve(
    configured_remote: Optional[str],
    local_server_factory: LocalServerFactory,
    allow_insecure_local: bool,
    bundled_address: str,
) -> Resolution:
    """Pick the session's content source. Never raises on bad input or bind failure."""
    if is_https_url(configured_remote):
        return Resolution(RemoteSource(address=configured_remote.strip()))
    if configured_remote:
        logger.debug("Ignoring non-https remote %r", configured_remote)

    if allow_insecure_local:
        try:
            server = await _start_local_server(local_server_factory)
        except ResolutionDegradation as e:
            logger.debug("%s; falling back to bundled page", e)
        else:
            return Resolution(LocalServedSource(address=server.address), server)

    return Resolution(LocalBundledSource(address=bundled_address))
