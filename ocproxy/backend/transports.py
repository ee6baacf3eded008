"""In-process transports for backend clients.

OpencodeClient opens a short-lived httpx client per call. Tests (and embedded
deployments) can route those calls to an ASGI app instead of the network by
mounting a transport for the backend's address:

    with mounted_transport("http://opencode.test", httpx.ASGITransport(app=app)):
        await OpencodeClient("http://opencode.test").create_session()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("ocproxy")

_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def _address(url_or_host: str) -> str:
    """Reduce a backend URL, or a bare ``host[:port]``, to a lookup key."""
    value = url_or_host.strip().lower()
    if "://" in value:
        value = urlparse(value).netloc
    return value.rstrip("/")


def register_backend_transport(url_or_host: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route requests for a backend address through ``transport``."""
    address = _address(url_or_host) if url_or_host else ""
    if not address:
        raise ValueError("backend address is required")
    _TRANSPORTS[address] = transport
    logger.debug("Mounted backend transport for '%s'", address)


def unregister_backend_transport(url_or_host: str) -> None:
    if url_or_host:
        _TRANSPORTS.pop(_address(url_or_host), None)


def clear_backend_transports() -> None:
    _TRANSPORTS.clear()


def transport_for(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """Return the transport mounted for the URL's address, if any."""
    if not url:
        return None
    return _TRANSPORTS.get(_address(url))


@contextmanager
def mounted_transport(
    url_or_host: str, transport: httpx.AsyncBaseTransport
) -> Iterator[httpx.AsyncBaseTransport]:
    """Mount ``transport`` for the duration of the block.

    A transport previously mounted for the same address is restored on exit.
    """
    address = _address(url_or_host)
    previous = _TRANSPORTS.get(address)
    register_backend_transport(address, transport)
    try:
        yield transport
    finally:
        if previous is None:
            _TRANSPORTS.pop(address, None)
        else:
            _TRANSPORTS[address] = previous
