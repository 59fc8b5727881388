"""
Fetches package archives over HTTP.

One GET per call, on a client built for that call alone. No retries and no
explicit timeout: httpx defaults apply and every failure goes back to the caller.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import httpx
import structlog

from ept.errors import NetworkError
from ept.package import Package

logger = structlog.get_logger(__name__)

USER_AGENT = "Better-Ept/1.1 (Powered By Rust && Reqwest)"
DEFAULT_CHUNK_SIZE = 8192


def _build_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create a client that decodes gzip and brotli bodies and follows redirects."""
    headers = {
        'User-Agent': USER_AGENT,
        'Accept-Encoding': 'gzip, br',
    }
    return httpx.AsyncClient(
        headers=headers,
        follow_redirects=True,
        transport=transport,
    )


class _ClientClosingStream(httpx.AsyncByteStream):
    """Response body stream that closes the owning client along with the response."""

    def __init__(self, stream: httpx.AsyncByteStream, client: httpx.AsyncClient):
        self._stream = stream
        self._client = client

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            yield chunk

    async def aclose(self) -> None:
        try:
            await self._stream.aclose()
        finally:
            await self._client.aclose()


async def fetch(
    package: Package,
    base_url: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    """
    Send the GET for the archive of `package` and return the live response.

    The body is left unread. Reading it to the end, or calling
    `response.aclose()`, releases the connection and the client made for
    this call.

    Raises:
        UrlError: base_url cannot be parsed or joined.
        NetworkError: the status is not 2xx; the response is attached with its body read.
        httpx.HTTPError: the transport failed (DNS, connect, TLS, timeout).
    """
    url = package.download_url(base_url)
    logger.debug("fetching_package", package=str(package), url=str(url))

    client = _build_client(transport)
    try:
        response = await client.send(client.build_request("GET", url), stream=True)
    except BaseException:
        await client.aclose()
        raise
    response.stream = _ClientClosingStream(response.stream, client)

    if not response.is_success:
        try:
            await response.aread()
        finally:
            await response.aclose()
        logger.debug("package_fetch_failed", url=str(url), status_code=response.status_code)
        raise NetworkError(response)

    logger.debug("package_fetched", url=str(url), status_code=response.status_code)
    return response


@asynccontextmanager
async def stream(
    package: Package,
    base_url: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[httpx.Response]:
    """Scoped form of `fetch`: the response and its client are closed when the block exits."""
    response = await fetch(package, base_url, transport=transport)
    try:
        yield response
    finally:
        await response.aclose()


async def download(
    package: Package,
    base_url: str,
    destination: Union[str, Path],
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """
    Stream the archive into `destination` and return its path.

    Nothing is left at `destination` when the request or the body transfer fails.
    """
    destination = Path(destination)

    written = 0
    async with stream(package, base_url, transport=transport) as response:
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(destination, 'wb') as f:
                async for chunk in response.aiter_bytes(chunk_size=chunk_size):
                    f.write(chunk)
                    written += len(chunk)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise

    logger.debug("package_downloaded", path=str(destination), size=written)
    return destination
