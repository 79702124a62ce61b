"""Synchronous HTTP executor.

:class:`HttpExecutor` wraps :class:`httpx.Client` and performs exactly one
call per request: no retries, a bounded timeout, and transport failures
mapped onto the :class:`~cloudflare_cli.exceptions.TransportError` family.
Status codes are not interpreted here; callers decide when to apply
:func:`raise_for_status`, so that an error body can still be shown.
"""

from __future__ import annotations

import json
import logging
from time import monotonic
from typing import Optional

import httpx

from cloudflare_cli.exceptions import (
    ApiError,
    ConnectFailure,
    MalformedResponse,
    Timeout,
)
from cloudflare_cli.models import BoundRequest, RawResponse

logger = logging.getLogger(__name__)


class HttpExecutor:
    """Execute :class:`~cloudflare_cli.models.BoundRequest` objects.

    Must be used as a context manager so the underlying connection pool is
    opened and closed.

    Args:
        timeout: Timeout in seconds. httpx applies it to each of connect,
            read, write and pool acquisition; the executor also enforces it
            as a deadline for the whole call, body download included.
        transport: Optional :class:`httpx.BaseTransport`, for tests.

    Example::

        with HttpExecutor(timeout=30.0) as executor:
            response = executor.execute(request)
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> HttpExecutor:
        self._client = httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def execute(self, request: BoundRequest, base_url: Optional[str] = None) -> RawResponse:
        """Send *request* once and return the undecoded response.

        Args:
            request: The request to send.
            base_url: Joined in front of ``request.url`` when that URL is
                relative.

        Raises:
            Timeout: If any phase, or the call as a whole, exceeds the timeout.
            ConnectFailure: On DNS, connection and other network failures.
            MalformedResponse: If the response cannot be decoded.
        """
        assert self._client is not None, "HttpExecutor must be used as a context manager"

        url = request.url
        if base_url and not url.startswith(("http://", "https://")):
            url = base_url.rstrip("/") + "/" + url.lstrip("/")

        content: Optional[bytes] = None
        if request.has_body:
            content = json.dumps(request.body).encode("utf-8")

        method = request.method.value
        logger.debug("%s %s", method, url)
        timed_out = f"Request timed out after {self._timeout:g}s: {method} {url}"
        deadline = monotonic() + self._timeout
        try:
            with self._client.stream(
                method, url, headers=request.headers, content=content
            ) as response:
                chunks: list[bytes] = []
                for chunk in response.iter_bytes():
                    chunks.append(chunk)
                    if monotonic() > deadline:
                        raise Timeout(timed_out)
                if monotonic() > deadline:
                    raise Timeout(timed_out)
        except httpx.TimeoutException as exc:
            raise Timeout(timed_out) from exc
        except httpx.DecodingError as exc:
            raise MalformedResponse(f"Could not decode response from {url}: {exc}") from exc
        except httpx.InvalidURL as exc:
            raise ConnectFailure(f"Invalid URL {url}: {exc}") from exc
        except httpx.TransportError as exc:
            raise ConnectFailure(f"Connection failed: {method} {url}: {exc}") from exc

        logger.debug("HTTP %d %s", response.status_code, response.reason_phrase)
        return RawResponse(
            status_code=response.status_code,
            reason=response.reason_phrase or "",
            headers=dict(response.headers),
            content=b"".join(chunks),
        )


def raise_for_status(response: RawResponse) -> None:
    """Raise :class:`~cloudflare_cli.exceptions.ApiError` for a non-2xx response.

    The body is kept on the exception so it can be shown verbatim.
    """
    if response.is_success:
        return
    raise ApiError(response.status_code, response.text, response.reason)
