# MISP Bridge: HTTP Transport Adapter
#
# Performs exactly one HTTP request per call and returns the status code
# with the fully read body.  The whole exchange (connect, send, read) is
# bounded by a single deadline; exceeding it aborts the in-flight request
# and raises MispTimeout.  Lower-level network failures and URLs httpx
# refuses to build are reported as TransportFailure.  No retries happen
# here or anywhere above.

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .exceptions import MispTimeout, TransportFailure

logger = logging.getLogger(__name__)

USER_AGENT = "misp-bridge/0.1"


@dataclass
class TransportResponse:
    """Raw outcome of one HTTP exchange."""

    status_code: int
    text: str
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport:
    """Single-request HTTP adapter over ``httpx.AsyncClient``.

    Args:
        timeout: Deadline in seconds for the complete request.
        verify_ssl: Verify the server certificate.
        transport: Optional httpx transport (``httpx.MockTransport`` in
            tests).
    """

    def __init__(
        self,
        timeout: float,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._transport = transport

    async def request(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> TransportResponse:
        """Send one request and return its status and body text.

        Raises:
            MispTimeout: the deadline elapsed before the body was read.
            TransportFailure: the request failed below HTTP.
        """
        started = time.monotonic()
        try:
            status, text = await asyncio.wait_for(
                self._send(method, url, headers, body, params),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise MispTimeout(self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise TransportFailure(str(exc) or type(exc).__name__) from exc

        return TransportResponse(
            status_code=status,
            text=text,
            elapsed_ms=(time.monotonic() - started) * 1000.0,
        )

    async def _send(self, method, url, headers, body, params):
        content = None
        if body is not None:
            content = json.dumps(body).encode("utf-8")

        async with httpx.AsyncClient(
            timeout=self.timeout,
            verify=self.verify_ssl,
            transport=self._transport,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            resp = await client.request(
                method,
                url,
                headers=headers,
                content=content,
                params=params,
            )
            return resp.status_code, resp.text
