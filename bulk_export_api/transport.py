"""Single-shot HTTP transport over aiohttp.

Transport issues exactly one request per call and either returns a
ParsedResponse (for any HTTP status) or raises a classified failure for
problems below HTTP. It also provides the streaming download primitive used
for signed URLs. Retrying is the executor's job, not this module's.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import aiohttp

from .config import ExportConfig, build_ssl_context
from .exceptions import ClientError, RequestTimeoutError
from .helpers import scrub_nul
from .types import ParsedResponse

log = logging.getLogger(__name__)


class Transport:
    """Owns the aiohttp session used by every remote call of one client."""

    def __init__(self, config: ExportConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "Transport":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _build_connector(self) -> aiohttp.TCPConnector:
        ssl_arg = self.config.ssl
        if ssl_arg is None or ssl_arg is True:
            ssl_arg = build_ssl_context()
        kwargs = {"ssl": ssl_arg}
        if self.config.conn_limit is not None:
            kwargs["limit"] = self.config.conn_limit
        if self.config.conn_limit_per_host is not None:
            kwargs["limit_per_host"] = self.config.conn_limit_per_host
        if self.config.keepalive_timeout is not None:
            kwargs["keepalive_timeout"] = self.config.keepalive_timeout
        return aiohttp.TCPConnector(**kwargs)

    async def _ensure_session(self) -> None:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
            self._session = aiohttp.ClientSession(
                connector=self._build_connector(),
                timeout=timeout,
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(self, method: str, url: str, headers: Mapping[str, str],
                      body: Any = None) -> ParsedResponse:
        """Send one request and parse its body.

        Bodies are parsed as JSON regardless of content-type, falling back to
        text when they are not JSON. Non-2xx statuses are returned, not raised.

        Raises:
            RequestTimeoutError: If the request exceeds the configured timeout
            ClientError: On connection-level failures (status_code is None)
        """
        await self._ensure_session()
        payload = scrub_nul(body) if body is not None else None
        try:
            async with self._session.request(method, url, headers=dict(headers), json=payload) as resp:
                log.debug(f"{method} {url} response - status: {resp.status}, content-type: {resp.content_type}")
                # server sometimes reports wrong content-type -> force JSON parse
                try:
                    data = await resp.json(content_type=None)
                except (ValueError, json.JSONDecodeError):
                    data = await resp.text()
                    log.debug(f"{method} {url} returned non-JSON body of length {len(data)}")
                return ParsedResponse(
                    status=resp.status,
                    headers=resp.headers,
                    data=data,
                    method=method,
                    url=url,
                )
        except asyncio.TimeoutError as e:
            log.error(f"{method} {url} timed out after {self.config.request_timeout}s")
            raise RequestTimeoutError(method, url) from e
        except aiohttp.ClientError as e:
            log.error(f"{method} {url} failed: {e}")
            raise ClientError(str(e), None, method, url) from e

    def download_timeout(self) -> aiohttp.ClientTimeout:
        """Timeout for archive transfers: no overall cap, only connect and per-read limits."""
        return aiohttp.ClientTimeout(
            total=None,
            sock_connect=self.config.request_timeout,
            sock_read=self.config.request_timeout,
        )

    async def download(self, url: str, destination: Path) -> int:
        """Stream the body of a GET on url into destination.

        The signed URL is pre-authenticated, so no API key header is sent.

        Returns:
            Number of bytes written

        Raises:
            RequestTimeoutError: If connecting or a single read stalls past request_timeout
            ClientError: On non-2xx responses or connection failures
            OSError: If the destination cannot be written
        """
        await self._ensure_session()
        written = 0
        try:
            async with self._session.get(url, timeout=self.download_timeout()) as resp:
                resp.raise_for_status()
                with open(destination, "wb") as f:
                    while True:
                        chunk = await resp.content.read(self.config.chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)
                        written += len(chunk)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError("GET", url) from e
        except aiohttp.ClientResponseError as e:
            raise ClientError(e.message, e.status, "GET", url) from e
        except aiohttp.ClientError as e:
            raise ClientError(str(e), None, "GET", url) from e
        log.debug(f"Wrote {written} bytes to {destination}")
        return written
