"""Retrying request executor.

Wraps Transport with the retry policy shared by every remote call: 429, 500
and 503 are retried with Retry-After or exponential backoff plus jitter, every
other non-2xx status fails immediately.
"""
import asyncio
import logging
import random
from typing import Any, Callable, Mapping, Optional

from .config import ExportConfig
from .exceptions import ClientError, RemoteExhaustedError
from .helpers import parse_retry_after
from .transport import Transport
from .types import ParsedResponse, RetryContext

RETRYABLE_STATUSES = frozenset({429, 500, 503})

log = logging.getLogger(__name__)


def compute_backoff(attempt: int, base_delay: int, max_wait: int,
                    retry_after: Optional[int] = None,
                    rand: Callable[[float, float], float] = random.uniform) -> int:
    """Compute the wait before the next attempt.

    Args:
        attempt: 1-based number of the attempt that just failed
        base_delay: Base of the exponential backoff, in seconds
        max_wait: Hard cap on the returned delay
        retry_after: Integer seconds from a Retry-After header, if any
        rand: Jitter source, uniform over [a, b]

    Returns:
        Delay in whole seconds, never above max_wait
    """
    if retry_after is not None:
        delay = retry_after
    else:
        delay = int(base_delay * 2 ** (attempt - 1) + rand(0, base_delay))
    return max(0, min(delay, max_wait))


def _error_message(data: Any) -> str:
    if isinstance(data, Mapping):
        for key in ("message", "error", "detail"):
            if data.get(key):
                return str(data[key])
    if data is None or data == "":
        return "<empty response>"
    return str(data)[:500]


class RetryingExecutor:
    """Executes remote calls through Transport under the configured retry budget."""

    def __init__(self, transport: Transport, config: ExportConfig,
                 rand: Callable[[float, float], float] = random.uniform):
        self.transport = transport
        self.config = config
        self._rand = rand

    async def execute(self, method: str, url: str, headers: Mapping[str, str],
                      body: Any = None) -> ParsedResponse:
        """Execute one logical call, retrying transient failures.

        Raises:
            ClientError: On a non-retryable status or a connection failure
            RemoteExhaustedError: When every attempt hit 429/500/503
            RequestTimeoutError: When a single attempt times out
        """
        ctx = RetryContext()
        max_attempts = self.config.max_retries + 1
        while True:
            ctx.attempt += 1
            resp = await self.transport.request(method, url, headers, body)
            if resp.ok:
                if ctx.attempt > 1:
                    log.info(f"{method} {url} succeeded on attempt {ctx.attempt} after {ctx.elapsed():.1f}s")
                return resp

            if resp.status not in RETRYABLE_STATUSES:
                message = _error_message(resp.data)
                log.error(f"{method} {url} failed with {resp.status}: {message}")
                raise ClientError(message, resp.status, method, url)

            if ctx.attempt >= max_attempts:
                log.error(f"{method} {url} exhausted {max_attempts} attempts, last status {resp.status}")
                raise RemoteExhaustedError(resp.status, method, url, ctx.attempt)

            retry_after = parse_retry_after(resp.headers.get("Retry-After"))
            delay = compute_backoff(
                ctx.attempt,
                self.config.base_delay,
                self.config.max_wait,
                retry_after=retry_after,
                rand=self._rand,
            )
            log.warning(
                f"{method} {url} returned {resp.status} (attempt {ctx.attempt}/{max_attempts}), "
                f"retrying in {delay}s"
            )
            await asyncio.sleep(delay)
