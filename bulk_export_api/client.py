"""High-level bulk export client.

BulkExportClient wires Transport, RetryingExecutor and ExportJobDriver
together for one configuration and owns the underlying aiohttp session.

Example:
    config = ExportConfig(base_url="https://api.example.com/v1")
    async with BulkExportClient(config) as client:
        path = await client.export_alerts(
            date(2024, 1, 1), date(2024, 1, 31), "./out/alerts.zip",
            api_key=api_key, is_summary=True,
        )
"""
import logging
import time
from datetime import date
from typing import Any, Callable, Mapping, Optional

from .config import ExportConfig
from .driver import ExportJobDriver
from .executor import RetryingExecutor
from .transport import Transport
from .types import ExportRequest, RecordType

log = logging.getLogger(__name__)


class BulkExportClient:
    """Client for the vendor bulk-export API.

    The API key is never stored on the client; pass it to each export call.
    Independent export calls may run concurrently on one client.
    """

    def __init__(self, config: ExportConfig, *, clock: Callable[[], float] = time.monotonic):
        """Initialize the client.

        Args:
            config: Connection, retry and polling settings
            clock: Monotonic clock used for the polling timeout
        """
        self.config = config
        self.transport = Transport(config)
        self.executor = RetryingExecutor(self.transport, config)
        self.driver = ExportJobDriver(self.executor, self.transport, config, clock=clock)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "BulkExportClient":
        """Create a client from BULK_EXPORT_* environment variables."""
        return cls(ExportConfig.from_env(environ, **overrides))

    async def __aenter__(self) -> "BulkExportClient":
        await self.transport._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    async def export(self, request: ExportRequest, api_key: str) -> str:
        """Run one export end to end.

        Args:
            request: Validated export request
            api_key: Static API key sent with every call of this export

        Returns:
            The local path the archive was saved to

        Raises:
            BulkExportError: Any subclass, depending on the failing stage
        """
        log.info(f"Starting {request.record_type.value} export to {request.destination_path}")
        return await self.driver.run(request, api_key)

    async def export_alerts(self, start_date: date, end_date: date, destination_path: str,
                            api_key: str, is_summary: bool = False) -> str:
        request = ExportRequest(
            record_type=RecordType.ALERT,
            start_date=start_date,
            end_date=end_date,
            destination_path=destination_path,
            extra_flags={"is_summary": is_summary},
        )
        return await self.export(request, api_key)

    async def export_cases(self, start_date: date, end_date: date, destination_path: str,
                           api_key: str) -> str:
        request = ExportRequest(RecordType.CASE, start_date, end_date, destination_path)
        return await self.export(request, api_key)

    async def export_sars(self, start_date: date, end_date: date, destination_path: str,
                          api_key: str) -> str:
        request = ExportRequest(RecordType.SAR, start_date, end_date, destination_path)
        return await self.export(request, api_key)

    async def export_records(self, record_type: Any, start_date: date, end_date: date,
                             destination_path: str, api_key: str,
                             extra_flags: Optional[Mapping[str, Any]] = None) -> str:
        """Export any record type given by name or RecordType."""
        request = ExportRequest(
            record_type=RecordType.parse(record_type),
            start_date=start_date,
            end_date=end_date,
            destination_path=destination_path,
            extra_flags=extra_flags or {},
        )
        return await self.export(request, api_key)
