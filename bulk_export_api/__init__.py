"""Bulk export API client package.

This package orchestrates a vendor's asynchronous bulk-export API: it submits
an export for one record type (alerts, cases or SARs) over a calendar-date
range, polls until the vendor has generated the archive, resolves the signed
download URL and streams the file to local storage. Transient failures
(HTTP 429/500/503) are retried with backoff.

Example Usage:
    from datetime import date
    from bulk_export_api import BulkExportClient, ExportConfig, ExportRequest, RecordType

    config = ExportConfig(base_url='https://api.example.com/v1')

    async with BulkExportClient(config) as client:
        # Shortcut per record type
        path = await client.export_alerts(
            date(2024, 1, 1),
            date(2024, 1, 31),
            './out/alerts.zip',
            api_key=api_key,
            is_summary=True,
        )

        # Or build the request explicitly
        request = ExportRequest(
            record_type=RecordType.SAR,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 3, 31),
            destination_path='./out/sars.zip',
        )
        path = await client.export(request, api_key)
"""

from ._version import __version__, __version_info__
from .exceptions import (
    BulkExportError,
    ClientError,
    RemoteExhaustedError,
    RequestTimeoutError,
    SubmissionError,
    JobFailedError,
    JobTimeoutError,
    NoDownloadUrlError,
    DownloadError,
)
from .types import (
    RecordType,
    JobStatus,
    ExportRequest,
    ExportJob,
    DownloadHandle,
    RetryContext,
    ParsedResponse,
)
from .config import ExportConfig, ENVIRONMENT_HOSTS, resolve_base_url
from .adapters import RecordTypeAdapter, ADAPTERS, adapter_for
from .transport import Transport
from .executor import RetryingExecutor, compute_backoff
from .driver import ExportJobDriver
from .client import BulkExportClient

__all__ = [
    # Version
    '__version__',
    '__version_info__',

    # Main classes
    'BulkExportClient',
    'ExportJobDriver',
    'RetryingExecutor',
    'Transport',
    'ExportConfig',

    # Exceptions
    'BulkExportError',
    'ClientError',
    'RemoteExhaustedError',
    'RequestTimeoutError',
    'SubmissionError',
    'JobFailedError',
    'JobTimeoutError',
    'NoDownloadUrlError',
    'DownloadError',

    # Types
    'RecordType',
    'JobStatus',
    'ExportRequest',
    'ExportJob',
    'DownloadHandle',
    'RetryContext',
    'ParsedResponse',
    'RecordTypeAdapter',

    # Helpers
    'ADAPTERS',
    'ENVIRONMENT_HOSTS',
    'adapter_for',
    'compute_backoff',
    'resolve_base_url',
]
