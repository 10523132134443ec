"""Exception classes for the bulk_export_api package.

Every failure of an export call is raised as one of the classes below so that
callers can branch on the kind of error instead of parsing messages. All of
them derive from BulkExportError.
"""
from typing import Any, Optional


class BulkExportError(Exception):
    """Base exception for all bulk export errors.

    Catching this exception will catch all bulk_export_api-specific errors.
    """
    pass


class ClientError(BulkExportError):
    """Raised when a request fails with a non-retryable outcome.

    This covers every non-2xx status outside 429/500/503, and transport
    failures (connection refused, DNS, reset) in which case status_code is None.
    """

    def __init__(self, message: str, status_code: Optional[int] = None,
                 method: Optional[str] = None, url: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.method = method
        self.url = url
        if status_code is None:
            super().__init__(f"{method} {url} failed: {message}")
        else:
            super().__init__(f"{method} {url} failed with {status_code}: {message}")


class RemoteExhaustedError(BulkExportError):
    """Raised when the retry budget is spent on retryable statuses."""

    def __init__(self, status_code: int, method: str, url: str, attempts: int):
        self.status_code = status_code
        self.method = method
        self.url = url
        self.attempts = attempts
        super().__init__(
            f"{method} {url} still failing with {status_code} after {attempts} attempts"
        )


class RequestTimeoutError(BulkExportError):
    """Raised when a single HTTP request exceeds the configured request timeout."""

    def __init__(self, method: str, url: str):
        self.method = method
        self.url = url
        super().__init__(f"{method} {url} timed out")


class SubmissionError(BulkExportError):
    """Raised when the bulk-export submission response carries no usable job id."""

    def __init__(self, record_type: str, response: Any = None):
        self.record_type = record_type
        self.response = response
        super().__init__(
            f"Bulk export submission for {record_type} returned no job id: {response!r}"
        )


class JobFailedError(BulkExportError):
    """Raised when the remote service marks the export job as failed."""

    def __init__(self, job_id: int):
        self.job_id = job_id
        super().__init__(f"Export job {job_id} failed on the remote side")


class JobTimeoutError(BulkExportError):
    """Raised when the export job is not ready before the polling timeout."""

    def __init__(self, job_id: int, elapsed_minutes: float):
        self.job_id = job_id
        self.elapsed_minutes = elapsed_minutes
        super().__init__(
            f"Export job {job_id} not ready after {elapsed_minutes:.1f} minutes"
        )


class NoDownloadUrlError(BulkExportError):
    """Raised when the download-resolution response contains no URL."""

    def __init__(self, job_id: int, response: Any = None):
        self.job_id = job_id
        self.response = response
        super().__init__(f"No download URL for export job {job_id}: {response!r}")


class DownloadError(BulkExportError):
    """Raised when streaming the export archive to disk fails.

    This can occur due to:
    - A non-2xx response from the signed URL
    - Network errors mid-transfer
    - The file missing after the write completed
    """

    def __init__(self, message: str, url: Optional[str] = None, path: Optional[str] = None):
        self.message = message
        self.url = url
        self.path = path
        super().__init__(message)
