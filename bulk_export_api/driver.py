"""Export job driver.

Drives one bulk export through its lifecycle:

    submit -> await_completion -> resolve_download_url -> download

Every remote call goes through the RetryingExecutor except the final signed
URL transfer, which uses Transport's streaming download. Any failure aborts
the remaining stages; a job is never re-submitted.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

from .adapters import adapter_for
from .config import ExportConfig
from .exceptions import (
    BulkExportError,
    DownloadError,
    JobFailedError,
    JobTimeoutError,
    NoDownloadUrlError,
    SubmissionError,
)
from .executor import RetryingExecutor
from .helpers import join_url
from .transport import Transport
from .types import DownloadHandle, ExportJob, ExportRequest, JobStatus, JSONType

LIST_ENDPOINT = "/file-exports/list"
DOWNLOAD_ENDPOINT = "/file-exports/download/{job_id}"

log = logging.getLogger(__name__)


# Download URL extraction strategies, tried in order. Each returns the URL or None.

def _bare_string(data: JSONType) -> Optional[str]:
    if isinstance(data, str):
        candidate = data.strip().strip('"')
        if candidate.lower().startswith(("https://", "http://")):
            return candidate
    return None


def _field(name: str) -> Callable[[JSONType], Optional[str]]:
    def extract(data: JSONType) -> Optional[str]:
        if isinstance(data, dict):
            value = data.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None
    extract.__name__ = f"field_{name}"
    return extract


URL_EXTRACTORS: Sequence[Callable[[JSONType], Optional[str]]] = (
    _bare_string,
    _field("url"),
    _field("download_url"),
    _field("signed_url"),
)


def extract_download_url(data: JSONType) -> Optional[str]:
    for extractor in URL_EXTRACTORS:
        url = extractor(data)
        if url:
            return url
    return None


def _coerce_id(value: Any) -> Optional[int]:
    # bool is an int subclass; True is not a job id
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


class ExportJobDriver:
    """State machine for one export call.

    The driver holds no per-job state between calls; the API key is passed to
    every operation and only lives in that call's locals.
    """

    def __init__(self, executor: RetryingExecutor, transport: Transport, config: ExportConfig,
                 clock: Callable[[], float] = time.monotonic):
        self.executor = executor
        self.transport = transport
        self.config = config
        self._clock = clock

    def _headers(self, api_key: str) -> Dict[str, str]:
        if not api_key:
            raise ValueError("An API key is required")
        return {
            self.config.api_key_header: api_key,
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return join_url(self.config.base_url, path)

    async def submit(self, request: ExportRequest, api_key: str) -> int:
        """Submit a bulk export and return the remote job id.

        Raises:
            SubmissionError: If the response carries no integer id
        """
        adapter = adapter_for(request.record_type)
        body = adapter.build_body(request)
        url = self._url(adapter.endpoint)
        log.info(
            f"[1] Submitting {request.record_type.value} export "
            f"{request.start_date.isoformat()}..{request.end_date.isoformat()}"
        )
        log.debug(f"Submission body: {body}")
        resp = await self.executor.execute("POST", url, self._headers(api_key), body)

        job_id = _coerce_id(resp.data.get("id")) if isinstance(resp.data, dict) else None
        if job_id is None:
            log.error(f"Submission response has no job id: {resp.data!r}")
            raise SubmissionError(request.record_type.value, resp.data)
        log.info(f"Export job {job_id} requested")
        return job_id

    async def _poll_status(self, job_id: int, headers: Dict[str, str]) -> Optional[JobStatus]:
        body = {"file_export_ids": [job_id], "offset": 1, "limit": 1}
        resp = await self.executor.execute("POST", self._url(LIST_ENDPOINT), headers, body)
        exports = resp.data.get("file_exports") if isinstance(resp.data, dict) else None
        for entry in exports or []:
            if isinstance(entry, dict) and _coerce_id(entry.get("id")) == job_id:
                raw_status = entry.get("status")
                status = JobStatus.parse(raw_status)
                if status is None:
                    log.warning(f"Export job {job_id} has unknown status {raw_status!r}, still waiting")
                return status
        log.debug(f"Export job {job_id} not yet visible in listing")
        return None

    async def await_completion(self, job_id: int, api_key: str,
                               created_at: Optional[datetime] = None) -> ExportJob:
        """Poll the export listing until the job is terminal or polling times out.

        A job that is not yet listed, or has an unrecognized status, is treated
        as still pending.

        Raises:
            JobFailedError: If the remote service marks the job failed
            JobTimeoutError: If poll_timeout elapses first
        """
        headers = self._headers(api_key)
        job = ExportJob(
            id=job_id,
            status=JobStatus.REQUESTED,
            created_at=created_at or datetime.now(timezone.utc),
        )
        started = self._clock()
        log.info(
            f"[2] Polling export job {job_id} every {self.config.poll_interval}s "
            f"(timeout {self.config.poll_timeout / 60:.0f} min)"
        )
        while True:
            status = await self._poll_status(job_id, headers)
            if status is not None and status is not job.status:
                log.info(f"Export job {job_id}: {job.status.value} -> {status.value}")
                job.status = status

            if job.status is JobStatus.READY_FOR_DOWNLOAD:
                return job
            if job.status is JobStatus.FAILED:
                log.error(f"Export job {job_id} failed on the remote side")
                raise JobFailedError(job_id)

            elapsed = self._clock() - started
            if elapsed >= self.config.poll_timeout:
                log.error(f"Export job {job_id} timed out after {elapsed:.0f}s")
                raise JobTimeoutError(job_id, elapsed / 60)
            await asyncio.sleep(self.config.poll_interval)

    async def resolve_download_url(self, job_id: int, api_key: str) -> DownloadHandle:
        """Fetch the signed download URL for a finished job.

        Raises:
            NoDownloadUrlError: If no extraction strategy finds a URL
        """
        log.info(f"[3] Resolving download URL for export job {job_id}")
        url = self._url(DOWNLOAD_ENDPOINT.format(job_id=job_id))
        resp = await self.executor.execute("GET", url, self._headers(api_key))
        signed_url = extract_download_url(resp.data)
        if signed_url is None:
            log.error(f"No download URL in response for export job {job_id}")
            raise NoDownloadUrlError(job_id, resp.data)
        return DownloadHandle(url=signed_url)

    async def download(self, handle: DownloadHandle, destination_path: str) -> str:
        """Stream the archive behind handle to destination_path.

        Parent directories are created as needed. A partially written file is
        removed on failure.

        Raises:
            DownloadError: If the transfer fails or the file is missing afterwards
        """
        path = Path(destination_path)
        log.info(f"[4] Downloading export to {destination_path}")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            written = await self.transport.download(handle.url, path)
        except (BulkExportError, OSError) as e:
            log.error(f"Failed to download export to {destination_path}: {e}")
            if path.is_file():
                path.unlink()
            raise DownloadError(f"Failed to download export: {e}", handle.url, destination_path) from e

        if not path.is_file():
            log.error(f"Downloaded file {destination_path} does not exist after write")
            raise DownloadError(
                f"File {destination_path} missing after download", handle.url, destination_path
            )
        log.info(f"Export saved to {destination_path} ({written} bytes)")
        return destination_path

    async def run(self, request: ExportRequest, api_key: str) -> str:
        """Run submit, await_completion, resolve_download_url and download in order.

        Returns:
            The destination path the archive was saved to
        """
        created_at = datetime.now(timezone.utc)
        job_id = await self.submit(request, api_key)
        await self.await_completion(job_id, api_key, created_at=created_at)
        handle = await self.resolve_download_url(job_id, api_key)
        return await self.download(handle, request.destination_path)
