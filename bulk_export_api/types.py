"""Shared types used across the bulk_export_api package.

This module centralizes the JSON-like typing alias, the record-type and job
status enums, and the small dataclasses that flow between the transport,
the retrying executor and the export job driver.
"""
from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union


# Recursive JSON-ish type used for payloads / returned JSON values
JSONType = Union[Dict[str, "JSONType"], List["JSONType"], str, int, float, bool, None]


class RecordType(str, Enum):
    """The three exportable entity kinds."""

    ALERT = "alert"
    CASE = "case"
    SAR = "sar"

    @classmethod
    def parse(cls, value: Union[str, "RecordType"]) -> "RecordType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid record type '{value}'. Must be one of: {choices}") from None


class JobStatus(str, Enum):
    """Remote status of a file export job."""

    REQUESTED = "REQUESTED"
    GENERATING = "GENERATING"
    READY_FOR_DOWNLOAD = "READY_FOR_DOWNLOAD"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.READY_FOR_DOWNLOAD, JobStatus.FAILED)

    @classmethod
    def parse(cls, value: Any) -> Optional["JobStatus"]:
        """Parse a wire status, returning None for anything unrecognized.

        The server has been seen to send "READY_FOR_DOWNLOAD", "ready for download",
        "Ready-For-Download" and "ReadyForDownload" for the same state, so case and
        separators are ignored on both sides of the comparison.
        """
        if not isinstance(value, str):
            return None
        key = re.sub(r"[\s_-]", "", value).upper()
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        return None


@dataclass(frozen=True)
class ExportRequest:
    """A validated request for one bulk export.

    Attributes:
        record_type: Which entity kind to export
        start_date: First calendar day of the range (inclusive)
        end_date: Last calendar day of the range (inclusive)
        destination_path: Where the archive is saved locally
        extra_flags: Record-type-specific flags, e.g. {"is_summary": True}
    """

    record_type: RecordType
    start_date: date
    end_date: date
    destination_path: str
    extra_flags: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "record_type", RecordType.parse(self.record_type))
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            # datetime is a subclass of date; only plain calendar dates are accepted
            if isinstance(value, datetime) or not isinstance(value, date):
                raise ValueError(f"{name} must be a calendar date, got {value!r}")
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date.isoformat()} is after end_date {self.end_date.isoformat()}"
            )
        if not self.destination_path:
            raise ValueError("destination_path must not be empty")
        # read-only copy of the caller's flags
        object.__setattr__(self, "extra_flags", MappingProxyType(dict(self.extra_flags)))

    def __hash__(self) -> int:
        return hash((
            self.record_type,
            self.start_date,
            self.end_date,
            self.destination_path,
            frozenset(self.extra_flags.items()),
        ))


@dataclass
class ExportJob:
    id: int
    status: JobStatus
    created_at: datetime


@dataclass(frozen=True)
class DownloadHandle:
    url: str


@dataclass
class RetryContext:
    """Attempt bookkeeping for one logical remote call, including its retries."""

    attempt: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


@dataclass(frozen=True)
class ParsedResponse:
    """Outcome of a single HTTP exchange as seen by the executor."""

    status: int
    headers: Mapping[str, str]
    data: JSONType
    method: str
    url: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
