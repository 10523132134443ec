"""Per-record-type request shapes for bulk exports.

Each adapter is pure data: the endpoint to post to, the names of the two date
filter fields, and the flags sent with every request of that type.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .helpers import day_bounds
from .types import ExportRequest, RecordType


@dataclass(frozen=True)
class RecordTypeAdapter:
    record_type: RecordType
    endpoint: str
    start_field: str
    end_field: str
    optional_flags: Mapping[str, Any] = field(default_factory=dict)
    fixed_flags: Mapping[str, Any] = field(default_factory=lambda: {"use_csv": True})

    def build_body(self, request: ExportRequest) -> Dict[str, Any]:
        """Build the JSON body for a bulk-export submission.

        Caller flags override the defaults of optional_flags only; fixed_flags
        are always sent as declared and undeclared flags are ignored.
        """
        if request.record_type is not self.record_type:
            raise ValueError(
                f"{self.record_type.value} adapter cannot build a {request.record_type.value} request"
            )
        start, end = day_bounds(request.start_date, request.end_date)
        body: Dict[str, Any] = {self.start_field: start, self.end_field: end}
        for name, default in self.optional_flags.items():
            body[name] = request.extra_flags.get(name, default)
        body.update(self.fixed_flags)
        return body


ALERT_ADAPTER = RecordTypeAdapter(
    record_type=RecordType.ALERT,
    endpoint="/alerts/bulk-export",
    start_field="start_date",
    end_field="end_date",
    optional_flags={"is_summary": False},
)

# Case exports are accepted without an agent id or email.
CASE_ADAPTER = RecordTypeAdapter(
    record_type=RecordType.CASE,
    endpoint="/cases/bulk-export",
    start_field="start_date",
    end_field="end_date",
)

SAR_ADAPTER = RecordTypeAdapter(
    record_type=RecordType.SAR,
    endpoint="/sars/bulk-export",
    start_field="created_at_start",
    end_field="created_at_end",
)

ADAPTERS: Mapping[RecordType, RecordTypeAdapter] = {
    RecordType.ALERT: ALERT_ADAPTER,
    RecordType.CASE: CASE_ADAPTER,
    RecordType.SAR: SAR_ADAPTER,
}


def adapter_for(record_type) -> RecordTypeAdapter:
    return ADAPTERS[RecordType.parse(record_type)]
