"""Report value objects — frozen dataclasses, recomputed on every request."""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol

Timestamp = datetime | date | str


class ReportRecord(Protocol):
    """Anything with amount/status/created_at; withdrawals may add net_amount."""

    amount: Any
    status: str
    created_at: Timestamp


# the report repository hands over mappings; attribute-style records work too
ReportInput = ReportRecord | Mapping[str, Any]


@dataclass(frozen=True)
class DateRange:
    start: Timestamp | None = None
    end: Timestamp | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start is not None and self.end is not None


@dataclass(frozen=True)
class ReportBucket:
    date: str      # YYYY-MM-DD, UTC
    amount: int    # piastres, approved/completed only
    count: int     # every record of the day


@dataclass(frozen=True)
class StatusBucket:
    status: str
    count: int
    total: int     # piastres, regardless of status


@dataclass(frozen=True)
class ReportData:
    total_deposits: int
    total_withdrawals: int
    net_profit: int
    pending_deposits: int
    pending_withdrawals: int
    approved_deposits: int
    completed_withdrawals: int
    deposits_by_date: tuple[ReportBucket, ...]
    withdrawals_by_date: tuple[ReportBucket, ...]
    deposits_by_status: tuple[StatusBucket, ...]
    withdrawals_by_status: tuple[StatusBucket, ...]


@dataclass(frozen=True)
class DashboardStats:
    total_users: int
    total_deposits: int
    total_withdrawals: int
    pending_requests: int
