"""Financial report aggregation over already-loaded deposits and withdrawals.

Pure functions: no I/O, no shared state, identical inputs give identical
outputs. Each sequence is folded in one pass into
  - running totals and status counters
  - a by-day map (UTC calendar day → amount, count)
  - a by-status map (status → count, total) in first-occurrence order
after which day buckets are sorted by ISO date string.

Amounts never raise: missing or malformed values count as 0, and a
withdrawal without a net amount (None or 0) contributes its gross amount.
Each record's amount is rounded half up to whole piastres before it is
summed, so two records of 0.5 total 2, not 1.

A record whose created_at is missing or unparseable still counts in the
totals, counters and status buckets, but lands in no day bucket and falls
outside every date range.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from src.au_common.enums import DepositStatus, WithdrawalStatus
from src.au_common.money import coerce_piastres
from src.au_reporting.domain.models import (
    DashboardStats,
    DateRange,
    ReportBucket,
    ReportData,
    ReportInput,
    StatusBucket,
    Timestamp,
)


def _field(record: ReportInput, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _status(record: ReportInput) -> str:
    value = _field(record, "status")
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def coerce_amount(value: Any) -> int:
    """Numeric coercion with 0 as the fallback for anything unusable."""
    return coerce_piastres(value)


def withdrawal_amount(record: ReportInput) -> int:
    """Net amount when present, gross amount otherwise."""
    net = coerce_amount(_field(record, "net_amount"))
    return net or coerce_amount(_field(record, "amount"))


def to_utc(value: Timestamp) -> datetime:
    """Normalize a timestamp; naive values and bare dates are taken as UTC."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _record_time(record: ReportInput) -> datetime | None:
    value = _field(record, "created_at")
    if value is None:
        return None
    try:
        return to_utc(value)
    except (TypeError, ValueError, AttributeError):
        return None


def filter_by_range(
    records: Sequence[ReportInput], date_range: DateRange | None
) -> list[ReportInput]:
    """Inclusive on both ends; applied only when both bounds are given."""
    if date_range is None or not date_range.is_bounded:
        return list(records)
    start = to_utc(date_range.start)  # type: ignore[arg-type]
    end = to_utc(date_range.end)  # type: ignore[arg-type]
    kept: list[ReportInput] = []
    for record in records:
        at = _record_time(record)
        if at is not None and start <= at <= end:
            kept.append(record)
    return kept


@dataclass(frozen=True)
class _Fold:
    total: int
    pending: int
    succeeded: int
    by_date: tuple[ReportBucket, ...]
    by_status: tuple[StatusBucket, ...]


def _fold(
    records: Sequence[ReportInput],
    success_status: str,
    pending_status: str,
    amount_of: Callable[[ReportInput], int],
) -> _Fold:
    total = pending = succeeded = 0
    by_date: dict[str, list[int]] = {}     # day -> [amount, count]
    by_status: dict[str, list[int]] = {}   # status -> [count, total]

    for record in records:
        status = _status(record)
        amount = amount_of(record)
        is_success = status == success_status

        if is_success:
            total += amount
            succeeded += 1
        elif status == pending_status:
            pending += 1

        at = _record_time(record)
        if at is not None:
            day_acc = by_date.setdefault(at.date().isoformat(), [0, 0])
            day_acc[0] += amount if is_success else 0
            day_acc[1] += 1

        status_acc = by_status.setdefault(status, [0, 0])
        status_acc[0] += 1
        status_acc[1] += amount

    return _Fold(
        total=total,
        pending=pending,
        succeeded=succeeded,
        by_date=tuple(
            ReportBucket(date=day, amount=acc[0], count=acc[1])
            for day, acc in sorted(by_date.items())
        ),
        by_status=tuple(
            StatusBucket(status=status, count=acc[0], total=acc[1])
            for status, acc in by_status.items()
        ),
    )


def generate_report(
    deposits: Sequence[ReportInput],
    withdrawals: Sequence[ReportInput],
    date_range: DateRange | None = None,
) -> ReportData:
    deps = _fold(
        filter_by_range(deposits, date_range),
        DepositStatus.APPROVED.value,
        DepositStatus.PENDING.value,
        lambda d: coerce_amount(_field(d, "amount")),
    )
    wds = _fold(
        filter_by_range(withdrawals, date_range),
        WithdrawalStatus.COMPLETED.value,
        WithdrawalStatus.PENDING.value,
        withdrawal_amount,
    )
    return ReportData(
        total_deposits=deps.total,
        total_withdrawals=wds.total,
        net_profit=deps.total - wds.total,
        pending_deposits=deps.pending,
        pending_withdrawals=wds.pending,
        approved_deposits=deps.succeeded,
        completed_withdrawals=wds.succeeded,
        deposits_by_date=deps.by_date,
        withdrawals_by_date=wds.by_date,
        deposits_by_status=deps.by_status,
        withdrawals_by_status=wds.by_status,
    )


def dashboard_stats(
    user_count: int,
    deposits: Sequence[ReportInput],
    withdrawals: Sequence[ReportInput],
) -> DashboardStats:
    """Headline cards: gross completed withdrawals, unlike the net figure in reports."""
    approved = DepositStatus.APPROVED.value
    completed = WithdrawalStatus.COMPLETED.value
    pending = DepositStatus.PENDING.value
    return DashboardStats(
        total_users=user_count,
        total_deposits=sum(
            coerce_amount(_field(d, "amount")) for d in deposits if _status(d) == approved
        ),
        total_withdrawals=sum(
            coerce_amount(_field(w, "amount"))
            for w in withdrawals
            if _status(w) == completed
        ),
        pending_requests=sum(1 for d in deposits if _status(d) == pending)
        + sum(1 for w in withdrawals if _status(w) == pending),
    )
