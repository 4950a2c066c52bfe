"""Pydantic schemas for au_reporting API.

Every amount is returned twice: int piastres and a display string.
"""

from pydantic import BaseModel

from src.au_common.money import piastres_to_display
from src.au_reporting.domain.models import (
    DashboardStats,
    ReportBucket,
    ReportData,
    StatusBucket,
)


class BucketOut(BaseModel):
    date: str
    amount: int
    amount_display: str
    count: int

    @classmethod
    def from_domain(cls, b: ReportBucket) -> "BucketOut":
        return cls(
            date=b.date,
            amount=b.amount,
            amount_display=piastres_to_display(b.amount),
            count=b.count,
        )


class StatusBucketOut(BaseModel):
    status: str
    count: int
    total: int
    total_display: str

    @classmethod
    def from_domain(cls, b: StatusBucket) -> "StatusBucketOut":
        return cls(
            status=b.status,
            count=b.count,
            total=b.total,
            total_display=piastres_to_display(b.total),
        )


class ReportResponse(BaseModel):
    total_deposits: int
    total_deposits_display: str
    total_withdrawals: int
    total_withdrawals_display: str
    net_profit: int
    net_profit_display: str
    pending_deposits: int
    pending_withdrawals: int
    approved_deposits: int
    completed_withdrawals: int
    deposits_by_date: list[BucketOut]
    withdrawals_by_date: list[BucketOut]
    deposits_by_status: list[StatusBucketOut]
    withdrawals_by_status: list[StatusBucketOut]

    @classmethod
    def from_report(cls, r: ReportData) -> "ReportResponse":
        return cls(
            total_deposits=r.total_deposits,
            total_deposits_display=piastres_to_display(r.total_deposits),
            total_withdrawals=r.total_withdrawals,
            total_withdrawals_display=piastres_to_display(r.total_withdrawals),
            net_profit=r.net_profit,
            net_profit_display=piastres_to_display(r.net_profit),
            pending_deposits=r.pending_deposits,
            pending_withdrawals=r.pending_withdrawals,
            approved_deposits=r.approved_deposits,
            completed_withdrawals=r.completed_withdrawals,
            deposits_by_date=[BucketOut.from_domain(b) for b in r.deposits_by_date],
            withdrawals_by_date=[BucketOut.from_domain(b) for b in r.withdrawals_by_date],
            deposits_by_status=[StatusBucketOut.from_domain(b) for b in r.deposits_by_status],
            withdrawals_by_status=[
                StatusBucketOut.from_domain(b) for b in r.withdrawals_by_status
            ],
        )


class StatsResponse(BaseModel):
    total_users: int
    total_deposits: int
    total_deposits_display: str
    total_withdrawals: int
    total_withdrawals_display: str
    pending_requests: int

    @classmethod
    def from_domain(cls, s: DashboardStats) -> "StatsResponse":
        return cls(
            total_users=s.total_users,
            total_deposits=s.total_deposits,
            total_deposits_display=piastres_to_display(s.total_deposits),
            total_withdrawals=s.total_withdrawals,
            total_withdrawals_display=piastres_to_display(s.total_withdrawals),
            pending_requests=s.pending_requests,
        )
