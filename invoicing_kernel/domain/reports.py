"""
Pure report aggregation over a snapshot of documents.

These functions filter and sum invoice totals for the reports view and
the dashboard.  ZERO I/O.  ZERO side effects.  The input collection is
never mutated and no reference to it is kept.

All monetary values are Decimal. All outputs are frozen dataclasses.

Dates are compared as calendar dates, which orders the same way as the
ISO ``YYYY-MM-DD`` strings the editor produces.
"""

from __future__ import annotations

import calendar
import dataclasses
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from invoicing_kernel.domain.accounts import User
from invoicing_kernel.domain.clock import Clock
from invoicing_kernel.domain.documents import FinancialDocument
from invoicing_kernel.domain.values import ZERO

# Status buckets summed by the report.  Statuses outside these three still
# count toward count and total_amount.
COLLECTED_STATUS = "paid"
PENDING_STATUS = "pending"
DRAFT_STATUS = "draft"

RECENT_DOCUMENT_LIMIT = 5


@dataclasses.dataclass(frozen=True)
class ReportSummary:
    """Totals for the documents issued within [start, end]."""

    start: date
    end: date
    filtered: tuple[FinancialDocument, ...]
    count: int
    total_amount: Decimal
    collected: Decimal
    pending: Decimal
    draft: Decimal

    @property
    def bucketed_amount(self) -> Decimal:
        return self.collected + self.pending + self.draft


@dataclasses.dataclass(frozen=True)
class DashboardSummary:
    """Landing-page figures across all invoices."""

    total_revenue: Decimal
    pending_amount: Decimal
    pending_count: int
    client_count: int
    user_count: int
    recent: tuple[FinancialDocument, ...]


def month_bounds(today: date) -> tuple[date, date]:
    """First and last calendar day of ``today``'s month."""
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def filter_by_issue_date(
    documents: Iterable[FinancialDocument],
    start: date,
    end: date,
) -> tuple[FinancialDocument, ...]:
    """Documents issued within the inclusive range, ascending by issue date."""
    selected = [d for d in documents if start <= d.issue_date <= end]
    # sorted() is stable, so same-day documents keep their input order
    return tuple(sorted(selected, key=lambda d: d.issue_date))


def aggregate_report(
    documents: Iterable[FinancialDocument],
    start: date | str | None = None,
    end: date | str | None = None,
    clock: Clock | None = None,
) -> ReportSummary:
    """
    Summarise documents issued within [start, end].

    When either bound is missing it defaults to the current month's first
    or last day, read from ``clock``.

    Raises:
        ValueError: a bound is missing and no clock was given, or a string
            bound is not an ISO date.
    """
    if start is None or end is None:
        if clock is None:
            raise ValueError("clock is required when the date range is not given")
        default_start, default_end = month_bounds(clock.today())
        start = default_start if start is None else start
        end = default_end if end is None else end
    start_date = _as_date(start)
    end_date = _as_date(end)

    filtered = filter_by_issue_date(documents, start_date, end_date)

    total_amount = ZERO
    buckets = {COLLECTED_STATUS: ZERO, PENDING_STATUS: ZERO, DRAFT_STATUS: ZERO}
    for doc in filtered:
        total = doc.totals.total
        total_amount += total
        status = doc.status.value
        if status in buckets:
            buckets[status] += total

    return ReportSummary(
        start=start_date,
        end=end_date,
        filtered=filtered,
        count=len(filtered),
        total_amount=total_amount,
        collected=buckets[COLLECTED_STATUS],
        pending=buckets[PENDING_STATUS],
        draft=buckets[DRAFT_STATUS],
    )


def dashboard_summary(
    invoices: Sequence[FinancialDocument],
    users: Sequence[User],
) -> DashboardSummary:
    """Revenue, outstanding amount, client count and the latest invoices."""
    paid = [i for i in invoices if i.status.value == COLLECTED_STATUS]
    pending = [i for i in invoices if i.status.value == PENDING_STATUS]
    recent = sorted(invoices, key=lambda d: d.issue_date, reverse=True)
    return DashboardSummary(
        total_revenue=sum((i.totals.total for i in paid), ZERO),
        pending_amount=sum((i.totals.total for i in pending), ZERO),
        pending_count=len(pending),
        client_count=len({i.client_name for i in invoices}),
        user_count=len(users),
        recent=tuple(recent[:RECENT_DOCUMENT_LIMIT]),
    )
