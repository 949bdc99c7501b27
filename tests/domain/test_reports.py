"""
Tests for the report aggregator and dashboard figures.

Inclusive date range on issue date; paid/pending/draft buckets; other
statuses count toward count and total only.  Inputs are never mutated.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from invoicing_kernel.domain.accounts import User
from invoicing_kernel.domain.clock import DeterministicClock
from invoicing_kernel.domain.documents import DocumentKind
from invoicing_kernel.domain.reports import (
    aggregate_report,
    dashboard_summary,
    month_bounds,
)
from tests.conftest import build_document


def _invoice(number, issued, status, amount, client="Acme Resorts", kind=DocumentKind.INVOICE):
    return build_document(
        kind=kind,
        items=(("Service", "1", amount),),
        number=number,
        status=status,
        issue_date=issued,
        tax_rate="0",
        client_name=client,
        document_id=uuid4(),
    )


class TestAggregateReport:

    def test_buckets_and_range(self):
        docs = [
            _invoice("INV-1", date(2024, 1, 5), "paid", "100"),
            _invoice("INV-2", date(2024, 1, 20), "pending", "50"),
            _invoice("INV-3", date(2024, 2, 1), "paid", "999"),  # outside range
            _invoice("INV-4", date(2024, 1, 1), "draft", "25"),
        ]

        summary = aggregate_report(docs, date(2024, 1, 1), date(2024, 1, 31))

        assert summary.count == 3
        assert summary.total_amount == Decimal("175")
        assert summary.collected == Decimal("100")
        assert summary.pending == Decimal("50")
        assert summary.draft == Decimal("25")
        assert [d.number for d in summary.filtered] == ["INV-4", "INV-1", "INV-2"]

    def test_range_is_inclusive(self):
        docs = [
            _invoice("A", date(2024, 3, 1), "paid", "10"),
            _invoice("B", date(2024, 3, 31), "paid", "20"),
        ]
        summary = aggregate_report(docs, "2024-03-01", "2024-03-31")
        assert summary.count == 2
        assert summary.collected == Decimal("30")

    def test_tax_included_in_totals(self):
        doc = build_document(items=(("x", "2", "50"), ("y", "1", "25")), issue_date=date(2024, 1, 10), status="paid")
        summary = aggregate_report([doc], date(2024, 1, 1), date(2024, 1, 31))
        assert summary.total_amount == Decimal("132.5")

    def test_other_statuses_count_but_are_not_bucketed(self):
        quote = build_document(
            kind=DocumentKind.QUOTATION,
            status="accepted",
            issue_date=date(2024, 1, 10),
            items=(("x", "1", "40"),),
            tax_rate="0",
        )
        summary = aggregate_report([quote], date(2024, 1, 1), date(2024, 1, 31))

        assert summary.count == 1
        assert summary.total_amount == Decimal("40")
        assert summary.bucketed_amount == Decimal("0")

    def test_default_range_is_current_month(self):
        clock = DeterministicClock(datetime(2024, 2, 10, 9, 0, tzinfo=timezone.utc))
        docs = [
            _invoice("JAN", date(2024, 1, 31), "paid", "1"),
            _invoice("FEB", date(2024, 2, 29), "paid", "2"),
        ]

        summary = aggregate_report(docs, clock=clock)

        assert summary.start == date(2024, 2, 1)
        assert summary.end == date(2024, 2, 29)
        assert [d.number for d in summary.filtered] == ["FEB"]

    def test_default_range_follows_clock(self):
        clock = DeterministicClock(datetime(2024, 1, 31, 23, 0, tzinfo=timezone.utc))
        assert aggregate_report([], clock=clock).start == date(2024, 1, 1)

        clock.advance(3600)
        assert aggregate_report([], clock=clock).start == date(2024, 2, 1)

        clock.set_time(datetime(2023, 12, 5, tzinfo=timezone.utc))
        assert aggregate_report([], clock=clock).end == date(2023, 12, 31)

    def test_missing_bound_without_clock_raises(self):
        with pytest.raises(ValueError):
            aggregate_report([], start=date(2024, 1, 1))

    def test_input_not_mutated(self):
        docs = [_invoice("B", date(2024, 1, 9), "paid", "1"), _invoice("A", date(2024, 1, 2), "paid", "1")]
        snapshot = list(docs)
        aggregate_report(docs, date(2024, 1, 1), date(2024, 1, 31))
        assert docs == snapshot

    def test_month_bounds(self):
        assert month_bounds(date(2023, 2, 14)) == (date(2023, 2, 1), date(2023, 2, 28))


_statuses = st.sampled_from(["draft", "pending", "paid"])
_days = st.integers(min_value=1, max_value=28)
_amounts = st.integers(min_value=0, max_value=10_000)
_mixed_statuses = st.sampled_from([
    (DocumentKind.INVOICE, "draft"),
    (DocumentKind.INVOICE, "pending"),
    (DocumentKind.INVOICE, "paid"),
    (DocumentKind.QUOTATION, "draft"),
    (DocumentKind.QUOTATION, "sent"),
    (DocumentKind.QUOTATION, "accepted"),
    (DocumentKind.QUOTATION, "rejected"),
])
_BUCKETED = {"draft", "pending", "paid"}


class TestReportProperties:

    @settings(max_examples=100)
    @given(st.lists(st.tuples(_days, _statuses, _amounts), max_size=15))
    def test_bucket_sum_never_exceeds_total(self, rows):
        docs = [
            _invoice(f"INV-{i}", date(2024, 1, day), status, str(amount))
            for i, (day, status, amount) in enumerate(rows)
        ]
        summary = aggregate_report(docs, date(2024, 1, 1), date(2024, 1, 31))

        assert summary.collected + summary.pending + summary.draft <= summary.total_amount
        assert summary.count == len(docs)

    @settings(max_examples=100)
    @given(st.lists(st.tuples(_days, _mixed_statuses, st.integers(min_value=1, max_value=10_000)), max_size=15))
    def test_buckets_cover_total_only_when_every_status_is_bucketed(self, rows):
        docs = [
            _invoice(f"DOC-{i}", date(2024, 1, day), status, str(amount), kind=kind)
            for i, (day, (kind, status), amount) in enumerate(rows)
        ]
        summary = aggregate_report(docs, date(2024, 1, 1), date(2024, 1, 31))

        if all(status in _BUCKETED for _, (_, status), _ in rows):
            assert summary.bucketed_amount == summary.total_amount
        else:
            assert summary.bucketed_amount < summary.total_amount

    @settings(max_examples=50)
    @given(st.lists(st.tuples(_days, _statuses, _amounts), max_size=10))
    def test_range_before_all_documents_is_empty(self, rows):
        docs = [
            _invoice(f"INV-{i}", date(2024, 1, day), status, str(amount))
            for i, (day, status, amount) in enumerate(rows)
        ]
        summary = aggregate_report(docs, date(2023, 1, 1), date(2023, 12, 31))

        assert summary.count == 0
        assert summary.filtered == ()
        assert summary.total_amount == Decimal("0")


class TestDashboard:

    def test_dashboard_figures(self):
        invoices = [
            _invoice("INV-1", date(2024, 1, 1), "paid", "100", client="Acme"),
            _invoice("INV-2", date(2024, 1, 2), "paid", "50", client="Acme"),
            _invoice("INV-3", date(2024, 1, 3), "pending", "30", client="Blue"),
            _invoice("INV-4", date(2024, 1, 4), "pending", "20", client="Coral"),
            _invoice("INV-5", date(2024, 1, 5), "draft", "10", client="Coral"),
            _invoice("INV-6", date(2024, 1, 6), "draft", "5", client="Dhoni"),
        ]
        users = [User(name="a", email="a@x"), User(name="b", email="b@x")]

        summary = dashboard_summary(invoices, users)

        assert summary.total_revenue == Decimal("150")
        assert summary.pending_amount == Decimal("50")
        assert summary.pending_count == 2
        assert summary.client_count == 4
        assert summary.user_count == 2
        assert [d.number for d in summary.recent] == ["INV-6", "INV-5", "INV-4", "INV-3", "INV-2"]

    def test_empty_dashboard(self):
        summary = dashboard_summary([], [])
        assert summary.total_revenue == 0
        assert summary.recent == ()
