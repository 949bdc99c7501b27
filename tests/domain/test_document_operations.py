"""
Tests for the document model operations.

Every operation returns a new document; the input is never modified.
A document always keeps at least one line item.
"""

from datetime import date
from decimal import Decimal
from random import Random
from uuid import UUID, uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from invoicing_kernel.domain.accounts import AppSettings
from invoicing_kernel.domain.documents import (
    DocumentKind,
    DocumentTemplate,
    InvoiceStatus,
    QuotationStatus,
    add_line_item,
    new_invoice,
    new_quotation,
    remove_line_item,
    require_line_items,
    set_field,
    update_line_item,
)
from invoicing_kernel.exceptions import EmptyDocumentError, InvalidStatusError, UnknownFieldError
from tests.conftest import build_document


# ---------------------------------------------------------------------------
# Line items
# ---------------------------------------------------------------------------


class TestLineItems:

    def test_add_appends_empty_item(self, make_document):
        doc = make_document()
        new_id = UUID("00000000-0000-0000-0000-000000000001")

        updated = add_line_item(doc, id_factory=lambda: new_id)

        assert len(updated.items) == len(doc.items) + 1
        added = updated.items[-1]
        assert added.id == new_id
        assert added.description == ""
        assert added.quantity == Decimal("1")
        assert added.rate == Decimal("0")
        assert updated.items[:-1] == doc.items

    def test_add_does_not_mutate_input(self, make_document):
        doc = make_document()
        before = doc.items
        add_line_item(doc)
        assert doc.items is before

    def test_remove_existing_item(self, make_document):
        doc = make_document()
        target = doc.items[0]

        updated = remove_line_item(doc, target.id)

        assert [i.id for i in updated.items] == [doc.items[1].id]

    def test_remove_last_remaining_item_is_noop(self, make_document):
        doc = make_document(items=(("Only line", "1", "10"),))

        updated = remove_line_item(doc, doc.items[0].id)

        assert updated == doc
        assert len(updated.items) == 1

    def test_remove_unknown_id_is_noop(self, make_document):
        doc = make_document()
        assert remove_line_item(doc, uuid4()) == doc

    def test_require_line_items(self, make_document):
        doc = make_document()
        assert require_line_items(doc) is doc

        with pytest.raises(EmptyDocumentError):
            require_line_items(make_document(items=()))

    def test_update_numeric_field_parses_text(self, make_document):
        doc = make_document()
        item_id = doc.items[0].id

        updated = update_line_item(doc, item_id, "quantity", "3")

        assert updated.items[0].quantity == Decimal("3")
        assert updated.totals.subtotal == Decimal("175")

    def test_update_numeric_field_unparseable_becomes_zero(self, make_document):
        doc = make_document()
        updated = update_line_item(doc, doc.items[0].id, "rate", "fifty")
        assert updated.items[0].rate == Decimal("0")

    def test_update_description(self, make_document):
        doc = make_document()
        updated = update_line_item(doc, doc.items[1].id, "description", "Dinner")
        assert updated.items[1].description == "Dinner"
        assert updated.items[0] == doc.items[0]

    def test_update_unknown_item_is_noop(self, make_document):
        doc = make_document()
        assert update_line_item(doc, uuid4(), "rate", "10") == doc

    def test_update_unknown_field_raises(self, make_document):
        doc = make_document()
        with pytest.raises(UnknownFieldError) as exc_info:
            update_line_item(doc, doc.items[0].id, "amount", "10")
        assert exc_info.value.field_name == "amount"


# ---------------------------------------------------------------------------
# Top-level fields
# ---------------------------------------------------------------------------


class TestSetField:

    def test_set_client_name(self, make_document):
        doc = make_document(client_name="")
        updated = set_field(doc, "client_name", "Blue Lagoon")
        assert updated.client_name == "Blue Lagoon"
        assert doc.client_name == ""

    def test_tax_rate_parses_text_and_defaults_to_zero(self, make_document):
        doc = make_document()
        assert set_field(doc, "tax_rate", "8").tax_rate == Decimal("8")
        assert set_field(doc, "tax_rate", "n/a").tax_rate == Decimal("0")

    def test_status_any_to_any_within_kind(self, make_document):
        doc = make_document(status="paid")
        updated = set_field(doc, "status", "draft")
        assert updated.status is InvoiceStatus.DRAFT

    def test_status_outside_kind_rejected(self, make_document):
        doc = make_document()
        with pytest.raises(InvalidStatusError) as exc_info:
            set_field(doc, "status", "accepted")
        assert exc_info.value.code == "INVALID_STATUS"

    def test_quotation_status(self, make_document):
        doc = make_document(kind=DocumentKind.QUOTATION, number="QT-0001")
        assert set_field(doc, "status", "accepted").status is QuotationStatus.ACCEPTED

    def test_due_date_alias(self, make_document):
        doc = make_document()
        updated = set_field(doc, "due_date", "2024-02-01")
        assert updated.secondary_date == date(2024, 2, 1)
        assert updated.due_date == date(2024, 2, 1)

    def test_valid_until_alias(self, make_document):
        doc = make_document(kind=DocumentKind.QUOTATION)
        updated = set_field(doc, "valid_until", date(2024, 3, 1))
        assert updated.valid_until == date(2024, 3, 1)

    def test_unparseable_date_leaves_field(self, make_document):
        doc = make_document()
        assert set_field(doc, "issue_date", "not a date") == doc

    def test_unknown_field_raises(self, make_document):
        with pytest.raises(UnknownFieldError):
            set_field(make_document(), "subtotal", "1")


# ---------------------------------------------------------------------------
# New documents
# ---------------------------------------------------------------------------


class TestNewDocuments:

    def test_new_invoice_defaults(self, clock):
        doc = new_invoice(AppSettings(), clock, rng=Random(7))

        assert doc.kind is DocumentKind.INVOICE
        assert not doc.is_persisted
        assert doc.number.startswith("INV-")
        assert doc.status is InvoiceStatus.DRAFT
        assert doc.issue_date == date(2024, 1, 15)
        assert doc.due_date == date(2024, 1, 22)
        assert doc.currency == "MVR"
        assert doc.tax_rate == Decimal("6")
        assert doc.terms == "Payment is due within 14 days."
        assert len(doc.items) == 1
        assert doc.items[0].description == "Service Description"

    def test_new_quotation_defaults(self, clock):
        doc = new_quotation(AppSettings(currency_symbol="USD"), clock)

        assert doc.number.startswith("QT-")
        assert doc.status is QuotationStatus.DRAFT
        assert doc.valid_until == date(2024, 2, 14)
        assert doc.currency == "USD"
        assert doc.terms == "Valid for 30 days."

    def test_custom_template(self, clock):
        template = DocumentTemplate(
            number_prefix="BILL",
            days_until_secondary_date=0,
            notes="",
            terms="Due on receipt.",
            placeholder_description="Item",
        )
        doc = new_invoice(AppSettings(), clock, template=template)
        assert doc.number.startswith("BILL-")
        assert doc.due_date == doc.issue_date
        assert doc.terms == "Due on receipt."


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestDocumentProperties:

    @settings(max_examples=100)
    @given(st.integers(min_value=1, max_value=8))
    def test_add_then_remove_restores_items(self, n):
        doc = build_document(items=[(f"line {i}", "1", "10") for i in range(n)])

        added = add_line_item(doc)
        restored = remove_line_item(added, added.items[-1].id)

        assert restored.items == doc.items

    @settings(max_examples=50)
    @given(st.text(max_size=10))
    def test_single_item_document_never_loses_its_item(self, description):
        doc = build_document(items=[(description, "1", "1")])
        assert remove_line_item(doc, doc.items[0].id).items == doc.items
