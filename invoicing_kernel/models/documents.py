"""
Document ORM Models (``invoicing_kernel.models.documents``).

Responsibility
--------------
SQLAlchemy persistence models for invoices, quotations and their line
items.  Maps rows to and from the frozen ``FinancialDocument`` /
``LineItem`` dataclasses.

Architecture position
---------------------
**Kernel > Models** -- persistence.  Imports from ``invoicing_kernel.db.base``
and ``invoicing_kernel.domain.documents``.

Invariants enforced
-------------------
* Line items carry a ``position`` column; ``items`` relationships are
  ordered by it so insertion order survives a round trip.
* Deleting a document deletes its items (ON DELETE CASCADE plus ORM
  ``delete-orphan``).
* Totals are not stored.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from invoicing_kernel.db.base import Base
from invoicing_kernel.domain.documents import (
    DocumentKind,
    FinancialDocument,
    LineItem,
    PersistedIdentity,
)


class _DocumentColumns:
    """Columns shared by the invoice and quotation tables."""

    number: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    client_address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    client_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    currency: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    tax_rate: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    terms: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def _common_to_dto(self, kind: DocumentKind, secondary_date: date) -> FinancialDocument:
        return FinancialDocument(
            kind=kind,
            identity=PersistedIdentity(self.id),
            number=self.number,
            status=self.status,
            issue_date=self.issue_date,
            secondary_date=secondary_date,
            items=tuple(item.to_dto() for item in self.items),
            client_name=self.client_name,
            client_address=self.client_address,
            client_email=self.client_email,
            currency=self.currency,
            tax_rate=self.tax_rate,
            notes=self.notes,
            terms=self.terms,
        )

    def apply_header(self, doc: FinancialDocument) -> None:
        """Overwrite the header columns (everything except items) from ``doc``."""
        self.number = doc.number
        self.status = doc.status.value
        self.issue_date = doc.issue_date
        self.client_name = doc.client_name
        self.client_address = doc.client_address
        self.client_email = doc.client_email
        self.currency = doc.currency
        self.tax_rate = doc.tax_rate
        self.notes = doc.notes
        self.terms = doc.terms
        self._apply_secondary_date(doc.secondary_date)

    def _apply_secondary_date(self, value: date) -> None:
        """Store the second date in this table's column.

        Override point: InvoiceModel writes ``due_date`` and QuotationModel
        writes ``valid_until``.  The mixin has no column of its own.
        """
        raise NotImplementedError(f"{type(self).__name__} does not store a second date")


class _ItemColumns:
    """Columns shared by the two line item tables."""

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    rate: Mapped[Decimal] = mapped_column(nullable=False)

    def to_dto(self) -> LineItem:
        """Convert ORM model to frozen dataclass."""
        return LineItem(
            id=self.id,
            description=self.description,
            quantity=self.quantity,
            rate=self.rate,
        )


# ---------------------------------------------------------------------------
# 1. Invoices
# ---------------------------------------------------------------------------


class InvoiceModel(_DocumentColumns, Base):
    """
    ORM model for invoices.

    Guarantees:
        - status stored as the InvoiceStatus value string.
        - items ordered by position; deleted with the invoice.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        Index("idx_invoices_issue_date", "issue_date"),
        Index("idx_invoices_status", "status"),
    )

    due_date: Mapped[date] = mapped_column(Date, nullable=False)

    items: Mapped[list["InvoiceItemModel"]] = relationship(
        back_populates="invoice",
        order_by="InvoiceItemModel.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def _apply_secondary_date(self, value: date) -> None:
        self.due_date = value

    def to_dto(self) -> FinancialDocument:
        """Convert ORM model to frozen dataclass."""
        return self._common_to_dto(DocumentKind.INVOICE, self.due_date)

    def __repr__(self) -> str:
        return f"<InvoiceModel {self.number} ({self.status})>"


class InvoiceItemModel(_ItemColumns, Base):
    """ORM model for invoice line items."""

    __tablename__ = "invoice_items"

    __table_args__ = (
        Index("idx_invoice_items_invoice_id", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False
    )

    invoice: Mapped[InvoiceModel] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<InvoiceItemModel {self.position}: {self.description}>"


# ---------------------------------------------------------------------------
# 2. Quotations
# ---------------------------------------------------------------------------


class QuotationModel(_DocumentColumns, Base):
    """
    ORM model for quotations.

    Guarantees:
        - status stored as the QuotationStatus value string.
        - items ordered by position; deleted with the quotation.
    """

    __tablename__ = "quotations"

    __table_args__ = (
        Index("idx_quotations_issue_date", "issue_date"),
        Index("idx_quotations_status", "status"),
    )

    valid_until: Mapped[date] = mapped_column(Date, nullable=False)

    items: Mapped[list["QuotationItemModel"]] = relationship(
        back_populates="quotation",
        order_by="QuotationItemModel.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def _apply_secondary_date(self, value: date) -> None:
        self.valid_until = value

    def to_dto(self) -> FinancialDocument:
        """Convert ORM model to frozen dataclass."""
        return self._common_to_dto(DocumentKind.QUOTATION, self.valid_until)

    def __repr__(self) -> str:
        return f"<QuotationModel {self.number} ({self.status})>"


class QuotationItemModel(_ItemColumns, Base):
    """ORM model for quotation line items."""

    __tablename__ = "quotation_items"

    __table_args__ = (
        Index("idx_quotation_items_quotation_id", "quotation_id"),
    )

    quotation_id: Mapped[UUID] = mapped_column(
        ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False
    )

    quotation: Mapped[QuotationModel] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<QuotationItemModel {self.position}: {self.description}>"


# ---------------------------------------------------------------------------
# Kind lookup
# ---------------------------------------------------------------------------

DOCUMENT_MODELS: dict[DocumentKind, type[InvoiceModel] | type[QuotationModel]] = {
    DocumentKind.INVOICE: InvoiceModel,
    DocumentKind.QUOTATION: QuotationModel,
}

ITEM_MODELS: dict[DocumentKind, type[InvoiceItemModel] | type[QuotationItemModel]] = {
    DocumentKind.INVOICE: InvoiceItemModel,
    DocumentKind.QUOTATION: QuotationItemModel,
}

ITEM_PARENT_COLUMNS: dict[DocumentKind, str] = {
    DocumentKind.INVOICE: "invoice_id",
    DocumentKind.QUOTATION: "quotation_id",
}


def item_from_dto(
    kind: DocumentKind,
    document_id: UUID,
    item: LineItem,
    position: int,
) -> InvoiceItemModel | QuotationItemModel:
    """Build the item row for ``kind`` holding ``item`` at ``position``."""
    model = ITEM_MODELS[kind]
    return model(
        id=item.id,
        position=position,
        description=item.description,
        quantity=item.quantity,
        rate=item.rate,
        **{ITEM_PARENT_COLUMNS[kind]: document_id},
    )
