"""
Document Domain Models (``invoicing_kernel.domain.documents``).

Responsibility
--------------
Frozen dataclass value objects for invoices and quotations (one
``FinancialDocument`` shape covers both kinds) and the pure operations the
editor applies to them: append/remove/update a line item and replace a
top-level field.  Every operation returns a NEW document.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Persistence
lives in ``invoicing_kernel.models.documents``.

Invariants enforced
-------------------
* Totals are derived (``FinancialDocument.totals``), never stored.
* A document always holds at least one line item; removing the last one
  is a silent no-op.
* Line item order is insertion order.
* Status belongs to the document kind's status set.  Any status may follow
  any other; there is no transition graph.
* Whether a document has been saved is carried by its ``identity``
  (``DraftIdentity`` or ``PersistedIdentity``), never inferred from the
  shape of an id string.

Failure modes
-------------
* ``InvalidStatusError`` for a status outside the kind's set.
* ``EmptyDocumentError`` from ``require_line_items``, which the editor and the
  persistence adapter call before holding or storing a document.
* ``UnknownFieldError`` for a field name that is not editable.
* Unknown line item ids are ignored (the editor only ever hands out ids it
  generated itself).
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Callable, Union
from uuid import UUID, uuid4

from invoicing_kernel.domain.accounts import AppSettings
from invoicing_kernel.domain.clock import Clock
from invoicing_kernel.domain.totals import DocumentTotals, compute_totals, line_amount
from invoicing_kernel.domain.values import to_decimal
from invoicing_kernel.exceptions import (
    EmptyDocumentError,
    InvalidStatusError,
    UnknownFieldError,
)
from invoicing_kernel.logging_config import get_logger

logger = get_logger("domain.documents")


class DocumentKind(Enum):
    """The two kinds of financial document."""
    INVOICE = "invoice"
    QUOTATION = "quotation"


class InvoiceStatus(Enum):
    """Invoice states."""
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"


class QuotationStatus(Enum):
    """Quotation states."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


DocumentStatus = Union[InvoiceStatus, QuotationStatus]

STATUS_TYPES: dict[DocumentKind, type[Enum]] = {
    DocumentKind.INVOICE: InvoiceStatus,
    DocumentKind.QUOTATION: QuotationStatus,
}


def parse_status(kind: DocumentKind, value: DocumentStatus | str) -> DocumentStatus:
    """Coerce a status value into the enum for ``kind``."""
    status_type = STATUS_TYPES[kind]
    if isinstance(value, status_type):
        return value
    raw = value.value if isinstance(value, Enum) else str(value).strip().lower()
    try:
        return status_type(raw)
    except ValueError:
        raise InvalidStatusError(
            kind.value, raw, tuple(s.value for s in status_type)
        ) from None


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DraftIdentity:
    """A document that exists only in the editor.  The store assigns an id on first save."""
    local_key: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class PersistedIdentity:
    """A document the store has accepted."""
    id: UUID


DocumentIdentity = Union[DraftIdentity, PersistedIdentity]


# ---------------------------------------------------------------------------
# Line items and documents
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineItem:
    """A single priced line on an invoice or quotation."""
    id: UUID
    description: str = ""
    quantity: Decimal = Decimal("1")
    rate: Decimal = Decimal("0")

    def __post_init__(self):
        if not isinstance(self.quantity, Decimal):
            object.__setattr__(self, "quantity", to_decimal(self.quantity))
        if not isinstance(self.rate, Decimal):
            object.__setattr__(self, "rate", to_decimal(self.rate))

    @property
    def amount(self) -> Decimal:
        return line_amount(self)


@dataclass(frozen=True)
class FinancialDocument:
    """An invoice or a quotation.

    ``secondary_date`` is the due date of an invoice and the valid-until
    date of a quotation.
    """
    kind: DocumentKind
    identity: DocumentIdentity
    number: str
    status: DocumentStatus
    issue_date: date
    secondary_date: date
    items: tuple[LineItem, ...]
    client_name: str = ""
    client_address: str = ""
    client_email: str = ""
    currency: str = ""
    tax_rate: Decimal = Decimal("0")
    notes: str = ""
    terms: str = ""

    def __post_init__(self):
        object.__setattr__(self, "status", parse_status(self.kind, self.status))
        if not isinstance(self.tax_rate, Decimal):
            object.__setattr__(self, "tax_rate", to_decimal(self.tax_rate))
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))

    @property
    def is_persisted(self) -> bool:
        return isinstance(self.identity, PersistedIdentity)

    @property
    def document_id(self) -> UUID | None:
        """Store id, or None for a draft."""
        if isinstance(self.identity, PersistedIdentity):
            return self.identity.id
        return None

    @property
    def key(self) -> UUID:
        """Stable key while editing: the store id, or the draft's local key."""
        if isinstance(self.identity, PersistedIdentity):
            return self.identity.id
        return self.identity.local_key

    @property
    def due_date(self) -> date:
        return self.secondary_date

    @property
    def valid_until(self) -> date:
        return self.secondary_date

    @property
    def totals(self) -> DocumentTotals:
        return compute_totals(self.items, self.tax_rate)

    def find_item(self, item_id: UUID) -> LineItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

_TEXT_FIELDS = frozenset({
    "number", "client_name", "client_address", "client_email",
    "currency", "notes", "terms",
})
_DATE_FIELDS = frozenset({"issue_date", "secondary_date"})
_NUMERIC_FIELDS = frozenset({"tax_rate"})
_FIELD_ALIASES = {
    "due_date": "secondary_date",
    "valid_until": "secondary_date",
    "date": "issue_date",
}

_ITEM_TEXT_FIELDS = frozenset({"description"})
_ITEM_NUMERIC_FIELDS = frozenset({"quantity", "rate"})


def require_line_items(doc: FinancialDocument) -> FinancialDocument:
    """Return ``doc`` unchanged, or raise EmptyDocumentError when it has no items."""
    if not doc.items:
        raise EmptyDocumentError(doc.number)
    return doc


def new_line_item(id_factory: Callable[[], UUID] = uuid4, description: str = "") -> LineItem:
    """A fresh line item: quantity 1, rate 0."""
    return LineItem(id=id_factory(), description=description)


def add_line_item(
    doc: FinancialDocument,
    id_factory: Callable[[], UUID] = uuid4,
) -> FinancialDocument:
    """Append an empty line item (quantity 1, rate 0) after the existing ones."""
    return replace(doc, items=doc.items + (new_line_item(id_factory),))


def remove_line_item(doc: FinancialDocument, item_id: UUID) -> FinancialDocument:
    """
    Remove the line item with ``item_id``.

    Returns ``doc`` unchanged when it is the only remaining item or when no
    item matches.
    """
    if len(doc.items) <= 1:
        return doc
    remaining = tuple(item for item in doc.items if item.id != item_id)
    if len(remaining) == len(doc.items):
        logger.debug("line_item_not_found", extra={"item_id": str(item_id)})
        return doc
    return replace(doc, items=remaining)


def update_line_item(
    doc: FinancialDocument,
    item_id: UUID,
    field_name: str,
    value: object,
) -> FinancialDocument:
    """
    Replace one field (description, quantity or rate) of one line item.

    Numeric fields accept free text; unparseable input becomes 0.
    An unknown ``item_id`` leaves the document unchanged.

    Raises:
        UnknownFieldError: ``field_name`` is not a line item field.
    """
    if field_name in _ITEM_NUMERIC_FIELDS:
        new_value: object = to_decimal(value)
    elif field_name in _ITEM_TEXT_FIELDS:
        new_value = "" if value is None else str(value)
    else:
        raise UnknownFieldError("line item", field_name)

    if doc.find_item(item_id) is None:
        logger.debug("line_item_not_found", extra={"item_id": str(item_id)})
        return doc

    items = tuple(
        replace(item, **{field_name: new_value}) if item.id == item_id else item
        for item in doc.items
    )
    return replace(doc, items=items)


def _coerce_date(value: object) -> date | None:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def set_field(doc: FinancialDocument, field_name: str, value: object) -> FinancialDocument:
    """
    Replace one top-level field.

    ``due_date`` / ``valid_until`` are accepted as names for the second
    date.  ``tax_rate`` accepts free text and defaults to 0 when it cannot
    be parsed.  A date that cannot be parsed leaves the field unchanged.

    Raises:
        UnknownFieldError: ``field_name`` is not an editable document field.
        InvalidStatusError: ``status`` value not valid for the document kind.
    """
    name = _FIELD_ALIASES.get(field_name, field_name)

    if name == "status":
        return replace(doc, status=parse_status(doc.kind, value))  # type: ignore[arg-type]
    if name in _NUMERIC_FIELDS:
        return replace(doc, **{name: to_decimal(value)})
    if name in _TEXT_FIELDS:
        return replace(doc, **{name: "" if value is None else str(value)})
    if name in _DATE_FIELDS:
        parsed = _coerce_date(value)
        if parsed is None:
            logger.debug("date_not_parsed", extra={"field": name, "value": str(value)})
            return doc
        return replace(doc, **{name: parsed})
    raise UnknownFieldError(doc.kind.value, field_name)


# ---------------------------------------------------------------------------
# New document defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentTemplate:
    """Defaults applied to a freshly created document of one kind."""
    number_prefix: str
    days_until_secondary_date: int
    notes: str
    terms: str
    placeholder_description: str


INVOICE_TEMPLATE = DocumentTemplate(
    number_prefix="INV",
    days_until_secondary_date=7,
    notes="Thank you for your business. We appreciate the opportunity to work with you.",
    terms="Payment is due within 14 days.",
    placeholder_description="Service Description",
)

QUOTATION_TEMPLATE = DocumentTemplate(
    number_prefix="QT",
    days_until_secondary_date=30,
    notes="This quotation is subject to our standard terms and conditions.",
    terms="Valid for 30 days.",
    placeholder_description="Product/Service Description",
)

DEFAULT_TEMPLATES: dict[DocumentKind, DocumentTemplate] = {
    DocumentKind.INVOICE: INVOICE_TEMPLATE,
    DocumentKind.QUOTATION: QUOTATION_TEMPLATE,
}


def random_document_number(prefix: str, rng: random.Random | None = None) -> str:
    """e.g. ``INV-4821``.  Not guaranteed unique."""
    return f"{prefix}-{(rng or random).randint(0, 9999)}"


def new_document(
    kind: DocumentKind,
    settings: AppSettings,
    clock: Clock,
    template: DocumentTemplate | None = None,
    id_factory: Callable[[], UUID] = uuid4,
    rng: random.Random | None = None,
) -> FinancialDocument:
    """
    Build an unsaved document with defaults.

    Issue date is today; the second date is today plus the template's day
    count; currency and tax rate come from the company settings.
    """
    template = template or DEFAULT_TEMPLATES[kind]
    today = clock.today()
    doc = FinancialDocument(
        kind=kind,
        identity=DraftIdentity(),
        number=random_document_number(template.number_prefix, rng),
        status=STATUS_TYPES[kind]("draft"),
        issue_date=today,
        secondary_date=today + timedelta(days=template.days_until_secondary_date),
        items=(new_line_item(id_factory, template.placeholder_description),),
        currency=settings.currency_symbol,
        tax_rate=settings.default_tax_rate,
        notes=template.notes,
        terms=template.terms,
    )
    return require_line_items(doc)


def new_invoice(settings: AppSettings, clock: Clock, **kwargs) -> FinancialDocument:
    return new_document(DocumentKind.INVOICE, settings, clock, **kwargs)


def new_quotation(settings: AppSettings, clock: Clock, **kwargs) -> FinancialDocument:
    return new_document(DocumentKind.QUOTATION, settings, clock, **kwargs)
