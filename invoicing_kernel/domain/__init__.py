"""
Pure domain layer.

This module contains value objects and domain logic with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (a Clock is injected)
- I/O

All domain objects are immutable and deterministic.
"""

from invoicing_kernel.domain.access_policy import (
    Action,
    check_access,
    is_permitted,
    permitted_actions,
    require_permission,
)
from invoicing_kernel.domain.accounts import AppSettings, Role, User
from invoicing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from invoicing_kernel.domain.documents import (
    DocumentKind,
    DocumentTemplate,
    DraftIdentity,
    FinancialDocument,
    InvoiceStatus,
    LineItem,
    PersistedIdentity,
    QuotationStatus,
    add_line_item,
    new_document,
    new_invoice,
    new_quotation,
    remove_line_item,
    set_field,
    update_line_item,
)
from invoicing_kernel.domain.editor import (
    DocumentEditor,
    EditorMode,
    EntryPoint,
    OutputTarget,
    SaveOutcome,
)
from invoicing_kernel.domain.reports import (
    DashboardSummary,
    ReportSummary,
    aggregate_report,
    dashboard_summary,
)
from invoicing_kernel.domain.totals import DocumentTotals, compute_totals

__all__ = [
    "Action",
    "AppSettings",
    "Clock",
    "DashboardSummary",
    "DeterministicClock",
    "DocumentEditor",
    "DocumentKind",
    "DocumentTemplate",
    "DocumentTotals",
    "DraftIdentity",
    "EditorMode",
    "EntryPoint",
    "FinancialDocument",
    "InvoiceStatus",
    "LineItem",
    "OutputTarget",
    "PersistedIdentity",
    "QuotationStatus",
    "ReportSummary",
    "Role",
    "SaveOutcome",
    "SystemClock",
    "User",
    "add_line_item",
    "aggregate_report",
    "check_access",
    "compute_totals",
    "dashboard_summary",
    "is_permitted",
    "new_document",
    "new_invoice",
    "new_quotation",
    "permitted_actions",
    "remove_line_item",
    "require_permission",
    "set_field",
    "update_line_item",
]
