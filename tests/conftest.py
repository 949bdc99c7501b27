"""
Pytest fixtures for the invoicing test suite.

Provides:
- Structured logging configured once per session, plus log capture
- A deterministic clock pinned to 2024-01-15 12:00 UTC
- An in-memory SQLite store (fresh per test) and a PersistenceAdapter on it
- Users for each role and a document builder
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from invoicing_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from invoicing_kernel.domain.accounts import AppSettings, Role, User
from invoicing_kernel.domain.clock import DeterministicClock
from invoicing_kernel.domain.documents import (
    DocumentKind,
    DraftIdentity,
    FinancialDocument,
    LineItem,
    PersistedIdentity,
)
from invoicing_kernel.exceptions import RemoteCallError
from invoicing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from invoicing_services.persistence import PersistenceAdapter

TEST_TIME = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, handler=logging.NullHandler())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoicing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "document_saved" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoicing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(TEST_TIME)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database with all tables."""
    engine = init_engine_from_url("sqlite:///:memory:")
    create_tables()
    yield engine
    reset_engine()


@pytest.fixture
def adapter(db_engine) -> PersistenceAdapter:
    return PersistenceAdapter(get_session_factory())


class FailingAdapter(PersistenceAdapter):
    """Adapter whose every remote call fails."""

    def __init__(self):
        super().__init__(session_factory=None)
        self.calls: list[str] = []

    def _fail(self, operation: str):
        self.calls.append(operation)
        raise RemoteCallError(operation, "connection refused")

    def fetch_all(self):
        self._fail("fetch_all")

    def save_document(self, doc):
        self._fail("save_document")

    def delete_document(self, kind, document_id):
        self._fail("delete_document")

    def upsert_settings(self, settings):
        self._fail("upsert_settings")

    def upsert_users(self, users):
        self._fail("upsert_users")

    def delete_users(self, user_ids):
        self._fail("delete_users")

    def find_users_by_credentials(self, identifier, password):
        self._fail("find_users_by_credentials")


@pytest.fixture
def failing_adapter() -> FailingAdapter:
    return FailingAdapter()


# =============================================================================
# Accounts
# =============================================================================


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings()


@pytest.fixture
def admin() -> User:
    return User(id=uuid4(), name="Aminath", email="aminath@example.com", role=Role.ADMIN, password="admin-pw")


@pytest.fixture
def editor_user() -> User:
    return User(id=uuid4(), name="Hassan", email="hassan@example.com", role=Role.EDITOR, password="editor-pw")


@pytest.fixture
def viewer() -> User:
    return User(id=uuid4(), name="Mariyam", email="mariyam@example.com", role=Role.VIEWER, password="viewer-pw")


# =============================================================================
# Documents
# =============================================================================


def build_document(
    kind: DocumentKind = DocumentKind.INVOICE,
    items=(("Snorkelling trip", "2", "50"), ("Lunch", "1", "25")),
    *,
    document_id=None,
    number: str = "INV-0001",
    status: str = "draft",
    issue_date: date = date(2024, 1, 10),
    secondary_date: date = date(2024, 1, 17),
    client_name: str = "Acme Resorts",
    tax_rate: Decimal | str = "6",
    currency: str = "MVR",
) -> FinancialDocument:
    """Build a document from (description, quantity, rate) triples."""
    identity = PersistedIdentity(document_id) if document_id is not None else DraftIdentity()
    return FinancialDocument(
        kind=kind,
        identity=identity,
        number=number,
        status=status,
        issue_date=issue_date,
        secondary_date=secondary_date,
        items=tuple(
            LineItem(id=uuid4(), description=d, quantity=Decimal(q), rate=Decimal(r))
            for d, q, r in items
        ),
        client_name=client_name,
        client_address="Male, Maldives",
        client_email="billing@acme.example",
        currency=currency,
        tax_rate=Decimal(tax_rate),
        notes="Thanks",
        terms="Net 14",
    )


@pytest.fixture
def make_document():
    """Factory fixture around ``build_document``."""
    return build_document
