"""
invoicing_services.persistence -- Remote persistence adapter.

Responsibility:
    Read and write settings, users, invoices, quotations and their line
    items through SQLAlchemy.  Translates between ORM rows and the frozen
    domain dataclasses so nothing above this layer sees a Session.

Architecture position:
    Services -- stateful I/O over the kernel.  Imports from
    invoicing_kernel.db, invoicing_kernel.models and invoicing_kernel.domain.
    Used by AppState and the auth gate.

Invariants:
    - save_document writes the document header and replaces its line items
      inside ONE transaction.  A failure in either step leaves the store as
      it was.
    - Line items are written with an explicit position so the fetched order
      equals the order in the editor.
    - Settings are a single row (id 1), overwritten wholesale.
    - A document is never stored without line items: save_document and
      replace_line_items raise EmptyDocumentError before touching a session.

Failure modes:
    - Every SQLAlchemyError is logged and re-raised as RemoteCallError
      naming the operation.  No retries.
    - Deleting a document relies on ON DELETE CASCADE for its items.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Iterable, Sequence
from uuid import UUID, uuid4

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from invoicing_kernel.db.engine import session_scope
from invoicing_kernel.domain.accounts import AppSettings, User
from invoicing_kernel.domain.documents import (
    DocumentKind,
    FinancialDocument,
    LineItem,
    require_line_items,
)
from invoicing_kernel.exceptions import EmptyDocumentError, RemoteCallError
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.accounts import SETTINGS_ROW_ID, SettingsModel, UserModel
from invoicing_kernel.models.documents import (
    DOCUMENT_MODELS,
    ITEM_MODELS,
    ITEM_PARENT_COLUMNS,
    item_from_dto,
)

logger = get_logger("services.persistence")


@dataclass(frozen=True)
class Snapshot:
    """Everything the application mirrors in memory after a fetch.

    ``settings`` is None when the settings row has never been written.
    """
    settings: AppSettings | None
    users: tuple[User, ...]
    invoices: tuple[FinancialDocument, ...]
    quotations: tuple[FinancialDocument, ...]


class PersistenceAdapter:
    """Thin CRUD surface over the relational store.

    Contract:
        Each public method opens its own session_scope, so every call is
        one transaction.  Returned objects are detached domain dataclasses.
    Non-goals:
        - No optimistic concurrency: the last save wins.
        - No retry or backoff on failure.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Session, None, None]:
        try:
            with session_scope(self._session_factory) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error(
                "remote_call_failed",
                extra={"operation": operation, "error": str(exc)},
            )
            raise RemoteCallError(operation, str(exc)) from exc

    # -------------------------------------------------------------------------
    # Fetch
    # -------------------------------------------------------------------------

    def fetch_all(self) -> Snapshot:
        """Load settings, users, invoices and quotations with their items."""
        with self._transaction("fetch_all") as session:
            settings_row = session.get(SettingsModel, SETTINGS_ROW_ID)
            users = session.scalars(select(UserModel).order_by(UserModel.name)).all()
            invoices = self._fetch_documents(session, DocumentKind.INVOICE)
            quotations = self._fetch_documents(session, DocumentKind.QUOTATION)
            snapshot = Snapshot(
                settings=settings_row.to_dto() if settings_row is not None else None,
                users=tuple(u.to_dto() for u in users),
                invoices=invoices,
                quotations=quotations,
            )

        logger.info(
            "snapshot_fetched",
            extra={
                "users": len(snapshot.users),
                "invoices": len(snapshot.invoices),
                "quotations": len(snapshot.quotations),
            },
        )
        return snapshot

    def _fetch_documents(
        self,
        session: Session,
        kind: DocumentKind,
    ) -> tuple[FinancialDocument, ...]:
        model = DOCUMENT_MODELS[kind]
        rows = session.scalars(
            select(model)
            .options(selectinload(model.items))
            .order_by(model.issue_date, model.number)
        ).all()
        return tuple(row.to_dto() for row in rows)

    def get_document(self, kind: DocumentKind, document_id: UUID) -> FinancialDocument | None:
        """Load one document, or None when the id is unknown."""
        model = DOCUMENT_MODELS[kind]
        with self._transaction("get_document") as session:
            row = session.get(model, document_id, options=[selectinload(model.items)])
            return row.to_dto() if row is not None else None

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def upsert_document(self, doc: FinancialDocument) -> UUID:
        """Insert or update the document header.  Returns the stored id."""
        with self._transaction("upsert_document") as session:
            return self._upsert_header(session, doc)

    def replace_line_items(
        self,
        document_id: UUID,
        kind: DocumentKind,
        items: Sequence[LineItem],
    ) -> None:
        """Delete every line item of the document, then insert ``items`` in order."""
        if not items:
            raise EmptyDocumentError(str(document_id))
        with self._transaction("replace_line_items") as session:
            self._replace_items(session, document_id, kind, items)

    def save_document(self, doc: FinancialDocument) -> FinancialDocument:
        """
        Upsert the header and replace the line items in a single transaction.

        Returns:
            The document re-read from the store, carrying its persisted identity.

        Raises:
            EmptyDocumentError: ``doc`` has no line items; nothing was written.
            RemoteCallError: the store rejected either step; nothing was written.
        """
        require_line_items(doc)
        with self._transaction("save_document") as session:
            document_id = self._upsert_header(session, doc)
            self._replace_items(session, document_id, doc.kind, doc.items)
            session.flush()
            session.expire_all()
            model = DOCUMENT_MODELS[doc.kind]
            saved = session.get(model, document_id).to_dto()

        logger.info(
            "document_saved",
            extra={
                "kind": doc.kind.value,
                "document_id": str(document_id),
                "number": doc.number,
                "item_count": len(doc.items),
                "is_new": not doc.is_persisted,
            },
        )
        return saved

    def delete_document(self, kind: DocumentKind, document_id: UUID) -> bool:
        """Delete a document.  Returns False when no row had that id."""
        model = DOCUMENT_MODELS[kind]
        with self._transaction("delete_document") as session:
            row = session.get(model, document_id)
            if row is None:
                logger.info(
                    "document_delete_missing",
                    extra={"kind": kind.value, "document_id": str(document_id)},
                )
                return False
            session.delete(row)

        logger.info(
            "document_deleted",
            extra={"kind": kind.value, "document_id": str(document_id)},
        )
        return True

    def _upsert_header(self, session: Session, doc: FinancialDocument) -> UUID:
        model = DOCUMENT_MODELS[doc.kind]
        row = None
        if doc.document_id is not None:
            row = session.get(model, doc.document_id)
        if row is None:
            row = model(id=doc.document_id or uuid4())
            session.add(row)
        row.apply_header(doc)
        session.flush()
        return row.id

    def _replace_items(
        self,
        session: Session,
        document_id: UUID,
        kind: DocumentKind,
        items: Iterable[LineItem],
    ) -> None:
        item_model = ITEM_MODELS[kind]
        parent_column = getattr(item_model, ITEM_PARENT_COLUMNS[kind])
        session.execute(
            delete(item_model).where(parent_column == document_id),
            execution_options={"synchronize_session": False},
        )
        session.add_all(
            item_from_dto(kind, document_id, item, position)
            for position, item in enumerate(items)
        )
        session.flush()

    # -------------------------------------------------------------------------
    # Settings and users
    # -------------------------------------------------------------------------

    def upsert_settings(self, settings: AppSettings) -> None:
        """Overwrite the settings row."""
        with self._transaction("upsert_settings") as session:
            session.merge(SettingsModel.from_dto(settings))
        logger.info(
            "settings_saved",
            extra={"company_name": settings.company_name, "currency": settings.currency_symbol},
        )

    def find_users_by_credentials(self, identifier: str, password: str) -> tuple[User, ...]:
        """Users whose name or email equals ``identifier`` and whose password equals ``password``."""
        with self._transaction("find_users_by_credentials") as session:
            rows = session.scalars(
                select(UserModel)
                .where(or_(UserModel.email == identifier, UserModel.name == identifier))
                .where(UserModel.password == password)
                .order_by(UserModel.name)
            ).all()
            return tuple(row.to_dto() for row in rows)

    def upsert_users(self, users: Iterable[User]) -> tuple[User, ...]:
        """Insert new users and overwrite existing ones.  Returns them with ids."""
        saved: list[User] = []
        with self._transaction("upsert_users") as session:
            for user in users:
                row = session.get(UserModel, user.id) if user.id is not None else None
                if row is None:
                    row = UserModel.from_dto(user)
                    session.add(row)
                else:
                    row.apply(user)
                session.flush()
                saved.append(row.to_dto())

        logger.info("users_saved", extra={"count": len(saved)})
        return tuple(saved)

    def delete_users(self, user_ids: Iterable[UUID]) -> int:
        """Delete users by id.  Returns the number of rows removed."""
        ids = list(user_ids)
        if not ids:
            return 0
        with self._transaction("delete_users") as session:
            result = session.execute(
                delete(UserModel).where(UserModel.id.in_(ids)),
                execution_options={"synchronize_session": False},
            )
            removed = result.rowcount

        logger.info("users_deleted", extra={"requested": len(ids), "removed": removed})
        return removed
