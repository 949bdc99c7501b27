"""
invoicing_services.app_state -- In-memory mirror of the store plus the actions on it.

Responsibility:
    Hold the last fetched settings, users, invoices and quotations, and
    expose the operations the screens perform on them: save/delete a
    document, save settings, add/remove/sync users, open an editor, and
    compute the dashboard and report figures.

Architecture position:
    Services -- orchestration over PersistenceAdapter (I/O) and the pure
    kernel domain (editor, access policy, reports).  Constructed once per
    process and injected wherever the state is read.

Invariants:
    - Every mutating operation checks the acting user's role through the
      access policy first.  A refused action raises PermissionDeniedError
      and touches nothing.
    - A failed remote call is logged and reported as "nothing happened"
      (None / False).  It is never raised and never retried.
    - After a document save the mirror is refetched, so the caller sees the
      store's view of the document.
    - Report and dashboard figures are computed from the mirror and never
      modify it.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence
from uuid import UUID

from invoicing_kernel.domain.access_policy import Action, require_permission
from invoicing_kernel.domain.accounts import AppSettings, User
from invoicing_kernel.domain.clock import Clock
from invoicing_kernel.domain.documents import (
    DEFAULT_TEMPLATES,
    DocumentKind,
    DocumentTemplate,
    FinancialDocument,
    new_document,
)
from invoicing_kernel.domain.editor import (
    DocumentEditor,
    EditorMode,
    EntryPoint,
    OutputHandler,
)
from invoicing_kernel.domain.reports import (
    DashboardSummary,
    ReportSummary,
    aggregate_report,
    dashboard_summary,
)
from invoicing_kernel.exceptions import (
    DocumentNotFoundError,
    EmptyDocumentError,
    RemoteCallError,
)
from invoicing_kernel.logging_config import LogContext, get_logger
from invoicing_services.persistence import PersistenceAdapter

logger = get_logger("services.app_state")


def _actor(user: User) -> str | None:
    return str(user.id) if user.id is not None else user.name


class AppState:
    """The application's single source of truth between fetches.

    Contract:
        Receives the adapter and clock via constructor injection.  Settings
        start as ``default_settings`` and are replaced by the stored row on
        the first successful ``refresh()``.
    Non-goals:
        - No optimistic concurrency; the last save wins.
        - No background refresh.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        clock: Clock,
        default_settings: AppSettings | None = None,
        templates: dict[DocumentKind, DocumentTemplate] | None = None,
    ) -> None:
        self._adapter = adapter
        self._clock = clock
        self._templates = dict(templates or DEFAULT_TEMPLATES)
        self._settings = default_settings or AppSettings()
        self._users: tuple[User, ...] = ()
        self._invoices: tuple[FinancialDocument, ...] = ()
        self._quotations: tuple[FinancialDocument, ...] = ()

    # -------------------------------------------------------------------------
    # Mirror
    # -------------------------------------------------------------------------

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def users(self) -> tuple[User, ...]:
        return self._users

    @property
    def invoices(self) -> tuple[FinancialDocument, ...]:
        return self._invoices

    @property
    def quotations(self) -> tuple[FinancialDocument, ...]:
        return self._quotations

    def documents(self, kind: DocumentKind) -> tuple[FinancialDocument, ...]:
        return self._invoices if kind is DocumentKind.INVOICE else self._quotations

    def find_document(self, kind: DocumentKind, document_id: UUID) -> FinancialDocument | None:
        for doc in self.documents(kind):
            if doc.document_id == document_id:
                return doc
        return None

    def refresh(self) -> bool:
        """Refetch everything.  Returns False (mirror unchanged) on a remote failure."""
        try:
            snapshot = self._adapter.fetch_all()
        except RemoteCallError as exc:
            logger.error("refresh_failed", extra={"error": exc.detail})
            return False

        if snapshot.settings is not None:
            self._settings = snapshot.settings
        self._users = snapshot.users
        self._invoices = snapshot.invoices
        self._quotations = snapshot.quotations
        return True

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    def save_document(self, actor: User, doc: FinancialDocument) -> FinancialDocument | None:
        """
        Persist a document and refresh the mirror.

        Returns:
            The stored document, or None when the store rejected the save or
            the document had no line items.

        Raises:
            PermissionDeniedError: actor may not create/edit documents.
        """
        action = Action.EDIT_DOCUMENT if doc.is_persisted else Action.CREATE_DOCUMENT
        require_permission(actor.role, action)

        with LogContext.bind(actor_id=_actor(actor), document_id=str(doc.key)):
            logger.info(
                "document_save_started",
                extra={"kind": doc.kind.value, "number": doc.number},
            )
            try:
                saved = self._adapter.save_document(doc)
            except EmptyDocumentError as exc:
                logger.warning(
                    "document_save_rejected",
                    extra={"kind": doc.kind.value, "number": doc.number, "reason": exc.code},
                )
                return None
            except RemoteCallError as exc:
                logger.error(
                    "document_save_failed",
                    extra={"kind": doc.kind.value, "number": doc.number, "error": exc.detail},
                )
                return None

        self.refresh()
        return self.find_document(doc.kind, saved.document_id) or saved

    def delete_document(self, actor: User, kind: DocumentKind, document_id: UUID) -> bool:
        """
        Delete a document.  Items go with it through the store's cascade.

        Raises:
            PermissionDeniedError: actor is not an admin.
        """
        require_permission(actor.role, Action.DELETE_DOCUMENT)

        with LogContext.bind(actor_id=_actor(actor), document_id=str(document_id)):
            try:
                deleted = self._adapter.delete_document(kind, document_id)
            except RemoteCallError as exc:
                logger.error(
                    "document_delete_failed",
                    extra={"kind": kind.value, "error": exc.detail},
                )
                return False

        if kind is DocumentKind.INVOICE:
            self._invoices = tuple(d for d in self._invoices if d.document_id != document_id)
        else:
            self._quotations = tuple(d for d in self._quotations if d.document_id != document_id)
        return deleted

    def open_editor(
        self,
        actor: User,
        kind: DocumentKind,
        document_id: UUID | None = None,
        entry_point: EntryPoint | None = None,
        requested_mode: EditorMode | str | None = None,
        on_output: OutputHandler | None = None,
    ) -> DocumentEditor:
        """
        Open an editor on a stored document, or on a fresh draft when no id is given.

        Raises:
            DocumentNotFoundError: no document with ``document_id`` in the mirror.
            PermissionDeniedError: a draft was requested by a role that cannot create.
        """
        if document_id is None:
            require_permission(actor.role, Action.CREATE_DOCUMENT)
            doc = new_document(kind, self._settings, self._clock, self._templates[kind])
            entry_point = entry_point or EntryPoint.CREATE
        else:
            require_permission(actor.role, Action.VIEW_DOCUMENTS)
            doc = self.find_document(kind, document_id)
            if doc is None:
                raise DocumentNotFoundError(kind.value, str(document_id))
            entry_point = entry_point or EntryPoint.EDIT

        return DocumentEditor(
            doc,
            actor,
            on_save=lambda draft: self.save_document(actor, draft),
            on_output=on_output,
            entry_point=entry_point,
            requested_mode=requested_mode,
        )

    # -------------------------------------------------------------------------
    # Settings and users
    # -------------------------------------------------------------------------

    def save_settings(self, actor: User, settings: AppSettings) -> bool:
        """
        Replace the settings.  The mirror takes the new values immediately;
        returns False when the store did not accept them.

        Raises:
            PermissionDeniedError: actor is not an admin.
        """
        require_permission(actor.role, Action.MANAGE_SETTINGS)
        self._settings = settings
        with LogContext.bind(actor_id=_actor(actor)):
            try:
                self._adapter.upsert_settings(settings)
            except RemoteCallError as exc:
                logger.error("settings_save_failed", extra={"error": exc.detail})
                return False
        return True

    def sync_users(self, actor: User, next_users: Sequence[User]) -> bool:
        """
        Make the stored roster match ``next_users``.

        Users in the current mirror but not in ``next_users`` (by id) are
        deleted; users without an id, or with an id the mirror does not
        know, are inserted.  Existing users are not updated.

        Raises:
            PermissionDeniedError: actor is not an admin.
        """
        require_permission(actor.role, Action.MANAGE_USERS)

        current_ids = {u.id for u in self._users}
        next_ids = {u.id for u in next_users if u.id is not None}
        removed_ids = [uid for uid in current_ids if uid not in next_ids]
        added = [u for u in next_users if u.id is None or u.id not in current_ids]

        with LogContext.bind(actor_id=_actor(actor)):
            logger.info(
                "users_sync_started",
                extra={"removed": len(removed_ids), "added": len(added)},
            )
            try:
                if removed_ids:
                    self._adapter.delete_users(removed_ids)
                if added:
                    self._adapter.upsert_users(added)
            except RemoteCallError as exc:
                logger.error("users_sync_failed", extra={"error": exc.detail})
                return False

        if added:
            # Store-assigned ids are only known after a refetch.
            return self.refresh()
        self._users = tuple(next_users)
        return True

    def add_user(self, actor: User, user: User) -> bool:
        return self.sync_users(actor, self._users + (user,))

    def remove_user(self, actor: User, user_id: UUID) -> bool:
        return self.sync_users(actor, tuple(u for u in self._users if u.id != user_id))

    # -------------------------------------------------------------------------
    # Figures
    # -------------------------------------------------------------------------

    def dashboard(self, actor: User) -> DashboardSummary:
        require_permission(actor.role, Action.VIEW_DASHBOARD)
        return dashboard_summary(self._invoices, self._users)

    def report(
        self,
        actor: User,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> ReportSummary:
        """Invoice report over [start, end]; defaults to the current month."""
        require_permission(actor.role, Action.VIEW_DASHBOARD)
        return aggregate_report(self._invoices, start, end, clock=self._clock)
