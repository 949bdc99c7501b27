"""
Stateful services over the invoicing kernel: persistence, sign-in,
application state and export hand-off.
"""

from invoicing_services.app_state import AppState
from invoicing_services.auth_service import AuthFailure, AuthFailureReason, AuthService
from invoicing_services.export_service import ExportService, MailMessage, compose_email
from invoicing_services.persistence import PersistenceAdapter, Snapshot
from invoicing_services.session_store import SessionStore

__all__ = [
    "AppState",
    "AuthFailure",
    "AuthFailureReason",
    "AuthService",
    "ExportService",
    "MailMessage",
    "PersistenceAdapter",
    "SessionStore",
    "Snapshot",
    "compose_email",
]
