"""
invoicing_services.auth_service -- Sign-in gate.

Responsibility:
    Match an identifier (user name OR email) and a password against the
    users table and decide whether the person may enter.  The result is
    either the matching ``User`` or an ``AuthFailure`` carrying the reason
    and the message to show.

Architecture position:
    Services layer.  Reads users through PersistenceAdapter; never touches a
    Session directly.  The resulting User is handed to SessionStore.

Invariants:
    - Password comparison is exact string equality (no hashing).
    - A user whose active flag is absent counts as active; only an explicit
      False is refused.
    - When several users match, the first active one (by name) is signed
      in.  The attempt is refused as disabled only when every match is.
    - The two failure reasons users can see are INVALID_CREDENTIALS and
      ACCOUNT_DISABLED.  Nothing reveals whether the identifier exists.

Failure modes:
    - A remote failure becomes AuthFailure(UNAVAILABLE) with a generic
      "try again" message.  It is never raised to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from invoicing_kernel.domain.accounts import User
from invoicing_kernel.exceptions import (
    AccountDisabledError,
    AuthError,
    InvalidCredentialsError,
    RemoteCallError,
)
from invoicing_kernel.logging_config import LogContext, get_logger
from invoicing_services.persistence import PersistenceAdapter

logger = get_logger("services.auth")

UNAVAILABLE_MESSAGE = "An error occurred during login. Please try again."


class AuthFailureReason(Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DISABLED = "account_disabled"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AuthFailure:
    """Why a sign-in attempt was refused."""
    reason: AuthFailureReason
    message: str

    @classmethod
    def from_error(cls, error: AuthError) -> "AuthFailure":
        reason = (
            AuthFailureReason.ACCOUNT_DISABLED
            if isinstance(error, AccountDisabledError)
            else AuthFailureReason.INVALID_CREDENTIALS
        )
        return cls(reason=reason, message=str(error))


class AuthService:
    """Authenticates staff against the users table."""

    def __init__(self, adapter: PersistenceAdapter) -> None:
        self._adapter = adapter

    def authenticate(self, identifier: str, password: str) -> User | AuthFailure:
        """
        Look up a user by name or email and check the password.

        Returns:
            The matching User, or AuthFailure when the attempt is refused.
        """
        identifier = identifier.strip()
        try:
            matches = self._adapter.find_users_by_credentials(identifier, password)
        except RemoteCallError as exc:
            logger.error(
                "auth_lookup_failed",
                extra={"identifier": identifier, "error": exc.detail},
            )
            return AuthFailure(AuthFailureReason.UNAVAILABLE, UNAVAILABLE_MESSAGE)

        try:
            user = self._check(identifier, matches)
        except AuthError as exc:
            logger.info(
                "auth_failed",
                extra={"identifier": identifier, "reason": exc.code},
            )
            return AuthFailure.from_error(exc)

        with LogContext.bind(actor_id=str(user.id)):
            logger.info("auth_succeeded", extra={"role": user.role.value})
        return user

    def _check(self, identifier: str, matches: tuple[User, ...]) -> User:
        if not matches:
            raise InvalidCredentialsError(identifier)
        if len(matches) > 1:
            logger.warning(
                "auth_identifier_ambiguous",
                extra={"identifier": identifier, "matches": len(matches)},
            )
        for user in matches:
            if user.is_active:
                return user
        raise AccountDisabledError(identifier)
