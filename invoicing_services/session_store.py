"""
invoicing_services.session_store -- Locally cached sign-in session.

The signed-in user is written as a JSON blob to a file so the next start
can skip the login prompt.  There is no expiry and no server-side session:
the blob is trusted until ``logout()`` removes it.  A missing, unreadable
or malformed file simply means nobody is signed in.
"""

from __future__ import annotations

import json
from pathlib import Path
from uuid import UUID

from invoicing_kernel.domain.accounts import Role, User
from invoicing_kernel.logging_config import get_logger

logger = get_logger("services.session_store")


def _user_to_blob(user: User) -> dict:
    # The password is never written to disk.
    return {
        "id": str(user.id) if user.id is not None else None,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "active": user.active,
        "avatar": user.avatar,
    }


def _user_from_blob(blob: dict) -> User:
    if not isinstance(blob, dict):
        raise TypeError(f"expected a JSON object, got {type(blob).__name__}")
    raw_id = blob.get("id")
    return User(
        id=UUID(raw_id) if raw_id else None,
        name=blob["name"],
        email=blob["email"],
        role=Role.parse(blob["role"]),
        active=blob.get("active"),
        avatar=blob.get("avatar"),
    )


class SessionStore:
    """Persists the current user to ``path``."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def save(self, user: User) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(_user_to_blob(user), indent=2), encoding="utf-8")
        logger.info("session_saved", extra={"actor_id": str(user.id), "path": str(self._path)})

    def load(self) -> User | None:
        """Rehydrate the cached user, or None when there is no usable session."""
        if not self._path.exists():
            return None
        try:
            blob = json.loads(self._path.read_text(encoding="utf-8"))
            return _user_from_blob(blob)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "session_unreadable",
                extra={"path": str(self._path), "error": str(exc)},
            )
            return None

    def logout(self) -> bool:
        """Forget the cached user.  Returns True if a session was removed."""
        if not self._path.exists():
            return False
        self._path.unlink()
        logger.info("session_cleared", extra={"path": str(self._path)})
        return True
