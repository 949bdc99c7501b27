"""
Account Domain Models -- users, roles and the company settings singleton.

Frozen dataclass value objects with ZERO I/O.  Consumed by the access
policy, the auth gate and the application state; mapped to rows by
``invoicing_kernel.models.accounts``.

Invariants enforced
-------------------
* ``Role`` is one of admin / editor / viewer.
* A user whose ``active`` flag is absent (None) counts as active.
* ``AppSettings`` is replaced wholesale; there is no partial update.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from invoicing_kernel.domain.values import to_decimal


class Role(Enum):
    """Staff roles, from most to least privileged."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class User:
    """A staff member who can sign in."""
    name: str
    email: str
    role: Role = Role.VIEWER
    id: UUID | None = None  # None until the store assigns one
    password: str | None = None
    active: bool | None = None
    avatar: str | None = None

    def __post_init__(self):
        if isinstance(self.role, str):
            object.__setattr__(self, "role", Role.parse(self.role))

    @property
    def is_active(self) -> bool:
        return self.active is not False

    @property
    def is_viewer(self) -> bool:
        return self.role is Role.VIEWER


@dataclass(frozen=True)
class AppSettings:
    """Company profile and document defaults.  Exactly one per deployment."""
    company_name: str = "SANDPIX MALDIVES"
    company_address: str = "Maafushi, Kaafu Atoll\nRepublic of Maldives"
    company_email: str = "contact@sandpixmaldives.com"
    gst_number: str | None = None
    default_tax_rate: Decimal = Decimal("6")
    currency_symbol: str = "MVR"
    logo_url: str | None = None

    def __post_init__(self):
        if not isinstance(self.default_tax_rate, Decimal):
            object.__setattr__(self, "default_tax_rate", to_decimal(self.default_tax_rate))

