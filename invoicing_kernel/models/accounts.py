"""
Account ORM Models (``invoicing_kernel.models.accounts``).

Responsibility
--------------
SQLAlchemy persistence models for the staff roster and the company
settings singleton.  Maps the frozen ``User`` and ``AppSettings`` domain
dataclasses to rows.

Architecture position
---------------------
**Kernel > Models** -- persistence.  Imports from ``invoicing_kernel.db.base``
and ``invoicing_kernel.domain.accounts``.
"""

from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from invoicing_kernel.db.base import Base
from invoicing_kernel.domain.accounts import AppSettings, Role, User

SETTINGS_ROW_ID = 1


# ---------------------------------------------------------------------------
# 1. SettingsModel
# ---------------------------------------------------------------------------


class SettingsModel(Base):
    """
    ORM model for the company settings singleton.

    Guarantees:
        - Exactly one row, id = SETTINGS_ROW_ID.  Saves overwrite it wholesale.
        - default_tax_rate is Decimal (Numeric via type_annotation_map).
    """

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    company_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    gst_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    default_tax_rate: Mapped[Decimal] = mapped_column(nullable=False)
    currency_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> AppSettings:
        """Convert ORM model to frozen dataclass."""
        return AppSettings(
            company_name=self.company_name,
            company_address=self.company_address,
            company_email=self.company_email,
            gst_number=self.gst_number,
            default_tax_rate=self.default_tax_rate,
            currency_symbol=self.currency_symbol,
            logo_url=self.logo_url,
        )

    @classmethod
    def from_dto(cls, dto: AppSettings) -> "SettingsModel":
        """Create ORM model from frozen dataclass."""
        return cls(
            id=SETTINGS_ROW_ID,
            company_name=dto.company_name,
            company_address=dto.company_address,
            company_email=dto.company_email,
            gst_number=dto.gst_number,
            default_tax_rate=dto.default_tax_rate,
            currency_symbol=dto.currency_symbol,
            logo_url=dto.logo_url,
        )

    def __repr__(self) -> str:
        return f"<SettingsModel {self.company_name}>"


# ---------------------------------------------------------------------------
# 2. UserModel
# ---------------------------------------------------------------------------


class UserModel(Base):
    """
    ORM model for staff users.

    Guarantees:
        - role stored as the Role enum value string.
        - active is nullable; NULL counts as active.
        - password is stored as given (no hashing).
    """

    __tablename__ = "users"

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_name", "name"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.VIEWER.value)
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    active: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dto(self) -> User:
        """Convert ORM model to frozen dataclass."""
        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            role=Role.parse(self.role),
            password=self.password,
            active=self.active,
            avatar=self.avatar,
        )

    @classmethod
    def from_dto(cls, dto: User) -> "UserModel":
        """Create ORM model from frozen dataclass.  A missing id is generated."""
        return cls(
            id=dto.id or uuid4(),
            name=dto.name,
            email=dto.email,
            role=dto.role.value,
            password=dto.password,
            active=dto.active,
            avatar=dto.avatar,
        )

    def apply(self, dto: User) -> None:
        """Overwrite this row's columns from ``dto``."""
        self.name = dto.name
        self.email = dto.email
        self.role = dto.role.value
        self.password = dto.password
        self.active = dto.active
        self.avatar = dto.avatar

    def __repr__(self) -> str:
        return f"<UserModel {self.name} ({self.role})>"
