"""
Invoicing configuration schema.

Frozen dataclasses the YAML configuration is parsed into.  ``AppConfig`` is
the runtime artifact returned by ``invoicing_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the store lives."""

    url: str = "sqlite:///invoicing.db"
    echo: bool = False


@dataclass(frozen=True)
class SessionConfig:
    """Where the signed-in user is cached between runs."""

    session_file: str = "~/.invoicing/session.json"


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Business defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DefaultSettings:
    """Company settings used until the settings row has been saved."""

    company_name: str
    company_address: str
    company_email: str
    default_tax_rate: Decimal
    currency_symbol: str
    gst_number: str | None = None
    logo_url: str | None = None


@dataclass(frozen=True)
class DocumentDefaults:
    """Defaults applied to a new document of one kind."""

    kind: str  # "invoice" or "quotation"
    number_prefix: str
    days_until_secondary_date: int
    notes: str
    terms: str
    placeholder_description: str


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppConfig:
    """Everything the application reads from configuration."""

    database: DatabaseConfig
    session: SessionConfig
    logging: LoggingConfig
    settings: DefaultSettings
    documents: tuple[DocumentDefaults, ...] = field(default_factory=tuple)
    source: str = ""
    checksum: str = ""

    def document_defaults(self, kind: str) -> DocumentDefaults | None:
        for defaults in self.documents:
            if defaults.kind == kind:
                return defaults
        return None
