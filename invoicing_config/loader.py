"""
Configuration Loader (``invoicing_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the typed
``invoicing_config.schema`` dataclasses.  Callers go through
``invoicing_config.get_active_config()``; nothing else reads the file.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Required keys have no silent defaults: a missing ``settings`` or
  document section is an error.
* ``compute_checksum`` is deterministic for identical parsed content.

Failure modes
-------------
* Missing file, malformed YAML, missing keys and bad values all raise
  ``ConfigError`` naming the file.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from invoicing_config.schema import (
    AppConfig,
    DatabaseConfig,
    DefaultSettings,
    DocumentDefaults,
    LoggingConfig,
    SessionConfig,
)
from invoicing_kernel.exceptions import ConfigError

DOCUMENT_KINDS = ("invoice", "quotation")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigError: the file is missing, unreadable, not YAML, or not a mapping.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigError(str(path), f"cannot read file ({exc.strerror})") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return data


def parse_decimal(value: Any, key: str) -> Decimal:
    """Parse a YAML scalar as Decimal (through str, so 6.5 stays 6.5)."""
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"{key}: not a number: {value!r}") from None
    if not result.is_finite() or result < 0:
        raise ValueError(f"{key}: must be a non-negative number, got {value!r}")
    return result


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    return DatabaseConfig(
        url=str(data.get("url", DatabaseConfig.url)),
        echo=bool(data.get("echo", False)),
    )


def parse_session(data: dict[str, Any]) -> SessionConfig:
    return SessionConfig(session_file=str(data.get("session_file", SessionConfig.session_file)))


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(level=str(data.get("level", LoggingConfig.level)).upper())


def parse_settings(data: dict[str, Any]) -> DefaultSettings:
    """Parse the initial company settings."""
    return DefaultSettings(
        company_name=data["company_name"],
        company_address=data.get("company_address", ""),
        company_email=data.get("company_email", ""),
        default_tax_rate=parse_decimal(data["default_tax_rate"], "default_tax_rate"),
        currency_symbol=data["currency_symbol"],
        gst_number=data.get("gst_number"),
        logo_url=data.get("logo_url"),
    )


def parse_document_defaults(kind: str, data: dict[str, Any]) -> DocumentDefaults:
    """Parse the new-document defaults for one kind."""
    days = int(data["days_until_secondary_date"])
    if days < 0:
        raise ValueError(f"{kind}.days_until_secondary_date must be >= 0")
    return DocumentDefaults(
        kind=kind,
        number_prefix=data["number_prefix"],
        days_until_secondary_date=days,
        notes=data.get("notes", ""),
        terms=data.get("terms", ""),
        placeholder_description=data.get("placeholder_description", ""),
    )


def parse_config(data: dict[str, Any], source: str = "") -> AppConfig:
    """
    Parse a whole configuration mapping.

    Raises:
        ConfigError: a required key is missing or a value is invalid.
    """
    try:
        documents = data["documents"]
        config = AppConfig(
            database=parse_database(data.get("database") or {}),
            session=parse_session(data.get("session") or {}),
            logging=parse_logging(data.get("logging") or {}),
            settings=parse_settings(data["settings"]),
            documents=tuple(
                parse_document_defaults(kind, documents[kind]) for kind in DOCUMENT_KINDS
            ),
            source=source,
            checksum=compute_checksum(data),
        )
    except KeyError as exc:
        raise ConfigError(source, f"missing required key {exc.args[0]!r}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(source, str(exc)) from exc
    return config


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
