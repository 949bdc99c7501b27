"""
invoicing_config -- single public entrypoint for application configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or the ``DATABASE_URL`` / ``INVOICING_CONFIG`` environment variables.

Architecture position:
    Configuration.  Sits above ``invoicing_kernel`` and beside
    ``invoicing_services``.  The kernel MUST NEVER import from
    ``invoicing_config``; ``bridges`` translates the config into kernel
    inputs.

Failure modes:
    - ``ConfigError`` -- file missing, malformed YAML, or invalid values.

Every successful call emits a ``config_loaded`` log entry carrying the
source path and the checksum of the parsed content.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from invoicing_config.loader import load_yaml_file, parse_config
from invoicing_config.schema import AppConfig
from invoicing_kernel.logging_config import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "INVOICING_CONFIG"
DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> AppConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path``, then ``$INVOICING_CONFIG``,
    then the packaged ``defaults.yaml``.  ``$DATABASE_URL`` overrides the
    configured database URL.

    Raises:
        ConfigError: If the file cannot be loaded or parsed.
    """
    path = Path(config_path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    config = parse_config(load_yaml_file(path), source=str(path))

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    logger.info(
        "config_loaded",
        extra={
            "source": config.source,
            "checksum": config.checksum,
            "database_override": bool(database_url),
        },
    )
    return config


__all__ = ["AppConfig", "get_active_config"]
