"""
Config -> Kernel Bridges.

Functions that turn an ``AppConfig`` into kernel inputs.  They live here
(the producer) because the kernel must never import ``invoicing_config``.

Usage:
    config = get_active_config()
    state = AppState(adapter, clock,
                     default_settings=build_default_settings(config),
                     templates=build_document_templates(config))
"""

from __future__ import annotations

from invoicing_config.schema import AppConfig
from invoicing_kernel.domain.accounts import AppSettings
from invoicing_kernel.domain.documents import DocumentKind, DocumentTemplate


def build_default_settings(config: AppConfig) -> AppSettings:
    s = config.settings
    return AppSettings(
        company_name=s.company_name,
        company_address=s.company_address,
        company_email=s.company_email,
        gst_number=s.gst_number,
        default_tax_rate=s.default_tax_rate,
        currency_symbol=s.currency_symbol,
        logo_url=s.logo_url,
    )


def build_document_templates(config: AppConfig) -> dict[DocumentKind, DocumentTemplate]:
    """One DocumentTemplate per kind, from the ``documents`` section."""
    templates: dict[DocumentKind, DocumentTemplate] = {}
    for defaults in config.documents:
        templates[DocumentKind(defaults.kind)] = DocumentTemplate(
            number_prefix=defaults.number_prefix,
            days_until_secondary_date=defaults.days_until_secondary_date,
            notes=defaults.notes,
            terms=defaults.terms,
            placeholder_description=defaults.placeholder_description,
        )
    return templates
