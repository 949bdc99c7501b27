"""SQLAlchemy ORM rows.  Importing this package registers every table on Base.metadata."""

from invoicing_kernel.models.accounts import SETTINGS_ROW_ID, SettingsModel, UserModel
from invoicing_kernel.models.documents import (
    DOCUMENT_MODELS,
    ITEM_MODELS,
    InvoiceItemModel,
    InvoiceModel,
    QuotationItemModel,
    QuotationModel,
    item_from_dto,
)

__all__ = [
    "DOCUMENT_MODELS",
    "ITEM_MODELS",
    "InvoiceItemModel",
    "InvoiceModel",
    "QuotationItemModel",
    "QuotationModel",
    "SETTINGS_ROW_ID",
    "SettingsModel",
    "UserModel",
    "item_from_dto",
]
