"""
invoicing_services.export_service -- Print, PDF download and e-mail hand-off.

Responsibility:
    Connect the editor's output requests to the host facilities that do the
    actual work (a print dialog, a PDF exporter, a mail client).  Those
    facilities are injected callables; this module decides what to hand them.

Architecture position:
    Services layer.  Depends on the pure editor and document types only.

Invariants:
    - Output always runs from the preview layout.  ``download_document``
      goes through ``DocumentEditor.request_export`` so the export waits for
      the layout-ready signal.
    - When no PDF exporter is installed, a PDF request falls back to the
      print handler.
    - The composed e-mail carries no attachment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable
from urllib.parse import quote

from invoicing_kernel.domain.accounts import AppSettings
from invoicing_kernel.domain.documents import DocumentKind, FinancialDocument
from invoicing_kernel.domain.editor import DocumentEditor, OutputTarget
from invoicing_kernel.domain.values import round_display
from invoicing_kernel.logging_config import get_logger

logger = get_logger("services.export")

PrintHandler = Callable[[FinancialDocument], None]
PdfHandler = Callable[[FinancialDocument, str], None]

_KIND_LABELS = {
    DocumentKind.INVOICE: "Invoice",
    DocumentKind.QUOTATION: "Quotation",
}

_AMOUNT_LABELS = {
    DocumentKind.INVOICE: "Amount Due",
    DocumentKind.QUOTATION: "Total Amount",
}

_LINE_BREAK = "\r\n"


@dataclass(frozen=True)
class MailMessage:
    """A pre-filled message for the user's mail client."""
    to: str
    subject: str
    body: str

    @property
    def mailto_url(self) -> str:
        return (
            f"mailto:{quote(self.to, safe='@')}"
            f"?subject={quote(self.subject)}&body={quote(self.body)}"
        )


def pdf_filename(doc: FinancialDocument) -> str:
    """``<number>.pdf``, or ``<kind>.pdf`` when the number is blank."""
    stem = doc.number.strip() or doc.kind.value
    return f"{stem}.pdf"


def compose_email(doc: FinancialDocument, settings: AppSettings) -> MailMessage:
    """
    Build the e-mail that accompanies a document.

    Example:
        subject: "Invoice INV-1042 from SANDPIX MALDIVES"
        body:    "Dear Acme, ... Amount Due: MVR 132.50 ..."
    """
    label = _KIND_LABELS[doc.kind]
    total = round_display(doc.totals.total)
    paragraphs = [
        f"Dear {doc.client_name or 'Client'},",
        f"Please find attached the {label.lower()} {doc.number} dated {doc.issue_date.isoformat()}.",
        f"{_AMOUNT_LABELS[doc.kind]}: {doc.currency} {total}",
        "Thank you for your business.",
        f"Best regards,{_LINE_BREAK}{settings.company_name}",
    ]
    return MailMessage(
        to=doc.client_email,
        subject=f"{label} {doc.number} from {settings.company_name}",
        body=(_LINE_BREAK * 2).join(paragraphs),
    )


class ExportService:
    """Routes print/PDF/e-mail requests to the injected host handlers."""

    def __init__(
        self,
        printer: PrintHandler,
        pdf_exporter: PdfHandler | None = None,
        mail_opener: Callable[[str], None] | None = None,
    ) -> None:
        self._printer = printer
        self._pdf_exporter = pdf_exporter
        self._mail_opener = mail_opener

    def handle_output(self, target: OutputTarget, doc: FinancialDocument) -> None:
        """Editor ``on_output`` callback."""
        if target is OutputTarget.PDF and self._pdf_exporter is not None:
            filename = pdf_filename(doc)
            logger.info("document_pdf_exported", extra={"number": doc.number, "pdf_filename": filename})
            self._pdf_exporter(doc, filename)
            return
        if target is OutputTarget.PDF:
            logger.warning("pdf_exporter_missing", extra={"number": doc.number})
        logger.info("document_printed", extra={"number": doc.number})
        self._printer(doc)

    def print_document(self, editor: DocumentEditor) -> bool:
        """Print the editor's document.  Returns True if it printed right away."""
        return editor.request_print()

    def download_document(self, editor: DocumentEditor) -> bool:
        """
        Export the editor's document as PDF.

        Switches the editor to preview if needed; the export then runs on the
        next ``layout_ready()``.  Returns True if it exported right away.
        """
        return editor.request_export()

    def email_document(self, doc: FinancialDocument, settings: AppSettings) -> MailMessage:
        """Compose the message and, when a mail opener is installed, open it."""
        message = compose_email(doc, settings)
        if self._mail_opener is not None:
            self._mail_opener(message.mailto_url)
        logger.info(
            "document_email_composed",
            extra={"number": doc.number, "has_recipient": bool(message.to)},
        )
        return message
