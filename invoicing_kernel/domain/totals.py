"""
Totals -- the money/tax calculator for invoices and quotations.

Pure functions.  ZERO I/O.  ZERO side effects.

    subtotal   = sum(quantity * rate for each line item)
    tax_amount = subtotal * tax_rate / 100
    total      = subtotal + tax_amount

Totals are always derived from the current line items and tax rate and are
never stored on a document, so they cannot drift from their inputs.  No
rounding is applied here; callers round at display time.  Negative
quantities or rates are not rejected and flow through the arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Protocol

from invoicing_kernel.domain.values import HUNDRED, ZERO, round_display, to_decimal


class PricedLine(Protocol):
    quantity: Decimal
    rate: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    """Subtotal, tax and grand total of one document."""

    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal

    def rounded(self) -> "DocumentTotals":
        """Copy rounded to two decimal places for display."""
        return DocumentTotals(
            subtotal=round_display(self.subtotal),
            tax_amount=round_display(self.tax_amount),
            total=round_display(self.total),
        )


def line_amount(line: PricedLine) -> Decimal:
    """quantity * rate for a single line."""
    return line.quantity * line.rate


def compute_subtotal(items: Iterable[PricedLine]) -> Decimal:
    return sum((line_amount(item) for item in items), ZERO)


def compute_totals(items: Iterable[PricedLine], tax_rate: Decimal | int | str) -> DocumentTotals:
    """
    Compute subtotal, tax amount and total.

    An empty collection yields zero for all three values.

    Example:
        items 2 x 50 and 1 x 25 at 6% tax
        -> subtotal 125, tax_amount 7.50, total 132.50
    """
    subtotal = compute_subtotal(items)
    tax_amount = subtotal * to_decimal(tax_rate) / HUNDRED
    return DocumentTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )
