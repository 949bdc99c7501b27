"""CLI utilities: formatting, table rules, logging mute/restore."""

import logging
from datetime import date

from invoicing_kernel.domain.values import format_amount, to_decimal

W = 72


def fmt_amount(v, currency: str = "") -> str:
    """Format amount for display (e.g. MVR 1,234.50)."""
    return format_amount(to_decimal(v), currency)


def parse_iso_date(text: str) -> date:
    """argparse ``type=`` for YYYY-MM-DD arguments."""
    return date.fromisoformat(text)


def print_banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}".center(W))
    print("=" * W)


def enable_quiet_logging():
    """Mute console handlers so CLI output stays clean. Returns list to pass to restore_logging."""
    kernel_logger = logging.getLogger("invoicing_kernel")
    muted = []
    for h in kernel_logger.handlers:
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            muted.append((h, h.level))
            h.setLevel(logging.CRITICAL + 1)
    return muted


def restore_logging(muted):
    """Restore muted handlers after a quiet-logging section."""
    for h, orig_level in muted:
        h.setLevel(orig_level)
