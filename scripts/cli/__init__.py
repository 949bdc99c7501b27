"""
Invoicing console CLI.

Sign in, list invoices and quotations, and print the report and dashboard
figures from a terminal.

Entry point: python -m scripts.cli
"""

from scripts.cli.main import main

__all__ = ["main"]
