"""Command-line tools for the invoicing console."""
