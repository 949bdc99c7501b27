"""
Invoicing Kernel

The computational core of the invoicing console:
- Money/tax totals derived from line items (never stored)
- Invoice and quotation documents with immutable update operations
- Role-based access policy
- Edit/preview editor workflow
- Date-range report aggregation
- SQLAlchemy persistence primitives
"""

__version__ = "0.1.0"
