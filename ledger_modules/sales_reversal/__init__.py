"""
Sales Reversal Module.

Undo a posted sales invoice, fully or item by item:

- request: payload -> ReturnRequest
- mutator: restock lots and decrement invoice lines
- service: InvoiceReversalService orchestrating one atomic reversal
"""

from ledger_modules.sales_reversal.mutator import StockInvoiceMutator
from ledger_modules.sales_reversal.request import parse_return_request
from ledger_modules.sales_reversal.service import (
    InvoiceReversalService,
    ReversalResult,
    reverse_invoice,
)

__all__ = [
    "InvoiceReversalService",
    "ReversalResult",
    "StockInvoiceMutator",
    "parse_return_request",
    "reverse_invoice",
]
