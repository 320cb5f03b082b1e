"""Read-side selectors over the sales ledger."""

from ledger_kernel.selectors.invoice_selector import InvoiceHeader, InvoiceSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector

__all__ = ["InvoiceHeader", "InvoiceSelector", "LedgerSelector"]
