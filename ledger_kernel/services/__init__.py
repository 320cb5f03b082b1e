"""Kernel write services.  All of them flush; none of them commit."""

from ledger_kernel.services.invoice_ledger import InvoiceLedger
from ledger_kernel.services.journal_poster import JournalPoster
from ledger_kernel.services.stock_ledger import StockLedger

__all__ = ["InvoiceLedger", "JournalPoster", "StockLedger"]
