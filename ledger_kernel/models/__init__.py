"""ORM models for the sales ledger tables."""

from ledger_kernel.models.account import Account, User
from ledger_kernel.models.invoice import Invoice, InvoiceItem
from ledger_kernel.models.ledger import AccountTransaction, Transaction, TransactionKind
from ledger_kernel.models.stock import CurrentStock

__all__ = [
    "Account",
    "AccountTransaction",
    "CurrentStock",
    "Invoice",
    "InvoiceItem",
    "Transaction",
    "TransactionKind",
    "User",
]
