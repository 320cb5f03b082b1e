"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A reversal either commits completely or leaves no trace.  Callers (the CLI,
a job runner, an API layer) need to tell *why* it did not commit without
parsing message strings, so every error:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (invoice_id, item_id, ...)

Example:
    try:
        service.reverse(request)
    except InsufficientQuantityError as e:
        report(code=e.code, item=e.item_id, missing=e.unallocated)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ReversalError
    |   +-- MalformedRequestError
    |   +-- NoInvoiceItemsError
    |   +-- InvoiceNotFoundError
    |   +-- InvoiceLineNotFoundError
    |   +-- InsufficientQuantityError
    |   +-- StockLineNotFoundError
    |   +-- AccountLookupFailedError
    |   +-- TransactionNotFoundError
    |
    +-- PostingError
    |   +-- UnbalancedJournalError
    |
    +-- StoreFailureError
    |
    +-- ConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                   | When Raised
-----------|------------------------|------------------------------------------
Reversal   | MALFORMED_REQUEST      | Payload cannot be parsed into a request
           | NO_INVOICE_ITEMS       | Invoice has no (matching) item lines
           | INVOICE_NOT_FOUND      | Item lines exist but the invoice row does not
           | INVOICE_LINE_NOT_FOUND | Invoice line vanished before its decrement
           | INSUFFICIENT_QUANTITY  | Return exceeds the remaining sold quantity
           | STOCK_LINE_NOT_FOUND   | No current_stock row for the exact lot key
           | ACCOUNT_LOOKUP_FAILED  | Invoice user has no cash-in-hand account
           | TRANSACTION_NOT_FOUND  | Full reversal found no sale transaction
-----------|------------------------|------------------------------------------
Posting    | UNBALANCED_JOURNAL     | Debits != credits
-----------|------------------------|------------------------------------------
Store      | STORE_FAILURE          | Underlying database read/write failed
-----------|------------------------|------------------------------------------
Config     | CONFIG_ERROR           | Configuration file is missing or invalid

===============================================================================
HANDLING PATTERNS
===============================================================================

Every one of these aborts the unit of work.  Nothing is retried internally;
resubmitting the identical request is safe because no partial state is ever
committed.

    except ReversalError as e:
        print(f"{e.code}: {e}")
        return 1
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# Reversal-related exceptions


class ReversalError(LedgerKernelError):
    """Base exception for invoice reversal errors."""

    code: str = "REVERSAL_ERROR"


class MalformedRequestError(ReversalError):
    """Reversal payload cannot be parsed into the expected shape."""

    code: str = "MALFORMED_REQUEST"

    def __init__(self, reason: str, field: str | None = None):
        self.reason = reason
        self.field = field
        where = f" ({field})" if field else ""
        super().__init__(f"Malformed reversal request{where}: {reason}")


class NoInvoiceItemsError(ReversalError):
    """Invoice has no item lines, or none match the requested items."""

    code: str = "NO_INVOICE_ITEMS"

    def __init__(self, invoice_id: int, item_ids: list[int] | None = None):
        self.invoice_id = invoice_id
        self.item_ids = item_ids
        if item_ids:
            detail = f"for items {item_ids}"
        else:
            detail = "at all"
        super().__init__(
            f"Could not retrieve items from invoice {invoice_id} to be reversed ({detail})"
        )


class InvoiceNotFoundError(ReversalError):
    """Invoice row does not exist."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: int):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class InvoiceLineNotFoundError(ReversalError):
    """An invoice item line vanished between the locked read and its update."""

    code: str = "INVOICE_LINE_NOT_FOUND"

    def __init__(self, line_id: int):
        self.line_id = line_id
        super().__init__(f"Invoice item line not found: {line_id}")


class InsufficientQuantityError(ReversalError):
    """Requested return exceeds the quantity still sold on the invoice."""

    code: str = "INSUFFICIENT_QUANTITY"

    def __init__(self, item_id: int, requested: int, unallocated: int):
        self.item_id = item_id
        self.requested = requested
        self.unallocated = unallocated
        super().__init__(
            f"Unable to return the specified quantity for item {item_id}: "
            f"requested {requested}, {unallocated} not available on the invoice"
        )


class StockLineNotFoundError(ReversalError):
    """
    No current_stock row matches the exact (warehouse, item, lot) key.

    The invoice references stock that no longer exists.  Returns can only
    restock into the lot they were sold from.
    """

    code: str = "STOCK_LINE_NOT_FOUND"

    def __init__(
        self,
        warehouse_id: int,
        item_id: int,
        receipt_id: int,
        transfer_id: int | None,
    ):
        self.warehouse_id = warehouse_id
        self.item_id = item_id
        self.receipt_id = receipt_id
        self.transfer_id = transfer_id
        super().__init__(
            f"Stock line not found: warehouse={warehouse_id} item={item_id} "
            f"receipt={receipt_id} transfer={transfer_id}"
        )


class AccountLookupFailedError(ReversalError):
    """The invoice's owning user has no linked cash-in-hand account."""

    code: str = "ACCOUNT_LOOKUP_FAILED"

    def __init__(self, invoice_id: int, user_id: int | None):
        self.invoice_id = invoice_id
        self.user_id = user_id
        super().__init__(
            f"No cash account linked to user {user_id} of invoice {invoice_id}"
        )


class TransactionNotFoundError(ReversalError):
    """Full reversal could not locate the invoice's sale transaction."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, invoice_id: int, remark: str | None = None):
        self.invoice_id = invoice_id
        self.remark = remark
        super().__init__(
            f"No transaction linked to invoice {invoice_id}"
            + (f" (remark {remark!r})" if remark else "")
        )


# Posting-related exceptions


class PostingError(LedgerKernelError):
    """Base exception for journal posting errors."""

    code: str = "POSTING_ERROR"


class UnbalancedJournalError(PostingError):
    """Journal debits do not equal credits."""

    code: str = "UNBALANCED_JOURNAL"

    def __init__(self, debits: str, credits: str):
        self.debits = debits
        self.credits = credits
        super().__init__(f"Unbalanced journal: debits={debits}, credits={credits}")


# Infrastructure exceptions


class StoreFailureError(LedgerKernelError):
    """Underlying database read or write failed."""

    code: str = "STORE_FAILURE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Store failure during {operation}: {detail}")


class ConfigError(LedgerKernelError):
    """Configuration is missing or invalid."""

    code: str = "CONFIG_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
