"""
Stock & invoice mutator -- the write phase of a reversal.

Applies an allocation computed by ``ReturnAllocator`` to the store, one
portion at a time in allocation order:

    1. restock the exact lot the units were sold from;
    2. in partial mode, take the units off the invoice line.

There is no per-line commit.  The first failure propagates and the
orchestrator rolls the whole unit of work back.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from ledger_engines.allocation import AllocatedPortion
from ledger_kernel.domain.dtos import StockLine
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.invoice_ledger import InvoiceLedger
from ledger_kernel.services.stock_ledger import StockLedger

logger = get_logger("modules.sales_reversal.mutator")


class StockInvoiceMutator:
    """Applies allocated portions to current_stock and invoice_item rows."""

    def __init__(self, session: Session):
        self._stock = StockLedger(session)
        self._invoices = InvoiceLedger(session)

    def apply(
        self,
        portions: Sequence[AllocatedPortion],
        *,
        decrement_invoice: bool,
    ) -> list[StockLine]:
        """
        Restock every portion, and decrement its invoice line if asked.

        Returns:
            The stock lines after restocking, in portion order.

        Raises:
            StockLineNotFoundError: a portion's lot has no stock row.
            InsufficientQuantityError: an invoice line holds less than the
                portion (the allocation went stale).
        """
        restocked: list[StockLine] = []
        for portion in portions:
            line = portion.line
            restocked.append(self._stock.restock(line.stock_key, portion.quantity))
            if decrement_invoice:
                self._invoices.decrement_line(line.line_id, portion.quantity)

        logger.info(
            "reversal_mutations_applied",
            extra={
                "portion_count": len(portions),
                "decrement_invoice": decrement_invoice,
            },
        )
        return restocked
