"""
InvoiceLedger -- writes to invoice headers and item lines.

Invariants enforced:
    - invoice_item.qty never goes negative.
    - Every row is locked before it is changed.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import delete

from ledger_kernel.exceptions import (
    InsufficientQuantityError,
    InvoiceLineNotFoundError,
    InvoiceNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.invoice import Invoice, InvoiceItem
from ledger_kernel.services.base import BaseService

logger = get_logger("services.invoice_ledger")


class InvoiceLedger(BaseService):
    """Mutations of invoice rows on behalf of a reversal."""

    def decrement_line(self, line_id: int, qty: int) -> int:
        """
        Reduce what remains sold on an invoice line.

        Returns:
            The remaining quantity on the line.

        Raises:
            InsufficientQuantityError: ``qty`` exceeds the line's quantity.
            InvoiceLineNotFoundError: the line no longer exists.
        """
        line = self.session.get(InvoiceItem, line_id, with_for_update=True)
        if line is None:
            raise InvoiceLineNotFoundError(line_id)
        if qty > line.qty:
            raise InsufficientQuantityError(
                item_id=line.item_id,
                requested=qty,
                unallocated=qty - line.qty,
            )
        line.qty -= qty
        self.session.flush()

        logger.debug(
            "invoice_line_decremented",
            extra={"line_id": line_id, "delta": qty, "qty_after": line.qty},
        )
        return line.qty

    def reduce_totals(
        self,
        invoice_id: int,
        cost_price: Decimal,
        price_before_discount: Decimal,
        price_after_discount: Decimal,
    ) -> Invoice:
        """Subtract reversed amounts from the invoice's running totals."""
        invoice = self.session.get(Invoice, invoice_id, with_for_update=True)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)

        invoice.cost_price -= cost_price
        invoice.price_before_discount -= price_before_discount
        invoice.price_after_discount -= price_after_discount
        self.session.flush()

        logger.info(
            "invoice_totals_reduced",
            extra={
                "invoice_id": invoice_id,
                "cost_price": cost_price,
                "price_before_discount": price_before_discount,
                "price_after_discount": price_after_discount,
            },
        )
        return invoice

    def delete_invoice(self, invoice_id: int) -> int:
        """
        Delete an invoice and all of its item lines.

        Returns:
            Number of item lines deleted.
        """
        deleted_lines = self.session.execute(
            delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id)
        ).rowcount
        deleted_invoices = self.session.execute(
            delete(Invoice).where(Invoice.id == invoice_id)
        ).rowcount
        if not deleted_invoices:
            raise InvoiceNotFoundError(invoice_id)

        logger.info(
            "invoice_deleted",
            extra={"invoice_id": invoice_id, "deleted_lines": deleted_lines},
        )
        return deleted_lines
