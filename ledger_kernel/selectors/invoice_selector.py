"""
InvoiceSelector -- locked reads of invoices and their item lines.

Responsibility:
    Loads the rows a reversal is about to change and converts them into
    domain DTOs.  Every read takes a row lock so a concurrent reversal or
    sale of the same invoice serializes behind this one.

Invariants enforced:
    - Item lines are returned in ascending line id order.  The allocation
      engine's first-fit tie-break relies on this order being stable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select

from ledger_kernel.domain.dtos import InvoiceItemLine
from ledger_kernel.domain.lots import lot_ref_for
from ledger_kernel.domain.values import to_decimal
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import User
from ledger_kernel.models.invoice import Invoice, InvoiceItem
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.invoice")


@dataclass(frozen=True)
class InvoiceHeader:
    """Invoice totals and ownership as read under lock."""

    invoice_id: int
    warehouse_id: int
    user_id: int | None
    discount: Decimal
    cost_price: Decimal
    price_before_discount: Decimal
    price_after_discount: Decimal


class InvoiceSelector(BaseSelector):
    """Row-locked reads of invoice headers and item lines."""

    def item_lines(
        self,
        invoice_id: int,
        item_ids: Sequence[int] | None = None,
    ) -> list[InvoiceItemLine]:
        """
        Load an invoice's item lines, optionally restricted to some items.

        The warehouse comes from the invoice header: lines are sold out of
        the invoice's warehouse.

        Returns:
            Lines ordered by ascending line id; empty if none match.
        """
        stmt = (
            select(InvoiceItem, Invoice.warehouse_id)
            .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
            .where(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.id)
            .with_for_update(of=InvoiceItem)
        )
        if item_ids:
            stmt = stmt.where(InvoiceItem.item_id.in_(list(item_ids)))

        lines = [
            InvoiceItemLine(
                line_id=row.id,
                warehouse_id=warehouse_id,
                item_id=row.item_id,
                lot=lot_ref_for(row.goods_received_note_id, row.inventory_transfer_id),
                quantity=row.qty,
                unit_cost_price=to_decimal(row.cost_price),
                unit_selling_price=to_decimal(row.price),
            )
            for row, warehouse_id in self.session.execute(stmt).all()
        ]

        logger.debug(
            "invoice_lines_loaded",
            extra={
                "invoice_id": invoice_id,
                "item_filter": list(item_ids) if item_ids else None,
                "line_count": len(lines),
            },
        )
        return lines

    def header(self, invoice_id: int) -> InvoiceHeader | None:
        """Lock and read the invoice header, or None if it does not exist."""
        invoice = self.session.execute(
            select(Invoice).where(Invoice.id == invoice_id).with_for_update()
        ).scalar_one_or_none()
        if invoice is None:
            return None
        return InvoiceHeader(
            invoice_id=invoice.id,
            warehouse_id=invoice.warehouse_id,
            user_id=invoice.user_id,
            discount=to_decimal(invoice.discount),
            cost_price=to_decimal(invoice.cost_price),
            price_before_discount=to_decimal(invoice.price_before_discount),
            price_after_discount=to_decimal(invoice.price_after_discount),
        )

    def cash_account_id(self, user_id: int | None) -> int | None:
        """Cash-in-hand account linked to a user, or None."""
        if user_id is None:
            return None
        return self.session.execute(
            select(User.account_id).where(User.id == user_id)
        ).scalar_one_or_none()
