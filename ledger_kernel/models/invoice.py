"""
Sales invoice header and item lines.

Invariants:
    - invoice_item.qty is the quantity still sold on the line; partial
      reversals decrement it and it never goes negative.
    - Item lines reference their lot by goods_received_note_id plus an
      optional inventory_transfer_id (NULL for direct receipts).
    - Line ids are monotonic, giving a stable retrieval order.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class Invoice(Base):
    """Posted sales invoice with its running totals."""

    __tablename__ = "invoice"

    warehouse_id: Mapped[int] = mapped_column(nullable=False)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("user.id"), nullable=True)

    # Percentage, e.g. Decimal("12.5") for 12.5 %
    discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    cost_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    price_before_discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    price_after_discount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )


class InvoiceItem(Base):
    """One sold line: an item from one lot in the invoice's warehouse."""

    __tablename__ = "invoice_item"

    __table_args__ = (
        Index("idx_invoice_item_invoice", "invoice_id", "item_id"),
    )

    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoice.id"), nullable=False)
    item_id: Mapped[int] = mapped_column(nullable=False)
    goods_received_note_id: Mapped[int] = mapped_column(nullable=False)
    inventory_transfer_id: Mapped[int | None] = mapped_column(nullable=True)

    qty: Mapped[int] = mapped_column(nullable=False)
    cost_price: Mapped[Decimal] = mapped_column(nullable=False)
    price: Mapped[Decimal] = mapped_column(nullable=False)
