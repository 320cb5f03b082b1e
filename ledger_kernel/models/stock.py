"""
Current stock ledger: on-hand quantity per (warehouse, item, lot).

Invariants:
    - One row per (warehouse_id, item_id, goods_received_note_id,
      inventory_transfer_id).  inventory_transfer_id is NULL for stock held
      under its original receipt.
    - qty is never negative.
"""

from decimal import Decimal

from sqlalchemy import Index
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class CurrentStock(Base):
    """On-hand quantity and price of one lot of one item in one warehouse."""

    __tablename__ = "current_stock"

    __table_args__ = (
        Index(
            "idx_current_stock_key",
            "warehouse_id",
            "item_id",
            "goods_received_note_id",
            "inventory_transfer_id",
        ),
    )

    warehouse_id: Mapped[int] = mapped_column(nullable=False)
    item_id: Mapped[int] = mapped_column(nullable=False)
    goods_received_note_id: Mapped[int] = mapped_column(nullable=False)
    inventory_transfer_id: Mapped[int | None] = mapped_column(nullable=True)

    qty: Mapped[int] = mapped_column(nullable=False, default=0)
    price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
