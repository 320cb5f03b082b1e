"""
Lot identity -- where a unit of stock came from.

Responsibility:
    Stock is tracked per lot, not just per item.  A lot is either a direct
    goods-received-note receipt, or a transfer of such a receipt between
    warehouses.  Modelling this as a tagged variant keeps "is there a
    transfer id?" out of every query and branch that needs the lot.

Architecture position:
    Kernel > Domain -- pure values, zero I/O.

Invariants enforced:
    - A return restocks exactly the lot it was sold from: two StockKeys are
      equal only when warehouse, item, receipt AND transfer identity match.
    - DirectReceipt never compares equal to a TransferLot, even with the
      same receipt id.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DirectReceipt:
    """Stock received directly against a goods received note."""

    receipt_id: int

    @property
    def transfer_id(self) -> None:
        return None


@dataclass(frozen=True)
class TransferLot:
    """Stock that arrived through an inventory transfer of a received lot."""

    receipt_id: int
    transfer_id: int


LotRef = DirectReceipt | TransferLot


def lot_ref_for(receipt_id: int, transfer_id: int | None) -> LotRef:
    """Build the lot variant from the nullable column pair used in storage."""
    if transfer_id is None:
        return DirectReceipt(receipt_id)
    return TransferLot(receipt_id, transfer_id)


@dataclass(frozen=True)
class StockKey:
    """Exact identity of one current_stock row."""

    warehouse_id: int
    item_id: int
    lot: LotRef

    def describe(self) -> dict[str, int | None]:
        """Flat representation for logs and error payloads."""
        return {
            "warehouse_id": self.warehouse_id,
            "item_id": self.item_id,
            "receipt_id": self.lot.receipt_id,
            "transfer_id": self.lot.transfer_id,
        }
