"""
StockLedger -- read and write on-hand quantities per (warehouse, item, lot).

Responsibility:
    Locates the current_stock row for an exact StockKey and applies quantity
    deltas to it.  The lot variant decides how the transfer column is
    matched: equality for a TransferLot, IS NULL for a DirectReceipt.

Invariants enforced:
    - Exact lot identity: a return only restocks the lot it was sold from.
    - Row lock on first read: the row is selected FOR UPDATE before it is
      changed, so concurrent movements of the same lot serialize.
    - Quantities never go negative.

Failure modes:
    - StockLineNotFoundError: no row for the key.
    - ValueError: non-positive restock quantity (programming error).
"""

from __future__ import annotations

from sqlalchemy import select

from ledger_kernel.domain.dtos import StockLine
from ledger_kernel.domain.lots import DirectReceipt, StockKey, TransferLot
from ledger_kernel.domain.values import to_decimal
from ledger_kernel.exceptions import StockLineNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.stock import CurrentStock
from ledger_kernel.services.base import BaseService

logger = get_logger("services.stock_ledger")


def _key_criteria(key: StockKey) -> list:
    criteria = [
        CurrentStock.warehouse_id == key.warehouse_id,
        CurrentStock.item_id == key.item_id,
        CurrentStock.goods_received_note_id == key.lot.receipt_id,
    ]
    match key.lot:
        case TransferLot(transfer_id=transfer_id):
            criteria.append(CurrentStock.inventory_transfer_id == transfer_id)
        case DirectReceipt():
            criteria.append(CurrentStock.inventory_transfer_id.is_(None))
    return criteria


def _to_stock_line(key: StockKey, row: CurrentStock) -> StockLine:
    return StockLine(key=key, quantity=row.qty, price=to_decimal(row.price))


class StockLedger(BaseService):
    """Exact-key access to the current_stock table."""

    def _locked_row(self, key: StockKey) -> CurrentStock:
        row = self.session.execute(
            select(CurrentStock).where(*_key_criteria(key)).with_for_update()
        ).scalar_one_or_none()
        if row is None:
            logger.warning("stock_line_not_found", extra=key.describe())
            raise StockLineNotFoundError(
                warehouse_id=key.warehouse_id,
                item_id=key.item_id,
                receipt_id=key.lot.receipt_id,
                transfer_id=key.lot.transfer_id,
            )
        return row

    def get(self, key: StockKey) -> StockLine:
        """Lock and read the stock line for a key."""
        return _to_stock_line(key, self._locked_row(key))

    def restock(self, key: StockKey, qty: int) -> StockLine:
        """
        Return ``qty`` units to the lot identified by ``key``.

        Returns:
            The stock line after the increment.
        """
        if qty <= 0:
            raise ValueError(f"restock quantity must be positive, got {qty}")

        row = self._locked_row(key)
        before = row.qty
        row.qty = before + qty
        self.session.flush()

        logger.info(
            "stock_line_restocked",
            extra={**key.describe(), "qty_before": before, "qty_after": row.qty, "delta": qty},
        )
        return _to_stock_line(key, row)
