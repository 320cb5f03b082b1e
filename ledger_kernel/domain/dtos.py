"""
Domain DTOs for the sales reversal flow.

Responsibility:
    Frozen value objects passed between selectors, engines and services.
    They carry no session and no I/O; ORM rows are converted into these at
    the selector boundary so the allocation and posting engines can be
    exercised without a database.

Architecture position:
    Kernel > Domain -- pure values.

Invariants enforced:
    - Quantities are non-negative integers.
    - Monetary values are Decimal, never float.
    - A JournalLineSpec amount is non-negative; side decides debit/credit.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.lots import LotRef, StockKey
from ledger_kernel.domain.values import ZERO


class LineSide(str, Enum):
    """Which side of the journal a line is on."""

    DEBIT = "debit"
    CREDIT = "credit"


@dataclass(frozen=True)
class InvoiceItemLine:
    """
    One line of a posted invoice.

    Several lines may share an item (different lots or warehouses).
    ``quantity`` is what is still sold on the line.
    """

    line_id: int
    warehouse_id: int
    item_id: int
    lot: LotRef
    quantity: int
    unit_cost_price: Decimal
    unit_selling_price: Decimal

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Invoice line {self.line_id} has negative quantity {self.quantity}")

    @property
    def stock_key(self) -> StockKey:
        return StockKey(self.warehouse_id, self.item_id, self.lot)

    def with_quantity(self, quantity: int) -> InvoiceItemLine:
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class StockLine:
    """Current on-hand quantity and price for one StockKey."""

    key: StockKey
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class ReturnLine:
    """A caller's request to return ``qty`` units of ``item_id``."""

    item_id: int
    qty: int


@dataclass(frozen=True)
class ReturnRequest:
    """
    Reversal request.

    An empty ``include_items`` means "reverse everything" (full reversal).
    """

    invoice_id: int
    include_items: tuple[ReturnLine, ...] = ()

    @property
    def is_full_reversal(self) -> bool:
        return not self.include_items

    @property
    def item_ids(self) -> list[int]:
        """Distinct requested item ids, in request order."""
        return list(dict.fromkeys(line.item_id for line in self.include_items))

    def as_payload(self) -> dict:
        """Normalized request shape, as stored in the reversal remark."""
        return {
            "invoice_id": self.invoice_id,
            "include_item_list": [
                {"item_id": line.item_id, "qty": line.qty}
                for line in self.include_items
            ],
        }


@dataclass(frozen=True)
class JournalLineSpec:
    """One line of a journal entry before it is persisted."""

    account_id: int
    side: LineSide
    amount: Decimal
    memo: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.amount < ZERO:
            raise ValueError(f"Journal line amount must be non-negative, got {self.amount}")

    @property
    def debit(self) -> Decimal:
        return self.amount if self.side == LineSide.DEBIT else ZERO

    @property
    def credit(self) -> Decimal:
        return self.amount if self.side == LineSide.CREDIT else ZERO

    @classmethod
    def dr(cls, account_id: int, amount: Decimal, memo: str | None = None) -> JournalLineSpec:
        return cls(account_id, LineSide.DEBIT, amount, memo)

    @classmethod
    def cr(cls, account_id: int, amount: Decimal, memo: str | None = None) -> JournalLineSpec:
        return cls(account_id, LineSide.CREDIT, amount, memo)
