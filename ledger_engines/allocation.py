"""
Module: ledger_engines.allocation
Responsibility:
    Decide exactly which invoice item lines, and how many units of each, a
    reversal gives back.  Accumulates the cost and selling value of what is
    allocated so the posting calculator can price the reversal.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import from ledger_kernel (domain, exceptions, logging).

Invariants enforced:
    - Conservation: for every requested item, the allocated quantities sum to
      exactly the requested quantity.
    - No over-return: a line never gives back more than it still holds.
      Remaining quantity is tracked per line across the whole request, so an
      item listed twice cannot claim the same units twice.
    - Determinism: first-fit in the order lines are supplied.  Callers supply
      lines in ascending line id order (InvoiceSelector guarantees this), so
      repeated runs over the same state choose the same lines.

Failure modes:
    - InsufficientQuantityError when the lines for an item run out before
      the requested quantity is met.  Nothing is returned in that case.
    - ValueError on a non-positive requested quantity.

Usage:
    from ledger_engines.allocation import ReturnAllocator

    result = ReturnAllocator().allocate_returns(
        lines=invoice_lines,
        requested=[ReturnLine(item_id=5, qty=4)],
    )
    for portion in result.portions:
        ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.dtos import InvoiceItemLine, ReturnLine
from ledger_kernel.domain.values import ZERO
from ledger_kernel.exceptions import InsufficientQuantityError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


class AllocationMode(str, Enum):
    """Which reversal path produced the allocation."""

    FULL = "full"
    PARTIAL = "partial"


@dataclass(frozen=True)
class AllocatedPortion:
    """
    ``quantity`` units taken from one invoice line.

    Guarantees:
        - 0 < quantity <= line.quantity.
    """

    line: InvoiceItemLine
    quantity: int

    def __post_init__(self) -> None:
        if not 0 < self.quantity <= self.line.quantity:
            raise ValueError(
                f"portion of {self.quantity} does not fit line {self.line.line_id} "
                f"holding {self.line.quantity}"
            )

    @property
    def cost_price(self) -> Decimal:
        return self.line.unit_cost_price * self.quantity

    @property
    def selling_price(self) -> Decimal:
        return self.line.unit_selling_price * self.quantity


@dataclass(frozen=True)
class AllocationResult:
    """
    Ordered portions plus their accumulated value.

    Guarantees:
        - total_cost_price == sum(unit_cost * qty) over portions, exact.
        - total_selling_price == sum(unit_price * qty) over portions, exact.
    """

    mode: AllocationMode
    portions: tuple[AllocatedPortion, ...]
    total_cost_price: Decimal
    total_selling_price: Decimal

    @property
    def total_quantity(self) -> int:
        return sum(portion.quantity for portion in self.portions)

    def quantity_by_item(self) -> dict[int, int]:
        totals: dict[int, int] = {}
        for portion in self.portions:
            item_id = portion.line.item_id
            totals[item_id] = totals.get(item_id, 0) + portion.quantity
        return totals


def _result(mode: AllocationMode, portions: list[AllocatedPortion]) -> AllocationResult:
    return AllocationResult(
        mode=mode,
        portions=tuple(portions),
        total_cost_price=sum((p.cost_price for p in portions), ZERO),
        total_selling_price=sum((p.selling_price for p in portions), ZERO),
    )


class ReturnAllocator:
    """
    First-fit, order-preserving allocation of returns to invoice lines.

    Contract:
        Pure functions over DTOs.  No I/O, no database access.
    Non-goals:
        - Does not optimize for cost; the tie-break is supply order.
        - Does not check stock rows; StockLedger does that when restocking.
    """

    def allocate_full(self, lines: Sequence[InvoiceItemLine]) -> AllocationResult:
        """Give back every line at its full remaining quantity."""
        portions = [
            AllocatedPortion(line=line, quantity=line.quantity)
            for line in lines
            if line.quantity > 0
        ]
        result = _result(AllocationMode.FULL, portions)
        logger.info(
            "allocation_completed",
            extra={
                "mode": result.mode.value,
                "portion_count": len(result.portions),
                "total_quantity": result.total_quantity,
                "total_cost_price": result.total_cost_price,
                "total_selling_price": result.total_selling_price,
            },
        )
        return result

    def allocate_returns(
        self,
        lines: Sequence[InvoiceItemLine],
        requested: Sequence[ReturnLine],
    ) -> AllocationResult:
        """
        Match requested return quantities against invoice lines.

        For each requested item, in request order, scan that item's lines in
        supply order, skip exhausted lines, and take as much as each line
        still holds until the request is met.

        Raises:
            InsufficientQuantityError: an item's lines are exhausted first.
            ValueError: a requested quantity is not positive.
        """
        logger.info(
            "allocation_started",
            extra={"line_count": len(lines), "request_count": len(requested)},
        )

        remaining = {line.line_id: line.quantity for line in lines}
        lines_by_item: dict[int, list[InvoiceItemLine]] = {}
        for line in lines:
            lines_by_item.setdefault(line.item_id, []).append(line)

        portions: list[AllocatedPortion] = []
        for request in requested:
            if request.qty <= 0:
                raise ValueError(
                    f"requested quantity must be positive, got {request.qty} for item {request.item_id}"
                )

            needed = request.qty
            for line in lines_by_item.get(request.item_id, ()):
                if needed == 0:
                    break
                available = remaining[line.line_id]
                if available == 0:
                    continue
                take = min(available, needed)
                # A portion is measured against what the line held before it.
                portions.append(AllocatedPortion(line=line, quantity=take))
                remaining[line.line_id] = available - take
                needed -= take

            if needed:
                logger.warning(
                    "allocation_insufficient_quantity",
                    extra={
                        "item_id": request.item_id,
                        "requested": request.qty,
                        "unallocated": needed,
                    },
                )
                raise InsufficientQuantityError(
                    item_id=request.item_id,
                    requested=request.qty,
                    unallocated=needed,
                )

        result = _result(AllocationMode.PARTIAL, portions)
        logger.info(
            "allocation_completed",
            extra={
                "mode": result.mode.value,
                "portion_count": len(result.portions),
                "total_quantity": result.total_quantity,
                "total_cost_price": result.total_cost_price,
                "total_selling_price": result.total_selling_price,
            },
        )
        return result
