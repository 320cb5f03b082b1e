"""
Module: ledger_engines.posting
Responsibility:
    Price a partial reversal and lay out its reversing journal entry.
    Takes the accumulated cost and selling value of the returned units and
    the invoice discount, and produces the four journal lines that undo the
    revenue and cost-of-sales recognition of the original sale.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import from ledger_kernel (domain, exceptions, logging).

Invariants enforced:
    - final_sold_price = round2(total_selling_price * (100 - discount) / 100),
      rounding halves away from zero.
    - total_cost_price is carried exactly, never rounded.
    - Balance: sum(debits) == sum(credits) before the posting is returned.

Failure modes:
    - UnbalancedJournalError if the lines do not balance.
    - ValueError on a discount outside [0, 100] or negative totals.

Journal layout (account ids come from configuration):

    Dr Sales            final_sold_price
        Cr Cash in hand     final_sold_price
    Dr Stock            total_cost_price
        Cr Cost of sales    total_cost_price
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.dtos import JournalLineSpec
from ledger_kernel.domain.journal import assert_balanced, journal_totals
from ledger_kernel.domain.values import HUNDRED, ZERO, apply_discount
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.posting")


@dataclass(frozen=True)
class ReversalPosting:
    """Priced reversal and its balanced journal lines."""

    total_cost_price: Decimal
    total_selling_price: Decimal
    discount_pct: Decimal
    final_sold_price: Decimal
    lines: tuple[JournalLineSpec, ...]

    @property
    def total_debits(self) -> Decimal:
        return journal_totals(self.lines)[0]

    @property
    def total_credits(self) -> Decimal:
        return journal_totals(self.lines)[1]


class ReversalPostingCalculator:
    """
    Builds the reversing journal entry of a partial return.

    The cash account is per invoice (the selling user's cash-in-hand), the
    other three are fixed for a deployment and given at construction.
    """

    def __init__(
        self,
        sales_account_id: int,
        cost_of_sales_account_id: int,
        stock_account_id: int,
    ):
        self.sales_account_id = sales_account_id
        self.cost_of_sales_account_id = cost_of_sales_account_id
        self.stock_account_id = stock_account_id

    def compute(
        self,
        *,
        total_cost_price: Decimal,
        total_selling_price: Decimal,
        discount_pct: Decimal,
        cash_account_id: int,
    ) -> ReversalPosting:
        if not ZERO <= discount_pct <= HUNDRED:
            raise ValueError(f"discount must be within [0, 100], got {discount_pct}")
        if total_cost_price < ZERO or total_selling_price < ZERO:
            raise ValueError(
                f"reversal totals must be non-negative, got cost={total_cost_price} "
                f"selling={total_selling_price}"
            )

        final_sold_price = apply_discount(total_selling_price, discount_pct)

        lines = (
            JournalLineSpec.dr(self.sales_account_id, final_sold_price, "sales returned"),
            JournalLineSpec.cr(cash_account_id, final_sold_price, "cash refunded"),
            JournalLineSpec.dr(self.stock_account_id, total_cost_price, "stock returned"),
            JournalLineSpec.cr(self.cost_of_sales_account_id, total_cost_price, "cost of sales reversed"),
        )
        total = assert_balanced(lines)

        logger.info(
            "reversal_posting_computed",
            extra={
                "total_cost_price": total_cost_price,
                "total_selling_price": total_selling_price,
                "discount_pct": discount_pct,
                "final_sold_price": final_sold_price,
                "journal_total": total,
            },
        )
        return ReversalPosting(
            total_cost_price=total_cost_price,
            total_selling_price=total_selling_price,
            discount_pct=discount_pct,
            final_sold_price=final_sold_price,
            lines=lines,
        )
