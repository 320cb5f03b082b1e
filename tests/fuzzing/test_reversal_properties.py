"""
Property-based tests for the reversal engines.

Invariants checked over generated invoices and requests:
- Quantity conservation: allocated quantity per item equals the request.
- No over-return: no line gives back more than it holds.
- Determinism: the same input always yields the same portions.
- Value accounting: totals equal the sum of unit price * quantity.
- Balance: every reversing journal entry has debits == credits.
"""

from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from ledger_engines.allocation import ReturnAllocator
from ledger_engines.posting import ReversalPostingCalculator
from ledger_kernel.domain.dtos import InvoiceItemLine, ReturnLine
from ledger_kernel.domain.lots import lot_ref_for
from ledger_kernel.exceptions import InsufficientQuantityError

money = st.decimals(
    min_value=Decimal("0.00"),
    max_value=Decimal("99999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
discounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("100"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


@composite
def invoice_lines(draw, max_lines: int = 8):
    count = draw(st.integers(min_value=1, max_value=max_lines))
    lines = []
    for line_id in range(1, count + 1):
        lines.append(
            InvoiceItemLine(
                line_id=line_id,
                warehouse_id=1,
                item_id=draw(st.integers(min_value=1, max_value=3)),
                lot=lot_ref_for(
                    draw(st.integers(min_value=1, max_value=50)),
                    draw(st.one_of(st.none(), st.integers(min_value=1, max_value=50))),
                ),
                quantity=draw(st.integers(min_value=0, max_value=20)),
                unit_cost_price=draw(money),
                unit_selling_price=draw(money),
            )
        )
    return lines


@composite
def satisfiable_request(draw):
    """Lines plus a request that never asks for more than is sold."""
    lines = draw(invoice_lines())
    available: dict[int, int] = {}
    for line in lines:
        available[line.item_id] = available.get(line.item_id, 0) + line.quantity

    requests = []
    for item_id, total in available.items():
        if total == 0:
            continue
        remaining = total
        # Split an item's request into up to three chunks to exercise repeats.
        for _ in range(draw(st.integers(min_value=1, max_value=3))):
            if remaining == 0:
                break
            qty = draw(st.integers(min_value=1, max_value=remaining))
            requests.append(ReturnLine(item_id=item_id, qty=qty))
            remaining -= qty
    return lines, draw(st.permutations(requests))


class TestAllocationProperties:

    @given(data=satisfiable_request())
    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow])
    def test_quantity_conservation(self, data):
        lines, requested = data
        result = ReturnAllocator().allocate_returns(lines, requested)

        expected: dict[int, int] = {}
        for request in requested:
            expected[request.item_id] = expected.get(request.item_id, 0) + request.qty
        assert result.quantity_by_item() == expected

    @given(data=satisfiable_request())
    @settings(max_examples=200)
    def test_no_line_over_returned(self, data):
        lines, requested = data
        result = ReturnAllocator().allocate_returns(lines, requested)

        taken: dict[int, int] = {}
        for portion in result.portions:
            taken[portion.line.line_id] = taken.get(portion.line.line_id, 0) + portion.quantity
        by_id = {line.line_id: line for line in lines}
        for line_id, qty in taken.items():
            assert qty <= by_id[line_id].quantity

    @given(data=satisfiable_request())
    @settings(max_examples=100)
    def test_deterministic(self, data):
        lines, requested = data

        first = ReturnAllocator().allocate_returns(lines, requested)
        second = ReturnAllocator().allocate_returns(list(lines), list(requested))

        assert first == second

    @given(data=satisfiable_request())
    @settings(max_examples=100)
    def test_totals_match_portions(self, data):
        lines, requested = data
        result = ReturnAllocator().allocate_returns(lines, requested)

        assert result.total_cost_price == sum(
            (p.line.unit_cost_price * p.quantity for p in result.portions), Decimal("0")
        )
        assert result.total_selling_price == sum(
            (p.line.unit_selling_price * p.quantity for p in result.portions), Decimal("0")
        )

    @given(lines=invoice_lines(), extra=st.integers(min_value=1, max_value=10))
    @settings(max_examples=100)
    def test_over_request_always_fails(self, lines, extra):
        item_id = lines[0].item_id
        sold = sum(line.quantity for line in lines if line.item_id == item_id)

        with pytest.raises(InsufficientQuantityError) as exc_info:
            ReturnAllocator().allocate_returns(lines, [ReturnLine(item_id, sold + extra)])

        assert exc_info.value.unallocated == extra

    @given(lines=invoice_lines())
    @settings(max_examples=100)
    def test_full_allocation_takes_everything(self, lines):
        result = ReturnAllocator().allocate_full(lines)

        assert result.total_quantity == sum(line.quantity for line in lines)
        assert all(p.quantity == p.line.quantity for p in result.portions)


class TestPostingProperties:

    @given(cost=money, selling=money, discount=discounts)
    @settings(max_examples=300)
    def test_reversing_entry_always_balances(self, cost, selling, discount):
        posting = ReversalPostingCalculator(200, 202, 183).compute(
            total_cost_price=cost,
            total_selling_price=selling,
            discount_pct=discount,
            cash_account_id=310,
        )

        assert posting.total_debits == posting.total_credits
        assert len(posting.lines) == 4

    @given(selling=money, discount=discounts)
    @settings(max_examples=300)
    def test_sold_price_is_cents_and_bounded(self, selling, discount):
        posting = ReversalPostingCalculator(200, 202, 183).compute(
            total_cost_price=Decimal("0"),
            total_selling_price=selling,
            discount_pct=discount,
            cash_account_id=310,
        )

        assert posting.final_sold_price == posting.final_sold_price.quantize(Decimal("0.01"))
        assert Decimal("0") <= posting.final_sold_price <= selling
