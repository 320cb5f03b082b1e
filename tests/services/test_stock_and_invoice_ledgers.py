"""
Tests for StockLedger and InvoiceLedger.

Covers exact lot matching (direct receipt vs transfer), restocking,
invoice line decrements and invoice deletion.
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ledger_kernel.domain.lots import DirectReceipt, StockKey, TransferLot
from ledger_kernel.exceptions import (
    InsufficientQuantityError,
    InvoiceLineNotFoundError,
    InvoiceNotFoundError,
    ReversalError,
    StockLineNotFoundError,
)
from ledger_kernel.models import Invoice, InvoiceItem
from ledger_kernel.services import InvoiceLedger, StockLedger


class TestStockLedger:

    @pytest.fixture(autouse=True)
    def _seed(self, seed_sale, sale_line):
        # Same receipt held directly and through a transfer.
        seed_sale(
            [
                sale_line(5, 2, "4.00", "6.00", grn=12),
                sale_line(5, 2, "4.00", "6.00", grn=12, transfer=40),
            ],
            stock_on_hand=7,
        )

    def test_get_direct_receipt(self, session):
        line = StockLedger(session).get(StockKey(1, 5, DirectReceipt(12)))

        assert line.quantity == 7
        assert line.price == Decimal("4.00")

    def test_restock_touches_only_the_exact_lot(self, session, stock_qty):
        after = StockLedger(session).restock(StockKey(1, 5, TransferLot(12, 40)), 3)
        session.commit()

        assert after.quantity == 10
        assert stock_qty(5, grn=12, transfer=40) == 10
        assert stock_qty(5, grn=12) == 7

    def test_missing_lot_raises(self, session):
        with pytest.raises(StockLineNotFoundError) as exc_info:
            StockLedger(session).restock(StockKey(1, 5, TransferLot(12, 41)), 1)

        err = exc_info.value
        assert err.code == "STOCK_LINE_NOT_FOUND"
        assert (err.receipt_id, err.transfer_id) == (12, 41)

    def test_other_warehouse_is_a_different_lot(self, session):
        with pytest.raises(StockLineNotFoundError):
            StockLedger(session).get(StockKey(2, 5, DirectReceipt(12)))

    @pytest.mark.parametrize("qty", [0, -1])
    def test_non_positive_restock_rejected(self, session, qty):
        with pytest.raises(ValueError):
            StockLedger(session).restock(StockKey(1, 5, DirectReceipt(12)), qty)

    def test_restock_is_logged(self, session, captured_logs):
        StockLedger(session).restock(StockKey(1, 5, DirectReceipt(12)), 2)

        record = next(r for r in captured_logs() if r["message"] == "stock_line_restocked")
        assert record["qty_before"] == 7
        assert record["qty_after"] == 9
        assert record["transfer_id"] is None


class TestInvoiceLedger:

    @pytest.fixture
    def sale(self, seed_sale, sale_line):
        return seed_sale([sale_line(5, 10, "4.00", "6.00"), sale_line(7, 3, "2.00", "5.00", grn=2)])

    def test_decrement_line(self, session, sale):
        remaining = InvoiceLedger(session).decrement_line(sale.line_ids[0], 4)
        session.commit()

        assert remaining == 6
        assert session.get(InvoiceItem, sale.line_ids[0]).qty == 6

    def test_decrement_to_zero_allowed(self, session, sale):
        assert InvoiceLedger(session).decrement_line(sale.line_ids[1], 3) == 0

    def test_decrement_below_zero_refused(self, session, sale):
        with pytest.raises(InsufficientQuantityError) as exc_info:
            InvoiceLedger(session).decrement_line(sale.line_ids[1], 4)

        assert exc_info.value.unallocated == 1

    def test_decrement_unknown_line(self, session, sale):
        with pytest.raises(InvoiceLineNotFoundError) as exc_info:
            InvoiceLedger(session).decrement_line(999_999, 1)

        assert isinstance(exc_info.value, ReversalError)
        assert exc_info.value.code == "INVOICE_LINE_NOT_FOUND"
        assert exc_info.value.line_id == 999_999

    def test_reduce_totals(self, session, sale):
        InvoiceLedger(session).reduce_totals(
            sale.invoice_id,
            cost_price=Decimal("16.00"),
            price_before_discount=Decimal("24.00"),
            price_after_discount=Decimal("24.00"),
        )
        session.commit()

        invoice = session.get(Invoice, sale.invoice_id)
        assert invoice.cost_price == Decimal("30.00")
        assert invoice.price_before_discount == Decimal("51.00")
        assert invoice.price_after_discount == Decimal("51.00")

    def test_reduce_totals_unknown_invoice(self, session, sale):
        with pytest.raises(InvoiceNotFoundError):
            InvoiceLedger(session).reduce_totals(
                999_999, Decimal("1"), Decimal("1"), Decimal("1")
            )

    def test_delete_invoice_removes_header_and_lines(self, session, sale):
        deleted = InvoiceLedger(session).delete_invoice(sale.invoice_id)
        session.commit()

        assert deleted == 2
        assert session.get(Invoice, sale.invoice_id) is None
        count = session.execute(
            select(func.count()).select_from(InvoiceItem).where(
                InvoiceItem.invoice_id == sale.invoice_id
            )
        ).scalar_one()
        assert count == 0

    def test_delete_unknown_invoice(self, session, sale):
        with pytest.raises(InvoiceNotFoundError):
            InvoiceLedger(session).delete_invoice(999_999)
