"""
LedgerSelector -- reads of transactions and their journal lines.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import select

from ledger_kernel.domain.dtos import JournalLineSpec, LineSide
from ledger_kernel.domain.values import ZERO, to_decimal
from ledger_kernel.models.ledger import AccountTransaction, Transaction
from ledger_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector):
    """Read access to posted transactions."""

    def transactions_for_invoice(self, invoice_id: int) -> list[int]:
        """Ids of every transaction tagged with the invoice, oldest first."""
        return list(
            self.session.execute(
                select(Transaction.id)
                .where(Transaction.invoice_id == invoice_id)
                .order_by(Transaction.id)
                .with_for_update()
            ).scalars()
        )

    def transactions_by_remark(self, remark: str) -> list[int]:
        """Ids of transactions whose remark matches exactly."""
        return list(
            self.session.execute(
                select(Transaction.id)
                .where(Transaction.remark == remark)
                .order_by(Transaction.id)
                .with_for_update()
            ).scalars()
        )

    def journal_lines(self, transaction_id: int) -> list[JournalLineSpec]:
        """Lines of one transaction, in posting order."""
        rows = self.session.execute(
            select(AccountTransaction)
            .where(AccountTransaction.transaction_id == transaction_id)
            .order_by(AccountTransaction.line_seq)
        ).scalars()
        return [
            JournalLineSpec(row.account_id, LineSide(row.side), to_decimal(row.amount))
            for row in rows
        ]

    def totals(self, transaction_id: int) -> tuple[Decimal, Decimal]:
        """(total debits, total credits) of one transaction."""
        lines = self.journal_lines(transaction_id)
        debits = sum((line.debit for line in lines), ZERO)
        credits = sum((line.credit for line in lines), ZERO)
        return debits, credits
