"""
JournalPoster -- creates and removes financial transactions.

Responsibility:
    The two posting collaborators of the reversal flow:
      - create_transaction(): the generic row insert that returns the new
        transaction id;
      - issue_journal_entries(): persists {account, side, amount} lines
        against a transaction.
    Plus delete_transaction() for the full-reversal path, which undoes the
    original sale posting instead of offsetting it.

Architecture position:
    Kernel > Services.  Flushes, never commits.

Invariants enforced:
    - A journal set is written only if sum(debits) == sum(credits).
    - Lines get a monotonic line_seq in the order supplied.
    - Timestamps come from the injected Clock.

Failure modes:
    - UnbalancedJournalError: the supplied lines do not balance.
    - ValueError: empty line set (programming error).
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import JournalLineSpec
from ledger_kernel.domain.journal import assert_balanced
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.ledger import AccountTransaction, Transaction, TransactionKind
from ledger_kernel.services.base import BaseService

logger = get_logger("services.journal_poster")


class JournalPoster(BaseService):
    """Writes transactions and their journal lines."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def create_transaction(
        self,
        *,
        user_id: int,
        remark: str,
        invoice_id: int | None = None,
        kind: TransactionKind | None = None,
    ) -> int:
        """
        Insert a transaction header stamped with the current time.

        Returns:
            The new transaction id.
        """
        now = self._clock.now()
        txn = Transaction(
            user_id=user_id,
            posted_at=now,
            posting_date=now.date(),
            remark=remark,
            invoice_id=invoice_id,
            kind=kind.value if kind else None,
        )
        self.session.add(txn)
        self.session.flush()

        logger.info(
            "transaction_created",
            extra={
                "transaction_id": txn.id,
                "invoice_id": invoice_id,
                "kind": kind.value if kind else None,
                "posting_date": txn.posting_date,
            },
        )
        return txn.id

    def issue_journal_entries(
        self,
        transaction_id: int,
        lines: Sequence[JournalLineSpec],
    ) -> None:
        """Persist a balanced set of journal lines against a transaction."""
        if not lines:
            raise ValueError("journal entry needs at least one line")
        total = assert_balanced(lines)

        for seq, line in enumerate(lines, start=1):
            self.session.add(
                AccountTransaction(
                    transaction_id=transaction_id,
                    account_id=line.account_id,
                    line_seq=seq,
                    side=line.side.value,
                    amount=line.amount,
                )
            )
        self.session.flush()

        logger.info(
            "journal_entries_issued",
            extra={
                "transaction_id": transaction_id,
                "line_count": len(lines),
                "total": total,
            },
        )

    def delete_transaction(self, transaction_id: int) -> int:
        """
        Delete a transaction and its journal lines.

        Returns:
            Number of journal lines deleted.
        """
        deleted_lines = self.session.execute(
            delete(AccountTransaction).where(
                AccountTransaction.transaction_id == transaction_id
            )
        ).rowcount
        self.session.execute(delete(Transaction).where(Transaction.id == transaction_id))

        logger.info(
            "transaction_deleted",
            extra={"transaction_id": transaction_id, "deleted_lines": deleted_lines},
        )
        return deleted_lines
