"""
Financial transactions and their journal lines.

Invariants:
    - Every account_transaction line belongs to exactly one transaction and
      records a non-negative amount on one side (debit or credit).
    - For each transaction, sum(debit amounts) == sum(credit amounts).  The
      JournalPoster refuses to write an unbalanced set.
    - transaction.invoice_id ties a posting to the invoice it was raised for
      (no FK: a full reversal deletes the invoice row before its postings).
      Legacy rows may only carry the remark convention "INVOICE <id>".
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class TransactionKind(str, Enum):
    """Why a transaction was posted."""

    SALE = "sale"
    REVERSAL = "reversal"


class Transaction(Base):
    """Header of one posting: who, when, and what it was for."""

    __tablename__ = "transaction"

    __table_args__ = (
        Index("idx_transaction_invoice", "invoice_id", "kind"),
        Index("idx_transaction_remark", "remark"),
    )

    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    posted_at: Mapped[datetime] = mapped_column("datetime", nullable=False)
    posting_date: Mapped[date] = mapped_column(Date, nullable=False)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    invoice_id: Mapped[int | None] = mapped_column(nullable=True)
    kind: Mapped[str | None] = mapped_column(String(20), nullable=True)  # TransactionKind value


class AccountTransaction(Base):
    """A single debit or credit line of a transaction."""

    __tablename__ = "account_transaction"

    __table_args__ = (
        Index("idx_account_transaction_txn", "transaction_id"),
        Index("idx_account_transaction_account", "account_id"),
    )

    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transaction.id"),
        nullable=False,
    )
    account_id: Mapped[int] = mapped_column(ForeignKey("account.id"), nullable=False)
    line_seq: Mapped[int] = mapped_column(nullable=False)
    side: Mapped[str] = mapped_column(String(10), nullable=False)  # LineSide value
    amount: Mapped[Decimal] = mapped_column(nullable=False)
