"""
Chart-of-accounts and user rows referenced by reversal postings.

Only the columns the reversal engine reads are modelled: an account id to
post against, and the cash-in-hand account linked to the user who raised an
invoice.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class Account(Base):
    """Ledger account (sales, cost of sales, stock, cash in hand, ...)."""

    __tablename__ = "account"

    name: Mapped[str] = mapped_column(String(150), nullable=False)


class User(Base):
    """
    User who raises invoices.

    ``account_id`` is the user's cash-in-hand account; a partial reversal
    credits it with the refunded sold price.
    """

    __tablename__ = "user"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("account.id"),
        nullable=True,
    )
