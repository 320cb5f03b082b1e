"""
Double-entry balance checks over JournalLineSpec sets.

Pure functions shared by the posting calculator (before anything is
written) and the JournalPoster (right before lines are persisted).
"""

from collections.abc import Iterable
from decimal import Decimal

from ledger_kernel.domain.dtos import JournalLineSpec
from ledger_kernel.domain.values import ZERO
from ledger_kernel.exceptions import UnbalancedJournalError


def journal_totals(lines: Iterable[JournalLineSpec]) -> tuple[Decimal, Decimal]:
    """Return (sum of debits, sum of credits)."""
    debits = ZERO
    credits = ZERO
    for line in lines:
        debits += line.debit
        credits += line.credit
    return debits, credits


def assert_balanced(lines: Iterable[JournalLineSpec]) -> Decimal:
    """
    Raise UnbalancedJournalError unless debits equal credits exactly.

    Returns:
        The balanced total.
    """
    debits, credits = journal_totals(lines)
    if debits != credits:
        raise UnbalancedJournalError(debits=str(debits), credits=str(credits))
    return debits
