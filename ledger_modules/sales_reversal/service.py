"""
Sales Reversal Service (``ledger_modules.sales_reversal.service``).

Responsibility
--------------
Reverses a posted sales invoice, fully or partially, as one all-or-nothing
unit of work.  Composes the pure engines (``ReturnAllocator``,
``ReversalPostingCalculator``) with the kernel selectors and services that
read and write stock, invoices and the ledger.

Architecture
------------
Layer: **Modules** -- stateful orchestration wrapper.

1. ``InvoiceSelector`` loads the affected invoice lines under row locks.
2. ``ReturnAllocator`` decides which lines give back how many units.
3. ``StockInvoiceMutator`` restocks (and in partial mode decrements lines).
4. Full mode: ``InvoiceLedger`` deletes the invoice and ``JournalPoster``
   deletes its postings.  Partial mode: ``ReversalPostingCalculator`` prices
   the return, ``InvoiceLedger`` reduces the invoice totals and
   ``JournalPoster`` posts the reversing entry.

Invariants
----------
- Atomicity: with ``auto_commit=True`` the service commits on success and
  rolls back on any failure.  With ``auto_commit=False`` the caller owns
  the boundary (``session_scope()``).
- Full vs partial are mutually exclusive: a full reversal never posts a
  journal entry and a partial one never deletes the invoice.
- Balance: every reversing entry satisfies sum(debit) == sum(credit).

Failure Modes
-------------
- ``NoInvoiceItemsError``, ``InvoiceNotFoundError``,
  ``InsufficientQuantityError``, ``StockLineNotFoundError``,
  ``AccountLookupFailedError``, ``TransactionNotFoundError``,
  ``UnbalancedJournalError`` propagate after rollback.
- ``SQLAlchemyError`` is wrapped in ``StoreFailureError`` after rollback.

Usage::

    service = InvoiceReversalService(session, config.reversal, clock)
    result = service.reverse(parse_return_request(payload))
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_config import LedgerConfig, ReversalSettings, get_active_config
from ledger_engines.allocation import (
    AllocatedPortion,
    AllocationMode,
    AllocationResult,
    ReturnAllocator,
)
from ledger_engines.posting import ReversalPostingCalculator
from ledger_kernel.db.engine import session_scope
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import ReturnRequest
from ledger_kernel.exceptions import (
    AccountLookupFailedError,
    InvoiceNotFoundError,
    LedgerKernelError,
    NoInvoiceItemsError,
    StoreFailureError,
    TransactionNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.ledger import TransactionKind
from ledger_kernel.selectors.invoice_selector import InvoiceSelector
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.invoice_ledger import InvoiceLedger
from ledger_kernel.services.journal_poster import JournalPoster
from ledger_modules.sales_reversal.mutator import StockInvoiceMutator
from ledger_modules.sales_reversal.request import parse_return_request

logger = get_logger("modules.sales_reversal.service")


@dataclass(frozen=True)
class ReversalResult:
    """Outcome of one committed (or caller-committable) reversal."""

    invoice_id: int
    mode: AllocationMode
    portions: tuple[AllocatedPortion, ...]
    total_cost_price: Decimal
    total_selling_price: Decimal
    final_sold_price: Decimal | None = None
    reversal_transaction_id: int | None = None
    deleted_transaction_ids: tuple[int, ...] = ()

    @property
    def is_full(self) -> bool:
        return self.mode == AllocationMode.FULL


class InvoiceReversalService:
    """
    Orchestrates invoice reversals through engines and kernel services.

    Contract
    --------
    ``reverse()`` either applies every stock, invoice and ledger change of
    the request or none of them.  Every collaborator shares the one session
    handed in; none of them commits.

    Non-goals
    ---------
    - Does not decide which lines to return; ``ReturnAllocator`` does.
    - Does not price the return; ``ReversalPostingCalculator`` does.
    - Does not retry.  Resubmitting a failed request is safe.
    """

    def __init__(
        self,
        session: Session,
        settings: ReversalSettings,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._settings = settings
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit

        # Read side (row-locking)
        self._invoices = InvoiceSelector(session)
        self._ledger = LedgerSelector(session)

        # Write side (flush only, we own the boundary)
        self._invoice_ledger = InvoiceLedger(session)
        self._poster = JournalPoster(session, self._clock)
        self._mutator = StockInvoiceMutator(session)

        # Pure engines
        self._allocator = ReturnAllocator()
        accounts = settings.accounts
        self._posting = ReversalPostingCalculator(
            sales_account_id=accounts.sales,
            cost_of_sales_account_id=accounts.cost_of_sales,
            stock_account_id=accounts.stock,
        )

    def reverse(self, request: ReturnRequest) -> ReversalResult:
        """
        Reverse an invoice.

        An empty ``include_items`` reverses the whole invoice: every line is
        restocked and the invoice and its postings are deleted.  Otherwise
        only the requested quantities are returned and a reversing journal
        entry is posted.

        Raises:
            ReversalError: the request cannot be applied (nothing changed).
            UnbalancedJournalError: the reversing entry would not balance.
            StoreFailureError: the database failed (nothing changed).
        """
        mode = AllocationMode.FULL if request.is_full_reversal else AllocationMode.PARTIAL
        with LogContext.bind(invoice_id=request.invoice_id):
            logger.info(
                "reversal_started",
                extra={"mode": mode.value, "requested_items": len(request.include_items)},
            )
            try:
                if mode == AllocationMode.FULL:
                    result = self._reverse_full(request.invoice_id)
                else:
                    result = self._reverse_partial(request)
                if self._auto_commit:
                    self._session.commit()
            except SQLAlchemyError as exc:
                self._rollback()
                logger.error("reversal_store_failure", exc_info=True)
                raise StoreFailureError(operation=f"{mode.value} reversal", detail=str(exc)) from exc
            except LedgerKernelError as exc:
                self._rollback()
                logger.warning(
                    "reversal_failed",
                    extra={"mode": mode.value, "error_code": exc.code, "error": str(exc)},
                )
                raise
            except Exception:
                self._rollback()
                raise

            logger.info(
                "reversal_completed",
                extra={
                    "mode": result.mode.value,
                    "portion_count": len(result.portions),
                    "total_cost_price": result.total_cost_price,
                    "total_selling_price": result.total_selling_price,
                    "final_sold_price": result.final_sold_price,
                    "reversal_transaction_id": result.reversal_transaction_id,
                    "deleted_transaction_ids": list(result.deleted_transaction_ids),
                },
            )
            return result

    # =========================================================================
    # Full reversal
    # =========================================================================

    def _reverse_full(self, invoice_id: int) -> ReversalResult:
        lines = self._invoices.item_lines(invoice_id)
        if not lines:
            raise NoInvoiceItemsError(invoice_id)

        transaction_ids = self._linked_transactions(invoice_id)

        allocation = self._allocator.allocate_full(lines)
        self._mutator.apply(allocation.portions, decrement_invoice=False)
        self._invoice_ledger.delete_invoice(invoice_id)

        for transaction_id in transaction_ids:
            self._poster.delete_transaction(transaction_id)

        return self._result(
            invoice_id,
            allocation,
            deleted_transaction_ids=tuple(transaction_ids),
        )

    def _linked_transactions(self, invoice_id: int) -> list[int]:
        """Every posting raised for the invoice, oldest first."""
        found = set(self._ledger.transactions_for_invoice(invoice_id))
        remark = None
        if self._settings.match_legacy_remark:
            remark = self._settings.sale_remark(invoice_id)
            legacy = set(self._ledger.transactions_by_remark(remark)) - found
            if legacy:
                logger.info(
                    "legacy_transactions_matched",
                    extra={"remark": remark, "transaction_ids": sorted(legacy)},
                )
            found |= legacy

        if not found:
            raise TransactionNotFoundError(invoice_id, remark)
        return sorted(found)

    # =========================================================================
    # Partial reversal
    # =========================================================================

    def _reverse_partial(self, request: ReturnRequest) -> ReversalResult:
        invoice_id = request.invoice_id
        item_ids = request.item_ids

        lines = self._invoices.item_lines(invoice_id, item_ids)
        if not lines:
            raise NoInvoiceItemsError(invoice_id, item_ids)

        header = self._invoices.header(invoice_id)
        if header is None:
            raise InvoiceNotFoundError(invoice_id)
        cash_account_id = self._invoices.cash_account_id(header.user_id)
        if cash_account_id is None:
            raise AccountLookupFailedError(invoice_id, header.user_id)

        allocation = self._allocator.allocate_returns(lines, request.include_items)
        posting = self._posting.compute(
            total_cost_price=allocation.total_cost_price,
            total_selling_price=allocation.total_selling_price,
            discount_pct=header.discount,
            cash_account_id=cash_account_id,
        )

        self._mutator.apply(allocation.portions, decrement_invoice=True)
        self._invoice_ledger.reduce_totals(
            invoice_id,
            cost_price=posting.total_cost_price,
            price_before_discount=posting.total_selling_price,
            price_after_discount=posting.final_sold_price,
        )

        transaction_id = self._poster.create_transaction(
            user_id=self._settings.posting_user_id,
            remark=self._settings.reversal_remark(
                invoice_id, json.dumps(request.as_payload())
            ),
            invoice_id=invoice_id,
            kind=TransactionKind.REVERSAL,
        )
        with LogContext.bind(transaction_id=transaction_id):
            self._poster.issue_journal_entries(transaction_id, posting.lines)
            logger.info(
                "reversal_journal_posted",
                extra={
                    "cash_account_id": cash_account_id,
                    "final_sold_price": posting.final_sold_price,
                    "total_cost_price": posting.total_cost_price,
                    "line_count": len(posting.lines),
                },
            )

        return self._result(
            invoice_id,
            allocation,
            final_sold_price=posting.final_sold_price,
            reversal_transaction_id=transaction_id,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

    @staticmethod
    def _result(
        invoice_id: int,
        allocation: AllocationResult,
        **outcome: Any,
    ) -> ReversalResult:
        return ReversalResult(
            invoice_id=invoice_id,
            mode=allocation.mode,
            portions=allocation.portions,
            total_cost_price=allocation.total_cost_price,
            total_selling_price=allocation.total_selling_price,
            **outcome,
        )


def reverse_invoice(
    payload: str | bytes | Mapping[str, Any],
    *,
    config: LedgerConfig | None = None,
    clock: Clock | None = None,
) -> ReversalResult:
    """
    Parse a payload and reverse the invoice in its own transaction.

    The engine must already be initialized (``init_engine_from_url``).
    The request is parsed before any connection is taken, so a malformed
    payload never touches the database.

    Raises:
        StoreFailureError: the database failed, including at commit.
    """
    config = config or get_active_config()
    request = parse_return_request(payload)

    try:
        with session_scope() as session:
            service = InvoiceReversalService(
                session,
                config.reversal,
                clock=clock,
                auto_commit=False,
            )
            result = service.reverse(request)
    except SQLAlchemyError as exc:
        # Only the commit in session_scope() gets here; reverse() wraps its own
        logger.error(
            "reversal_commit_failed",
            extra={"invoice_id": request.invoice_id},
            exc_info=True,
        )
        raise StoreFailureError(operation="commit", detail=str(exc)) from exc
    return result
