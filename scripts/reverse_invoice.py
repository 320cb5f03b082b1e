#!/usr/bin/env python3
"""
Reverse a posted sales invoice, fully or item by item.

Usage:
    python3 scripts/reverse_invoice.py --option ri --payload '<json>' [options]

Examples:
    # Full reversal: restock every line, delete the invoice and its postings
    python3 scripts/reverse_invoice.py --option ri --payload '{"invoice_id": 10}'

    # Partial reversal: return 4 units of item 5 and post a reversing entry
    python3 scripts/reverse_invoice.py --option ri \\
        --payload '{"invoice_id": 10, "include_item_list": [{"item_id": 5, "qty": 4}]}'

    # Against a specific database
    python3 scripts/reverse_invoice.py --option ri --payload '{"invoice_id": 10}' \\
        --dsn postgresql+psycopg2://ledger:secret@db:5432/ledger

Exit status is 0 on success and 1 on any failure; failures print
"<ERROR_CODE>: <message>" and leave the database unchanged.
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

OPTIONS = {
    "ri": "Reverse Invoice",
}


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sales ledger maintenance tasks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--option",
        default=None,
        help="Task to run: " + ", ".join(f"{k} [{v}]" for k, v in OPTIONS.items()),
    )
    parser.add_argument(
        "--payload",
        default="{}",
        help='Request JSON, e.g. \'{"invoice_id": 10, "include_item_list": [{"item_id": 5, "qty": 4}]}\'',
    )
    parser.add_argument(
        "--dsn",
        default=None,
        help="Database URL (overrides DATABASE_URL and the config file).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Configuration YAML (default: $LEDGER_CONFIG_PATH or the shipped default set).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Structured log level written to stderr (default: WARNING).",
    )
    return parser.parse_args(argv)


def _print_result(result) -> None:
    if result.is_full:
        print(f"Invoice {result.invoice_id} fully reversed")
        print(f"Lines restocked: {len(result.portions)}")
        print(f"Deleted transactions: {', '.join(map(str, result.deleted_transaction_ids))}")
    else:
        print(f"Select items reversal complete for invoice {result.invoice_id}")
        print(f"Cost price: {result.total_cost_price:.2f}")
        print(f"Selling price: {result.total_selling_price:.2f}")
        print(f"Final sold price: {result.final_sold_price:.2f}")
        print(f"Reversal transaction: {result.reversal_transaction_id}")


def _reverse_invoice(args: argparse.Namespace) -> int:
    # Lazy imports so option errors never need a database driver
    from sqlalchemy.exc import SQLAlchemyError

    from ledger_config import get_active_config
    from ledger_kernel.db.engine import init_engine_from_url
    from ledger_kernel.exceptions import LedgerKernelError
    from ledger_kernel.logging_config import LogContext
    from ledger_modules.sales_reversal import reverse_invoice

    try:
        config = get_active_config(args.config)
        db = config.database
        init_engine_from_url(
            args.dsn or db.url,
            echo=db.echo,
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
        )
        with LogContext.bind(correlation_id=uuid.uuid4().hex):
            result = reverse_invoice(args.payload, config=config)
    except LedgerKernelError as e:
        print(f"{e.code}: {e}", file=sys.stderr)
        return 1
    except SQLAlchemyError as e:
        # Engine creation; failures inside a reversal arrive as StoreFailureError
        print(f"STORE_FAILURE: Database unavailable: {e}", file=sys.stderr)
        return 1

    _print_result(result)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    if args.option is None:
        print("no option given. exiting", file=sys.stderr)
        return 1
    if args.option not in OPTIONS:
        print("invalid option. exiting", file=sys.stderr)
        return 1

    from ledger_kernel.logging_config import configure_logging

    configure_logging(level=getattr(logging, args.log_level))

    return _reverse_invoice(args)


if __name__ == "__main__":
    sys.exit(main())
