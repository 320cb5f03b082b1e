"""
Module: ledger_kernel.db.base
Responsibility: Declarative base for all SQLAlchemy ORM models.  Provides
    the integer identity key convention and the type annotation map that keeps
    column types consistent across the schema.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  ALL model files import from here.  MUST NOT import from models/,
    services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Integer identity keys: the ledger's tables (invoice, invoice_item,
      current_stock, transaction, ...) are keyed by auto-increment integers,
      which also give invoice lines a stable retrieval order.
    - Decimal precision: Python Decimal maps to Numeric(38, 9).
      NEVER use float for monetary amounts.
    - datetime maps to DateTime(timezone=True).
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# BIGINT on PostgreSQL; SQLite only auto-increments an INTEGER PRIMARY KEY.
IdentityInt = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an auto-increment integer primary key.
        - Decimal maps to Numeric(38, 9) -- financial-grade precision.
        - datetime maps to DateTime(timezone=True).
        - int maps to BIGINT (INTEGER on SQLite).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        int: IdentityInt,
    }

    id: Mapped[int] = mapped_column(
        IdentityInt,
        primary_key=True,
        autoincrement=True,
    )
