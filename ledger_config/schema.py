"""
Ledger configuration schema.

Frozen dataclasses the YAML configuration is parsed into.  Validation runs
in ``__post_init__`` so an invalid value can never reach a service: every
violation raises ``ConfigError`` naming the offending key.

Defaults match the chart of accounts the reversal flow was first deployed
against (sales 200, cost of sales 202, stock 183, posting user 1).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ledger_kernel.exceptions import ConfigError

DEFAULT_SALE_REMARK = "INVOICE {invoice_id}"
DEFAULT_REVERSAL_REMARK = "INVOICE REVERSAL {invoice_id}\nPayload - {payload}"


def _require_positive_int(key: str, value: object) -> None:
    # bool is an int subclass; YAML "yes" must not become account 1.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(key, f"must be a positive integer, got {value!r}")


def _require_format(key: str, template: object, **sample: object) -> None:
    if not isinstance(template, str) or not template:
        raise ConfigError(key, f"must be a non-empty string, got {template!r}")
    try:
        template.format(**sample)
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigError(
            key, f"placeholders must be drawn from {sorted(sample)}: {exc}"
        ) from exc


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection and pool settings passed to ``init_engine_from_url``."""

    url: str = "postgresql+psycopg2://postgres@localhost:5432/ledger"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self):
        if not isinstance(self.url, str) or not self.url.strip():
            raise ConfigError("database.url", "must be a non-empty string")
        if not isinstance(self.echo, bool):
            raise ConfigError("database.echo", f"must be a boolean, got {self.echo!r}")
        _require_positive_int("database.pool_size", self.pool_size)
        if isinstance(self.max_overflow, bool) or not isinstance(self.max_overflow, int) or self.max_overflow < 0:
            raise ConfigError("database.max_overflow", f"must be a non-negative integer, got {self.max_overflow!r}")
        _require_positive_int("database.pool_timeout", self.pool_timeout)
        _require_positive_int("database.pool_recycle", self.pool_recycle)


# ---------------------------------------------------------------------------
# Reversal
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReversalAccounts:
    """Fixed accounts of the reversing journal entry."""

    sales: int = 200
    cost_of_sales: int = 202
    stock: int = 183

    def __post_init__(self):
        _require_positive_int("reversal.accounts.sales", self.sales)
        _require_positive_int("reversal.accounts.cost_of_sales", self.cost_of_sales)
        _require_positive_int("reversal.accounts.stock", self.stock)


@dataclass(frozen=True)
class ReversalSettings:
    """
    Behaviour of the sales reversal flow.

    ``match_legacy_remark`` lets a full reversal find sale transactions
    posted before transactions carried an invoice id, by their remark
    (``sale_remark_format``).
    """

    accounts: ReversalAccounts = field(default_factory=ReversalAccounts)
    posting_user_id: int = 1
    match_legacy_remark: bool = True
    sale_remark_format: str = DEFAULT_SALE_REMARK
    reversal_remark_format: str = DEFAULT_REVERSAL_REMARK

    def __post_init__(self):
        if not isinstance(self.accounts, ReversalAccounts):
            raise ConfigError("reversal.accounts", "must be a mapping of account ids")
        _require_positive_int("reversal.posting_user_id", self.posting_user_id)
        if not isinstance(self.match_legacy_remark, bool):
            raise ConfigError(
                "reversal.match_legacy_remark",
                f"must be a boolean, got {self.match_legacy_remark!r}",
            )
        _require_format("reversal.sale_remark_format", self.sale_remark_format, invoice_id=0)
        _require_format(
            "reversal.reversal_remark_format",
            self.reversal_remark_format,
            invoice_id=0,
            payload="",
        )

    def sale_remark(self, invoice_id: int) -> str:
        return self.sale_remark_format.format(invoice_id=invoice_id)

    def reversal_remark(self, invoice_id: int, payload: str) -> str:
        return self.reversal_remark_format.format(invoice_id=invoice_id, payload=payload)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    """Complete runtime configuration."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    reversal: ReversalSettings = field(default_factory=ReversalSettings)
    source: str | None = None  # file the config was read from, if any
