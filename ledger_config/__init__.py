"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Services receive the resulting settings
    objects explicitly; they never read files or environment variables.

Architecture position:
    Configuration -- sits above ``ledger_kernel`` and below
    ``ledger_modules``.  The kernel never imports from ``ledger_config``.

Resolution order:
    1. explicit ``path`` argument
    2. ``LEDGER_CONFIG_PATH`` environment variable
    3. the shipped ``sets/default.yaml``
    ``DATABASE_URL`` overrides ``database.url`` whichever file is used.

Failure modes:
    - ``ConfigError`` -- missing file, invalid YAML, unknown keys or
      invalid values.

Audit relevance:
    Every successful call emits a ``ledger_config_loaded`` log entry with
    the source file and the account ids that will be posted to.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from ledger_config.loader import load_yaml_file, parse_config
from ledger_config.schema import (
    DatabaseSettings,
    LedgerConfig,
    ReversalAccounts,
    ReversalSettings,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "default.yaml"

CONFIG_PATH_ENV = "LEDGER_CONFIG_PATH"
DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Configuration file to load.  Defaults to
            ``$LEDGER_CONFIG_PATH`` or the shipped default set.
        environ: Environment to read overrides from.  Defaults to
            ``os.environ``.

    Raises:
        ConfigError: If the file cannot be loaded or fails validation.
    """
    env = os.environ if environ is None else environ
    config_path = Path(path or env.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)

    config = parse_config(
        load_yaml_file(config_path),
        database_url=env.get(DATABASE_URL_ENV),
        source=str(config_path),
    )

    accounts = config.reversal.accounts
    logger.info(
        "ledger_config_loaded",
        extra={
            "source": config.source,
            "database_url_overridden": bool(env.get(DATABASE_URL_ENV)),
            "sales_account_id": accounts.sales,
            "cost_of_sales_account_id": accounts.cost_of_sales,
            "stock_account_id": accounts.stock,
            "posting_user_id": config.reversal.posting_user_id,
            "match_legacy_remark": config.reversal.match_legacy_remark,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "LedgerConfig",
    "ReversalAccounts",
    "ReversalSettings",
    "get_active_config",
]
