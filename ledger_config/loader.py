"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``ledger_config.schema`` dataclasses.  Runtime callers go through
``ledger_config.get_active_config()``; this module is its parsing half.

Invariants enforced
-------------------
* Every failure surfaces as ``ConfigError`` naming the offending key; the
  YAML or OS error is chained.
* Unknown keys are rejected, so a misspelled setting never silently falls
  back to its default.
* The ``database`` and ``reversal`` sections are required.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    DatabaseSettings,
    LedgerConfig,
    ReversalAccounts,
    ReversalSettings,
)
from ledger_kernel.exceptions import ConfigError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigError: missing or unreadable file, invalid YAML, or a
            document that is not a mapping.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(str(path), f"cannot read configuration file: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(str(path), f"invalid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return data


def _section(data: dict[str, Any], key: str, prefix: str = "") -> dict[str, Any]:
    name = f"{prefix}{key}"
    if key not in data:
        raise ConfigError(name, "section is required")
    value = data[key]
    if not isinstance(value, dict):
        raise ConfigError(name, f"must be a mapping, got {type(value).__name__}")
    return value


def _build(cls: type, data: dict[str, Any], section: str):
    allowed = set(cls.__dataclass_fields__)
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(section, f"unknown keys {unknown}")
    return cls(**data)


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    return _build(DatabaseSettings, data, "database")


def parse_reversal(data: dict[str, Any]) -> ReversalSettings:
    fields = dict(data)
    if "accounts" in fields:
        accounts = _section(fields, "accounts", prefix="reversal.")
        fields["accounts"] = _build(ReversalAccounts, accounts, "reversal.accounts")
    return _build(ReversalSettings, fields, "reversal")


def parse_config(
    data: dict[str, Any],
    database_url: str | None = None,
    source: str | None = None,
) -> LedgerConfig:
    """
    Parse a raw configuration mapping.

    Args:
        data: Parsed YAML document.
        database_url: Overrides ``database.url`` when given (the
            ``DATABASE_URL`` environment variable at runtime).
        source: Where the mapping came from, kept for traceability.
    """
    database = dict(_section(data, "database"))
    if database_url:
        database["url"] = database_url
    reversal = _section(data, "reversal")

    unknown = sorted(set(data) - {"database", "reversal"})
    if unknown:
        raise ConfigError("<root>", f"unknown sections {unknown}")

    return LedgerConfig(
        database=parse_database(database),
        reversal=parse_reversal(reversal),
        source=source,
    )
