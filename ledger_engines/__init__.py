"""
Module: ledger_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines used by the
    sales reversal flow.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ledger_kernel (domain, exceptions, logging).
    MUST NOT import ledger_config or ledger_modules.

Invariants enforced:
    - Purity: engines never touch the database or the clock.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from ledger_engines import ReturnAllocator, ReversalPostingCalculator
"""

from ledger_engines.allocation import (
    AllocatedPortion,
    AllocationMode,
    AllocationResult,
    ReturnAllocator,
)
from ledger_engines.posting import ReversalPosting, ReversalPostingCalculator

__all__ = [
    "AllocatedPortion",
    "AllocationMode",
    "AllocationResult",
    "ReturnAllocator",
    "ReversalPosting",
    "ReversalPostingCalculator",
]
