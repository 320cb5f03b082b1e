"""
Ledger Modules.

Thin orchestration layers over the ledger kernel and engines.

Modules:
- sales_reversal: full and partial reversal of posted sales invoices
"""
