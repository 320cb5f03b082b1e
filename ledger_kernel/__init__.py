"""
Ledger Kernel

Persistence, typed errors, structured logging and the stateful services that
read and write the sales ledger:
- Stock ledger access per (warehouse, item, lot)
- Invoice line selection with row-level locks
- Transaction and journal posting with a hard balance check
"""

__version__ = "0.1.0"
