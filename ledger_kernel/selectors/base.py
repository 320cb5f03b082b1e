"""
Module: ledger_kernel.selectors.base
Responsibility: Base class for read-side query selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/ (for DTOs).  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.  They
      may take row locks (SELECT ... FOR UPDATE) on behalf of the caller's
      transaction; locks are a read concern and are held until that
      transaction ends.
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session
