"""
Module: treasury_kernel.selectors.base
Responsibility: Shared constructor for read-side query objects.
Architecture position: Kernel > Selectors.  Imports db/ and models/ only.

Selectors run queries on a session they are handed and return frozen
DTOs.  They never add, delete, flush or commit; whoever created the
session decides its transaction boundaries.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """Read-only query object bound to a caller session."""

    def __init__(self, session: Session):
        self.session = session
