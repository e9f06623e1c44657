"""
BaseService -- common base for services that write on a caller session.

Responsibility:
    Holds the caller's session.  Subclasses stage changes and ``flush()``
    so generated values and constraint errors surface early; committing
    or rolling back is left to whoever opened the session.

Architecture position:
    Kernel > Services.

Note:
    RateResolver and TreasuryPoster take a session factory instead.  Rate
    reads use their own short session, and a standalone posting opens and
    commits its own transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """Service bound to a caller-owned session; flushes, never commits."""

    def __init__(self, session: Session):
        self.session = session
