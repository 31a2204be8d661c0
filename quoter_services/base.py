"""
BaseService -- abstract base for database-backed quoter services.

Services receive a SQLAlchemy ``Session`` from the caller and use
``session.flush()`` -- never ``session.commit()``.  The caller (a request
handler, a script's ``session_scope()`` or a test) owns the transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for services that write through a session.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
