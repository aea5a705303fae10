from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from shopledger.utils.log import get_logger

log = get_logger("db")


@contextmanager
def smart_transaction(session: Session) -> Iterator[Session]:
    """
    Run the block in a transaction on `session`.

    With no transaction open, begins one that commits when the block exits and
    rolls back if it raises. Inside an already open transaction a SAVEPOINT is
    used instead and the outer transaction keeps the final commit.

    Writers must enter this before issuing any query on the session: a query
    autobegins a transaction, which would turn this block into a SAVEPOINT
    that nobody commits.

    Usage:
        with smart_transaction(db):
            ... DB work ...
    """
    nested = session.in_transaction()
    cm = session.begin_nested() if nested else session.begin()
    try:
        with cm:
            yield session
    except Exception as e:
        log.debug("%s rolled back (%s)", "savepoint" if nested else "transaction", type(e).__name__)
        raise
