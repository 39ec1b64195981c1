import logging
from contextlib import contextmanager

from django.db import DatabaseError, connection, transaction

from ..exceptions import InfrastructureError

logger = logging.getLogger(__name__)


@contextmanager
def consistent_read(label):
    """
    Run a report's queries as one logical read.

    Everything inside shares a single transaction; on PostgreSQL it is
    REPEATABLE READ, so debit and credit sums come from the same snapshot.
    Store failures surface as InfrastructureError, never as business errors.
    """
    try:
        # SET TRANSACTION must be the first statement of the transaction,
        # which is only true when we open the outermost block ourselves
        fresh = not connection.in_atomic_block
        with transaction.atomic():
            if fresh and connection.vendor == "postgresql":
                with connection.cursor() as cursor:
                    cursor.execute(
                        "SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
            yield
    except DatabaseError as exc:
        logger.error("%s could not be read", label, exc_info=True)
        raise InfrastructureError(f"{label} could not be read: {exc}") from exc
