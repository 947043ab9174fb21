"""
Recognition of retryable lock contention errors.

The transaction manager translates these into ``LockContentionError`` so
``run_atomic`` can retry the unit of work with backoff.
"""

from sqlalchemy.exc import DBAPIError, OperationalError

# MySQL error codes
MYSQL_DEADLOCK_ERROR = "1213"
MYSQL_LOCK_WAIT_TIMEOUT = "1205"

# PostgreSQL / SQLite messages
LOCK_CONTENTION_MARKERS = (
    "deadlock detected",
    "could not obtain lock",
    "lock timeout",
    "database is locked",
    "database table is locked",
)


def is_lock_contention_error(error: Exception) -> bool:
    """
    Check if an exception is a deadlock, lock wait timeout or busy database.

    Args:
        error: The exception to check

    Returns:
        True if the error is transient and the transaction should be retried
    """
    if not isinstance(error, (OperationalError, DBAPIError)):
        return False
    error_str = str(error)
    if MYSQL_DEADLOCK_ERROR in error_str or MYSQL_LOCK_WAIT_TIMEOUT in error_str:
        return True
    lowered = error_str.lower()
    return any(marker in lowered for marker in LOCK_CONTENTION_MARKERS)
