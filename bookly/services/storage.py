"""Translation of driver failures into the core's typed errors."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from bookly.exceptions import StorageError


@contextmanager
def storage_errors(message: str) -> Iterator[None]:
    """Re-raise any SQLAlchemy failure inside the block as ``StorageError``.

    Rolling back is left to the session owner (``get_db``); services that
    commit on their own handle their rollback explicitly.
    """
    try:
        yield
    except SQLAlchemyError as e:
        raise StorageError(message) from e
