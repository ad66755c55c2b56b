import logging
import uuid
from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError

from app.errors import InvalidArgumentError, NotFoundError, TransientStorageError

logger = logging.getLogger(__name__)


def coerce_uuid(value, not_found: str | None = None):
    """Parse an id. With ``not_found`` set, a malformed id reads as a missing one."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        if not_found:
            raise NotFoundError(not_found)
        raise InvalidArgumentError(f"Invalid identifier: {value}")


def apply_ordering(query, order_by, order_dir, allowed_columns, tiebreaker=None):
    if order_by not in allowed_columns:
        raise InvalidArgumentError(
            f"Invalid order_by. Allowed: {', '.join(sorted(allowed_columns))}"
        )
    if order_dir not in ("asc", "desc"):
        raise InvalidArgumentError("Invalid order_dir. Allowed: asc, desc")
    column = allowed_columns[order_by]
    if order_dir == "desc":
        query = query.order_by(column.desc())
    else:
        query = query.order_by(column.asc())
    if tiebreaker is not None:
        query = query.order_by(tiebreaker.asc())
    return query


def apply_pagination(query, limit, offset):
    return query.limit(limit).offset(offset)


def page_window(page: int, page_size: int, max_page_size: int) -> tuple[int, int, int]:
    """Return ``(page_size, limit, offset)`` with page_size clamped to the max."""
    if page < 1:
        raise InvalidArgumentError("page must be >= 1")
    if page_size < 1:
        raise InvalidArgumentError("page_size must be >= 1")
    page_size = min(page_size, max_page_size)
    return page_size, page_size, (page - 1) * page_size


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@contextmanager
def translate_storage_errors():
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.warning("Storage unavailable: %s", e)
        raise TransientStorageError() from e
