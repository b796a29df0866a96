from flask import request
from datetime import timezone
from dateutil.parser import parse, ParserError
from themestudio.domain.exceptions import PersistenceConflict, ValidationError


def normalize_ts(ts):
    """
    Ensure datetime is timezone-aware.
    Defaults to UTC if naive.
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def enforce_optimistic_lock(entity):
    """
    Enforces optimistic locking using the If-Unmodified-Since header.
    Raises PersistenceConflict if the entity has been modified since.
    """
    client_ts = request.headers.get("If-Unmodified-Since")
    if not client_ts:
        return  # No optimistic lock requested

    try:
        client_ts = normalize_ts(parse(client_ts))
    except (ParserError, OverflowError, ValueError) as exc:
        raise ValidationError("Invalid If-Unmodified-Since header") from exc

    if entity.updated_at is None:
        return

    server_ts = normalize_ts(entity.updated_at)

    if server_ts > client_ts:
        raise PersistenceConflict(
            "Conflict detected. Resource has been modified.",
            details={"updated_at": server_ts.isoformat()},
        )
