from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from themestudio.extensions import db
from themestudio.domain.exceptions import PersistenceConflict


@contextmanager
def transactional():
    """
    Context manager for database transactions.

    Commits on success. Any error rolls the whole batch back and is re-raised;
    database errors surface as PersistenceConflict so callers see one failure
    type for "nothing was written".
    """
    try:
        yield
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceConflict(
            "The change could not be saved; no records were modified",
            details={"reason": exc.__class__.__name__},
        ) from exc
    except Exception:
        db.session.rollback()
        raise
