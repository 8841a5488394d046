from contextlib import contextmanager
import logging

from sqlalchemy.orm.exc import StaleDataError

from app.services.exceptions import ConcurrentModification
from models import db

logger = logging.getLogger(__name__)


@contextmanager
def transactional(message="DB transaction failed"):
    """Commit the session when the block succeeds, roll back otherwise.

    A flush that finds a versioned row changed underneath it is reported as
    ``ConcurrentModification`` so callers answer 409 instead of 500.
    """
    try:
        yield db.session
        db.session.commit()
    except StaleDataError as e:
        db.session.rollback()
        logger.warning({"event": "db.stale_write", "detail": message})
        raise ConcurrentModification() from e
    except Exception as e:
        logger.error(f"{message}: %s", e, exc_info=True)
        db.session.rollback()
        raise
