from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


@contextmanager
def transactional(session, message="DB transaction failed"):
    """Context manager to wrap a database transaction."""
    try:
        yield session
        session.commit()
    except Exception as e:
        logger.error(f"{message}: %s", e, exc_info=True)
        session.rollback()
        raise
