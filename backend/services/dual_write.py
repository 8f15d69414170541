"""
Two-row writes (conversation + qualification status).

DUAL_WRITE_MODE picks the strategy:

  best_effort  commit the primary change, then apply the secondary change in
               its own commit. A secondary failure is rolled back and logged;
               the primary change stands and nothing compensates for it.
  atomic       apply both changes and commit once. Any failure rolls back
               both and raises StorageError.
"""
import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.config import settings
from backend.errors import StorageError

logger = logging.getLogger("leadline")


def commit_or_raise(db: Session, failure_message: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(failure_message, diagnostics={"dbError": str(e)}) from e


def commit_dual_write(
    db: Session,
    secondary: Callable[[], None],
    failure_message: str,
    secondary_label: str,
) -> bool:
    """
    Commit the pending primary change plus ``secondary``.

    Returns False when a best-effort secondary write was dropped.
    """
    if settings.dual_write_mode == "atomic":
        try:
            secondary()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(failure_message, diagnostics={"dbError": str(e)}) from e
        return True

    commit_or_raise(db, failure_message)
    try:
        secondary()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Best-effort {secondary_label} failed, primary change kept: {e}")
        return False
    return True
