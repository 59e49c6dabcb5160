"""Atomic unit-of-work helper shared by all mutating services."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fuelwise.errors import ConflictError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, *, conflict_message: str = "Conflicting record already exists.") -> Iterator[Session]:
    """Commit everything done in the block, or roll all of it back.

    Constraint violations surface as ``ConflictError`` so concurrent writers
    racing on a unique key get a typed failure instead of a duplicate row.
    """

    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("db.integrity_conflict detail=%s", str(exc.orig).splitlines()[0] if exc.orig else exc)
        raise ConflictError(conflict_message) from exc
    except BaseException:
        db.rollback()
        raise
