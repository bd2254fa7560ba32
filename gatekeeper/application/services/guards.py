from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from ...domain.errors import CredentialError, InternalError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Convert storage and credential failures into ``InternalError``."""
    try:
        yield
    except (sqlite3.Error, CredentialError) as exc:
        logger.exception("%s failed", operation)
        raise InternalError(f"{operation} failed. Please try again.") from exc
