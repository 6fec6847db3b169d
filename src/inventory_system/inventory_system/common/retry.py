from __future__ import annotations

import logging
from functools import wraps

from ..core.constants import READ_RETRY_ATTEMPTS
from ..core.exceptions import PersistenceFailure

logger = logging.getLogger(__name__)


def retry_read(func):
    """Retry an idempotent read after a PersistenceFailure.

    Only for reads. Mutations must surface the failure to the caller.
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        for attempt in range(READ_RETRY_ATTEMPTS):
            try:
                return func(*args, **kwargs)
            except PersistenceFailure:
                logger.warning("%s failed (attempt %d), retrying", func.__name__, attempt + 1)
        return func(*args, **kwargs)

    return wrapper
