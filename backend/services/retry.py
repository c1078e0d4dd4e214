import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlmodel import Session
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
    wait_random,
)

import settings

logger = logging.getLogger("soundalchemy.retry")

T = TypeVar("T")


def call_with_retry(session: Session, fn: Callable[..., T], *args, **kwargs) -> T:
    """Call a store operation retrying transient database errors.

    The session is rolled back before every new attempt. Only OperationalError
    (locks, dropped connections) is retried: a PartialFailure must be repaired,
    not replayed.
    """

    def _rollback(retry_state):
        logger.warning(
            f"{getattr(fn, '__name__', fn)} failed (attempt {retry_state.attempt_number}): "
            f"{retry_state.outcome.exception()}"
        )
        session.rollback()

    for attempt in Retrying(
        retry=retry_if_exception_type(OperationalError),
        wait=wait_none() if settings.TESTING_MODE else wait_random(0.2, 1.5),
        stop=stop_after_attempt(3),
        before_sleep=_rollback,
        reraise=True,
    ):
        with attempt:
            return fn(*args, **kwargs)
