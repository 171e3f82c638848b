from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from forging_watcher.errors import RetryExhausted

DEFAULT_MAX_ATTEMPTS = 50

# work(attempt) -> (should_continue, error or None)
Work = Callable[[int], Tuple[bool, Optional[BaseException]]]


@dataclass(frozen=True)
class RetryOutcome:
    succeeded: bool
    last_error: BaseException | None
    attempts_used: int


def retry(
    work: Work,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> RetryOutcome:
    """
    Keeps calling work(attempt) until it reports no error, asks to stop, or
    max_attempts calls have been made. Sleeps `delay` seconds between a
    failed attempt and the next one.

    Raises RetryExhausted carrying the last error when it never succeeds.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: BaseException | None = None
    attempt = 0
    while attempt < max_attempts:
        attempt += 1
        should_continue, error = work(attempt)
        if error is None:
            return RetryOutcome(succeeded=True, last_error=None, attempts_used=attempt)
        last_error = error
        if not should_continue:
            break
        if attempt < max_attempts and delay > 0:
            sleep(delay)

    raise RetryExhausted(last_error, attempt)
