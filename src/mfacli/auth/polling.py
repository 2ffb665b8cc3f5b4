"""Fixed-interval polling for out-of-band confirmation.

Push, SMS and e-mail authenticators are confirmed outside the request cycle,
so the token endpoint answers ``authorization_pending`` until the operator
approves. :func:`poll_while_pending` repeats one attempt with a fixed delay
until the answer is anything else. There is no deadline; a pending state
that never resolves ends only when the process is interrupted.
"""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

OOB_POLL_INTERVAL = 5.0


def poll_while_pending(
    attempt: Callable[[], T],
    is_pending: Callable[[T], bool],
    interval: float = OOB_POLL_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
    on_pending: Optional[Callable[[T], None]] = None,
) -> T:
    """Call *attempt* until *is_pending* rejects its result.

    Args:
        attempt: Issues one request and returns its result.
        is_pending: Returns ``True`` while another attempt is needed.
        interval: Seconds to wait between attempts.
        sleep: Delay function; tests pass a recorder.
        on_pending: Called with each pending result, before the delay.

    Returns:
        The first result for which *is_pending* is ``False``.
    """
    result = attempt()
    while is_pending(result):
        if on_pending is not None:
            on_pending(result)
        sleep(interval)
        result = attempt()
    return result
