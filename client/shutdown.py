"""Client interrupt handling for tcpping."""

import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from common.io import CancelToken

logger = logging.getLogger(__name__)


@contextmanager
def cancel_on_interrupt(token: CancelToken) -> Iterator[CancelToken]:
    """Route SIGINT to token.cancel() for the duration of the block.

    The previous handler is restored on exit.
    """

    def handle_signal(_sig: int, _frame: FrameType | None) -> None:
        if not token.cancelled:
            logger.info("Interrupt received - finishing current wait")
        token.cancel()

    previous = signal.signal(signal.SIGINT, handle_signal)
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
