"""Fixed-interval pacing for sequential Zendesk calls."""
import time
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar("T")


class Throttle:
    """Keep consecutive ``wait()`` returns at least ``delay`` seconds apart.

    The first call never sleeps. This is a cooperative throttle for a single
    caller; it holds no lock.
    """

    def __init__(
        self,
        delay: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.delay = delay
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> None:
        if self._last is not None and self.delay > 0:
            remaining = self.delay - (self._clock() - self._last)
            if remaining > 0:
                self._sleep(remaining)
        self._last = self._clock()


def paced(items: Iterable[T], throttle: Throttle) -> Iterator[T]:
    """Yield ``items`` in order, waiting on ``throttle`` before each one."""
    for item in items:
        throttle.wait()
        yield item
