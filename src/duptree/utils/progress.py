"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/progress.py
Byte-level progress for the leaf hashing pass: percent, rate and ETA.
The sink only observes byte counts and never slows or buffers the stream.
"""
import threading
import time
from typing import Callable, Optional

from duptree.utils.convert_utils import ConvertUtils


class Progress:
    """
    Thread-safe byte counter with rate/ETA estimation.

    Args:
        total: Number of bytes expected
        printer: Called with a status line after every update (e.g. to redraw a terminal line)
        clock: Time source, injectable for tests
    """

    def __init__(
            self,
            total: int,
            printer: Optional[Callable[[str], None]] = None,
            clock: Callable[[], float] = time.monotonic
    ):
        self.total = total
        self.printer = printer
        self.clock = clock
        self.start = clock()
        self.done = 0
        self._lock = threading.Lock()

    def add(self, nbytes: int) -> None:
        with self._lock:
            self.done += nbytes
        if self.printer:
            self.printer(self.format())

    def rate(self) -> float:
        elapsed = self.clock() - self.start
        if not self.done or elapsed <= 0:
            return 0.0
        return self.done / elapsed

    def eta(self) -> float:
        rate = self.rate()
        if not rate:
            return float("inf")
        return (self.total - self.done) / rate

    def format(self) -> str:
        percent = ConvertUtils.percent(self.done, self.total)
        rate = ConvertUtils.rate_to_human(self.rate())
        eta = ConvertUtils.seconds_to_eta(self.eta())
        return f"[{percent}, {rate}, ETA {eta}]"
