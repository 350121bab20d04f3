"""
Tests for byte-level progress: rate and ETA with an injected clock.
"""
import math
import threading
from duptree.core.stream import ByteStream
from duptree.utils.progress import Progress


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestProgress:
    def test_rate_and_eta(self):
        clock = FakeClock()
        progress = Progress(1000, clock=clock)
        clock.now += 2
        progress.add(200)

        assert progress.rate() == 100.0
        assert progress.eta() == 8.0
        assert progress.format() == "[20.00%, 100.00B/s, ETA 00:00:08]"

    def test_eta_is_infinite_before_any_bytes(self):
        clock = FakeClock()
        progress = Progress(1000, clock=clock)
        clock.now += 5

        assert progress.rate() == 0.0
        assert math.isinf(progress.eta())
        assert "ETA forever" in progress.format()

    def test_printer_called_per_update(self):
        lines = []
        progress = Progress(10, printer=lines.append, clock=FakeClock())
        progress.add(5)
        progress.add(5)

        assert len(lines) == 2
        assert lines[-1].startswith("[100.00%")

    def test_tapping_a_stream_does_not_change_it(self):
        progress = Progress(6)
        data = ByteStream.wrap(lambda: [b"abc", b"def"]).tap(progress.add).read_all()

        assert data == b"abcdef"
        assert progress.done == 6

    def test_concurrent_adds(self):
        progress = Progress(4000)

        def worker():
            for _ in range(1000):
                progress.add(1)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert progress.done == 4000
