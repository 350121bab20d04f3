"""
Tests for lazy byte streams — composition must never read more than consumers ask for.
"""
import hashlib
import pytest
from duptree.core.stream import ByteStream, CHUNK_SIZE
from duptree.core.hasher import Sha1AlgorithmImpl


class CountingSource:
    """Chunk factory that records how many chunks were pulled and whether it was closed."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.pulled = 0
        self.closed = False

    def __call__(self):
        try:
            for chunk in self.chunks:
                self.pulled += 1
                yield chunk
        finally:
            self.closed = True


class TestConstructors:
    def test_empty_stream_yields_nothing(self):
        assert list(ByteStream.empty()) == []
        assert ByteStream.from_bytes(b"").read_all() == b""

    def test_from_bytes(self):
        assert list(ByteStream.from_bytes(b"abc")) == [b"abc"]

    def test_from_file_reads_in_chunks(self, tmp_path):
        """A file is split into chunks of at most chunk_size bytes."""
        path = tmp_path / "data.bin"
        path.write_bytes(b"0123456789")

        chunks = list(ByteStream.from_file(str(path), chunk_size=4))
        assert chunks == [b"0123", b"4567", b"89"]

    def test_from_file_is_lazy(self, tmp_path):
        """The file is only opened when iteration starts."""
        path = tmp_path / "later.bin"
        stream = ByteStream.from_file(str(path))
        path.write_bytes(b"written after the stream was built")

        assert stream.read_all() == b"written after the stream was built"

    def test_from_file_missing_raises_on_iteration(self, tmp_path):
        stream = ByteStream.from_file(str(tmp_path / "missing"))
        with pytest.raises(FileNotFoundError):
            stream.read_all()

    def test_default_chunk_size(self):
        assert CHUNK_SIZE == 102400

    def test_stream_is_restartable(self):
        """Iterating twice re-invokes the factories."""
        stream = ByteStream.from_bytes(b"again")
        assert stream.read_all() == stream.read_all() == b"again"


class TestCombinators:
    def test_concat_preserves_order(self):
        stream = ByteStream.from_bytes(b"ab").concat(ByteStream.from_bytes(b"cd"), ByteStream.from_bytes(b"ef"))
        assert stream.read_all() == b"abcdef"

    def test_add_operator(self):
        assert (ByteStream.from_bytes(b"x") + ByteStream.from_bytes(b"y")).read_all() == b"xy"

    def test_take_truncates_last_chunk(self):
        stream = ByteStream.wrap(lambda: [b"aaaa", b"bbbb", b"cccc"]).take(6)
        assert list(stream) == [b"aaaa", b"bb"]

    def test_take_zero_yields_nothing(self):
        assert list(ByteStream.from_bytes(b"abc").take(0)) == []

    def test_take_never_pulls_past_limit(self):
        """Taking from the first chunk must not pull the second one."""
        source = CountingSource([b"aaaa", b"bbbb", b"cccc"])
        assert ByteStream.wrap(source).take(3).read_all() == b"aaa"
        assert source.pulled == 1
        assert source.closed

    def test_take_from_infinite_stream(self):
        data = ByteStream.zeros(chunk_size=1000).take(2500).read_all()
        assert data == bytes(2500)

    @pytest.mark.parametrize("size", [1, 3, 4, 7, 100])
    def test_rechunk_exact_sizes(self, size):
        """All chunks but the last are exactly `size` bytes, content unchanged."""
        data = b"0123456789"
        chunks = list(ByteStream.wrap(lambda: [b"012", b"3456", b"789"]).rechunk(size))

        assert b"".join(chunks) == data
        assert all(len(c) == size for c in chunks[:-1])
        assert 0 < len(chunks[-1]) <= size

    def test_rechunk_rejects_non_positive(self):
        with pytest.raises(ValueError):
            ByteStream.empty().rechunk(0)

    def test_tap_reports_lengths_without_altering(self):
        seen = []
        stream = ByteStream.wrap(lambda: [b"ab", b"cde"]).tap(seen.append)

        assert stream.read_all() == b"abcde"
        assert seen == [2, 3]

    def test_tap_is_lazy(self):
        seen = []
        ByteStream.from_bytes(b"abc").tap(seen.append)
        assert seen == []


class TestDigest:
    def test_digest_matches_hashlib(self):
        stream = ByteStream.wrap(lambda: [b"hello ", b"world"])
        assert stream.digest(Sha1AlgorithmImpl()) == hashlib.sha1(b"hello world").hexdigest()

    def test_digest_of_empty_stream(self):
        assert ByteStream.empty().digest(Sha1AlgorithmImpl()) == hashlib.sha1(b"").hexdigest()
