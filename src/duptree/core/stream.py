"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stream.py
Lazy, pull-driven byte streams.

A ByteStream holds a sequence of zero-argument factories, each returning an
iterator of byte chunks. Iterating the stream calls the factories again, so a
stream is restartable only by re-invocation, never by rewinding a shared
cursor. Every combinator returns a new stream and pulls from its upstream only
when its own consumer asks for the next chunk, so memory stays bounded by the
chunk size regardless of how much data flows through.
"""

from contextlib import closing
from typing import Callable, Iterable, Iterator, Optional, Sequence, Union, List
import os

from duptree.core.interfaces import HashAlgorithm
from duptree.core import process

CHUNK_SIZE = 102400  # 100 KiB per read

ChunkFactory = Callable[[], Iterable[bytes]]


class ByteStream:
    """Composable lazy sequence of byte chunks."""

    def __init__(self, factories: Sequence[ChunkFactory] = ()):
        self._factories = tuple(factories)

    # =============================
    # Constructors
    # =============================

    @classmethod
    def wrap(cls, factory: ChunkFactory) -> 'ByteStream':
        return cls((factory,))

    @classmethod
    def empty(cls) -> 'ByteStream':
        return cls()

    @classmethod
    def from_bytes(cls, data: bytes) -> 'ByteStream':
        if not data:
            return cls.empty()
        return cls.wrap(lambda: (data,))

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike], chunk_size: int = CHUNK_SIZE) -> 'ByteStream':
        """
        Sequential chunked read. The file is opened only when iteration starts
        and closed as soon as iteration ends or the consumer stops early.
        """
        def read() -> Iterator[bytes]:
            with open(path, 'rb') as f:
                while True:
                    chunk = f.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
        return cls.wrap(read)

    @classmethod
    def zeros(cls, chunk_size: int = CHUNK_SIZE) -> 'ByteStream':
        """Infinite stream of zero-filled chunks. Combine with take()."""
        def generate() -> Iterator[bytes]:
            block = bytes(chunk_size)
            while True:
                yield block
        return cls.wrap(generate)

    # =============================
    # Iteration
    # =============================

    def __iter__(self) -> Iterator[bytes]:
        for factory in self._factories:
            # yield from forwards close() to generator factories
            yield from factory()

    # =============================
    # Combinators
    # =============================

    def concat(self, *others: 'ByteStream') -> 'ByteStream':
        factories = list(self._factories)
        for other in others:
            factories.extend(other._factories)
        return ByteStream(factories)

    def __add__(self, other: 'ByteStream') -> 'ByteStream':
        if not isinstance(other, ByteStream):
            return NotImplemented
        return self.concat(other)

    def take(self, size: int) -> 'ByteStream':
        """Stops after `size` bytes, truncating the final chunk. Never pulls past the limit."""
        def generate() -> Iterator[bytes]:
            remaining = size
            if remaining <= 0:
                return
            with closing(iter(self)) as chunks:
                for chunk in chunks:
                    if len(chunk) >= remaining:
                        yield chunk[:remaining]
                        return
                    remaining -= len(chunk)
                    yield chunk
        return ByteStream.wrap(generate)

    def rechunk(self, size: int) -> 'ByteStream':
        """Re-buffers into chunks of exactly `size` bytes plus a final short chunk if bytes remain."""
        if size <= 0:
            raise ValueError("Chunk size must be positive")

        def generate() -> Iterator[bytes]:
            buffer = bytearray()
            with closing(iter(self)) as chunks:
                for piece in chunks:
                    buffer += piece
                    while len(buffer) >= size:
                        yield bytes(buffer[:size])
                        del buffer[:size]
            if buffer:
                yield bytes(buffer)
        return ByteStream.wrap(generate)

    def tap(self, callback: Callable[[int], None]) -> 'ByteStream':
        """Reports the length of every chunk passing through, without altering it."""
        def generate() -> Iterator[bytes]:
            with closing(iter(self)) as chunks:
                for chunk in chunks:
                    callback(len(chunk))
                    yield chunk
        return ByteStream.wrap(generate)

    def pipe(
            self,
            command: Union[str, List[str]],
            on_exit: Optional[Callable[[str, int, bytes], None]] = None
    ) -> 'ByteStream':
        """Routes this stream through an external command's stdin and returns its stdout."""
        return ByteStream.wrap(lambda: process.pipe(self, command, on_exit=on_exit))

    # =============================
    # Consumers
    # =============================

    def digest(self, algorithm: HashAlgorithm) -> str:
        """Consumes the stream to completion and returns the hex digest."""
        state = algorithm.new()
        for chunk in self:
            state.update(chunk)
        return state.hexdigest()

    def read_all(self) -> bytes:
        """Collects the whole stream in memory. Only for small, finite streams."""
        return b"".join(self)

    def __repr__(self):
        return f"<ByteStream parts={len(self._factories)}>"
