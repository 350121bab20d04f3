"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the duplicate search engine.

Key Components:
---------------
- HashState / HashAlgorithm: incremental digest functions (SHA-1, SHA-256, xxHash128)
- ProgressSink: receives byte counts while streams are consumed
- ChoiceReader: the interactive collaborator of the resolution loop
"""

from typing import Protocol, Dict


class HashState(Protocol):
    """Incremental hash object, as returned by hashlib.new() or xxhash.xxh128()."""
    def update(self, data: bytes) -> None: ...
    def hexdigest(self) -> str: ...


class HashAlgorithm(Protocol):
    """
    Interface for digest algorithms.

    Allows plugging in different hashing functions like SHA-1, SHA-256 or xxHash
    without affecting the rest of the fingerprinting logic.
    """
    name: str
    digest_size: int

    def new(self) -> HashState:
        """Returns a fresh incremental hash state."""
        ...


class ProgressSink(Protocol):
    """Receives byte counts as streams are consumed. Has no effect on the stream itself."""
    def add(self, nbytes: int) -> None: ...


class ChoiceReader(Protocol):
    """
    Interactive collaborator: shows options (key -> description) and returns one valid key.
    Validation of the answer is the reader's responsibility.
    """
    def __call__(self, options: Dict[str, str]) -> str: ...
