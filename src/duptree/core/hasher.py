"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Pluggable digest algorithms and file hashing through optional filter commands.

SHA-1 is the default and matches the fingerprints of earlier runs. SHA-256 is
available for stronger collision resistance, xxHash128 for raw speed when a
non-cryptographic digest is acceptable.
"""

import hashlib
import logging
from typing import Dict, List, Optional

import xxhash

from duptree.core.errors import VanishedFile
from duptree.core.interfaces import HashAlgorithm, HashState, ProgressSink
from duptree.core.process import ExitCallback
from duptree.core.stream import ByteStream

logger = logging.getLogger(__name__)


# Use the same way to implement and use any other hashing algorithm
class HashlibAlgorithmImpl(HashAlgorithm):
    def __init__(self, name: str):
        self.name = name
        self.digest_size = hashlib.new(name).digest_size

    def new(self) -> HashState:
        return hashlib.new(self.name)


class Sha1AlgorithmImpl(HashlibAlgorithmImpl):
    def __init__(self):
        super().__init__("sha1")


class Sha256AlgorithmImpl(HashlibAlgorithmImpl):
    def __init__(self):
        super().__init__("sha256")


class XXHashAlgorithmImpl(HashAlgorithm):
    name = "xxh128"
    digest_size = 16

    def new(self) -> HashState:
        return xxhash.xxh128()


ALGORITHMS = {
    "sha1": Sha1AlgorithmImpl,
    "sha256": Sha256AlgorithmImpl,
    "xxh128": XXHashAlgorithmImpl,
}

DEFAULT_ALGORITHM: HashAlgorithm = Sha1AlgorithmImpl()


def get_algorithm(name: str) -> HashAlgorithm:
    try:
        return ALGORITHMS[name]()
    except KeyError:
        raise ValueError(f"Unknown hash algorithm: '{name}'") from None


def pad_width(algorithm: HashAlgorithm) -> int:
    """
    Column width of a child hash in a directory listing: hex digest, a space and
    the longest type name fit in it (48 for SHA-1).
    """
    return algorithm.digest_size * 2 + 8


class FilterChain:
    """
    Extension -> ordered filter commands. Each command receives the previous
    one's output; the last output is what gets hashed.
    """

    def __init__(self, filters: Optional[Dict[str, List[str]]] = None, on_exit: Optional[ExitCallback] = None):
        self.filters = filters or {}
        self.on_exit = on_exit

    def __bool__(self) -> bool:
        return bool(self.filters)

    def commands_for(self, extension: str) -> List[str]:
        return self.filters.get(extension, [])

    def apply(self, stream: ByteStream, extension: str) -> ByteStream:
        for command in self.commands_for(extension):
            stream = stream.pipe(command, on_exit=self.on_exit)
        return stream


class HasherImpl:
    """
    Hashes byte streams and regular files with a configured algorithm.
    Files are streamed through the progress sink, then through the filters
    selected by their extension, then into the digest.
    """

    def __init__(self, algorithm: Optional[HashAlgorithm] = None, filters: Optional[FilterChain] = None):
        self.algorithm = algorithm or DEFAULT_ALGORITHM
        self.filters = filters or FilterChain()

    def digest(self, stream: ByteStream) -> str:
        return stream.digest(self.algorithm)

    def hash_file(self, file, progress: Optional[ProgressSink] = None) -> str:
        """
        Args:
            file: RegularFile node (anything with read(), extension and path)
            progress: Optional sink receiving the raw byte counts read from disk

        Raises:
            VanishedFile: If the file disappeared before or while reading
            FilterLaunchError: If a configured filter cannot be started
        """
        data = file.read()
        if progress is not None:
            data = data.tap(progress.add)
        data = self.filters.apply(data, file.extension)
        try:
            return data.digest(self.algorithm)
        except FileNotFoundError as e:
            raise VanishedFile(file.path) from e
