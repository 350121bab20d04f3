"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/tree.py
In-memory snapshot of a filesystem tree.

CLASS HIERARCHY
---------------
Node            : Base class: name, parent, path, key, hash, delete, rebuild
RegularFile     : Size from lstat, content is the file's bytes
Directory       : Owns its children, caches total size and descendant count
SymbolicLink    : Target captured at construction, never followed
NamedPipe, CharacterDevice, BlockDevice, Socket, Unknown : Empty content

A node's type, symlink target and children are fixed when it is built. To see
what is on disk now, build a new node with rebuild(); nodes are never updated
in place. Full paths are derived from the parent chain on every call, never
stored.
"""

import logging
import os
import stat
from typing import Callable, Dict, Iterator, List, Mapping, Optional

from duptree.core.errors import UnsupportedFileType
from duptree.core.hasher import DEFAULT_ALGORITHM, pad_width
from duptree.core.interfaces import HashAlgorithm
from duptree.core.models import NodeType, StructuralKey, ContentHash
from duptree.core.stream import ByteStream
from duptree.services.file_service import FileService

logger = logging.getLogger(__name__)

DeletionCallback = Callable[['Node'], None]


class Node:
    """
    One filesystem entry. Use Node.create() rather than the constructors:
    it inspects the entry and picks the matching subclass.
    """
    type: NodeType = NodeType.UNKNOWN

    def __init__(self, name: str, parent: Optional['Directory'] = None):
        self.name = name
        self.parent = parent

    @staticmethod
    def create(name: str, parent: Optional['Directory'] = None) -> 'Node':
        """
        Builds the node for `name` (a full path for roots, a single segment under `parent`).
        Directories are built eagerly with all their descendants.

        Raises:
            UnsupportedFileType: If the entry is not of a known kind
            OSError: If the entry cannot be inspected
        """
        path = parent.join(name) if parent is not None else name
        mode = os.lstat(path).st_mode

        node_class = _class_for_mode(mode)
        if node_class is None:
            raise UnsupportedFileType(path, mode)
        return node_class(name, parent)

    # =============================
    # Identity
    # =============================

    @property
    def path(self) -> str:
        if self.parent is not None:
            return self.parent.join(self.name)
        return self.name

    @property
    def extension(self) -> str:
        """'.jpg' for 'IMG.JPG', '' for 'Makefile'."""
        return os.path.splitext(self.name)[1].lower()

    def size(self) -> int:
        return 0

    def count(self) -> int:
        """This node plus all of its descendants."""
        return 1

    def key(self) -> StructuralKey:
        return StructuralKey(self.type)

    def flatten(self) -> Iterator['Node']:
        """Pre-order walk: this node, then (for directories) every descendant."""
        yield self

    # =============================
    # Content and hashing
    # =============================

    def content(self, leaf_hashes: Mapping[str, str], algorithm: HashAlgorithm = DEFAULT_ALGORITHM) -> ByteStream:
        return ByteStream.empty()

    def hash(
            self,
            leaf_hashes: Mapping[str, str],
            algorithm: HashAlgorithm = DEFAULT_ALGORITHM,
            cache: Optional[Dict[int, ContentHash]] = None
    ) -> ContentHash:
        """
        Content hash of this node.

        Args:
            leaf_hashes: path -> hex digest of already hashed regular files
            algorithm: Digest algorithm
            cache: Memo of composite hashes keyed by node identity, valid for one pass
        """
        if cache is not None:
            cached = cache.get(id(self))
            if cached is not None:
                return cached
        result = ContentHash(self._digest(leaf_hashes, algorithm, cache), self.type)
        if cache is not None:
            cache[id(self)] = result
        return result

    def _digest(self, leaf_hashes, algorithm, cache) -> str:
        return self.content(leaf_hashes, algorithm).digest(algorithm)

    # =============================
    # Filesystem state
    # =============================

    def exists(self) -> bool:
        """True while something (even a dangling symlink) is still at this path."""
        return os.path.lexists(self.path)

    def rebuild(self) -> 'Node':
        """Fresh snapshot of whatever is at this node's path now."""
        return Node.create(self.name, self.parent)

    def delete(self, trash: bool = False, on_deleted: Optional[DeletionCallback] = None) -> None:
        """
        Removes this entry from disk. Directories are emptied bottom-up first.
        With trash=True the entry is moved to the system trash as a whole instead.
        """
        path = self.path
        if trash:
            FileService.move_to_trash(path)
        else:
            self._remove()
        logger.info(f'deleted "{path}"')
        if on_deleted is not None:
            on_deleted(self)

    def _remove(self) -> None:
        FileService.remove_file(self.path)

    def __repr__(self):
        return f"<{type(self).__name__} path={self.path}>"


class RegularFile(Node):
    type = NodeType.FILE

    def __init__(self, name: str, parent: Optional['Directory'] = None):
        super().__init__(name, parent)
        self._size = os.lstat(self.path).st_size

    def size(self) -> int:
        return self._size

    def key(self) -> StructuralKey:
        return StructuralKey(self.type, self._size)

    def read(self) -> ByteStream:
        """Raw, unfiltered bytes of the file."""
        return ByteStream.from_file(self.path)

    def content(self, leaf_hashes: Mapping[str, str], algorithm: HashAlgorithm = DEFAULT_ALGORITHM) -> ByteStream:
        return self.read()

    def _digest(self, leaf_hashes, algorithm, cache) -> str:
        known = leaf_hashes.get(self.path)
        if known is not None:
            return known
        return super()._digest(leaf_hashes, algorithm, cache)


class Directory(Node):
    type = NodeType.DIRECTORY

    def __init__(self, name: str, parent: Optional['Directory'] = None):
        super().__init__(name, parent)
        self.children: List[Node] = []
        self._total_size = 0
        self._total_count = 1

        # Sorted so that equal directories list their children identically on any volume
        for entry in sorted(os.listdir(self.path)):
            child = Node.create(entry, self)
            self._total_size += child.size()
            self._total_count += child.count()
            self.children.append(child)

        logger.debug(f"Scanned directory: {self.path} ({len(self.children)} entries)")

    def join(self, name: str) -> str:
        return self.path + os.sep + name

    def size(self) -> int:
        return self._total_size

    def count(self) -> int:
        return self._total_count

    def key(self) -> StructuralKey:
        return StructuralKey(self.type, (self._total_size, len(self.children), self._total_count))

    def flatten(self) -> Iterator[Node]:
        yield self
        for child in self.children:
            yield from child.flatten()

    def content(self, leaf_hashes: Mapping[str, str], algorithm: HashAlgorithm = DEFAULT_ALGORITHM) -> ByteStream:
        return self._listing(leaf_hashes, algorithm, None)

    def _listing(self, leaf_hashes, algorithm, cache) -> ByteStream:
        """One '<padded child hash> <child name>\\n' line per child."""
        width = pad_width(algorithm)

        def lines():
            for child in self.children:
                child_hash = str(child.hash(leaf_hashes, algorithm, cache)).ljust(width)
                yield f"{child_hash} {child.name}\n".encode("utf-8", "surrogateescape")
        return ByteStream.wrap(lines)

    def _digest(self, leaf_hashes, algorithm, cache) -> str:
        return self._listing(leaf_hashes, algorithm, cache).digest(algorithm)

    def _remove(self) -> None:
        for child in self.children:
            child._remove()
        FileService.remove_directory(self.path)


class SymbolicLink(Node):
    type = NodeType.SYMLINK

    def __init__(self, name: str, parent: Optional['Directory'] = None):
        super().__init__(name, parent)
        self.target = os.readlink(self.path)

    def key(self) -> StructuralKey:
        return StructuralKey(self.type, self.target)

    def content(self, leaf_hashes: Mapping[str, str], algorithm: HashAlgorithm = DEFAULT_ALGORITHM) -> ByteStream:
        return ByteStream.from_bytes(os.fsencode(self.target))


class NamedPipe(Node):
    type = NodeType.FIFO


class CharacterDevice(Node):
    type = NodeType.CHAR_DEVICE


class BlockDevice(Node):
    type = NodeType.BLOCK_DEVICE


class Socket(Node):
    type = NodeType.SOCKET


class Unknown(Node):
    type = NodeType.UNKNOWN


def _class_for_mode(mode: int):
    if stat.S_ISREG(mode):
        return RegularFile
    if stat.S_ISDIR(mode):
        return Directory
    if stat.S_ISLNK(mode):
        return SymbolicLink
    if stat.S_ISFIFO(mode):
        return NamedPipe
    if stat.S_ISCHR(mode):
        return CharacterDevice
    if stat.S_ISBLK(mode):
        return BlockDevice
    if stat.S_ISSOCK(mode):
        return Socket
    # Solaris doors, event ports and BSD whiteouts
    if stat.S_ISDOOR(mode) or stat.S_ISPORT(mode) or stat.S_ISWHT(mode):
        return Unknown
    return None
