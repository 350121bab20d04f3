"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/registry.py
Duplicate registry: content hash -> nodes sharing it, with space accounting
and re-verification against the live filesystem.
"""

import logging
from typing import Callable, Dict, Iterator, List

from duptree.core.errors import UnsupportedFileType, VanishedFile
from duptree.core.models import ContentHash, GroupReport, HashDrift, ReverifyReport
from duptree.core.tree import Node

logger = logging.getLogger(__name__)

Rehash = Callable[[Node], ContentHash]


class DuplicateRegistry:
    """
    Groups nodes by content hash. Groups keep insertion order, which breaks ties
    when ordering by wasted space. Only groups of 2+ nodes count as duplicates.
    """

    def __init__(self):
        self._groups: Dict[ContentHash, List[Node]] = {}

    def register(self, node: Node, content_hash: ContentHash) -> None:
        """Adds `node` to its group. A path already in the group is never added twice."""
        members = self._groups.setdefault(content_hash, [])
        path = node.path
        if any(member.path == path for member in members):
            logger.debug(f'"{path}" is already registered under {content_hash.short()}')
            return
        members.append(node)

    def members(self, content_hash: ContentHash) -> List[Node]:
        return list(self._groups.get(content_hash, []))

    def discard(self, content_hash: ContentHash) -> None:
        self._groups.pop(content_hash, None)

    def duplicated_bytes(self, content_hash: ContentHash) -> int:
        """Space reclaimed by keeping a single copy: size * (count - 1)."""
        members = self._groups.get(content_hash, [])
        if len(members) < 2:
            return 0
        return members[0].size() * (len(members) - 1)

    def groups_by_descending_waste(self) -> List[ContentHash]:
        """Hashes of all 2+ member groups, most duplicated bytes first (stable)."""
        candidates = [h for h, members in self._groups.items() if len(members) >= 2]
        return sorted(candidates, key=self.duplicated_bytes, reverse=True)

    def reverify(self, content_hash: ContentHash, rehash: Rehash) -> ReverifyReport:
        """
        Re-checks every member of a group against the filesystem.

        Members that no longer exist, or can no longer be read, are dropped. Survivors
        are rebuilt and re-hashed; those whose hash changed move to the group of their
        new hash. The group keeps the fresh snapshots of the members that still match.
        """
        report = ReverifyReport()
        kept: List[Node] = []
        moved = []

        for node in self._groups.get(content_hash, []):
            path = node.path
            if not node.exists():
                logger.info(f'"{path}" no longer exists')
                report.vanished.append(path)
                continue

            try:
                fresh = node.rebuild()
                new_hash = rehash(fresh)
            except (VanishedFile, FileNotFoundError) as e:
                logger.info(f'"{path}" no longer exists ({e})')
                report.vanished.append(path)
                continue
            except (OSError, UnsupportedFileType) as e:
                # e.g. permissions changed, or a file was replaced by a directory
                logger.info(f'"{path}" cannot be read: {e}')
                report.unreadable[path] = str(e)
                continue

            if new_hash != content_hash:
                logger.info(f'"{path}" hash has changed')
                report.drifted.append(HashDrift(path, content_hash, new_hash))
                moved.append((fresh, new_hash))
            else:
                kept.append(fresh)

        if content_hash in self._groups:
            self._groups[content_hash] = kept
        for fresh, new_hash in moved:
            self.register(fresh, new_hash)

        return report

    def report(self) -> List[GroupReport]:
        """The duplicate groups in descending-waste order, ready for display."""
        rows = []
        for content_hash in self.groups_by_descending_waste():
            members = self._groups[content_hash]
            rows.append(GroupReport(
                hash=content_hash,
                count=len(members),
                paths=[node.path for node in members],
                duplicated_bytes=self.duplicated_bytes(content_hash),
            ))
        return rows

    def __contains__(self, content_hash: ContentHash) -> bool:
        return len(self._groups.get(content_hash, [])) >= 2

    def __iter__(self) -> Iterator[ContentHash]:
        return iter(self.groups_by_descending_waste())

    def __len__(self) -> int:
        """Number of duplicate groups (2+ members)."""
        return sum(1 for members in self._groups.values() if len(members) >= 2)

    def __repr__(self):
        return f"<DuplicateRegistry groups={len(self)}>"
