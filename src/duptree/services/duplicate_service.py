"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/duplicate_service.py
Presentation helpers over scan results: scan summary, duplicate report lines
and a box-drawing dump of a scanned tree.
"""
from typing import Iterator, List, Tuple

from duptree.core.models import GroupReport, NodeType
from duptree.utils.convert_utils import ConvertUtils


class DuplicateService:
    @staticmethod
    def scan_summary(roots) -> Tuple[int, int]:
        """
        Total node count and total size of the scanned roots.

        Args:
            roots: Root nodes as returned by Node.create()

        Returns:
            (node count including every descendant, size in bytes)
        """
        return sum(root.count() for root in roots), sum(root.size() for root in roots)

    @staticmethod
    def total_duplicated_bytes(rows: List[GroupReport]) -> int:
        """
        Sum of duplicated bytes over report rows. Nested groups (a directory and
        the files inside it) are both counted, so this is an upper bound.
        """
        return sum(row.duplicated_bytes for row in rows)

    @staticmethod
    def format_report(rows: List[GroupReport]) -> List[str]:
        """One header line per group followed by its member paths, blank line between groups."""
        lines = []
        total = len(rows)
        for idx, row in enumerate(rows, 1):
            duplicated = ConvertUtils.bytes_to_human(row.duplicated_bytes)
            lines.append(f"{idx}/{total}: [{row.hash}] ({row.count} copies, {duplicated} duplicated)")
            for path in row.paths:
                lines.append(f"   {path}")
            lines.append("")
        return lines

    @staticmethod
    def render_tree(node, _prefix: str = "", _indent: str = "", _is_root: bool = True) -> Iterator[str]:
        """
        Draws a scanned tree, one line per node:

            ╷ [dir 2] photos
            ├─╴ [file 1.00KB] a.jpg
            ╰─╴ [link: a.jpg] b.jpg
        """
        children = getattr(node, "children", [])

        if node.type == NodeType.SYMLINK:
            label = f"{node.type.value}: {node.target}"
        elif node.type == NodeType.DIRECTORY:
            label = f"{node.type.value} {len(children)}"
        elif node.type == NodeType.FILE:
            label = f"{node.type.value} {ConvertUtils.bytes_to_human(node.size())}"
        else:
            label = node.type.value

        if children and not _is_root:
            marker = "┐"
        elif children:
            marker = "╷"
        elif not _is_root:
            marker = "╴"
        else:
            marker = "·"
        yield f"{_prefix}{marker} [{label}] {node.name}"

        last = len(children) - 1
        for k, child in enumerate(children):
            branch = "╰─" if k == last else "├─"
            guide = "  " if k == last else "│ "
            yield from DuplicateService.render_tree(child, _indent + branch, _indent + guide, False)
