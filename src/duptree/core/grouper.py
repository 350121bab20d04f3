"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/grouper.py
Grouping helpers for tree nodes: by structural key, and collection of the
regular files that need their bytes hashed.
"""

from typing import List, Dict, Any, Callable, Iterable
from collections import defaultdict

from duptree.core.models import StructuralKey
from duptree.core.tree import Node, RegularFile


class NodeGrouperImpl:
    """Groups nodes by computed keys, keeping only groups that could hold duplicates."""

    def group_by_key(self, nodes: Iterable[Node]) -> Dict[StructuralKey, List[Node]]:
        """Groups nodes by their structural key (type + size/shape/target)."""
        return self._group_by(nodes, lambda n: n.key())

    @staticmethod
    def collect_files(nodes: Iterable[Node]) -> List[RegularFile]:
        """
        Every regular file in the subtrees of `nodes`, each path once, sorted by path
        so that hashing order is the same on every run over an unchanged tree.
        """
        files: Dict[str, RegularFile] = {}
        for node in nodes:
            for descendant in node.flatten():
                if isinstance(descendant, RegularFile):
                    files[descendant.path] = descendant
        return [files[path] for path in sorted(files)]

    @staticmethod
    def _group_by(nodes: Iterable[Node], key_func: Callable[[Node], Any]) -> Dict[Any, List[Node]]:
        """
        Helper method to group nodes by any computed key.
        Args:
            nodes: Nodes to group
            key_func: Function that computes a hashable key from a Node
        Returns:
            Dict[key, List[Node]] with only the groups of 2+ nodes, in first-seen order
        """
        groups = defaultdict(list)
        for node in nodes:
            groups[key_func(node)].append(node)

        return {key: group for key, group in groups.items() if len(group) >= 2}
