"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/stages.py
Fingerprint pipeline: from scanned nodes to a registry of duplicate groups.

CLASS HIERARCHY
---------------
KeyPruningStage     : Drops nodes whose structural key is unique (cannot have a duplicate)
LeafHashStage       : Streams every surviving regular file into a digest (optionally filtered)
CompositeHashStage  : Hashes every surviving node from leaf hashes, registers it by hash
FingerprintEngine   : Runs the three stages and re-hashes nodes during reverification

STAGE CONTRACTS
---------------
Each stage implements `process()` which:
  • Accepts the output of the previous stage
  • Reports progress via callback (stage name, processed count, total count)
  • Updates FingerprintStats when given one

ORDERING
--------
• Leaf hashing walks files sorted by path, so progress is reproducible across runs
• With several workers, results are still consumed in path order and written to
  `leaf_hashes` by the calling thread only; the pool is joined before composite
  hashing starts, since a directory hash needs every descendant hash
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from duptree.core.errors import VanishedFile
from duptree.core.grouper import NodeGrouperImpl
from duptree.core.hasher import FilterChain, HasherImpl, get_algorithm
from duptree.core.interfaces import ProgressSink
from duptree.core.models import ContentHash, FingerprintStats, SearchParams, Stage
from duptree.core.process import ExitCallback
from duptree.core.registry import DuplicateRegistry
from duptree.core.stream import ByteStream
from duptree.core.tree import Node, RegularFile

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, Optional[int]], None]
ProgressFactory = Callable[[int], ProgressSink]


# =============================
# Individual Stages
# =============================
class KeyPruningStage:
    def __init__(self, grouper: Optional[NodeGrouperImpl] = None):
        self.grouper = grouper or NodeGrouperImpl()

    def process(
            self,
            nodes: List[Node],
            progress_callback: Optional[ProgressCallback] = None
    ) -> List[Node]:
        """
        Keeps nodes whose structural key is shared by at least one other node.
        Scan order is preserved.
        """
        shared_keys = set(self.grouper.group_by_key(nodes))
        survivors = [node for node in nodes if node.key() in shared_keys]

        if progress_callback:
            progress_callback(Stage.PRUNE.value, len(nodes), len(nodes))

        logger.debug(f"Key pruning kept {len(survivors)} of {len(nodes)} nodes")
        return survivors


class LeafHashStage:
    def __init__(self, hasher: HasherImpl, workers: int = 1):
        self.hasher = hasher
        self.workers = workers
        self.vanished: List[str] = []

    def process(
            self,
            files: List[RegularFile],
            leaf_hashes: Dict[str, str],
            progress: Optional[ProgressSink] = None,
            progress_callback: Optional[ProgressCallback] = None
    ) -> Dict[str, str]:
        """
        Hashes `files` (already unique and sorted by path) into `leaf_hashes`.
        Files that disappeared since the scan are logged and left out.
        """
        total = len(files)

        def hash_one(file: RegularFile) -> Optional[str]:
            try:
                return self.hasher.hash_file(file, progress)
            except VanishedFile as e:
                logger.warning(str(e))
                return None

        if self.workers > 1:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="LeafHasher") as executor:
                results = executor.map(hash_one, files)
                self._collect(files, results, leaf_hashes, total, progress_callback)
        else:
            results = (hash_one(file) for file in files)
            self._collect(files, results, leaf_hashes, total, progress_callback)

        return leaf_hashes

    def _collect(self, files, results, leaf_hashes, total, progress_callback) -> None:
        for processed, (file, digest) in enumerate(zip(files, results), 1):
            if digest is None:
                self.vanished.append(file.path)
            else:
                leaf_hashes[file.path] = digest
            if progress_callback:
                progress_callback(Stage.LEAF.value, processed, total)


class CompositeHashStage:
    def __init__(self, hasher: HasherImpl):
        self.hasher = hasher

    def process(
            self,
            nodes: List[Node],
            leaf_hashes: Dict[str, str],
            registry: DuplicateRegistry,
            progress_callback: Optional[ProgressCallback] = None
    ) -> DuplicateRegistry:
        """
        Hashes every node and registers it under its hash.
        Directory hashes reuse the hashes of their children computed in the same pass.
        """
        cache: Dict[int, ContentHash] = {}
        total = len(nodes)

        for processed, node in enumerate(nodes, 1):
            try:
                content_hash = node.hash(leaf_hashes, self.hasher.algorithm, cache)
            except (VanishedFile, FileNotFoundError) as e:
                logger.warning(f'Skipping "{node.path}": {e}')
                continue
            registry.register(node, content_hash)

            if progress_callback:
                progress_callback(Stage.COMPOSITE.value, processed, total)

        return registry


# =============================
# Engine
# =============================
class FingerprintEngine:
    """
    Owns the path -> digest table of regular files for the whole run.

    Usage:
        engine = FingerprintEngine.from_params(params)
        registry = engine.find_duplicates(nodes)
        ...
        fresh_hash = engine.rehash(node.rebuild())
    """

    def __init__(
            self,
            hasher: Optional[HasherImpl] = None,
            grouper: Optional[NodeGrouperImpl] = None,
            prune: bool = True,
            workers: int = 1
    ):
        self.hasher = hasher or HasherImpl()
        self.grouper = grouper or NodeGrouperImpl()
        self.prune = prune
        self.leaf_hashes: Dict[str, str] = {}
        self.pruning_stage = KeyPruningStage(self.grouper)
        self.leaf_stage = LeafHashStage(self.hasher, workers)
        self.composite_stage = CompositeHashStage(self.hasher)

    @classmethod
    def from_params(cls, params: SearchParams, on_filter_exit: Optional[ExitCallback] = None) -> 'FingerprintEngine':
        hasher = HasherImpl(
            algorithm=get_algorithm(params.algorithm),
            filters=FilterChain(params.filters, on_exit=on_filter_exit),
        )
        return cls(hasher=hasher, prune=params.pruning_enabled, workers=params.workers)

    def find_duplicates(
            self,
            nodes: List[Node],
            stats: Optional[FingerprintStats] = None,
            progress_factory: Optional[ProgressFactory] = None,
            progress_callback: Optional[ProgressCallback] = None
    ) -> DuplicateRegistry:
        """
        Run the full pipeline over flattened nodes.

        Args:
            nodes: Every node of the scanned trees (pre-order)
            stats: Optional statistics collector
            progress_factory: Builds a byte-level progress sink from the number of bytes to hash
            progress_callback: (stage, current, total) notifications

        Returns:
            Registry of every surviving node by content hash
        """
        registry = DuplicateRegistry()

        # Stage 1: pruning by structural key
        candidates = nodes
        if self.prune:
            candidates = self._timed(
                stats, Stage.PRUNE, len(nodes),
                lambda: self.pruning_stage.process(nodes, progress_callback)
            )
        else:
            logger.debug("Key pruning disabled")

        # Stage 2: leaf hashes
        files = self.grouper.collect_files(candidates)
        total_bytes = sum(f.size() for f in files)
        logger.info(f"Need to hash {len(files)} files, {total_bytes} bytes")
        progress = progress_factory(total_bytes) if progress_factory else None

        self._timed(
            stats, Stage.LEAF, len(files),
            lambda: self.leaf_stage.process(files, self.leaf_hashes, progress, progress_callback),
            bytes_read=total_bytes
        )

        # Stage 3: composite hashes
        self._timed(
            stats, Stage.COMPOSITE, len(candidates),
            lambda: self.composite_stage.process(candidates, self.leaf_hashes, registry, progress_callback)
        )

        return registry

    def rehash(self, node: Node) -> ContentHash:
        """
        Fresh content hash of a (rebuilt) node: every regular file below it is read
        again and its entry in the leaf table replaced.

        Raises:
            VanishedFile: If a file disappears while being read
        """
        for file in self.grouper.collect_files([node]):
            self.leaf_hashes[file.path] = self.hasher.hash_file(file)
        return node.hash(self.leaf_hashes, self.hasher.algorithm, {})

    def content(self, node: Node) -> ByteStream:
        """
        The exact bytes `node` is hashed from. Files come out of their filters;
        directory listings are built over filtered hashes of every file below.
        """
        if isinstance(node, RegularFile):
            return self.hasher.filters.apply(node.read(), node.extension)
        for file in self.grouper.collect_files([node]):
            self.leaf_hashes[file.path] = self.hasher.hash_file(file)
        return node.content(self.leaf_hashes, self.hasher.algorithm)

    @staticmethod
    def _timed(stats, stage: Stage, nodes_in: int, run, bytes_read: int = 0):
        if stats is not None:
            stats.notify_stage_start(stage.value)
        start = time.time()
        result = run()
        if stats is not None:
            nodes_out = len(result) if isinstance(result, (list, dict, DuplicateRegistry)) else 0
            stats.update_stage(stage.value, nodes_in, nodes_out, time.time() - start, bytes_read)
        return result
