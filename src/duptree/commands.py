"""
Unified command orchestrator for duplicate search and resolution.
This is the SINGLE source of truth for the workflow — the CLI and scripts both go through it.
"""
import logging
import os
import time
from typing import List, Optional, Tuple

from duptree.core.models import FingerprintStats, SearchParams, Stage
from duptree.core.process import ExitCallback
from duptree.core.tree import Node, DeletionCallback
from duptree.core.registry import DuplicateRegistry
from duptree.core.resolver import ResolutionLoop, State, GroupCallback
from duptree.core.interfaces import ChoiceReader
from duptree.core.stages import FingerprintEngine, ProgressCallback, ProgressFactory

logger = logging.getLogger(__name__)


class DuplicateSearchCommand:
    """
    Orchestrates the entire workflow:
    1. Scan every root path into a node tree
    2. Fingerprint the nodes and group them by content hash
    3. Optionally walk the groups interactively and delete redundant copies

    Usage:
        params = SearchParams(paths=["/data"])
        command = DuplicateSearchCommand()
        registry, stats = command.execute(params, progress_factory=make_progress)
        command.resolve(choose=read_option)
    """

    def __init__(self):
        self._params: Optional[SearchParams] = None
        self._roots: List[Node] = []
        self._engine: Optional[FingerprintEngine] = None
        self._registry: Optional[DuplicateRegistry] = None

    def scan(self, params: SearchParams) -> List[Node]:
        """
        Builds one tree per root path.

        Raises:
            UnsupportedFileType: If an entry of unknown kind is found
            OSError: If a path cannot be read
        """
        roots = []
        for path in self._distinct_roots(params.paths):
            logger.debug(f"Scanning: {path}")
            roots.append(Node.create(path))
        self._roots = roots
        return roots

    def execute(
            self,
            params: SearchParams,
            progress_callback: Optional[ProgressCallback] = None,
            progress_factory: Optional[ProgressFactory] = None,
            on_filter_exit: Optional[ExitCallback] = None
    ) -> Tuple[DuplicateRegistry, FingerprintStats]:
        """
        Scan and fingerprint with given parameters.

        Args:
            params: Validated search parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            progress_factory: (bytes to hash) -> ProgressSink, for byte-level rate/ETA
            on_filter_exit: (command, returncode, stderr) -> None, after each filter run

        Returns:
            Tuple of (registry, statistics)
        """
        self._params = params
        stats = FingerprintStats()
        start = time.time()

        stats.notify_stage_start(Stage.SCAN.value)
        roots = self.scan(params)
        nodes = [node for root in roots for node in root.flatten()]
        stats.node_count = len(nodes)
        stats.total_size = sum(root.size() for root in roots)
        stats.update_stage(Stage.SCAN.value, len(roots), len(nodes), time.time() - start)

        if progress_callback:
            progress_callback(Stage.SCAN.value, len(nodes), None)

        self._engine = FingerprintEngine.from_params(params, on_filter_exit=on_filter_exit)
        self._registry = self._engine.find_duplicates(
            nodes,
            stats=stats,
            progress_factory=progress_factory,
            progress_callback=progress_callback
        )

        stats.total_time = time.time() - start
        return self._registry, stats

    def resolve(
            self,
            choose: ChoiceReader,
            on_deleted: Optional[DeletionCallback] = None,
            on_group: Optional[GroupCallback] = None
    ) -> State:
        """Runs the interactive resolution loop over the last execute() result."""
        if self._registry is None or self._engine is None:
            raise RuntimeError("execute() must run before resolve()")

        loop = ResolutionLoop(
            self._registry,
            self._engine.rehash,
            choose,
            trash=self._params.trash,
            on_deleted=on_deleted,
            on_group=on_group,
        )
        return loop.run()

    @property
    def roots(self) -> List[Node]:
        return list(self._roots)

    @property
    def registry(self) -> Optional[DuplicateRegistry]:
        return self._registry

    @staticmethod
    def _normalize_root(path: str) -> str:
        """'photos/' -> 'photos', '/' stays '/'."""
        stripped = path.rstrip(os.sep)
        return stripped or path

    @staticmethod
    def _canonical(path: str) -> str:
        """
        Absolute path with symlinks resolved in the parent directories only.
        A symlink given as a root stays a link, so it is never confused with its target.
        """
        absolute = os.path.abspath(path)
        parent, name = os.path.split(absolute)
        return os.path.join(os.path.realpath(parent), name)

    @classmethod
    def _distinct_roots(cls, paths: List[str]) -> List[str]:
        """
        Drops roots that repeat another root or lie inside one, so that no
        entry is scanned twice. First occurrence wins for exact repeats.

        ['d', 'd/', 'd/sub', 'e'] -> ['d', 'e']
        """
        candidates = []
        for path in paths:
            normalized = cls._normalize_root(path)
            candidates.append((normalized, cls._canonical(normalized)))

        def inside(child: str, parent: str) -> bool:
            return child != parent and child.startswith(parent.rstrip(os.sep) + os.sep)

        kept = []
        seen = set()
        for path, canonical in candidates:
            if canonical in seen:
                logger.warning(f"Skipping repeated path: {path}")
                continue
            if any(inside(canonical, other) for _, other in candidates):
                logger.warning(f"Skipping {path}: already inside another scanned path")
                continue
            seen.add(canonical)
            kept.append(path)
        return kept
