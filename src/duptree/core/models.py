"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Value objects, parameters and statistics for the duplicate search engine.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Tuple, Union, Callable, Iterable
from enum import Enum
import logging

logger = logging.getLogger(__name__)


# =============================
# Enums
# =============================

class NodeType(str, Enum):
    """
    Closed set of filesystem entry kinds a Node can represent.
    Values are the short names used inside content hashes.
    """
    FILE = "file"
    DIRECTORY = "dir"
    SYMLINK = "link"
    FIFO = "fifo"
    CHAR_DEVICE = "char"
    BLOCK_DEVICE = "block"
    SOCKET = "socket"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        """Human-readable name for reports and deletion notices."""
        mapping = {
            NodeType.FILE: "file",
            NodeType.DIRECTORY: "directory",
            NodeType.SYMLINK: "symbolic link",
            NodeType.FIFO: "named pipe",
            NodeType.CHAR_DEVICE: "character device",
            NodeType.BLOCK_DEVICE: "block device",
            NodeType.SOCKET: "socket",
            NodeType.UNKNOWN: "unknown entry",
        }
        return mapping.get(self, self.value)

    def __str__(self) -> str:
        return self.value


class Stage(str, Enum):
    SCAN = "Scan"
    PRUNE = "Key pruning"
    LEAF = "Leaf hashing"
    COMPOSITE = "Composite hashing"


SUPPORTED_ALGORITHMS = ("sha1", "sha256", "xxh128")


# ======================
#  Core Value Objects
# ======================

@dataclass(frozen=True)
class StructuralKey:
    """
    Cheap fingerprint computed from metadata only.
    Different keys guarantee different content; equal keys only make a duplicate possible.

    discriminant:
        file      -> size
        directory -> (total size, child count, total descendant count)
        symlink   -> target string
        other     -> ()
    """
    type: NodeType
    discriminant: Union[int, str, Tuple[int, ...]] = ()

    def __str__(self) -> str:
        if self.discriminant == ():
            return self.type.value
        if isinstance(self.discriminant, tuple):
            return f"{self.type.value} " + " ".join(str(v) for v in self.discriminant)
        return f"{self.type.value} {self.discriminant}"


@dataclass(frozen=True)
class ContentHash:
    """
    Content fingerprint of a node: hex digest plus node type.
    Rendered as "<digest> <type>", the form embedded in directory listings.
    """
    digest: str
    type: NodeType

    def __str__(self) -> str:
        return f"{self.digest} {self.type.value}"

    def short(self, length: int = 12) -> str:
        return f"{self.digest[:length]} {self.type.value}"


@dataclass(frozen=True)
class HashDrift:
    """A node whose content hash changed since the scan and was moved to another group."""
    path: str
    old_hash: ContentHash
    new_hash: ContentHash


@dataclass
class ReverifyReport:
    """Outcome of re-checking one duplicate group against the filesystem."""
    vanished: List[str] = field(default_factory=list)
    drifted: List[HashDrift] = field(default_factory=list)
    unreadable: Dict[str, str] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.vanished or self.drifted or self.unreadable)


@dataclass(frozen=True)
class GroupReport:
    """One row of the final duplicate report."""
    hash: ContentHash
    count: int
    paths: List[str]
    duplicated_bytes: int

    def __repr__(self):
        return f"<GroupReport hash={self.hash.short()}, count={self.count}, duplicated={self.duplicated_bytes}>"


# ======================
#  Statistics
# ======================

class FingerprintStats:
    """
    Statistics collected while scanning and fingerprinting.
    """
    def __init__(self):
        self.total_time: float = 0.0
        self.node_count: int = 0
        self.total_size: int = 0
        self.stage_stats: Dict[str, Dict[str, Union[int, float]]] = {}
        self._listeners: List[Callable[[str, Dict], None]] = []

    def add_listener(self, listener: Callable[[str, Dict], None]):
        """Adds a listener to receive updates when stats are updated."""
        self._listeners.append(listener)

    def update_stage(
            self,
            stage_name: str,
            nodes_in: int,
            nodes_out: int,
            duration: float,
            bytes_read: int = 0
    ) -> None:
        if stage_name not in self.stage_stats:
            self.stage_stats[stage_name] = {
                "in": 0,
                "out": 0,
                "bytes": 0,
                "time": 0.0
            }
        self.stage_stats[stage_name]["in"] += nodes_in
        self.stage_stats[stage_name]["out"] += nodes_out
        self.stage_stats[stage_name]["bytes"] += bytes_read
        self.stage_stats[stage_name]["time"] += duration

        self._notify(stage_name, self.stage_stats[stage_name])

    def notify_stage_start(self, stage_name: str):
        """Notifies listeners that a new stage has started."""
        self._notify(stage_name, {"status": "started"})

    def _notify(self, stage_name: str, payload: Dict) -> None:
        for listener in self._listeners:
            try:
                listener(stage_name, payload)
            except Exception as e:
                logger.warning(f"Error in stats event handler: {e}")

    def print_summary(self) -> str:
        lines = [
            "Fingerprint Statistics:",
            f"Scanned: {self.node_count} nodes, {self.total_size} bytes",
            f"Total Execution Time: {self.total_time:.3f}s\n",
            "Stage: IN / OUT / BYTES / TIME"
        ]

        for stage, data in self.stage_stats.items():
            lines.append(f"{stage}: {data['in']} / {data['out']} / {data['bytes']} / {data['time']:.3f}s")

        return "\n".join(lines)


# ======================
#  Parameters
# ======================

def normalize_extension(ext: str) -> str:
    """'JPG' -> '.jpg', '.Flac' -> '.flac', '' -> ''"""
    ext = ext.strip().lower()
    if ext and not ext.startswith('.'):
        ext = f".{ext}"
    return ext


@dataclass
class SearchParams:
    """Parameters for a duplicate search with validation."""
    paths: List[str]
    filters: Dict[str, List[str]] = field(default_factory=dict)
    algorithm: str = "sha1"
    workers: int = 1
    trash: bool = False
    prune: bool = True

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if not self.paths:
            raise ValueError("At least one path is required")

        if self.algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(
                f"Unsupported algorithm '{self.algorithm}'. "
                f"Valid options: {', '.join(SUPPORTED_ALGORITHMS)}"
            )

        if self.workers < 1:
            raise ValueError("Worker count must be at least 1")

        # Normalize filter extensions, keep command order
        normalized: Dict[str, List[str]] = {}
        for ext, commands in self.filters.items():
            key = normalize_extension(ext)
            if not key:
                raise ValueError("Filter extension cannot be empty")
            for command in commands:
                if not command or not command.strip():
                    raise ValueError(f"Empty filter command for '{key}'")
            normalized.setdefault(key, []).extend(commands)
        self.filters = normalized

    @property
    def pruning_enabled(self) -> bool:
        """Filtered content can match across different sizes, so pruning by key is unsound then."""
        return self.prune and not self.filters

    @staticmethod
    def parse_filter_specs(specs: Iterable[str]) -> Dict[str, List[str]]:
        """
        Parses "ext:command" strings into an extension -> commands mapping.
        Commands for the same extension keep their command-line order.
        """
        filters: Dict[str, List[str]] = {}
        for spec in specs:
            if ":" not in spec:
                raise ValueError(f"Invalid filter '{spec}', expected EXT:COMMAND")
            ext, command = spec.split(":", 1)
            filters.setdefault(ext, []).append(command)
        return filters

    @staticmethod
    def from_cli(
            paths: List[str],
            filter_specs: Iterable[str] = (),
            algorithm: str = "sha1",
            workers: int = 1,
            trash: bool = False,
            prune: bool = True,
    ) -> 'SearchParams':
        """Factory method to create params from raw command-line values."""
        return SearchParams(
            paths=list(paths),
            filters=SearchParams.parse_filter_specs(filter_specs),
            algorithm=algorithm,
            workers=workers,
            trash=trash,
            prune=prune,
        )
