"""
Core duplicate search engine: tree model, byte streams, filters, fingerprints,
registry and the interactive resolution loop.

This package contains the performance-critical foundation of duptree:
- Node and subclasses: eager snapshot of filesystem trees with structural keys
- ByteStream: lazy chunked byte sequences, piped through filter commands on demand
- HasherImpl + algorithms: SHA-1 (default), SHA-256 or xxHash128 digests
- FingerprintEngine: key pruning -> leaf hashes -> composite (Merkle-style) hashes
- DuplicateRegistry: groups by content hash, wasted-space ordering, reverification
- ResolutionLoop: state machine that deletes redundant copies on request

All components are pure Python with no terminal dependencies — suitable for CLI and scripting.
"""

from .errors import DuptreeError, UnsupportedFileType, FilterLaunchError, VanishedFile, InvalidChoice
from .models import (
    NodeType, Stage, StructuralKey, ContentHash, HashDrift, ReverifyReport,
    GroupReport, FingerprintStats, SearchParams)
from .stream import ByteStream
from .hasher import HasherImpl, FilterChain, Sha1AlgorithmImpl, Sha256AlgorithmImpl, XXHashAlgorithmImpl, get_algorithm
from .tree import (
    Node, RegularFile, Directory, SymbolicLink, NamedPipe, CharacterDevice, BlockDevice, Socket, Unknown)
from .grouper import NodeGrouperImpl
from .registry import DuplicateRegistry
from .stages import KeyPruningStage, LeafHashStage, CompositeHashStage, FingerprintEngine
from .resolver import ResolutionLoop, Reviewing, Done, Quit, GroupView

__all__ = [
    "DuptreeError",
    "UnsupportedFileType",
    "FilterLaunchError",
    "VanishedFile",
    "InvalidChoice",
    "NodeType",
    "Stage",
    "StructuralKey",
    "ContentHash",
    "HashDrift",
    "ReverifyReport",
    "GroupReport",
    "FingerprintStats",
    "SearchParams",
    "ByteStream",
    "HasherImpl",
    "FilterChain",
    "Sha1AlgorithmImpl",
    "Sha256AlgorithmImpl",
    "XXHashAlgorithmImpl",
    "get_algorithm",
    "Node",
    "RegularFile",
    "Directory",
    "SymbolicLink",
    "NamedPipe",
    "CharacterDevice",
    "BlockDevice",
    "Socket",
    "Unknown",
    "NodeGrouperImpl",
    "DuplicateRegistry",
    "KeyPruningStage",
    "LeafHashStage",
    "CompositeHashStage",
    "FingerprintEngine",
    "ResolutionLoop",
    "Reviewing",
    "Done",
    "Quit",
    "GroupView",
]
