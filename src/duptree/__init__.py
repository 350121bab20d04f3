"""
duptree — find duplicate files and whole duplicate directory trees.

Core features:
- Merkle-style content hashes: a directory's hash covers its children's names and hashes
- Structural-key pruning so that files of unique size are never read
- Per-extension filter commands (e.g. decode audio before hashing)
- Interactive resolution that re-verifies every group before deleting
- Optional deletion to system trash (via send2trash)
"""

# Get version
try:
    from importlib.metadata import version as _version, PackageNotFoundError
    __version__ = _version("duptree")
except PackageNotFoundError:
    __version__ = "0.0.0"

# Public API — only what users should import directly
from duptree.commands import DuplicateSearchCommand
from duptree.core import SearchParams, Node, ContentHash, DuplicateRegistry, FingerprintEngine
from duptree.utils.convert_utils import ConvertUtils
from duptree.services import DuplicateService
from duptree.services.file_service import FileService

__all__ = [
    "DuplicateSearchCommand",
    "SearchParams",
    "Node",
    "ContentHash",
    "DuplicateRegistry",
    "FingerprintEngine",
    "ConvertUtils",
    "DuplicateService",
    "FileService",
    "__version__",
]
