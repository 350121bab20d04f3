from duptree.core.models import SUPPORTED_ALGORITHMS

ALGORITHM_CHOICES = list(SUPPORTED_ALGORITHMS)

ALGORITHM_HELP_TEXT = (
    "Digest used for content hashes:\n"
    "  sha1   : SHA-1 (default)\n"
    "  sha256 : SHA-256, stronger and slower\n"
    "  xxh128 : xxHash128, fastest, not cryptographic\n"
)

FILTER_HELP_TEXT = (
    "Filter command for an extension, as EXT:COMMAND. Repeatable.\n"
    "Files with that extension are piped through the command(s), in order,\n"
    "before hashing. Disables size-based pruning.\n"
    "Example: -f flac:'flac -dcs -' -f gz:'gzip -dc'\n"
)

EPILOG_TEXT = """
Examples:
  Find duplicate files and directories and resolve them interactively
  %(prog)s ~/Music ~/Backup/Music

  Only print the duplicate groups, largest waste first
  %(prog)s --report ~/Downloads

  Compare FLAC files by decoded audio instead of raw bytes
  %(prog)s -f flac:'flac -dcs -' ~/Music

  Move deleted copies to the trash instead of removing them
  %(prog)s --trash ~/Pictures

  Show the scanned tree, or the exact bytes a node is hashed from
  %(prog)s --dump-tree ~/Pictures
  %(prog)s --cat ~/Pictures/2019
"""
