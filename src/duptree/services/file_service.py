"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Filesystem removal primitives used when resolving duplicates.
Entries are either removed permanently or moved to the system trash.
Symbolic links are always acted on themselves, never on their targets.
"""
import os
from send2trash import send2trash


class FileService:
    """
    Cross-platform removal of single filesystem entries.
    Every failure is reported as RuntimeError with the offending path.
    """

    @staticmethod
    def remove_file(file_path: str):
        """Permanently removes a non-directory entry (file, symlink, fifo, ...)."""
        try:
            os.unlink(file_path)
        except FileNotFoundError as e:
            raise RuntimeError(f"File not found: {file_path}") from e
        except OSError as e:
            raise RuntimeError(f"Failed to remove {file_path}: {e}") from e

    @staticmethod
    def remove_directory(dir_path: str):
        """Removes a directory that must already be empty."""
        try:
            os.rmdir(dir_path)
        except FileNotFoundError as e:
            raise RuntimeError(f"Directory not found: {dir_path}") from e
        except OSError as e:
            raise RuntimeError(f"Failed to remove directory {dir_path}: {e}") from e

    @staticmethod
    def move_to_trash(file_path: str):
        """Moves an entry (a directory as a whole) to the system trash."""
        path = os.path.abspath(file_path)

        if not os.path.lexists(path):
            raise RuntimeError(f"File not found: {path}")

        try:
            send2trash(path)
        except Exception as e:
            raise RuntimeError(f"Failed to move to trash: {e}") from e
