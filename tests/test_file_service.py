"""
Tests for file service — the only place where entries are actually removed.
"""
import os
import sys
import pytest
from duptree.services.file_service import FileService


class TestRemove:
    def test_remove_file(self, tmp_path):
        path = tmp_path / "f.txt"
        path.write_text("content")

        FileService.remove_file(str(path))
        assert not path.exists()

    def test_remove_missing_file(self, tmp_path):
        with pytest.raises(RuntimeError, match="File not found"):
            FileService.remove_file(str(tmp_path / "missing"))

    def test_remove_empty_directory(self, tmp_path):
        path = tmp_path / "empty"
        path.mkdir()

        FileService.remove_directory(str(path))
        assert not path.exists()

    def test_remove_non_empty_directory_fails(self, tmp_path):
        """Directories are only removed after their children, never recursively here."""
        path = tmp_path / "full"
        path.mkdir()
        (path / "keep").write_text("x")

        with pytest.raises(RuntimeError, match="Failed to remove directory"):
            FileService.remove_directory(str(path))
        assert (path / "keep").exists()

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_remove_symlink_not_target(self, tmp_path):
        target = tmp_path / "target"
        target.write_text("keep me")
        link = tmp_path / "link"
        os.symlink(target, link)

        FileService.remove_file(str(link))
        assert not os.path.lexists(link)
        assert target.read_text() == "keep me"


class TestMoveToTrash:
    """Test deletion via system trash."""

    def test_moves_file_to_trash(self, tmp_path):
        """File must disappear from its original location."""
        test_file = tmp_path / "test.txt"
        test_file.write_text("content to delete")

        FileService.move_to_trash(str(test_file))
        assert not test_file.exists(), "File must be removed from original location after trash"

    def test_moves_directory_to_trash(self, tmp_path):
        folder = tmp_path / "album"
        folder.mkdir()
        (folder / "track.flac").write_bytes(b"x")

        FileService.move_to_trash(str(folder))
        assert not folder.exists()

    def test_raises_runtime_error_for_nonexistent_file(self, tmp_path):
        with pytest.raises(RuntimeError, match="File not found"):
            FileService.move_to_trash(str(tmp_path / "does_not_exist.txt"))
