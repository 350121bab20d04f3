"""
Tests for report formatting and tree rendering.
"""
import os
import sys
import pytest
from duptree.core.models import ContentHash, GroupReport, NodeType
from duptree.core.tree import Node
from duptree.services.duplicate_service import DuplicateService


def row(digest, count, size, paths=None):
    return GroupReport(
        hash=ContentHash(digest, NodeType.FILE),
        count=count,
        paths=paths or [f"/p/{k}" for k in range(count)],
        duplicated_bytes=size * (count - 1),
    )


class TestReport:
    def test_format_report(self):
        lines = DuplicateService.format_report([row("ab", 2, 1024, ["/x/a", "/y/a"])])
        assert lines == [
            "1/1: [ab file] (2 copies, 1.00KB duplicated)",
            "   /x/a",
            "   /y/a",
            "",
        ]

    def test_format_empty_report(self):
        assert DuplicateService.format_report([]) == []

    def test_total_duplicated_bytes(self):
        rows = [row("aa", 3, 100), row("bb", 2, 50)]
        assert DuplicateService.total_duplicated_bytes(rows) == 250

    def test_scan_summary(self, abc_dir, tmp_path):
        (tmp_path / "extra").write_bytes(b"12345")
        roots = [Node.create(str(abc_dir)), Node.create(str(tmp_path / "extra"))]

        assert DuplicateService.scan_summary(roots) == (5, 8)


class TestRenderTree:
    def test_nested_tree(self, tmp_path):
        root = tmp_path / "photos"
        (root / "2019").mkdir(parents=True)
        (root / "2019" / "a.jpg").write_bytes(b"x" * 1024)
        (root / "b.jpg").write_bytes(b"")

        lines = list(DuplicateService.render_tree(Node.create(str(root))))
        assert lines == [
            f"╷ [dir 2] {root}",
            "├─┐ [dir 1] 2019",
            "│ ╰─╴ [file 1.00KB] a.jpg",
            "╰─╴ [file 0.00B] b.jpg",
        ]

    def test_single_file(self, tmp_path):
        (tmp_path / "f").write_bytes(b"")
        lines = list(DuplicateService.render_tree(Node.create(str(tmp_path / "f"))))
        assert lines == [f"· [file 0.00B] {tmp_path / 'f'}"]

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
    def test_symlink_label(self, tmp_path):
        os.symlink("a.jpg", tmp_path / "link")
        lines = list(DuplicateService.render_tree(Node.create(str(tmp_path))))
        assert lines[1] == "╰─╴ [link: a.jpg] link"
