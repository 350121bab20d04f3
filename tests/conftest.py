"""
Shared fixtures for duptree tests.
Creates isolated temporary trees with controlled duplicate layouts.
"""
import pytest
from pathlib import Path
from typing import Dict
import sys

# Add src/ to sys.path so 'duptree' is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))


@pytest.fixture
def abc_dir(tmp_path) -> Path:
    """
    Directory with files {a: "x", b: "x", c: "y"}:
    a and b are duplicates, c has the same size but different content.
    """
    root = tmp_path / "abc"
    root.mkdir()
    (root / "a").write_bytes(b"x")
    (root / "b").write_bytes(b"x")
    (root / "c").write_bytes(b"y")
    return root


@pytest.fixture
def mirrored_trees(tmp_path) -> Dict[str, Path]:
    """
    Two identical album directories plus one that differs in a single byte:

        music/
          album1/ {01.flac, 02.flac, cover.jpg}
          album2/ {01.flac, 02.flac, cover.jpg}   identical to album1
          album3/ {01.flac, 02.flac, cover.jpg}   02.flac differs by one byte
    """
    music = tmp_path / "music"
    paths = {"root": music}
    for album in ("album1", "album2", "album3"):
        folder = music / album
        folder.mkdir(parents=True)
        (folder / "01.flac").write_bytes(b"A" * 4096)
        (folder / "02.flac").write_bytes(b"B" * 2048)
        (folder / "cover.jpg").write_bytes(b"C" * 512)
        paths[album] = folder
    (music / "album3" / "02.flac").write_bytes(b"B" * 2047 + b"b")
    return paths


def scripted(*choices):
    """Choice function that replays `choices` and records the options it was offered."""
    answers = list(choices)
    offered = []

    def choose(options):
        offered.append(dict(options))
        return answers.pop(0)

    choose.offered = offered
    choose.remaining = answers
    return choose


@pytest.fixture
def script():
    return scripted
