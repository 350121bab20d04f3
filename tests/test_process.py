"""
Tests for piping byte streams through external commands.
The child's stdin and stdout are drained concurrently, so large inputs must never deadlock.
"""
import shutil
import sys
import pytest
from duptree.core.errors import FilterLaunchError
from duptree.core.process import STDERR_LIMIT, pipe, split_command, describe_command
from duptree.core.stream import ByteStream

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="non-blocking pipes need POSIX")

PYTHON = sys.executable


def python_filter(code: str):
    return [PYTHON, "-c", code]


class TestCommandParsing:
    def test_split_command_uses_shell_quoting(self):
        assert split_command("flac -dcs -") == ["flac", "-dcs", "-"]
        assert split_command("sh -c 'tr a b'") == ["sh", "-c", "tr a b"]

    def test_split_command_keeps_lists(self):
        assert split_command(["gzip", "-dc"]) == ["gzip", "-dc"]

    def test_describe_command(self):
        assert describe_command("gzip -dc") == "gzip -dc"
        assert describe_command(["echo", "a b"]) == "echo 'a b'"


class TestPipe:
    @pytest.mark.skipif(shutil.which("cat") is None, reason="cat not available")
    def test_identity_passthrough(self):
        data = b"".join(bytes([i % 256]) * 100 for i in range(1000))
        out = ByteStream.from_bytes(data).pipe("cat").read_all()
        assert out == data

    def test_transforms_output(self):
        stream = ByteStream.from_bytes(b"hello").pipe(
            python_filter("import sys; sys.stdout.write(sys.stdin.read().upper())"))
        assert stream.read_all() == b"HELLO"

    def test_large_input_does_not_deadlock(self):
        """
        8MB in, 8MB out: far beyond any OS pipe buffer. A sequential
        write-then-read implementation would block forever here.
        """
        size = 8 * 1024 * 1024
        code = (
            "import sys\n"
            "while True:\n"
            "    b = sys.stdin.buffer.read(65536)\n"
            "    if not b: break\n"
            "    sys.stdout.buffer.write(b)\n"
        )
        out = ByteStream.zeros(chunk_size=65536).take(size).pipe(python_filter(code))

        total = sum(len(chunk) for chunk in out)
        assert total == size

    def test_output_larger_than_input(self):
        """Child writing lots of output before reading its input must not block us."""
        code = "import sys; sys.stdout.buffer.write(b'z' * 4000000); sys.stdin.buffer.read()"
        out = ByteStream.from_bytes(b"q" * 1000000).pipe(python_filter(code))
        assert len(out.read_all()) == 4000000

    def test_launch_failure_raises(self):
        stream = ByteStream.from_bytes(b"data").pipe("definitely-not-a-real-command-xyz")
        with pytest.raises(FilterLaunchError, match="definitely-not-a-real-command-xyz"):
            stream.read_all()

    def test_empty_command_raises(self):
        with pytest.raises(FilterLaunchError):
            list(pipe([b"data"], ""))

    def test_nonzero_exit_is_reported(self):
        """Output is still delivered; the status and stderr reach on_exit."""
        exits = []
        code = "import sys; sys.stdout.write('partial'); sys.stderr.write('broken'); sys.exit(3)"
        out = list(pipe([b"input"], python_filter(code), on_exit=lambda *args: exits.append(args)))

        assert b"".join(out) == b"partial"
        assert len(exits) == 1
        _, returncode, stderr = exits[0]
        assert returncode == 3
        assert stderr == b"broken"

    def test_chatty_stderr_keeps_only_the_tail(self):
        exits = []
        code = "import sys; sys.stderr.buffer.write(b'e' * 999999 + b'!'); sys.stdout.write('ok')"
        out = list(pipe([b"input"], python_filter(code), on_exit=lambda *args: exits.append(args)))

        assert b"".join(out) == b"ok"
        _, returncode, stderr = exits[0]
        assert returncode == 0
        assert len(stderr) == STDERR_LIMIT
        assert stderr.endswith(b"e!")

    def test_child_ignoring_input(self):
        """A child that exits without reading stdin must not raise BrokenPipeError."""
        out = ByteStream.zeros().take(1024 * 1024).pipe(python_filter("print('done')"))
        assert out.read_all().strip() == b"done"

    def test_early_close_kills_child(self):
        """Stopping iteration early terminates the child instead of leaking it."""
        exits = []
        code = "import sys\nwhile True: sys.stdout.write('x' * 65536); sys.stdout.flush()"
        chunks = pipe([], python_filter(code), on_exit=lambda *args: exits.append(args))

        first = next(chunks)
        assert first
        chunks.close()

        # Generator closed inside the loop: on_exit is never reached, the child is reaped
        assert exits == []

    def test_input_is_pulled_lazily(self):
        """Nothing is read from the source before the output is consumed."""
        pulled = []

        def source():
            for chunk in (b"a", b"b"):
                pulled.append(chunk)
                yield chunk

        stream = ByteStream.wrap(source).pipe(python_filter("import sys; sys.stdout.write(sys.stdin.read())"))
        assert pulled == []
        assert stream.read_all() == b"ab"
        assert pulled == [b"a", b"b"]
