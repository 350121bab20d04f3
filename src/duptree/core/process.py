"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/process.py
Bidirectional piping of a byte stream through an external command.

The child's stdin, stdout and stderr are all non-blocking and multiplexed with
`selectors`: input is written only when stdin is writable, output is read
whenever stdout/stderr are readable. A child that fills its stdout pipe while
we are still feeding it therefore never deadlocks against us.

Input is pulled from the source lazily, one chunk at a time, only when the
previous chunk has been fully written. No timeout is imposed: a hung filter
hangs the run.
"""

import logging
import os
import selectors
import shlex
import subprocess
from typing import Callable, Iterable, Iterator, List, Optional, Union

from duptree.core.errors import FilterLaunchError

logger = logging.getLogger(__name__)

READ_SIZE = 65536
STDERR_LIMIT = 65536  # only the tail of a filter's stderr is kept

Command = Union[str, List[str]]
ExitCallback = Callable[[str, int, bytes], None]


def split_command(command: Command) -> List[str]:
    """'gzip -dc' -> ['gzip', '-dc']. Lists are taken as-is."""
    if isinstance(command, str):
        return shlex.split(command)
    return list(command)


def describe_command(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


def pipe(
        chunks: Iterable[bytes],
        command: Command,
        on_exit: Optional[ExitCallback] = None
) -> Iterator[bytes]:
    """
    Feeds `chunks` to `command` and yields what it writes to stdout.

    Args:
        chunks: Source of input bytes, consumed lazily
        command: Shell-style string (split with shlex, no shell involved) or argv list
        on_exit: Called with (command, returncode, stderr tail) once the child has exited

    Raises:
        FilterLaunchError: If the command cannot be started

    A nonzero exit status is not an error here: everything the child produced is
    still yielded, the status is logged and handed to `on_exit`. If the consumer
    stops iterating early, the child is killed and reaped.
    """
    label = describe_command(command)
    argv = split_command(command)
    if not argv:
        raise FilterLaunchError(label, ValueError("empty command"))

    try:
        proc = subprocess.Popen(
            argv,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as e:
        raise FilterLaunchError(label, e) from e

    logger.debug(f"Started filter '{label}' (pid {proc.pid})")

    source = iter(chunks)
    pending = memoryview(b"")
    errors = bytearray()
    finished = False
    selector = selectors.DefaultSelector()

    def close_input():
        selector.unregister(proc.stdin)
        proc.stdin.close()

    try:
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            os.set_blocking(stream.fileno(), False)
        selector.register(proc.stdin, selectors.EVENT_WRITE)
        selector.register(proc.stdout, selectors.EVENT_READ)
        selector.register(proc.stderr, selectors.EVENT_READ)

        while selector.get_map():
            for key, _ in selector.select():
                stream = key.fileobj

                if stream is proc.stdin:
                    if not pending:
                        chunk = next(source, None)
                        if chunk is None:
                            close_input()
                            continue
                        pending = memoryview(chunk)
                        if not pending:
                            continue
                    try:
                        written = os.write(stream.fileno(), pending)
                    except BlockingIOError:
                        written = 0
                    except BrokenPipeError:
                        # Child stopped reading; the rest of the input is dropped
                        logger.debug(f"Filter '{label}' closed its input early")
                        pending = memoryview(b"")
                        close_input()
                        continue
                    pending = pending[written:]
                    continue

                try:
                    data = os.read(stream.fileno(), READ_SIZE)
                except BlockingIOError:
                    continue
                if not data:
                    selector.unregister(stream)
                    stream.close()
                elif stream is proc.stdout:
                    yield data
                else:
                    errors += data
                    if len(errors) > STDERR_LIMIT:
                        del errors[:-STDERR_LIMIT]

        returncode = proc.wait()
        finished = True
    finally:
        selector.close()
        if not finished:
            if proc.poll() is None:
                logger.debug(f"Terminating filter '{label}' (pid {proc.pid})")
                proc.kill()
            proc.wait()
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is not None and not stream.closed:
                stream.close()
        close_source = getattr(source, "close", None)
        if close_source is not None:
            close_source()

    stderr = bytes(errors)
    if stderr:
        logger.debug(f"Filter '{label}' stderr: {stderr.decode(errors='replace').strip()}")
    if returncode != 0:
        logger.warning(f"Filter '{label}' exited with status {returncode}")
    if on_exit is not None:
        on_exit(label, returncode, stderr)
