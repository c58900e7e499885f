"""Process execution and streaming output handling.

This module runs child processes for the subprocess transport. Two modes are
supported:

- ``run_command`` runs a command to completion and returns its exit code
  together with the raw stdout bytes and the decoded stderr lines.
- ``StreamHandle`` spawns a command and yields stdout chunks as soon as the
  child writes them, which is what a live progress stream needs.

Example:
    ```python
    from flashlink.utils.stream_process import StreamHandle, run_command

    return_code, stdout, stderr = run_command(["curl", "-s", "-i", url])

    handle = StreamHandle(["curl", "-s", "-N", url])
    for chunk in handle:
        print(chunk.decode("utf-8", errors="replace"), end="")
    print(handle.return_code, handle.stderr)
    ```

Every streaming child is tracked in a process-wide registry so that children
still running when the interpreter exits are terminated.
"""

import atexit
import subprocess
import threading
from collections.abc import Iterator
from threading import Thread
from typing import IO, TypeAlias

from flashlink.core.structlog_logger import get_struct_logger


logger = get_struct_logger(__name__)

# (return_code, stdout, stderr lines)
ProcessResult: TypeAlias = tuple[int, bytes, list[str]]

CHUNK_SIZE = 4096
TERMINATE_GRACE_SECONDS = 2.0

_active_processes: set[subprocess.Popen[bytes]] = set()
_registry_lock = threading.Lock()


def _register(process: subprocess.Popen[bytes]) -> None:
    with _registry_lock:
        _active_processes.add(process)


def _unregister(process: subprocess.Popen[bytes]) -> None:
    with _registry_lock:
        _active_processes.discard(process)


def _stop_process(process: subprocess.Popen[bytes]) -> None:
    """Terminate a child, killing it if it ignores the request."""
    if process.poll() is not None:
        return
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        logger.warning("process_kill_after_terminate", pid=process.pid)
        process.kill()
        process.wait()


def terminate_active_processes() -> int:
    """Terminate every registered child that is still running.

    Returns:
        Number of children that were still running
    """
    with _registry_lock:
        processes = list(_active_processes)
        _active_processes.clear()

    stopped = 0
    for process in processes:
        if process.poll() is None:
            stopped += 1
            _stop_process(process)
    if stopped:
        logger.debug("active_processes_terminated", count=stopped)
    return stopped


atexit.register(terminate_active_processes)


def _collect_lines(stream: IO[bytes], sink: list[str]) -> None:
    for raw in iter(stream.readline, b""):
        line = raw.decode("utf-8", errors="replace").rstrip()
        if line:
            sink.append(line)
    stream.close()


def run_command(cmd: list[str], timeout: float | None = None) -> ProcessResult:
    """Run a command to completion.

    Stdout is returned as raw bytes because callers parse it (HTTP headers
    plus body); stderr is collected line by line on a reader thread.

    Args:
        cmd: Command and arguments
        timeout: Seconds to wait before the child is killed

    Returns:
        Tuple of (return code, stdout bytes, stderr lines)

    Raises:
        FileNotFoundError: If the executable does not exist
        subprocess.TimeoutExpired: If the child outlived ``timeout``
    """
    process = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)

    stdout_parts: list[bytes] = []
    stderr_lines: list[str] = []

    assert process.stdout is not None and process.stderr is not None
    stdout_stream = process.stdout
    stdout_thread = Thread(
        target=lambda: stdout_parts.append(stdout_stream.read()), daemon=True
    )
    stderr_thread = Thread(
        target=_collect_lines, args=(process.stderr, stderr_lines), daemon=True
    )
    stdout_thread.start()
    stderr_thread.start()

    try:
        return_code = process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        _stop_process(process)
        raise
    finally:
        stdout_thread.join()
        stderr_thread.join()

    return return_code, b"".join(stdout_parts), stderr_lines


class StreamHandle:
    """A running child whose stdout is consumed as a stream of byte chunks.

    The handle is a lazy, finite, non-restartable iterator. ``return_code``
    and ``stderr`` are available once iteration has finished. ``close()``
    terminates the child if it is still running and is safe to call twice.
    """

    def __init__(self, cmd: list[str], chunk_size: int = CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size
        self._process = subprocess.Popen(
            cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE
        )
        _register(self._process)
        self._stderr_lines: list[str] = []
        assert self._process.stderr is not None
        self._stderr_thread = Thread(
            target=_collect_lines,
            args=(self._process.stderr, self._stderr_lines),
            daemon=True,
        )
        self._stderr_thread.start()
        self._started = False
        self._closed = False
        self.return_code: int | None = None

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def stderr(self) -> str:
        """Everything the child wrote to stderr, one line per entry."""
        return "\n".join(self._stderr_lines)

    def __iter__(self) -> Iterator[bytes]:
        if self._started:
            raise RuntimeError("StreamHandle can only be iterated once")
        self._started = True
        return self._chunks()

    def _chunks(self) -> Iterator[bytes]:
        stdout = self._process.stdout
        assert stdout is not None
        try:
            while True:
                chunk = stdout.read1(self._chunk_size)  # type: ignore[attr-defined]
                if not chunk:
                    break
                yield chunk
            self.return_code = self._process.wait()
            self._stderr_thread.join()
        finally:
            self.close()

    def close(self) -> None:
        """Reap the child, terminating it first if it is still running."""
        if self._closed:
            return
        self._closed = True
        _stop_process(self._process)
        if self.return_code is None:
            self.return_code = self._process.wait()
        if self._process.stdout is not None:
            self._process.stdout.close()
        self._stderr_thread.join(timeout=TERMINATE_GRACE_SECONDS)
        _unregister(self._process)

    def __enter__(self) -> "StreamHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
