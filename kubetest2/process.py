"""Run child processes as if they replaced the current one."""

from __future__ import annotations

import contextlib
import signal
import subprocess
import sys
import threading
from typing import IO, Any, Iterator

from .metadata import JUnitError

_FORWARDED = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT", "SIGUSR1", "SIGUSR2", "SIGWINCH")
    if hasattr(signal, name)
)


class ProcessError(Exception):
    """Raised when a child process cannot start or exits unsuccessfully."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class ExecJUnitError(JUnitError):
    """A failed child process together with everything it printed."""

    def __init__(self, message: str, system_out: str = "", returncode: int | None = None) -> None:
        super().__init__(message, system_out)
        self.returncode = returncode


def _environ(entries: list[str] | None) -> dict[str, str] | None:
    if entries is None:
        return None
    env: dict[str, str] = {}
    for entry in entries:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def _exit_message(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


def _start_message(argv0: str, exc: OSError) -> str:
    return f'exec: "{argv0}": {exc.strerror or exc}'


@contextlib.contextmanager
def _forward_signals(proc: subprocess.Popen[bytes]) -> Iterator[None]:
    """Pass signals received by this process on to ``proc`` while it runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def forward(signum: int, _frame: Any) -> None:
        with contextlib.suppress(OSError):
            proc.send_signal(signum)

    previous: dict[int, Any] = {}
    for sig in _FORWARDED:
        try:
            previous[sig] = signal.signal(sig, forward)
        except (OSError, ValueError):
            continue
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)


def _wait(proc: subprocess.Popen[bytes], timeout: float | None) -> int:
    try:
        return proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        return proc.wait()


def exec_process(argv0: str, args: list[str], env: list[str] | None) -> None:
    """Run a child with inherited standard streams, forwarding signals to it."""
    try:
        proc = subprocess.Popen([argv0, *args], env=_environ(env))
    except OSError as exc:
        raise ProcessError(_start_message(argv0, exc)) from exc
    with _forward_signals(proc):
        returncode = proc.wait()
    if returncode != 0:
        raise ProcessError(_exit_message(returncode), returncode)


class _LockedBuffer:
    """A byte buffer that several threads may write to."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data = bytearray()

    def write(self, data: bytes) -> None:
        with self._lock:
            self._data.extend(data)

    def getvalue(self) -> str:
        with self._lock:
            return self._data.decode(errors="replace")


def _passthrough(stream: IO[Any], data: bytes) -> None:
    binary = getattr(stream, "buffer", None)
    stream.flush()
    if binary is not None:
        binary.write(data)
        binary.flush()
    else:
        stream.write(data.decode(errors="replace"))
        stream.flush()


def _tee(source: IO[bytes], capture: _LockedBuffer, stream: IO[Any]) -> None:
    for chunk in iter(lambda: source.read1(65536), b""):
        capture.write(chunk)
        _passthrough(stream, chunk)


def exec_junit(
    argv0: str,
    args: list[str],
    env: list[str] | None,
    timeout: float | None = None,
) -> None:
    """Run a child like exec_process, also capturing its output.

    If the child fails, ExecJUnitError carries everything it printed. A child
    still running after ``timeout`` seconds is killed.
    """
    capture = _LockedBuffer()
    try:
        proc = subprocess.Popen(
            [argv0, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_environ(env),
        )
    except OSError as exc:
        raise ExecJUnitError(_start_message(argv0, exc), capture.getvalue()) from exc

    assert proc.stdout is not None and proc.stderr is not None
    threads = [
        threading.Thread(target=_tee, args=(proc.stdout, capture, sys.stdout), daemon=True),
        threading.Thread(target=_tee, args=(proc.stderr, capture, sys.stderr), daemon=True),
    ]
    for thread in threads:
        thread.start()
    with _forward_signals(proc):
        returncode = _wait(proc, timeout)
    for thread in threads:
        thread.join()
    proc.stdout.close()
    proc.stderr.close()

    if returncode != 0:
        raise ExecJUnitError(_exit_message(returncode), capture.getvalue(), returncode)