"""Running external commands with configurable input, output and environment."""

from __future__ import annotations

import io
import logging
import os
import shlex
import signal
import subprocess
import sys
from dataclasses import dataclass, field
from typing import IO, Any

log = logging.getLogger(__name__)


class CommandError(Exception):
    """Raised when a command cannot be started or does not exit successfully."""

    def __init__(
        self,
        message: str,
        *,
        argv: list[str],
        returncode: int | None = None,
        output: bytes = b"",
    ) -> None:
        super().__init__(message)
        self.argv = argv
        self.returncode = returncode
        self.output = output


def _exit_message(returncode: int) -> str:
    if returncode < 0:
        try:
            name = signal.Signals(-returncode).name
        except ValueError:
            name = str(-returncode)
        return f"signal: {name}"
    return f"exit status {returncode}"


def _environ(entries: list[str] | None) -> dict[str, str] | None:
    """Turn ``key=value`` entries into a mapping; later entries win."""
    if entries is None:
        return None
    env: dict[str, str] = {}
    for entry in entries:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def _fileno(stream: Any) -> int | None:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _target(stream: IO[Any] | None) -> tuple[Any, IO[Any] | None]:
    """Return the subprocess argument for ``stream`` and, if piped, where to copy it."""
    if stream is None:
        return subprocess.DEVNULL, None
    fd = _fileno(stream)
    if fd is not None:
        if hasattr(stream, "flush"):
            stream.flush()
        return fd, None
    return subprocess.PIPE, stream


def _deliver(stream: IO[Any] | None, data: bytes | None) -> None:
    if stream is None or not data:
        return
    if isinstance(stream, io.TextIOBase):
        stream.write(data.decode(errors="replace"))
    else:
        stream.write(data)


@dataclass
class Command:
    """A command to run: its arguments, environment, streams and directory.

    ``env`` holds ``key=value`` entries; ``None`` inherits this process's
    environment. A ``None`` stream is the null device.
    """

    name: str
    args: list[str] = field(default_factory=list)
    env: list[str] | None = None
    stdin: IO[Any] | None = None
    stdout: IO[Any] | None = None
    stderr: IO[Any] | None = None
    cwd: str | os.PathLike[str] | None = None
    timeout: float | None = None

    @property
    def argv(self) -> list[str]:
        return [self.name, *self.args]

    def _stdin_kwargs(self) -> dict[str, Any]:
        if self.stdin is None:
            return {"stdin": subprocess.DEVNULL}
        fd = _fileno(self.stdin)
        if fd is not None:
            return {"stdin": fd}
        data = self.stdin.read()
        if isinstance(data, str):
            data = data.encode()
        return {"input": data}

    def run(self) -> None:
        """Run the command to completion; raise CommandError on failure."""
        out_arg, out_sink = _target(self.stdout)
        if self.stderr is not None and self.stderr is self.stdout:
            if out_sink is not None:
                err_arg, err_sink = subprocess.STDOUT, None
            else:
                err_arg, err_sink = out_arg, None
        else:
            err_arg, err_sink = _target(self.stderr)

        log.debug("⚙️ %s %s", self.name, " ".join(self.args))
        argv = self.argv
        try:
            completed = subprocess.run(
                argv,
                stdout=out_arg,
                stderr=err_arg,
                env=_environ(self.env),
                cwd=self.cwd,
                timeout=self.timeout,
                check=False,
                **self._stdin_kwargs(),
            )
        except subprocess.TimeoutExpired as exc:
            _deliver(out_sink, exc.stdout)
            _deliver(err_sink, exc.stderr)
            raise CommandError("signal: SIGKILL", argv=argv) from exc
        except OSError as exc:
            raise CommandError(
                f'exec: "{self.name}": {exc.strerror or exc}', argv=argv
            ) from exc

        _deliver(out_sink, completed.stdout)
        _deliver(err_sink, completed.stderr)
        if completed.returncode != 0:
            raise CommandError(
                _exit_message(completed.returncode),
                argv=argv,
                returncode=completed.returncode,
            )


def command(name: str, *args: str) -> Command:
    """Create a command running ``name`` with ``args``."""
    return Command(name, list(args))


def raw_command(raw: str) -> Command:
    """Create a command from a shell-quoted string.

    If the string cannot be split, the whole string is used as the command name.
    """
    try:
        parts = shlex.split(raw)
    except ValueError:
        parts = []
    if not parts:
        return Command(raw)
    return Command(parts[0], parts[1:])


def output(cmd: Command) -> bytes:
    """Run ``cmd`` and return its standard output.

    On failure the raised CommandError carries the output gathered so far.
    """
    buffer = io.BytesIO()
    cmd.stdout = buffer
    try:
        cmd.run()
    except CommandError as exc:
        exc.output = buffer.getvalue()
        raise
    return buffer.getvalue()


def _scan_lines(data: bytes) -> list[str]:
    text = data.decode(errors="replace")
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def output_lines(cmd: Command) -> list[str]:
    """Run ``cmd`` and return its standard output split into lines."""
    return _scan_lines(output(cmd))


def combined_output_lines(cmd: Command) -> list[str]:
    """Run ``cmd`` and return its standard output and error, together, as lines."""
    buffer = io.BytesIO()
    cmd.stdout = buffer
    cmd.stderr = buffer
    try:
        cmd.run()
    except CommandError as exc:
        exc.output = buffer.getvalue()
        raise
    return _scan_lines(buffer.getvalue())


def set_output(cmd: Command, stdout: IO[Any] | None, stderr: IO[Any] | None) -> None:
    """Send the command's output and error to the given streams."""
    cmd.stdout = stdout
    cmd.stderr = stderr


def inherit_output(cmd: Command) -> None:
    """Send the command's output to this process's standard output and error."""
    cmd.stderr = sys.stderr
    cmd.stdout = sys.stdout


def no_output(cmd: Command) -> None:
    """Discard all of the command's output."""
    cmd.stdout = None
    cmd.stderr = None