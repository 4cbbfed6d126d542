"""A tester that runs its arguments as the test command."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Callable

from ..flags import FlagError, FlagSet
from ..process import exec_junit
from .version_metadata import write_version_to_metadata

# The version of this build of the tester.
GIT_TAG = ""

USAGE = """kubetest2 --test=exec --  [TestCommand] [TestArgs]
  TestCommand: the command to invoke for testing
  TestArgs:    arguments passed to test command
"""

_SPECIAL_VARS = frozenset("*#$@!?-0123456789")


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def _shell_name(text: str) -> tuple[str, int]:
    """Read a variable name after ``$``; return it and how many characters it used."""
    if text[0] == "{":
        if len(text) > 2 and text[1] in _SPECIAL_VARS and text[2] == "}":
            return text[1], 3
        end = text.find("}", 1)
        if end == -1:
            return "", 1  # bad syntax: eat "${"
        if end == 1:
            return "", 2  # bad syntax: eat "${}"
        return text[1:end], end + 1
    if text[0] in _SPECIAL_VARS:
        return text[0], 1
    width = 0
    while width < len(text) and _is_name_char(text[width]):
        width += 1
    return text[:width], width


def _expand(text: str, lookup: Callable[[str], str]) -> str:
    """Replace ``$name`` and ``${name}`` in ``text`` using ``lookup``."""
    parts: list[str] = []
    start = 0
    pos = 0
    while pos < len(text):
        if text[pos] == "$" and pos + 1 < len(text):
            parts.append(text[start:pos])
            name, width = _shell_name(text[pos + 1 :])
            if name:
                parts.append(lookup(name))
            elif width == 0:
                # a dollar not followed by a name is kept as it is
                parts.append("$")
            pos += width
            start = pos + 1
        pos += 1
    parts.append(text[start:])
    return "".join(parts)


def expand_env(args: list[str]) -> list[str]:
    r"""Expand environment variables in each argument.

    An argument holding ``\$`` is not expanded; each ``\$`` in it becomes ``$``.
    Unset variables expand to the empty string.
    """

    def lookup(name: str) -> str:
        return os.environ.get(name, "")

    return [
        arg.replace("\\$", "$") if "\\$" in arg else _expand(arg, lookup)
        for arg in args
    ]


@dataclass
class ExecTester:
    """Runs the given command line as the test, recording its output."""

    argv: list[str] = field(default_factory=list)

    def execute(self, argv: list[str]) -> None:
        """Handle the tester's command line (without the program name) and run it."""
        if not argv:
            sys.stdout.write(USAGE)
            return

        # only -h / --help as the first argument asks for help
        flags = FlagSet("exec")
        flags.add_bool("help", False, "", shorthand="h")
        try:
            flags.parse(argv[:1])
        except FlagError:
            pass
        if flags["help"]:
            sys.stdout.write(USAGE)
            return

        self.argv = list(argv)
        write_version_to_metadata(GIT_TAG)
        self.test()

    def test(self) -> None:
        """Run the command, expanding environment variables in its arguments."""
        expanded = expand_env(self.argv)
        if not expanded:
            raise ValueError("no test command given")
        env = [f"{key}={value}" for key, value in os.environ.items()]
        exec_junit(expanded[0], expanded[1:], env)


def main(argv: list[str] | None = None) -> int:
    """Entry point of the exec tester; returns the process exit status."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        ExecTester().execute(argv)
    except Exception as exc:
        sys.stderr.write(f"failed to run exec tester: {exc}\n")
        return 255
    return 0