"""The root command: finds deployer and tester binaries and hands off to them."""

from __future__ import annotations

import os
import shutil
import sys
from typing import Callable

from .flags import FlagError, FlagSet
from .process import ProcessError, exec_process

BINARY_NAME = "kubetest2"

# The version of this build, printed by the root command and passed on to deployers.
GIT_TAG = ""

USAGE_LONG = f"""{BINARY_NAME} is a tool for kubernetes end to end testing.

It orchestrates creating clusters, building kubernetes, deleting clusters, running tests, etc.

{BINARY_NAME} should be called with a deployer like: '{BINARY_NAME} kind --help'"""

_DEPLOYER_PREFIX = f"{BINARY_NAME}-"
_TESTER_PREFIX = f"{BINARY_NAME}-tester-"


def find_deployer(name: str) -> str:
    """Return the path of the binary implementing the named deployer."""
    binary = f"{_DEPLOYER_PREFIX}{name}"
    path = shutil.which(binary)
    if path is None:
        raise FileNotFoundError(
            f'"{binary}" not found in PATH, could not locate "{name}" deployer'
        )
    return path


def find_tester(name: str) -> str:
    """Return the path of the binary implementing the named tester."""
    binary = f"{_TESTER_PREFIX}{name}"
    path = shutil.which(binary)
    if path is None:
        raise FileNotFoundError(
            f'"{binary}" not found in PATH, could not locate "{name}" tester'
        )
    return path


def _search_path(
    prefix: str, exclude: str | None, find: Callable[[str], str]
) -> dict[str, str]:
    """Map names of ``prefix``-named binaries in PATH to their first match."""
    found: dict[str, str] = {}
    search = os.environ.get("PATH", "")
    if not search:
        return found
    for directory in search.split(os.pathsep):
        # an empty PATH element means the current directory
        directory = directory or "."
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            continue
        for entry in entries:
            try:
                if entry.is_dir():
                    continue
            except OSError:
                continue
            file_name = entry.name
            if not file_name.startswith(prefix):
                continue
            if exclude is not None and file_name.startswith(exclude):
                continue
            name = file_name[len(prefix):]
            if name in found:
                continue
            try:
                found[name] = find(name)
            except FileNotFoundError:
                continue
    return found


def find_deployers() -> dict[str, str]:
    """Map every deployer name found in PATH to its first matching binary."""
    return _search_path(_DEPLOYER_PREFIX, _TESTER_PREFIX, find_deployer)


def find_testers() -> dict[str, str]:
    """Map every tester name found in PATH to its first matching binary."""
    return _search_path(_TESTER_PREFIX, None, find_tester)


def _usage_text() -> str:
    lines = ["Usage:", f"  {BINARY_NAME} [deployer] [flags]", "", "Detected Deployers:"]
    lines.extend(f"  {name}" for name in sorted(find_deployers()))
    lines.extend(["", "Detected Testers:"])
    lines.extend(f"  {name}" for name in sorted(find_testers()))
    lines.extend(["", f"For more help, run {BINARY_NAME} [deployer] --help"])
    return "\n".join(lines) + "\n"


def help_text() -> str:
    """Return the root help, listing the deployers and testers found in PATH."""
    return f"{USAGE_LONG}\n\n{_usage_text()}"


def run(args: list[str]) -> None:
    """Run the root command with ``args``, handing off to the named deployer.

    Raises FileNotFoundError for an unknown deployer and ProcessError if the
    deployer fails.
    """
    if not args:
        sys.stderr.write(help_text())
        return

    if len(args) == 1:
        flags = FlagSet(BINARY_NAME)
        flags.add_bool("help", False, "", shorthand="h")
        flags.add_bool("version", False, f"prints {BINARY_NAME} version", shorthand="v")
        try:
            flags.parse(args)
        except FlagError:
            pass
        if flags["help"]:
            sys.stderr.write(help_text())
            return
        if flags["version"]:
            sys.stdout.write(f"{BINARY_NAME} version {GIT_TAG}\n")
            return

    deployer_name = args[0]
    try:
        deployer = find_deployer(deployer_name)
    except FileNotFoundError:
        sys.stderr.write(
            f'Error: could not find {BINARY_NAME} deployer "{deployer_name}"\n\n'
        )
        sys.stderr.write(_usage_text())
        raise

    env = [f"{key}={value}" for key, value in os.environ.items()]
    env.append(f"KUBETEST2_VERSION={BINARY_NAME} version {GIT_TAG}")
    exec_process(deployer, args[1:], env)


def main(argv: list[str] | None = None) -> int:
    """Entry point of the root command; returns the process exit status."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        run(argv)
    except (FileNotFoundError, ProcessError):
        return 1
    return 0