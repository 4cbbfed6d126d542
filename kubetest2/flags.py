"""A small command-line flag parser with long and short flags."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterator

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


class FlagError(ValueError):
    """Raised when flags are defined or used incorrectly."""


def _parse_bool(raw: str) -> bool:
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ValueError(f"invalid syntax: {raw!r}")


@dataclass(eq=False)
class Flag:
    """A single flag: its name, type, default and current value."""

    name: str
    type: type
    default: object
    help: str = ""
    shorthand: str = ""
    value: object = None
    changed: bool = False

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self.default

    def set(self, raw: str) -> None:
        """Set the value from its command-line text."""
        try:
            if self.type is bool:
                self.value = _parse_bool(raw)
            elif self.type is int:
                self.value = int(raw, 0)
            else:
                self.value = raw
        except ValueError as exc:
            raise FlagError(
                f'invalid argument "{raw}" for "{self._display()}" flag: {exc}'
            ) from exc
        self.changed = True

    def _display(self) -> str:
        if self.shorthand:
            return f"-{self.shorthand}, --{self.name}"
        return f"--{self.name}"

    def _unquoted_usage(self) -> tuple[str, str]:
        usage = self.help
        start = usage.find("`")
        if start != -1:
            end = usage.find("`", start + 1)
            if end != -1:
                name = usage[start + 1 : end]
                return name, usage[:start] + name + usage[end + 1 :]
        varname = {bool: "", int: "int"}.get(self.type, "string")
        return varname, usage

    def _default_text(self) -> str:
        if self.type is bool:
            return " (default true)" if self.default else ""
        if self.type is int:
            return f" (default {self.default})" if self.default else ""
        if self.default:
            return f" (default {json.dumps(self.default, ensure_ascii=False)})"
        return ""


class FlagSet:
    """A named set of flags that parses argument lists."""

    def __init__(self, name: str, ignore_unknown: bool = False) -> None:
        self.name = name
        self.ignore_unknown = ignore_unknown
        self._flags: dict[str, Flag] = {}
        self._shorthands: dict[str, Flag] = {}

    def _add(self, flag: Flag) -> Flag:
        if flag.name in self._flags:
            raise FlagError(f"{self.name} flag redefined: {flag.name}")
        if flag.shorthand:
            if len(flag.shorthand) != 1:
                raise FlagError(
                    f"{flag.shorthand!r} shorthand is more than one character"
                )
            existing = self._shorthands.get(flag.shorthand)
            if existing is not None:
                raise FlagError(
                    f"unable to redefine {flag.shorthand!r} shorthand in "
                    f"{self.name!r} flagset: it's already used for "
                    f"{existing.name!r} flag"
                )
            self._shorthands[flag.shorthand] = flag
        self._flags[flag.name] = flag
        return flag

    def add_bool(self, name: str, default: bool = False, help: str = "", shorthand: str = "") -> Flag:
        """Define a boolean flag."""
        return self._add(Flag(name, bool, default, help, shorthand))

    def add_string(self, name: str, default: str = "", help: str = "", shorthand: str = "") -> Flag:
        """Define a string flag."""
        return self._add(Flag(name, str, default, help, shorthand))

    def add_int(self, name: str, default: int = 0, help: str = "", shorthand: str = "") -> Flag:
        """Define an integer flag."""
        return self._add(Flag(name, int, default, help, shorthand))

    def add_flagset(self, other: FlagSet) -> None:
        """Add every flag of ``other`` not already defined here, sharing values."""
        for flag in other:
            if flag.name not in self._flags:
                self._add(flag)

    def lookup(self, name: str) -> Flag | None:
        return self._flags.get(name)

    def lookup_shorthand(self, shorthand: str) -> Flag | None:
        return self._shorthands.get(shorthand)

    def parse(self, args: list[str]) -> list[str]:
        """Parse ``args``, setting flag values; return the positional arguments."""
        positional: list[str] = []
        rest = list(args)
        while rest:
            arg = rest.pop(0)
            if len(arg) < 2 or not arg.startswith("-"):
                positional.append(arg)
            elif arg == "--":
                positional.extend(rest)
                break
            elif arg.startswith("--"):
                rest = self._parse_long(arg[2:], rest)
            else:
                shorts = arg[1:]
                while shorts:
                    shorts, rest = self._parse_short(shorts, rest)
        return positional

    @staticmethod
    def _strip_unknown_value(rest: list[str]) -> list[str]:
        if not rest or rest[0].startswith("-"):
            return rest
        return rest[1:]

    def _parse_long(self, body: str, rest: list[str]) -> list[str]:
        name, sep, value = body.partition("=")
        if not name or name[0] in "-=":
            raise FlagError(f"bad flag syntax: --{body}")
        flag = self._flags.get(name)
        if flag is None:
            if not self.ignore_unknown:
                raise FlagError(f"unknown flag: --{name}")
            return rest if sep else self._strip_unknown_value(rest)
        if sep:
            flag.set(value)
        elif flag.type is bool:
            flag.set("true")
        elif rest:
            flag.set(rest[0])
            rest = rest[1:]
        else:
            raise FlagError(f"flag needs an argument: --{name}")
        return rest

    def _parse_short(self, shorts: str, rest: list[str]) -> tuple[str, list[str]]:
        char, remainder = shorts[0], shorts[1:]
        has_value = len(shorts) > 2 and shorts[1] == "="
        flag = self._shorthands.get(char)
        if flag is None:
            if not self.ignore_unknown:
                raise FlagError(f"unknown shorthand flag: {char!r} in -{shorts}")
            if has_value:
                return "", rest
            return remainder, self._strip_unknown_value(rest)
        if has_value:
            flag.set(shorts[2:])
            return "", rest
        if flag.type is bool:
            flag.set("true")
            return remainder, rest
        if remainder:
            flag.set(remainder)
            return "", rest
        if rest:
            flag.set(rest[0])
            return remainder, rest[1:]
        raise FlagError(f"flag needs an argument: {char!r} in -{shorts}")

    def __getitem__(self, name: str) -> object:
        return self._flags[name].value

    def __iter__(self) -> Iterator[Flag]:
        return iter(sorted(self._flags.values(), key=lambda f: f.name))

    def __len__(self) -> int:
        return len(self._flags)

    def usages(self) -> str:
        """Return aligned usage lines for every flag, sorted by name."""
        entries = []
        for flag in self:
            if flag.shorthand:
                prefix = f"  -{flag.shorthand}, --{flag.name}"
            else:
                prefix = f"      --{flag.name}"
            varname, usage = flag._unquoted_usage()
            if varname:
                prefix += " " + varname
            entries.append((prefix, usage + flag._default_text()))
        if not entries:
            return ""
        width = max(len(prefix) for prefix, _ in entries)
        indent = "\n" + " " * (width + 3)
        return "".join(
            f"{prefix}{' ' * (width - len(prefix) + 3)}{usage.replace(chr(10), indent)}\n"
            for prefix, usage in entries
        )