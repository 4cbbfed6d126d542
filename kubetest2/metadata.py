"""Run metadata: JUnit runner reports and custom JSON metadata."""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import IO, Any, Callable, TypeVar

T = TypeVar("T")

_XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>'
_XML_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}
_INVALID_XML = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


class JUnitError(Exception):
    """An error carrying command output for the JUnit report."""

    def __init__(self, message: str, system_out: str = "") -> None:
        super().__init__(message)
        self.system_out = system_out


class CustomJSON:
    """A flat string-to-string metadata document."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data) if data else {}

    @classmethod
    def load(cls, stream: IO[Any]) -> CustomJSON:
        """Read a JSON object of string values from ``stream``."""
        loaded = json.loads(stream.read())
        if loaded is None:
            return cls()
        if not isinstance(loaded, dict) or not all(
            isinstance(v, str) for v in loaded.values()
        ):
            raise ValueError("metadata must be a JSON object of string values")
        return cls(loaded)

    @property
    def data(self) -> dict[str, str]:
        return dict(self._data)

    def add(self, key: str, value: str) -> None:
        """Add a new key; an existing key is an error."""
        if key in self._data:
            raise ValueError(f"key {key} already exists in the metadata")
        self._data[key] = value

    def write(self, stream: IO[str]) -> None:
        """Write the metadata as compact JSON with sorted keys."""
        text = json.dumps(self._data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        for char, escaped in (("<", "\\u003c"), (">", "\\u003e"), ("&", "\\u0026"),
                              ("\u2028", "\\u2028"), ("\u2029", "\\u2029")):
            text = text.replace(char, escaped)
        stream.write(text)


def _escape(text: str) -> str:
    text = _INVALID_XML.sub("\ufffd", text)
    return "".join(_XML_ESCAPES.get(c, c) for c in text)


def _format_seconds(value: float) -> str:
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


@dataclass
class _TestCase:
    name: str
    class_name: str
    time: float
    failure: str = ""
    skipped: str = ""
    system_out: str = ""

    def to_xml(self) -> str:
        attrs = (
            f'name="{_escape(self.name)}" classname="{_escape(self.class_name)}" '
            f'time="{_format_seconds(self.time)}"'
        )
        children = [
            (tag, text)
            for tag, text in (("failure", self.failure), ("skipped", self.skipped),
                              ("system-out", self.system_out))
            if text
        ]
        if not children:
            return f"<testcase {attrs}></testcase>"
        inner = "".join(f"\n        <{tag}>{_escape(text)}</{tag}>" for tag, text in children)
        return f"<testcase {attrs}>{inner}\n    </testcase>"


@dataclass
class _TestSuite:
    name: str
    failures: int = 0
    tests: int = 0
    time: float = 0.0
    cases: list[_TestCase] = field(default_factory=list)

    def add(self, case: _TestCase) -> None:
        self.tests += 1
        if case.failure:
            self.failures += 1
        self.cases.append(case)

    def to_xml(self) -> str:
        attrs = (
            f'name="{_escape(self.name)}" failures="{self.failures}" '
            f'tests="{self.tests}" time="{_format_seconds(self.time)}"'
        )
        if not self.cases:
            return f"<testsuite {attrs}></testsuite>"
        body = "".join(f"\n    {case.to_xml()}" for case in self.cases)
        return f"<testsuite {attrs}>{body}\n</testsuite>"


class Writer:
    """Records top-level steps and writes them as a JUnit test suite."""

    def __init__(self, suite_name: str, runner_out: IO[str],
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._suite = _TestSuite(suite_name)
        self._out = runner_out
        self._clock = clock
        self._start = clock()

    def wrap_step(self, name: str, do_step: Callable[[], T]) -> T:
        """Run ``do_step`` as a named step, recording its duration and outcome.

        Exceptions are recorded and re-raised.
        """
        start = self._clock()
        error: Exception | None = None
        try:
            return do_step()
        except Exception as exc:
            error = exc
            raise
        finally:
            case = _TestCase(name, self._suite.name, self._clock() - start)
            if error is not None:
                case.failure = str(error) or type(error).__name__
                if isinstance(error, JUnitError):
                    case.system_out = error.system_out
            self._suite.add(case)

    def finish(self) -> None:
        """Set the total suite time and write the report."""
        self._suite.time = self._clock() - self._start
        self._out.write(_XML_HEADER + self._suite.to_xml())