import io
import json

import pytest

from kubetest2.metadata import CustomJSON, JUnitError, Writer


def _fake_clock():
    state = {"t": 0.0}

    def now():
        state["t"] += 1.0
        return state["t"]

    return now


def _ok():
    return None


def _fail():
    raise RuntimeError("oh noes")


def _fail_junit():
    raise JUnitError("on noes", "uh oh")


def test_custom_json_add_write():
    meta = CustomJSON()
    meta.add("foo", "bar")
    meta.add("baz", "qwe")
    buff = io.StringIO()
    meta.write(buff)
    assert buff.getvalue() == '{"baz":"qwe","foo":"bar"}'


def test_new_custom_json():
    meta = CustomJSON.load(io.StringIO('{"baz":"qwe","foo":"bar"}'))
    assert meta.data == {"foo": "bar", "baz": "qwe"}


def test_custom_json_load_bytes_stream():
    meta = CustomJSON.load(io.BytesIO(b'{"a":"b"}'))
    assert meta.data == {"a": "b"}


def test_custom_json_duplicate_key_raises():
    meta = CustomJSON({"foo": "bar"})
    with pytest.raises(ValueError, match="foo already exists"):
        meta.add("foo", "other")
    assert meta.data == {"foo": "bar"}


def test_custom_json_invalid_input_raises():
    with pytest.raises(ValueError):
        CustomJSON.load(io.StringIO("not json"))
    with pytest.raises(ValueError):
        CustomJSON.load(io.StringIO('{"a": 1}'))


def test_custom_json_round_trip_with_html_chars():
    meta = CustomJSON()
    meta.add("k", "<a&b>")
    buff = io.StringIO()
    meta.write(buff)
    assert "<" not in buff.getvalue()
    assert json.loads(buff.getvalue()) == {"k": "<a&b>"}
    assert CustomJSON.load(io.StringIO(buff.getvalue())).data == {"k": "<a&b>"}


def test_custom_json_data_is_a_copy():
    meta = CustomJSON()
    meta.data["x"] = "y"
    assert meta.data == {}


@pytest.mark.parametrize(
    "steps, expected",
    [
        (
            [("noop", _ok, False)],
            '<?xml version="1.0" encoding="UTF-8"?><testsuite name="kubetest2" failures="0" tests="1" time="3">\n'
            '    <testcase name="noop" classname="kubetest2" time="1"></testcase>\n'
            "</testsuite>",
        ),
        (
            [("always fails", _fail, True)],
            '<?xml version="1.0" encoding="UTF-8"?><testsuite name="kubetest2" failures="1" tests="1" time="3">\n'
            '    <testcase name="always fails" classname="kubetest2" time="1">\n'
            "        <failure>oh noes</failure>\n"
            "    </testcase>\n"
            "</testsuite>",
        ),
        (
            [("always fails (junitError)", _fail_junit, True)],
            '<?xml version="1.0" encoding="UTF-8"?><testsuite name="kubetest2" failures="1" tests="1" time="3">\n'
            '    <testcase name="always fails (junitError)" classname="kubetest2" time="1">\n'
            "        <failure>on noes</failure>\n"
            "        <system-out>uh oh</system-out>\n"
            "    </testcase>\n"
            "</testsuite>",
        ),
        (
            [
                ("noop", _ok, False),
                ("noop2", _ok, False),
                ("always fails (junitError)", _fail_junit, True),
            ],
            '<?xml version="1.0" encoding="UTF-8"?><testsuite name="kubetest2" failures="1" tests="3" time="7">\n'
            '    <testcase name="noop" classname="kubetest2" time="1"></testcase>\n'
            '    <testcase name="noop2" classname="kubetest2" time="1"></testcase>\n'
            '    <testcase name="always fails (junitError)" classname="kubetest2" time="1">\n'
            "        <failure>on noes</failure>\n"
            "        <system-out>uh oh</system-out>\n"
            "    </testcase>\n"
            "</testsuite>",
        ),
    ],
    ids=["all passing", "one failed step", "one failed junit", "two passing one failed"],
)
def test_writer(steps, expected):
    out = io.StringIO()
    writer = Writer("kubetest2", out, clock=_fake_clock())
    for name, step, expect_error in steps:
        if expect_error:
            with pytest.raises(Exception):
                writer.wrap_step(name, step)
        else:
            writer.wrap_step(name, step)
    writer.finish()
    assert out.getvalue() == expected


def test_writer_reraises_same_exception():
    writer = Writer("kubetest2", io.StringIO(), clock=_fake_clock())
    with pytest.raises(JUnitError) as info:
        writer.wrap_step("x", _fail_junit)
    assert info.value.system_out == "uh oh"


def test_writer_returns_step_result():
    writer = Writer("kubetest2", io.StringIO(), clock=_fake_clock())
    assert writer.wrap_step("value", lambda: 42) == 42


def test_writer_empty_suite():
    out = io.StringIO()
    writer = Writer("kubetest2", out, clock=_fake_clock())
    writer.finish()
    assert out.getvalue() == (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<testsuite name="kubetest2" failures="0" tests="0" time="1"></testsuite>'
    )


def test_writer_escapes_failure_text():
    out = io.StringIO()
    writer = Writer("kubetest2", out, clock=_fake_clock())

    def bad():
        raise ValueError("a<b & c>d")

    with pytest.raises(ValueError):
        writer.wrap_step("esc", bad)
    writer.finish()
    assert "<failure>a&lt;b &amp; c&gt;d</failure>" in out.getvalue()


def test_junit_error_message():
    err = JUnitError("boom", "output")
    assert str(err) == "boom"
    assert err.system_out == "output"