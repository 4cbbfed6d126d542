import os

import pytest

from kubetest2.artifacts import Artifacts, bind_flags, default_artifacts_dir, default_run_dir
from kubetest2.flags import FlagSet


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("ARTIFACTS", raising=False)
    monkeypatch.delenv("KUBETEST2_RUN_DIR", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_default_artifacts_dir_without_env(clean_env):
    assert default_artifacts_dir() == os.path.join(os.getcwd(), "_artifacts")


def test_default_run_dir_without_env(clean_env):
    assert default_run_dir() == os.path.join(os.getcwd(), "_rundir")


def test_defaults_follow_env(clean_env, monkeypatch):
    monkeypatch.setenv("ARTIFACTS", "out")
    monkeypatch.setenv("KUBETEST2_RUN_DIR", str(clean_env / "run"))
    assert default_artifacts_dir() == os.path.join(os.getcwd(), "out")
    assert default_run_dir() == str(clean_env / "run")


def test_defaults_are_absolute(clean_env, monkeypatch):
    monkeypatch.setenv("ARTIFACTS", "rel/dir")
    assert default_artifacts_dir() == os.path.join(os.getcwd(), "rel", "dir")
    assert default_run_dir() == os.path.join(os.getcwd(), "_rundir")


def test_bind_flags_defaults(clean_env):
    flags = FlagSet("t")
    bind_flags(flags)
    assert flags["artifacts"] == default_artifacts_dir()
    assert flags["rundir"] == ""
    arts = Artifacts.from_flags(flags)
    assert arts.base_dir() == default_artifacts_dir()
    assert arts.run_dir() == default_run_dir()


def test_flags_override_defaults(clean_env):
    flags = FlagSet("t")
    bind_flags(flags)
    flags.parse(["--artifacts", "/a/b", "--rundir=/r/s"])
    arts = Artifacts.from_flags(flags)
    assert arts.base_dir() == "/a/b"
    assert arts.run_dir() == "/r/s"


def test_empty_artifacts_falls_back(clean_env, monkeypatch):
    monkeypatch.setenv("ARTIFACTS", str(clean_env / "arts"))
    arts = Artifacts()
    assert arts.base_dir() == str(clean_env / "arts")


def test_bind_flags_twice_raises(clean_env):
    flags = FlagSet("t")
    bind_flags(flags)
    with pytest.raises(ValueError):
        bind_flags(flags)