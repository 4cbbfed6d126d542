"""Locations of the artifacts and run directories."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .flags import FlagSet


def default_artifacts_dir() -> str:
    """Return ``$ARTIFACTS`` if set, otherwise ``./_artifacts``, as an absolute path."""
    return os.path.abspath(os.environ.get("ARTIFACTS", "_artifacts"))


def default_run_dir() -> str:
    """Return ``$KUBETEST2_RUN_DIR`` if set, otherwise ``./_rundir``, as an absolute path."""
    return os.path.abspath(os.environ.get("KUBETEST2_RUN_DIR", "_rundir"))


def bind_flags(flags: FlagSet) -> None:
    """Define the ``--artifacts`` and ``--rundir`` flags."""
    flags.add_string(
        "artifacts",
        default_artifacts_dir(),
        "top-level directory to put artifacts under for each kubetest2 run, "
        'defaulting to "${ARTIFACTS:-./_artifacts}". If using the ginkgo tester, '
        "this must be an absolute path.",
    )
    flags.add_string(
        "rundir",
        "",
        "directory to put run related test binaries like e2e.test, ginkgo, kubectl "
        'for each kubetest2 run, defaulting to "${KUBETEST2_RUN_DIR:-./_rundir}". '
        "If using the ginkgo tester, this must be an absolute path.",
    )


@dataclass
class Artifacts:
    """The artifacts and run directories chosen on the command line."""

    artifacts_flag: str = ""
    rundir_flag: str = ""

    @classmethod
    def from_flags(cls, flags: FlagSet) -> Artifacts:
        return cls(artifacts_flag=str(flags["artifacts"]), rundir_flag=str(flags["rundir"]))

    def base_dir(self) -> str:
        """Directory where artifacts and runner metadata are written."""
        return self.artifacts_flag or default_artifacts_dir()

    def run_dir(self) -> str:
        """Directory for files specific to a single run."""
        return self.rundir_flag or default_run_dir()