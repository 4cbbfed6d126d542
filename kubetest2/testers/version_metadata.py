"""Recording the tester's version in the run's metadata file."""

from __future__ import annotations

import os
from pathlib import Path

from ..metadata import CustomJSON


def write_version_to_metadata(version: str) -> None:
    """Add ``tester-version`` to ``$KUBETEST2_RUN_DIR/metadata.json``.

    Existing metadata is kept; a tester version already present is an error.
    """
    path = Path(os.environ.get("KUBETEST2_RUN_DIR", "")) / "metadata.json"
    if path.exists():
        with path.open(encoding="utf-8") as stream:
            meta = CustomJSON.load(stream)
    else:
        meta = CustomJSON()

    meta.add("tester-version", version)

    with path.open("w", encoding="utf-8") as stream:
        meta.write(stream)
        stream.flush()
        os.fsync(stream.fileno())