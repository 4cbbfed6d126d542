"""Filesystem helpers."""

from __future__ import annotations

import os
import shutil
import stat


def copy_file(src: str | os.PathLike[str], dst: str | os.PathLike[str]) -> None:
    """Copy ``src`` to ``dst``, creating parent directories.

    A newly created ``dst`` gets the permission bits of ``src``.
    """
    mode = stat.S_IMODE(os.stat(src).st_mode)
    with open(src, "rb") as source:
        parent = os.path.dirname(os.fspath(dst))
        if parent:
            os.makedirs(parent, exist_ok=True)
        fd = os.open(dst, os.O_RDWR | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0), mode)
        with os.fdopen(fd, "wb") as target:
            shutil.copyfileobj(source, target)
            target.flush()
            os.fsync(target.fileno())