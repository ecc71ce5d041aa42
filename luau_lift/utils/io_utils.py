"""Filesystem helpers for emitting lift artefacts."""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any, Callable, TextIO

__all__ = [
    "ensure_directory",
    "write_text",
    "write_json",
]


def _atomic_write_text(
    path: str | os.PathLike[str],
    writer: Callable[[TextIO], None],
    *,
    encoding: str = "utf-8",
) -> None:
    target = os.fspath(path)
    directory = os.path.dirname(target) or "."
    os.makedirs(directory, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".partial", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            writer(handle)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target)
    except BaseException:
        try:
            os.unlink(temp_path)
        except FileNotFoundError:
            pass
        raise


def ensure_directory(path: str | os.PathLike[str]) -> str:
    """Create ``path`` (and parents) if needed and return it as a string."""

    fs_path = os.fspath(path)
    os.makedirs(fs_path, exist_ok=True)
    return fs_path


def write_text(
    path: str | os.PathLike[str],
    content: str,
    *,
    encoding: str = "utf-8",
) -> None:
    """Atomically write ``content`` to ``path``."""

    def _writer(handle: TextIO) -> None:
        handle.write(content)

    _atomic_write_text(path, _writer, encoding=encoding)


def write_json(
    path: str | os.PathLike[str],
    obj: Any,
    *,
    encoding: str = "utf-8",
    sort_keys: bool = False,
) -> None:
    """Serialise ``obj`` as pretty JSON at ``path``."""

    def _writer(handle: TextIO) -> None:
        json.dump(obj, handle, ensure_ascii=False, indent=2, sort_keys=sort_keys)
        handle.write("\n")

    _atomic_write_text(path, _writer, encoding=encoding)
