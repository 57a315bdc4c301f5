"""Writes fetched objects to the result directory.

Each dump path maps to ``<root>/<dirname>/<basename>``, so
``/api/v1/nodes/foo/proxy/configz`` lands in ``<root>/api/v1/nodes/foo/proxy``
as ``configz``.  Files are only written once the whole fetch pass has
succeeded, from the final in-memory map.
"""

from __future__ import annotations

import os
import posixpath
from collections.abc import Iterable, Mapping
from pathlib import Path

from apicollect.errors import PersistError
from apicollect.observability.logging import Logger, resolve_logger

_DIR_MODE = 0o700
_FILE_MODE = 0o600


def _base(path: str) -> str:
    stripped = path.rstrip("/")
    if not stripped:
        return "/" if path else "."
    return posixpath.basename(stripped)


def _dir(path: str) -> str:
    return posixpath.dirname(path) or "."


def save_directory_and_filename(root_dir: str, dump_path: str) -> tuple[str, str]:
    """Return (absolute directory under *root_dir*, file name) for *dump_path*."""
    base = _base(dump_path)
    if base in (".", "/", ".."):
        raise PersistError(f"bad object path: {dump_path}")
    sub_dirs = _dir(dump_path)
    if sub_dirs == ".":
        raise PersistError(f"bad object path: {dump_path}")

    root = os.path.abspath(root_dir)
    save_dir = os.path.normpath(os.path.join(root, sub_dirs.lstrip("/")))
    if os.path.commonpath([root, save_dir]) != root:
        raise PersistError(f"object path escapes the result directory: {dump_path}")
    return save_dir, base


def _write(path: str, data: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)


def save_resources(root_dir: str, found: Mapping[str, bytes], logger: Logger | None = None) -> list[str]:
    """Write every entry of *found*; returns the written file paths in key order."""
    log = resolve_logger(logger, "storage")
    # All keys are validated before anything is written.
    targets = [(dump_path, *save_directory_and_filename(root_dir, dump_path)) for dump_path in sorted(found)]
    written: list[str] = []
    for dump_path, save_dir, file_name in targets:
        save_path = os.path.join(save_dir, file_name)
        log.info("saving_resource", path=save_path)
        try:
            os.makedirs(save_dir, mode=_DIR_MODE, exist_ok=True)
            _write(save_path, found[dump_path])
        except OSError as exc:
            raise PersistError(f"could not save {dump_path} to {save_path}: {exc}") from exc
        written.append(save_path)
    return written


def save_warnings_if_any(warnings: Iterable[str], output_file: str, logger: Logger | None = None) -> bool:
    """Write newline-joined *warnings* to *output_file*.

    Nothing is written when there are no warnings; returns whether a file was
    written.
    """
    lines = list(warnings)
    if not lines:
        return False
    log = resolve_logger(logger, "storage")
    log.debug("persisting_warnings", path=output_file, count=len(lines))
    try:
        Path(output_file).parent.mkdir(parents=True, exist_ok=True)
        _write(output_file, "\n".join(lines).encode("utf-8"))
    except OSError as exc:
        raise PersistError(f"could not save warnings to {output_file}: {exc}") from exc
    return True
