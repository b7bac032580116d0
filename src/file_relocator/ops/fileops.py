"""Low-level filesystem helpers shared by the executor and reaper."""

from __future__ import annotations

import os
import shutil
import threading
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from ..errors import CopyFailed, DirectoryUnwritable
from ..models import DEFAULT_COPY_CHUNK

log = logger.bind(component="fileops")


def real_path(path: Path) -> Path | None:
    """Canonical absolute path with symlinks resolved, or None if missing."""
    try:
        return path.resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError):
        return None


def same_filesystem(source: Path, dest_dir: Path) -> bool:
    """Check whether source and dest_dir live on the same device.

    Returns False when either cannot be stat'ed, so callers fall back
    to copying.
    """
    try:
        same = source.stat().st_dev == dest_dir.stat().st_dev
    except OSError as e:
        log.warning(f"Filesystem detection failed, falling back to copy: {e}")
        return False
    log.debug(f"same_filesystem({source}, {dest_dir}) = {same}")
    return same


def is_same_file(a: Path, b: Path) -> bool:
    """Identity check (device + inode), not content comparison."""
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def ensure_writable_dir(directory: Path) -> None:
    """Create directory (with parents) and check it can take new files.

    Raises DirectoryUnwritable if the directory cannot be created or written.
    """
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryUnwritable(
            f"Unable to create destination directory {directory}: {e}", directory
        ) from e
    if not directory.is_dir():
        raise DirectoryUnwritable(f"{directory} is not a directory", directory)
    if not os.access(directory, os.W_OK | os.X_OK):
        raise DirectoryUnwritable(f"{directory} is not writable", directory)


def check_disk_space(dest_dir: Path, required: int) -> bool:
    """Check that dest_dir's filesystem has at least `required` bytes free."""
    usage = shutil.disk_usage(dest_dir)
    result = usage.free >= required
    log.debug(
        f"Disk space check: required={required:,} bytes, "
        f"free={usage.free:,} bytes, sufficient={result}"
    )
    return result


def copy_with_progress(
    source: Path,
    dest: Path,
    on_progress: Callable[[int], None] | None = None,
    cancelled: threading.Event | None = None,
    chunk_size: int = DEFAULT_COPY_CHUNK,
) -> int:
    """Copy source to dest in chunks, reporting bytes copied so far.

    The destination is created exclusively, so an existing file is never
    overwritten. File metadata is copied after the data. Checks the
    cancellation event between chunks. Returns the number of bytes copied.

    Raises CopyFailed on interruption, OSError on I/O failure. The
    partial destination is left for the caller to clean up.
    """
    copied = 0
    with open(source, "rb") as src, open(dest, "xb") as dst:
        while True:
            if cancelled is not None and cancelled.is_set():
                raise CopyFailed(f"Copy interrupted after {copied:,} bytes", dest)
            chunk = src.read(chunk_size)
            if not chunk:
                break
            dst.write(chunk)
            copied += len(chunk)
            if on_progress is not None:
                on_progress(copied)
    shutil.copystat(source, dest)
    return copied


def remove_partial(path: Path) -> bool:
    """Delete a partial artifact. Returns True if nothing is left behind."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        log.warning(f"Could not remove {path}: {e}")
        return False
    return True


def mount_point(path: Path) -> Path:
    """Return the mount point of the filesystem containing path."""
    current = path.absolute()
    while not os.path.ismount(current) and current != current.parent:
        current = current.parent
    return current
