"""Per-file move: rename on the same filesystem, copy-then-delete across.

MoveExecutor walks one descriptor through PENDING -> MOVING -> a terminal
status (RENAMED, FAILED, NOT_FOUND). Failures are raised internally as
MoveError subclasses and recovered into a boolean result plus a log line;
run() never raises. There are no retries here and no internal timeout;
the scheduler's coordinator enforces timeouts via cancel()/abandon().
"""

from __future__ import annotations

import os
import threading
import time
from pathlib import Path

from loguru import logger

from .config import RelocatorConfig
from .errors import (
    CleanupFailed,
    CopyFailed,
    DestinationConflict,
    MoveError,
    RenameFailed,
    SourceVanished,
)
from .models import MoveDescriptor, MoveOutcome, MoveStatus
from .ops.fileops import (
    check_disk_space,
    copy_with_progress,
    ensure_writable_dir,
    is_same_file,
    real_path,
    remove_partial,
    same_filesystem,
)
from .ops.reaper import DirectoryReaper
from .progress import ProgressObserver

log = logger.bind(component="executor")


def effective_destination(desc: MoveDescriptor, config: RelocatorConfig) -> Path:
    """Destination path before real-path resolution.

    Indexed moves go to the duplicates subdirectory when moving is
    enabled and a duplicates name is configured.
    """
    dest_dir = desc.dest_dir
    if desc.index is not None and config.move_enabled and config.duplicates_dir_name:
        dest_dir = dest_dir / config.duplicates_dir_name
    return dest_dir / desc.target_filename


class MoveExecutor:
    """Executes a single move for one descriptor."""

    def __init__(
        self,
        descriptor: MoveDescriptor,
        config: RelocatorConfig,
        observer: ProgressObserver | None = None,
        reaper: DirectoryReaper | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.config = config
        self.observer = observer or ProgressObserver()
        self.reaper = reaper or DirectoryReaper(config.reap_root)
        self._cancelled = threading.Event()

    def __call__(self) -> bool:
        return self.run()

    def cancel(self) -> None:
        """Best-effort interrupt; honored between copy chunks only."""
        self._cancelled.set()

    def abandon(self, outcome: MoveOutcome, message: str) -> bool:
        """Settle the descriptor as FAILED on behalf of the coordinator.

        Returns False if the move had already reached a terminal status.
        """
        self.cancel()
        if not self.descriptor.settle(MoveStatus.FAILED, outcome):
            return False
        self.observer.status(message)
        self.observer.finish(False)
        return True

    def run(self) -> bool:
        """Perform the move. Returns True on success, never raises."""
        desc = self.descriptor
        desc.mark_moving()
        try:
            dest = self._move()
        except MoveError as e:
            if e.status == MoveStatus.NOT_FOUND:
                log.info(f"File no longer exists: {desc.source_path}")
            else:
                log.error(f"{e.outcome}: {e}")
            self._settle(e.status, e.outcome, str(e))
            return False
        except Exception as e:
            log.exception(f"Unexpected error moving {desc.source_path}: {e}")
            self._settle(MoveStatus.FAILED, MoveOutcome.RENAME_FAILED, str(e))
            return False

        return self._settle(MoveStatus.RENAMED, None, f"Moved to {dest}", dest)

    def _settle(
        self,
        status: MoveStatus,
        outcome: MoveOutcome | None,
        message: str,
        dest: Path | None = None,
    ) -> bool:
        success = status == MoveStatus.RENAMED
        if not self.descriptor.settle(status, outcome, source_path=dest):
            log.warning(
                f"{self.descriptor.source_path.name}: finished as {status} "
                f"after being abandoned as {self.descriptor.status}"
            )
            return False
        self.observer.status(message)
        self.observer.finish(success)
        return success

    def _move(self) -> Path:
        desc = self.descriptor

        source = real_path(desc.source_path)
        if source is None or not source.is_file():
            raise SourceVanished(f"{desc.source_path} no longer exists", desc.source_path)
        self.observer.initialize(source.stat().st_size)

        intended = effective_destination(desc, self.config)
        ensure_writable_dir(intended.parent)
        dest = intended.parent.resolve() / intended.name

        if source == dest or (os.path.lexists(dest) and is_same_file(source, dest)):
            log.info(f"Already in place: {dest}")
            return dest
        if os.path.lexists(dest):
            raise DestinationConflict(
                f"File {dest} already exists; {source} was not moved", dest
            )

        if same_filesystem(source, dest.parent):
            self.observer.status("Renaming")
            self._rename(source, dest)
        else:
            self.observer.status("Copying")
            self._copy_and_delete(source, dest)

        actual = Path(os.path.realpath(dest))
        if actual != dest or not actual.exists():
            raise RenameFailed(f"Moved {source} but it landed at {actual}, not {dest}", dest)

        log.info(f"Moved {source} to {dest}")
        self._touch(dest)
        if self.config.remove_empty_dirs:
            self.reaper.reap(source.parent)
        return dest

    def _rename(self, source: Path, dest: Path) -> None:
        """Move without ever replacing dest.

        Links the new name and drops the old one. Filesystems without
        hard links fall back to os.rename, which replaces silently, so
        the existence check is repeated right before it.
        """
        try:
            os.link(source, dest)
        except FileExistsError as e:
            raise DestinationConflict(f"File {dest} appeared during the move", dest) from e
        except OSError as e:
            log.debug(f"Hard link unavailable for {dest} ({e}), using rename")
            self._plain_rename(source, dest)
        else:
            try:
                source.unlink()
            except OSError as e:
                # Only the link we just made is ours to remove
                remove_partial(dest)
                raise RenameFailed(
                    f"Linked {dest} but could not remove {source}: {e}", dest
                ) from e
        self.observer.progress(self.descriptor.size)

    def _plain_rename(self, source: Path, dest: Path) -> None:
        if os.path.lexists(dest):
            raise DestinationConflict(f"File {dest} appeared during the move", dest)
        try:
            os.rename(source, dest)
        except OSError as e:
            raise RenameFailed(f"Unable to rename {source} to {dest}: {e}", dest) from e

    def _copy_and_delete(self, source: Path, dest: Path) -> None:
        size = source.stat().st_size
        if self.config.check_free_space and not check_disk_space(dest.parent, size):
            raise CopyFailed(f"Not enough free space in {dest.parent} for {source}", dest)

        try:
            copy_with_progress(
                source,
                dest,
                on_progress=self.observer.progress,
                cancelled=self._cancelled,
                chunk_size=self.config.copy_chunk_size,
            )
        except FileExistsError as e:
            # Appeared between the existence check and the copy; not ours
            raise DestinationConflict(f"File {dest} appeared during the move", dest) from e
        except (OSError, CopyFailed) as e:
            self._discard_copy(dest, f"Copy of {source} to {dest} failed: {e}", e)

        try:
            source.unlink()
        except OSError as e:
            self._discard_copy(dest, f"Copied {source} but could not delete it: {e}", e)

    def _discard_copy(self, dest: Path, message: str, cause: Exception) -> None:
        if remove_partial(dest):
            log.warning(f"Incomplete copy removed: {dest}")
            raise CopyFailed(message, dest) from cause
        log.warning(f"Incomplete copy left in place: {dest}")
        raise CleanupFailed(f"{message}; incomplete copy left in place", dest) from cause

    def _touch(self, dest: Path) -> None:
        if not self.config.touch_on_success:
            return
        stamp = self.descriptor.timestamp
        if stamp is None:
            stamp = time.time()
        try:
            os.utime(dest, (dest.stat().st_atime, stamp))
        except OSError as e:
            log.warning(f"Could not set modification time on {dest}: {e}")
