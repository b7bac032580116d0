"""Remove directories emptied by a move, bounded by a root directory."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from .fileops import mount_point

log = logger.bind(component="reaper")


class DirectoryReaper:
    """Deletes empty directories upward from a starting point.

    Never deletes the root itself, anything above or outside it, or a
    non-empty directory. With no root configured, the mount point of
    each starting directory is the bound.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = root.resolve() if root is not None else None

    def reap(self, directory: Path) -> list[Path]:
        """Remove directory and its ancestors while they are empty.

        Deletion failures are logged and end the walk. Returns the
        directories that were removed, deepest first.
        """
        removed: list[Path] = []
        if directory.is_symlink():
            return removed
        current = directory.resolve()
        root = self.root if self.root is not None else mount_point(current)

        while self._removable(current, root):
            try:
                current.rmdir()
            except OSError as e:
                log.warning(f"Could not remove empty dir {current}: {e}")
                break
            log.debug(f"Removed empty dir: {current}")
            removed.append(current)
            current = current.parent

        return removed

    @staticmethod
    def _removable(directory: Path, root: Path) -> bool:
        if directory.is_symlink() or not directory.is_dir():
            return False
        # Strictly inside root: at-root and above/outside are left alone
        if directory == root or root not in directory.parents:
            log.debug(f"Stopping at {directory} (root={root})")
            return False
        try:
            return not any(directory.iterdir())
        except OSError:
            return False
