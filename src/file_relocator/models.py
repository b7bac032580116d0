"""Core enums, constants, and the move descriptor for the file relocator.

Enums:
    MoveStatus     -- Per-file move state (pending, moving, renamed, failed, not_found).
    MoveOutcome    -- Failure taxonomy recorded alongside a terminal status.
    SchedulerState -- Scheduler lifecycle (created, running, drained).
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class MoveStatus(StrEnum):
    PENDING = "pending"
    MOVING = "moving"
    RENAMED = "renamed"
    FAILED = "failed"
    NOT_FOUND = "not_found"


class MoveOutcome(StrEnum):
    SOURCE_VANISHED = "source_vanished"
    DESTINATION_CONFLICT = "destination_conflict"
    DIRECTORY_UNWRITABLE = "directory_unwritable"
    RENAME_FAILED = "rename_failed"
    COPY_FAILED = "copy_failed"
    CLEANUP_FAILED = "cleanup_failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class SchedulerState(StrEnum):
    CREATED = "created"
    RUNNING = "running"
    DRAINED = "drained"


TERMINAL_STATUSES: frozenset[MoveStatus] = frozenset(
    {
        MoveStatus.RENAMED,
        MoveStatus.FAILED,
        MoveStatus.NOT_FOUND,
    }
)

# Seconds the coordinator waits for a single move before abandoning it
DEFAULT_MOVE_TIMEOUT = 120

DUPLICATES_DIR_NAME = "duplicates"

DEFAULT_COPY_CHUNK = 1024 * 1024


@dataclass
class MoveDescriptor:
    """One file's intended relocation.

    Owned by the caller. The relocator only mutates source_path, status
    and outcome, and settles a terminal status at most once.
    """

    source_path: Path
    dest_dir: Path
    basename: str
    suffix: str
    size: int = 0
    index: int | None = None
    status: MoveStatus = MoveStatus.PENDING
    outcome: MoveOutcome | None = None
    timestamp: float | None = None
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @classmethod
    def from_source(
        cls,
        source: Path,
        dest_root: Path,
        basename: str | None = None,
        *,
        move_enabled: bool = True,
        rename_enabled: bool = True,
    ) -> MoveDescriptor:
        """Build a descriptor for a file on disk.

        With moving disabled the file stays in its own directory; with
        renaming disabled (or no basename) it keeps its current stem.
        """
        dest_dir = dest_root if move_enabled else source.parent
        if not rename_enabled or not basename:
            basename = source.stem
        try:
            size = source.stat().st_size
        except OSError:
            size = 0
        return cls(
            source_path=source,
            dest_dir=dest_dir,
            basename=basename,
            suffix=source.suffix,
            size=size,
        )

    @property
    def desired_filename(self) -> str:
        """Filename the move wants, ignoring any disambiguation index."""
        return f"{self.basename}{self.suffix}"

    @property
    def target_filename(self) -> str:
        if self.index is None:
            return self.desired_filename
        return f"{self.basename} ({self.index}){self.suffix}"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def assign_index(self, index: int) -> bool:
        """Set the disambiguation index. Returns False if one was already set."""
        with self._lock:
            if self.index is not None:
                return False
            self.index = index
            return True

    def mark_moving(self) -> None:
        with self._lock:
            if self.status == MoveStatus.PENDING:
                self.status = MoveStatus.MOVING

    def settle(
        self,
        status: MoveStatus,
        outcome: MoveOutcome | None = None,
        source_path: Path | None = None,
    ) -> bool:
        """Record a terminal status. Only the first call wins.

        Returns True if this call set the status, False if the descriptor
        was already terminal (e.g. abandoned by the coordinator on timeout).
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"{status} is not a terminal status")
        with self._lock:
            if self.status in TERMINAL_STATUSES:
                return False
            self.status = status
            self.outcome = outcome
            if source_path is not None:
                self.source_path = source_path
            return True


@dataclass
class BatchResult:
    """Result summary from a scheduled batch of moves."""

    completed: int = 0
    failed: int = 0
    not_found: int = 0
    timed_out: int = 0
    total: int = 0

    @classmethod
    def from_descriptors(cls, descriptors: list[MoveDescriptor]) -> BatchResult:
        result = cls(total=len(descriptors))
        for desc in descriptors:
            if desc.status == MoveStatus.RENAMED:
                result.completed += 1
            elif desc.status == MoveStatus.NOT_FOUND:
                result.not_found += 1
            else:
                result.failed += 1
                if desc.outcome == MoveOutcome.TIMED_OUT:
                    result.timed_out += 1
        return result
