"""Exception hierarchy and move failure taxonomy for the file relocator."""

from pathlib import Path

from .models import MoveOutcome, MoveStatus


class RelocatorError(Exception):
    """Base exception for all relocator errors."""


class ConfigError(RelocatorError):
    """Invalid or missing configuration."""


class SchedulerError(RelocatorError):
    """Scheduler used out of order (e.g. run twice, run after shutdown)."""


class MoveError(RelocatorError):
    """A single move failed.

    Raised inside an executor and recovered there into a terminal
    status; never propagated to the caller of the scheduler.
    """

    outcome: MoveOutcome = MoveOutcome.RENAME_FAILED
    status: MoveStatus = MoveStatus.FAILED

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class SourceVanished(MoveError):
    """The source file no longer exists."""

    outcome = MoveOutcome.SOURCE_VANISHED
    status = MoveStatus.NOT_FOUND


class DestinationConflict(MoveError):
    """A different file already occupies the destination path."""

    outcome = MoveOutcome.DESTINATION_CONFLICT


class DirectoryUnwritable(MoveError):
    """The destination directory cannot be created or written."""

    outcome = MoveOutcome.DIRECTORY_UNWRITABLE


class RenameFailed(MoveError):
    """Atomic rename failed, or the result landed somewhere unexpected."""

    outcome = MoveOutcome.RENAME_FAILED


class CopyFailed(MoveError):
    """Cross-filesystem copy (or the source delete after it) failed."""

    outcome = MoveOutcome.COPY_FAILED


class CleanupFailed(MoveError):
    """A partial destination artifact could not be removed after a failure."""

    outcome = MoveOutcome.CLEANUP_FAILED


class TimedOut(MoveError):
    """The coordinator gave up waiting for the move."""

    outcome = MoveOutcome.TIMED_OUT


class Cancelled(MoveError):
    """The move was discarded or interrupted by scheduler shutdown."""

    outcome = MoveOutcome.CANCELLED
