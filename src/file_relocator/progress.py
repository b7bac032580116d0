"""Observer interfaces for per-move progress and batch completion.

Both are plain classes with no-op methods; callers subclass and override
what they need. Nothing here depends on a UI toolkit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from .models import BatchResult, MoveDescriptor

log = logger.bind(component="progress")


class ProgressObserver:
    """Receives progress for a single move."""

    def initialize(self, total_bytes: int) -> None:
        pass

    def progress(self, bytes_so_far: int) -> None:
        pass

    def status(self, text: str) -> None:
        pass

    def finish(self, success: bool) -> None:
        pass


class CompletionSink:
    """Receives aggregate progress from the scheduler coordinator."""

    def progress(self, total: int, remaining: int) -> None:
        pass

    def finished(self, result: BatchResult) -> None:
        pass


class LoggingObserver(ProgressObserver):
    """Reports a move's progress through loguru.

    Byte progress is only logged every `every` calls, since a large copy
    reports once per chunk.
    """

    def __init__(self, descriptor: MoveDescriptor, every: int = 500) -> None:
        self.name = descriptor.source_path.name
        self.every = every
        self.total = 0
        self._calls = 0

    def initialize(self, total_bytes: int) -> None:
        self.total = total_bytes

    def progress(self, bytes_so_far: int) -> None:
        if self._calls % self.every == 0 and self.total:
            log.debug(f"{self.name}: {bytes_so_far / self.total:.1%}")
        self._calls += 1

    def status(self, text: str) -> None:
        log.debug(f"{self.name}: {text}")

    def finish(self, success: bool) -> None:
        log.debug(f"{self.name}: {'done' if success else 'failed'}")
