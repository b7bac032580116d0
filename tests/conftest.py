"""Shared fixtures: isolated config and recording observers."""

import pytest

from file_relocator.config import RelocatorConfig
from file_relocator.models import MoveDescriptor
from file_relocator.progress import CompletionSink, ProgressObserver

# Env vars that pydantic-settings reads -- must be cleaned for default tests
_CONFIG_ENV_VARS = [
    "MOVE_ENABLED", "RENAME_ENABLED", "DUPLICATES_DIR_NAME", "REMOVE_EMPTY_DIRS",
    "REAP_ROOT", "MAX_WORKERS", "MOVE_TIMEOUT", "COPY_CHUNK_SIZE",
    "TOUCH_ON_SUCCESS", "CHECK_FREE_SPACE", "DRY_RUN", "VERBOSE", "LOG_LEVEL",
    "LOG_DIR",
]


class RecordingObserver(ProgressObserver):
    def __init__(self, descriptor: MoveDescriptor | None = None) -> None:
        self.descriptor = descriptor
        self.total: int | None = None
        self.progress_values: list[int] = []
        self.statuses: list[str] = []
        self.finishes: list[bool] = []

    def initialize(self, total_bytes: int) -> None:
        self.total = total_bytes

    def progress(self, bytes_so_far: int) -> None:
        self.progress_values.append(bytes_so_far)

    def status(self, text: str) -> None:
        self.statuses.append(text)

    def finish(self, success: bool) -> None:
        self.finishes.append(success)


class RecordingSink(CompletionSink):
    def __init__(self) -> None:
        self.counts: list[tuple[int, int]] = []
        self.results = []

    def progress(self, total: int, remaining: int) -> None:
        self.counts.append((total, remaining))

    def finished(self, result) -> None:
        self.results.append(result)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove relocator env vars so tests see actual defaults."""
    for var in _CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_config(tmp_path):
    """Build a config isolated from .env files, reaping no higher than tmp_path."""

    def _make(**kwargs) -> RelocatorConfig:
        kwargs.setdefault("reap_root", tmp_path)
        return RelocatorConfig(_env_file=None, **kwargs)

    return _make


@pytest.fixture
def recorder():
    return RecordingObserver()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def observers():
    """Observer factory that keeps each observer, keyed by source filename."""
    created: dict[str, RecordingObserver] = {}

    def factory(descriptor: MoveDescriptor) -> RecordingObserver:
        observer = RecordingObserver(descriptor)
        created[descriptor.source_path.name] = observer
        return observer

    factory.created = created
    return factory


def _make_file(path, size: int = 10, content: bytes | None = None):
    """Create a file (and its parents) with `size` bytes of content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content if content is not None else b"x" * size)
    return path


@pytest.fixture
def make_file():
    return _make_file
