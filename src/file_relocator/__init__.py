"""File Relocator -- move batches of files to computed destinations safely.

Core modules:
    models     -- MoveDescriptor, status/outcome enums, BatchResult
    config     -- Relocator configuration via pydantic-settings (.env + env vars)
    errors     -- Exception hierarchy; one MoveError subclass per failure outcome
    progress   -- ProgressObserver (per move) and CompletionSink (per batch)
    executor   -- Single-file move state machine: atomic rename on the same
                  filesystem, chunked copy-then-delete across filesystems,
                  partial-artifact cleanup, mtime stamping
    scheduler  -- Bounded thread pool plus coordinator thread that drains results
                  in submission order with a per-move timeout
    sanitize   -- Basename sanitization for filesystem safety
    cli        -- Click CLI entry point (SOURCES + --dest, or a JSON --plan)

Subpackages:
    ops        -- Filesystem operations (conflict indexing, empty-dir reaping,
                  copy/rename helpers)
"""
