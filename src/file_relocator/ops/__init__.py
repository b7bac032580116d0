"""Filesystem operations for the file relocator.

Submodules:
    conflicts -- Groups moves by destination directory and desired filename,
                 probes the disk for an exact-name pre-existing file, and assigns
                 " (N)" disambiguation indices (largest file keeps the plain name).
    reaper    -- DirectoryReaper: removes directories emptied by a move, walking
                 upward, never at or above the configured root (or mount point).
    fileops   -- Real-path resolution, same-device detection (st_dev), identity
                 checks, writable-dir creation, free-space check, chunked copy
                 with progress and cancellation, partial-artifact removal.
"""
