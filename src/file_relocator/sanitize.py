"""Filename sanitization for destination basenames."""

import re

from loguru import logger

log = logger.bind(component="sanitize")

# Leave room for a " (NN)" disambiguation index and a suffix
MAX_BASENAME_BYTES = 240


def sanitize_basename(basename: str, max_bytes: int = MAX_BASENAME_BYTES) -> str:
    """Sanitize a destination basename (no directory, no suffix).

    Replaces unsafe chars with underscores, strips leading/trailing dots
    and underscores, collapses repeated underscores and whitespace, and
    truncates to max_bytes of UTF-8.
    """
    log.debug(f"sanitize_basename(basename='{basename}')")

    # Replace unsafe characters
    sanitized = re.sub(r'[/\\:"*?<>|;]+', "_", basename)
    # Remove leading/trailing dots and underscores
    sanitized = re.sub(r"^[._]+", "", sanitized)
    sanitized = re.sub(r"[._]+$", "", sanitized)
    # Collapse repeated underscores and whitespace
    sanitized = re.sub(r"__+", "_", sanitized)
    sanitized = re.sub(r"\s+", " ", sanitized).strip()

    original_len = len(sanitized.encode("utf-8"))
    if original_len > max_bytes:
        while len(sanitized.encode("utf-8")) > max_bytes and sanitized:
            sanitized = sanitized[:-1]
        log.debug(
            f"Truncated basename from {original_len} to "
            f"{len(sanitized.encode('utf-8'))} bytes: '{sanitized}'"
        )

    return sanitized
