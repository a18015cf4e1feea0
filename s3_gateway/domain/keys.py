"""Canonical object key construction.

Every key the gateway writes on behalf of a caller goes through this module,
so user input is never string-concatenated into a key unchecked.
"""

from __future__ import annotations

import re
from typing import Final

DELIMITER: Final[str] = "/"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_RELATIVE_SEGMENTS = frozenset({".", ".."})


class InvalidKeyError(ValueError):
    """Raised when a caller-supplied key component cannot be used."""


def _reject_control_chars(value: str, what: str) -> None:
    if _CONTROL_CHARS.search(value):
        raise InvalidKeyError(f"{what} must not contain control characters")


def _reject_relative_segments(value: str, what: str) -> None:
    if any(segment in _RELATIVE_SEGMENTS for segment in value.split(DELIMITER)):
        raise InvalidKeyError(f"{what} must not contain '.' or '..' segments")


def validate_key(key: str, *, what: str = "key") -> str:
    """Return ``key`` unchanged if it is usable as an object key."""
    if not key:
        raise InvalidKeyError(f"{what} is required")
    _reject_control_chars(key, what)
    return key


def validate_prefix(prefix: str | None) -> str:
    """Validate an upload prefix. The prefix is kept verbatim otherwise."""
    if not prefix:
        return ""
    _reject_control_chars(prefix, "prefix")
    if prefix.startswith(DELIMITER):
        raise InvalidKeyError("prefix must not start with '/'")
    _reject_relative_segments(prefix.rstrip(DELIMITER), "prefix")
    return prefix


def folder_key(folder_name: str) -> str:
    """Key of the zero-byte folder marker: ``docs`` and ``docs/`` give ``docs/``."""
    name = (folder_name or "").strip()
    _reject_control_chars(name, "folderName")
    name = name.rstrip(DELIMITER)
    if not name:
        raise InvalidKeyError("folderName is required")
    if name.startswith(DELIMITER):
        raise InvalidKeyError("folderName must not start with '/'")
    _reject_relative_segments(name, "folderName")
    return f"{name}{DELIMITER}"


def sanitize_filename(filename: str | None) -> str:
    """Sanitize filename by removing path separators."""
    cleaned = (filename or "").strip().replace("\\", "_").replace("/", "_")
    _reject_control_chars(cleaned, "filename")
    if cleaned in _RELATIVE_SEGMENTS:
        cleaned = cleaned.replace(".", "_")
    return cleaned or "file"


def upload_key(prefix: str | None, timestamp_ms: int, filename: str | None) -> str:
    """Build ``{prefix}{timestamp_ms}_{filename}`` for one uploaded file."""
    return f"{validate_prefix(prefix)}{int(timestamp_ms)}_{sanitize_filename(filename)}"


def archive_key(archive_prefix: str, key: str) -> str:
    """Target key of an archived object."""
    prefix = archive_prefix if archive_prefix.endswith(DELIMITER) else archive_prefix + DELIMITER
    return f"{prefix}{validate_key(key)}"


def basename(key: str) -> str:
    """Last path segment of a key, used as a download filename."""
    name = key.rstrip(DELIMITER).rsplit(DELIMITER, 1)[-1]
    return name or key
