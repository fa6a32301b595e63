"""File helpers and filename validation shared by the library code."""

from __future__ import annotations

import os
import sys
from typing import IO

DISALLOWED_CHARACTERS = '<>:"/\\|?*'

_REPLACEMENT = "_"


class OplError(Exception):
    """Base class of errors raised by the library."""

    @property
    def message(self) -> str:
        return str(self)


class StorageIOError(OplError):
    """A file could not be opened, read, written or renamed."""


class ValidationError(OplError):
    """A value supplied by the user is not acceptable."""


def open_file(path: str | os.PathLike[str], mode: str = "rb") -> IO:
    """Open a file, raising StorageIOError when that is impossible."""
    try:
        return open(path, mode)
    except OSError as error:
        raise StorageIOError(f'Unable to open file "{os.fspath(path)}"') from error


def open_file_to_sync_write(filename: str | os.PathLike[str]) -> IO[bytes]:
    """Open a file for writing whose writes reach the disk before returning."""
    path = os.fspath(filename)
    try:
        if sys.platform.startswith("linux") and hasattr(os, "O_SYNC"):
            fd = os.open(path, os.O_SYNC | os.O_RDWR | os.O_CREAT, 0o664)
            try:
                return os.fdopen(fd, "wb")
            except BaseException:
                os.close(fd)
                raise
        return open(path, "wb")
    except OSError as error:
        raise StorageIOError(f'Unable to open file to write: "{path}"') from error


def rename_file(
    old_filename: str | os.PathLike[str], new_filename: str | os.PathLike[str]
) -> None:
    """Rename a file, raising StorageIOError on failure."""
    old_path = os.fspath(old_filename)
    new_path = os.fspath(new_filename)
    try:
        if os.path.exists(new_path):
            raise FileExistsError(new_path)
        os.rename(old_path, new_path)
    except OSError as error:
        raise StorageIOError(
            f'Unable to rename file "{old_path}" to "{new_path}"'
        ) from error


def is_filename_valid(filename: str) -> bool:
    """Tell whether the name holds none of the disallowed characters."""
    return not any(char in DISALLOWED_CHARACTERS for char in filename)


def validate_filename(filename: str) -> None:
    """Raise ValidationError if the name holds a disallowed character."""
    if not is_filename_valid(filename):
        raise ValidationError(
            f"The following characters are not allowed: {DISALLOWED_CHARACTERS}"
        )


def sanitize_filename(text: str) -> str:
    """Replace every disallowed character with an underscore."""
    return "".join(
        _REPLACEMENT if char in DISALLOWED_CHARACTERS else char for char in text
    )