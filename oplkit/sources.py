"""Readable sources of disc image data: raw BIN images and optical drives."""

from __future__ import annotations

import abc
import os
from typing import BinaryIO

BIN_HEADER_SIZE = 24
BIN_SECTOR_SIZE = 2352
BIN_SECTOR_OFFSET = 0
ISO_SECTOR_SIZE = 2048

_ERROR_SECTOR_NOT_FOUND = 27


class DeviceSource(abc.ABC):
    """A read-only, seekable view of ISO 9660 data held in some file."""

    def __init__(self, filepath: str | os.PathLike[str]) -> None:
        self._filepath = os.fspath(filepath)
        self._file: BinaryIO | None = None

    @property
    def filepath(self) -> str:
        return self._filepath

    @property
    def read_only(self) -> bool:
        return True

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> DeviceSource:
        """Open the underlying file for reading; raises OSError on failure."""
        if self._file is None:
            self._file = open(self._filepath, "rb")
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise ValueError(f"source is not open: {self._filepath!r}")
        return self._file

    @staticmethod
    def _check_size(size: int) -> None:
        if size < 0:
            raise ValueError("size must not be negative")

    @abc.abstractmethod
    def seek(self, offset: int) -> None:
        """Move to the given offset of the ISO data."""

    @abc.abstractmethod
    def read(self, size: int) -> bytes:
        """Read up to size bytes of ISO data from the current position."""

    def __enter__(self) -> DeviceSource:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BinCueDeviceSource(DeviceSource):
    """ISO data stored in raw 2352-byte sectors of a BIN image."""

    def __init__(self, filepath: str | os.PathLike[str]) -> None:
        super().__init__(filepath)

    def open(self) -> BinCueDeviceSource:
        super().open()
        return self

    def close(self) -> None:
        super().close()

    def seek(self, offset: int) -> None:
        file = self._require_open()
        sector, within = divmod(offset, ISO_SECTOR_SIZE)
        file.seek(BIN_SECTOR_SIZE * sector + within + BIN_SECTOR_OFFSET + BIN_HEADER_SIZE)

    def read(self, size: int) -> bytes:
        self._check_size(size)
        file = self._require_open()
        chunks: list[bytes] = []
        done = 0
        while done < size:
            position = file.tell()
            sector = (position - BIN_HEADER_SIZE) // BIN_SECTOR_SIZE
            iso_begin = BIN_SECTOR_SIZE * sector + BIN_SECTOR_OFFSET + BIN_HEADER_SIZE
            available = max(0, iso_begin + ISO_SECTOR_SIZE - position)
            to_read = min(size - done, available)
            if to_read > 0:
                chunk = file.read(to_read)
                chunks.append(chunk)
                done += len(chunk)
                if len(chunk) < to_read:
                    break
            file.seek((sector + 1) * BIN_SECTOR_SIZE + BIN_HEADER_SIZE + BIN_SECTOR_OFFSET)
        return b"".join(chunks)


class OpticalDriveDeviceSource(DeviceSource):
    """ISO data read directly from an optical drive or a plain ISO file."""

    def __init__(self, filepath: str | os.PathLike[str]) -> None:
        super().__init__(filepath)

    def open(self) -> OpticalDriveDeviceSource:
        super().open()
        return self

    def close(self) -> None:
        super().close()

    def seek(self, offset: int) -> None:
        self._require_open().seek(offset)

    def read(self, size: int) -> bytes:
        self._check_size(size)
        file = self._require_open()
        try:
            return file.read(size)
        except OSError as error:
            # Drives report reads past the last sector as an error.
            if getattr(error, "winerror", None) == _ERROR_SECTOR_NOT_FOUND:
                return b""
            raise