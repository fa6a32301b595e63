"""Reading the ISO data track of a Nero (NRG) disc image."""

from __future__ import annotations

import os
import struct

from oplkit.files import StorageIOError
from oplkit.sources import DeviceSource

_NER5 = struct.Struct(">4sQ")
_CHUNK = struct.Struct(">4sI")
_DAOX_HEADER_SIZE = 30
# isrc, sector size, mode, unknown, pre-gap, track begin, track end
_DAOX_TRACK = struct.Struct(">12s2s2s2s8sQQ")


class NrgDeviceSource(DeviceSource):
    """ISO data of the first track of a disc-at-once NRG image."""

    def __init__(self, filepath: str | os.PathLike[str]) -> None:
        super().__init__(filepath)
        self._track_location: int | None = None

    @property
    def track_location(self) -> int | None:
        """Offset of the first track in the image, or None if not found."""
        return self._track_location

    def open(self) -> NrgDeviceSource:
        super().open()
        self._track_location = self._find_track_location()
        return self

    def close(self) -> None:
        super().close()

    def _find_track_location(self) -> int | None:
        offset = self._read_first_chunk_offset()
        if offset is None:
            return None
        while True:
            header = self._read_at(offset, _CHUNK.size)
            if len(header) < _CHUNK.size:
                return None
            chunk_id, size = _CHUNK.unpack(header)
            if chunk_id == b"END!":
                return None
            if chunk_id == b"DAOX":
                return self._read_track_begin(offset)
            offset += size + _CHUNK.size

    def _read_first_chunk_offset(self) -> int | None:
        file = self._require_open()
        file.seek(0, os.SEEK_END)
        length = file.tell()
        if length < _NER5.size:
            return None
        footer = self._read_at(length - _NER5.size, _NER5.size)
        if len(footer) != _NER5.size:
            return None
        marker, offset = _NER5.unpack(footer)
        return offset if marker == b"NER5" else None

    def _read_track_begin(self, daox_offset: int) -> int | None:
        data = self._read_at(daox_offset + _DAOX_HEADER_SIZE, _DAOX_TRACK.size)
        if len(data) < _DAOX_TRACK.size:
            return None
        return _DAOX_TRACK.unpack(data)[5]

    def _read_at(self, offset: int, size: int) -> bytes:
        file = self._require_open()
        file.seek(offset)
        return file.read(size)

    def seek(self, offset: int) -> None:
        file = self._require_open()
        if self._track_location is None:
            raise StorageIOError(f'No data track found in "{self.filepath}"')
        file.seek(self._track_location + offset)

    def read(self, size: int) -> bytes:
        self._check_size(size)
        file = self._require_open()
        if self._track_location is None:
            return b""
        return file.read(size)