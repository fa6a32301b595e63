"""Identification of PlayStation 2 discs and access to their ISO data."""

from __future__ import annotations

import contextlib
import enum
import os
import re
import stat
import sys
from dataclasses import dataclass

from oplkit.files import OplError
from oplkit.sources import DeviceSource

ISO9660_OFFSET = 0x8000
VOLUME_DESCRIPTOR_SIZE = 2048

_PRIMARY_VOLUME_DESCRIPTOR = 1
_STANDARD_ID = b"CD001"
_PLAYSTATION_ID = b"PLAYSTATION"
_CONFIG_NAME = b"SYSTEM.CNF"

# Offsets inside the primary volume descriptor.
_SYSTEM_ID = slice(8, 40)
_VOLUME_ID = slice(40, 72)
_BLOCK_COUNT_OFFSET = 80
_BLOCK_SIZE_OFFSET = 128
_ROOT_RECORD_OFFSET = 156

# Offsets inside a directory record.
_EXTENT_OFFSET = 2
_DATA_LENGTH_OFFSET = 10
_FILENAME_OFFSET = 33

_BOOT_RE = re.compile(r"BOOT2\s*=\s*cdrom0:\\(.*);1", re.IGNORECASE | re.DOTALL)

_CDROM_GET_CAPABILITY = 0x5331


class MediaType(enum.Enum):
    """The kind of disc a game is stored on."""

    UNKNOWN = "unknown"
    CD = "CD"
    DVD = "DVD"


@dataclass(frozen=True)
class DeviceName:
    """A human-readable drive name and the path used to open it."""

    name: str
    filename: str


@dataclass(frozen=True)
class Iso9660Info:
    """What is learnt from an ISO 9660 volume holding a SYSTEM.CNF file."""

    system_id: bytes
    volume_id: bytes
    block_size: int
    block_count: int
    game_id: str

    @property
    def is_playstation_disc(self) -> bool:
        return self.system_id.startswith(_PLAYSTATION_ID)

    @property
    def title(self) -> str:
        return self.volume_id.decode("latin-1").strip()

    @property
    def size(self) -> int:
        return self.block_count * self.block_size


def _int32(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 4], "little", signed=True)


def _int16(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 2], "little", signed=True)


def parse_game_id(config: bytes | str) -> str | None:
    """Extract the game identifier from the text of a SYSTEM.CNF file."""
    if isinstance(config, bytes):
        config = config.decode("utf-8", errors="replace")
    match = _BOOT_RE.search(config)
    if match is None:
        return None
    return match.group(1) or None


def _read_config_game_id(
    source: DeviceSource, extent: int, length: int, block_size: int
) -> str | None:
    source.seek(extent * block_size)
    config = source.read(max(length, 0))
    if len(config) < length:
        return None
    return parse_game_id(config)


def _find_game_id(source: DeviceSource, root: bytes, block_size: int) -> str | None:
    extent = _int32(root, _EXTENT_OFFSET)
    length = _int32(root, _DATA_LENGTH_OFFSET)
    if length <= 0:
        return None
    source.seek(extent * block_size)
    data = source.read(length)
    processed = 0
    while processed < len(data):
        record = data[processed:]
        record_length = record[0]
        if record_length == 0:
            break
        processed += record_length
        name = record[_FILENAME_OFFSET:_FILENAME_OFFSET + len(_CONFIG_NAME)]
        if name == _CONFIG_NAME:
            game_id = _read_config_game_id(
                source,
                _int32(record, _EXTENT_OFFSET),
                _int32(record, _DATA_LENGTH_OFFSET),
                block_size,
            )
            if game_id:
                return game_id
    return None


def read_iso9660(source: DeviceSource) -> Iso9660Info | None:
    """Read the primary volume descriptor and the game id of an open source.

    Returns None when the data is not an ISO 9660 volume or holds no usable
    SYSTEM.CNF file.
    """
    source.seek(ISO9660_OFFSET)
    descriptor = source.read(VOLUME_DESCRIPTOR_SIZE)
    if len(descriptor) != VOLUME_DESCRIPTOR_SIZE:
        return None
    if descriptor[0] != _PRIMARY_VOLUME_DESCRIPTOR or descriptor[1:6] != _STANDARD_ID:
        return None
    block_size = _int16(descriptor, _BLOCK_SIZE_OFFSET)
    root = descriptor[_ROOT_RECORD_OFFSET:_ROOT_RECORD_OFFSET + 34]
    game_id = _find_game_id(source, root, block_size)
    if game_id is None:
        return None
    return Iso9660Info(
        system_id=descriptor[_SYSTEM_ID],
        volume_id=descriptor[_VOLUME_ID],
        block_size=block_size,
        block_count=_int32(descriptor, _BLOCK_COUNT_OFFSET),
        game_id=game_id,
    )


def _is_optical_drive(path: str) -> bool:
    import fcntl

    try:
        if not stat.S_ISBLK(os.lstat(path).st_mode):
            return False
        fd = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
    except OSError:
        return False
    try:
        fcntl.ioctl(fd, _CDROM_GET_CAPABILITY)
        return True
    except OSError:
        return False
    finally:
        os.close(fd)


def load_drive_list() -> list[DeviceName]:
    """List the optical drives of the machine.

    Drives are found only on Linux; elsewhere the list is empty.
    """
    if not sys.platform.startswith("linux"):
        return []
    dev_dir = "/dev/"
    try:
        entries = list(os.scandir(dev_dir))
    except OSError:
        return []
    return [
        DeviceName(name=entry.name, filename=dev_dir + entry.name)
        for entry in entries
        if _is_optical_drive(dev_dir + entry.name)
    ]


class Device:
    """A disc image or drive that may hold a PlayStation 2 game."""

    def __init__(self, source: DeviceSource) -> None:
        self._source = source
        self._initialized = False
        self.media_type = MediaType.UNKNOWN
        self.title = ""
        self._game_id = ""
        self._size = 0

    @property
    def filepath(self) -> str:
        return self._source.filepath

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def game_id(self) -> str:
        return self._game_id

    @property
    def size(self) -> int:
        return self._size

    @property
    def read_only(self) -> bool:
        return self._source.read_only

    @property
    def is_open(self) -> bool:
        return self._source.is_open

    def init(self) -> bool:
        """Identify the game on the device; True if it is a PlayStation disc."""
        try:
            if self._source.is_open:
                self._source.seek(0)
            else:
                self._source.open()
        except (OSError, OplError):
            return False
        try:
            info = read_iso9660(self._source)
        except (OSError, OplError):
            info = None
        if info is not None and info.is_playstation_disc:
            self.title = info.title
            self._game_id = info.game_id
            self._size = info.size
            self._initialized = True
        with contextlib.suppress(OSError, OplError):
            self._source.seek(0)
        return self._initialized

    def open(self) -> Device:
        """Reopen the underlying source; raises OSError on failure."""
        self.close()
        self._source.open()
        return self

    def close(self) -> None:
        self._source.close()

    def seek(self, offset: int) -> None:
        self._source.seek(offset)

    def read(self, size: int) -> bytes:
        return self._source.read(size)

    def __enter__(self) -> Device:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()