import struct

import pytest

from oplkit.files import StorageIOError
from oplkit.nrg import NrgDeviceSource

TRACK_OFFSET = 16
TRACK_DATA = bytes(range(256)) * 16


def _daox_chunk(track_begin, track_end):
    body = b"\x00" * 22
    body += b"ISRC00000000" + b"\x08\x00" + b"\x00\x00" + b"\x00\x00" + b"\x00" * 8
    body += struct.pack(">QQ", track_begin, track_end)
    return b"DAOX" + struct.pack(">I", len(body)) + body


def _build_image(with_daox=True, with_footer=True):
    image = b"\xee" * TRACK_OFFSET + TRACK_DATA
    chunks_offset = len(image)
    chunks = b"CUEX" + struct.pack(">I", 4) + b"\x01\x02\x03\x04"
    if with_daox:
        chunks += _daox_chunk(TRACK_OFFSET, TRACK_OFFSET + len(TRACK_DATA))
    chunks += b"END!" + struct.pack(">I", 0)
    image += chunks
    if with_footer:
        image += b"NER5" + struct.pack(">Q", chunks_offset)
    return image


@pytest.fixture
def nrg_path(tmp_path):
    path = tmp_path / "game.nrg"
    path.write_bytes(_build_image())
    return path


def test_track_location_found(nrg_path):
    with NrgDeviceSource(nrg_path) as source:
        assert source.track_location == TRACK_OFFSET


def test_seek_and_read_from_track(nrg_path):
    with NrgDeviceSource(nrg_path) as source:
        source.seek(0)
        assert source.read(100) == TRACK_DATA[:100]
        source.seek(2048)
        assert source.read(10) == TRACK_DATA[2048:2058]


def test_properties(nrg_path):
    source = NrgDeviceSource(nrg_path)
    assert source.read_only is True
    assert source.filepath == str(nrg_path)
    assert source.is_open is False
    source.open()
    assert source.is_open is True
    source.close()
    assert source.is_open is False


def test_image_without_daox(tmp_path):
    path = tmp_path / "nodao.nrg"
    path.write_bytes(_build_image(with_daox=False))
    with NrgDeviceSource(path) as source:
        assert source.track_location is None
        assert source.read(10) == b""
        with pytest.raises(StorageIOError):
            source.seek(0)


def test_image_without_footer(tmp_path):
    path = tmp_path / "nofooter.nrg"
    path.write_bytes(_build_image(with_footer=False))
    with NrgDeviceSource(path) as source:
        assert source.track_location is None
        assert source.read(4) == b""


def test_tiny_file(tmp_path):
    path = tmp_path / "tiny.nrg"
    path.write_bytes(b"abc")
    with NrgDeviceSource(path) as source:
        assert source.track_location is None


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        NrgDeviceSource(tmp_path / "missing.nrg").open()


def test_negative_size_rejected(nrg_path):
    with NrgDeviceSource(nrg_path) as source:
        with pytest.raises(ValueError):
            source.read(-1)