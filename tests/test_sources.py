import pytest

from oplkit.sources import (
    BIN_HEADER_SIZE,
    BIN_SECTOR_SIZE,
    ISO_SECTOR_SIZE,
    BinCueDeviceSource,
    OpticalDriveDeviceSource,
)


def _sector_data(index):
    return bytes((index * 7 + i) % 251 for i in range(ISO_SECTOR_SIZE))


@pytest.fixture
def bin_image(tmp_path):
    sectors = [_sector_data(i) for i in range(3)]
    filler = b"\xee" * (BIN_SECTOR_SIZE - ISO_SECTOR_SIZE)
    payload = b"\xaa" * BIN_HEADER_SIZE + b"".join(s + filler for s in sectors)
    path = tmp_path / "game.bin"
    path.write_bytes(payload)
    return path, sectors


def test_bin_reads_first_sector(bin_image):
    path, sectors = bin_image
    with BinCueDeviceSource(path) as source:
        source.seek(0)
        assert source.read(ISO_SECTOR_SIZE) == sectors[0]


def test_bin_read_skips_raw_sector_tails(bin_image):
    path, sectors = bin_image
    with BinCueDeviceSource(path) as source:
        source.seek(0)
        assert source.read(2 * ISO_SECTOR_SIZE) == sectors[0] + sectors[1]


def test_bin_seek_inside_sector_and_cross_boundary(bin_image):
    path, sectors = bin_image
    with BinCueDeviceSource(path) as source:
        source.seek(ISO_SECTOR_SIZE + 100)
        data = source.read(ISO_SECTOR_SIZE)
    assert data == sectors[1][100:] + sectors[2][:100]


def test_bin_read_past_end_is_short(bin_image):
    path, sectors = bin_image
    with BinCueDeviceSource(path) as source:
        source.seek(2 * ISO_SECTOR_SIZE)
        data = source.read(10 * ISO_SECTOR_SIZE)
    assert data == sectors[2]


def test_bin_source_properties(bin_image):
    path, _ = bin_image
    source = BinCueDeviceSource(path)
    assert source.read_only is True
    assert source.filepath == str(path)
    assert source.is_open is False
    source.open()
    assert source.is_open is True
    source.close()
    assert source.is_open is False


def test_bin_read_when_closed_raises(bin_image):
    path, _ = bin_image
    with pytest.raises(ValueError):
        BinCueDeviceSource(path).read(10)


def test_bin_open_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        BinCueDeviceSource(tmp_path / "missing.bin").open()


def test_optical_source_reads_plainly(tmp_path):
    payload = bytes(range(256)) * 20
    path = tmp_path / "disc.iso"
    path.write_bytes(payload)
    with OpticalDriveDeviceSource(path) as source:
        source.seek(300)
        assert source.read(50) == payload[300:350]
        source.seek(len(payload) - 5)
        assert source.read(100) == payload[-5:]


def test_optical_negative_size_raises(tmp_path):
    path = tmp_path / "disc.iso"
    path.write_bytes(b"abc")
    with OpticalDriveDeviceSource(path) as source:
        with pytest.raises(ValueError):
            source.read(-1)


def test_optical_context_closes(tmp_path):
    path = tmp_path / "disc.iso"
    path.write_bytes(b"abc")
    source = OpticalDriveDeviceSource(path)
    with source:
        assert source.is_open is True
    assert source.is_open is False
    assert source.read_only is True