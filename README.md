# oplkit

A small library for working with PlayStation 2 disc images and the
per-game configuration files used by Open PS2 Loader. It depends only on
the Python standard library.

## Modules

- `oplkit.sources` – read-only, seekable access to ISO 9660 data:
  - `DeviceSource`, the common base: `open()`, `close()`, `seek(offset)`,
    `read(size)`, the properties `filepath`, `read_only` and `is_open`, and
    use as a context manager.
  - `OpticalDriveDeviceSource` reads a plain ISO image or a drive device
    directly.
  - `BinCueDeviceSource` reads the 2048-byte user data out of the raw
    2352-byte sectors of a BIN image, so offsets are ISO offsets.
- `oplkit.nrg` – `NrgDeviceSource` reads the first disc-at-once track of a
  Nero image. It finds the track from the `NER5` footer and the `DAOX`
  chunk; `track_location` is `None` when no track was found, in which case
  `seek` raises `StorageIOError` and `read` returns `b""`.
- `oplkit.device` – identifying the game on a disc:
  - `read_iso9660(source)` reads the primary volume descriptor and the game ID
    from `SYSTEM.CNF`, returning an `Iso9660Info` (`title`, `game_id`,
    `block_size`, `block_count`, `size`, `is_playstation_disc`) or `None`.
  - `parse_game_id(config)` extracts the ID from the `BOOT2 = cdrom0:\...;1`
    line of a `SYSTEM.CNF` text.
  - `Device` wraps a source; `init()` returns `True` for a PlayStation disc
    and fills in `title`, `game_id` and `size`. `media_type` is a `MediaType`
    (`UNKNOWN`, `CD`, `DVD`) that the caller may set.
  - `load_drive_list()` lists optical drives as `DeviceName` entries. It finds
    drives on Linux only and returns an empty list elsewhere.
- `oplkit.config` – per-game `CFG/<id>.cfg` files:
  - `GameConfiguration`, a dataclass whose `modes` field is a
    `CompatibilityMode` flag set, plus GSM settings, game ID, custom ELF and
    virtual memory card names.
  - `make_config_filename(library_path, game_id)`, `load_config(filename)`
    (a missing file gives the defaults) and `save_config(config, filename)`,
    which rewrites the keys it manages in place, keeps every other line and
    replaces the file through a `.tmp` copy.
- `oplkit.files` – the exceptions `OplError`, `StorageIOError` and
  `ValidationError`, and the helpers `open_file`, `open_file_to_sync_write`,
  `rename_file`, `is_filename_valid`, `validate_filename` and
  `sanitize_filename` (which replaces each of `<>:"/\|?*` with `_`).

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from oplkit.sources import OpticalDriveDeviceSource
from oplkit.device import Device

device = Device(OpticalDriveDeviceSource("/path/to/game.iso"))
if device.init():
    print(device.game_id, device.title, device.size)
```

Editing a game configuration:

```python
from oplkit.config import (
    CompatibilityMode,
    load_config,
    make_config_filename,
    save_config,
)

path = make_config_filename("/path/to/library", "SLUS_123.45")
config = load_config(path)
config.modes |= CompatibilityMode.MODE_1
config.is_gsm_enabled = True
save_config(config, path)
```

## What it does not do

oplkit reads disc images and edits configuration files; it does not manage
a game library. It has no game storage (listing, registering, renaming or
deleting games in the `CD/` and `DVD/` directories), no installer that copies
images into a library, no cover art handling and no stored application
preferences. It provides no command-line or graphical interface.