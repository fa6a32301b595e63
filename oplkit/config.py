"""Per-game configuration files kept in the CFG directory of a library."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass, field
from typing import IO, Callable

from oplkit.files import open_file

CONFIG_DIRECTORY = "CFG"
CONFIG_EXTENSION = ".cfg"

KEY_COMPATIBILITY = "$Compatibility"
KEY_ENABLE_GSM = "$EnableGSM"
KEY_GSM_VIDEO_MODE = "$GSMVMode"
KEY_GSM_X_OFFSET = "$GSMXOffset"
KEY_GSM_Y_OFFSET = "$GSMYOffset"
KEY_GSM_SKIP_VIDEOS = "$GSMSkipVideos"
KEY_GSM_FIELD_FIX = "$GSMFIELDFix"
KEY_GSM_SOURCE = "$GSMSource"
KEY_GAME_ID = "$DNAS"
KEY_CUSTOM_ELF = "$AltStartup"
KEY_VMC_0 = "$VMC_0"
KEY_VMC_1 = "$VMC_1"
KEY_CONFIG_SOURCE = "$ConfigSource"

# Keys appended, in this order, when the existing file does not hold them.
_KEY_ORDER = (
    KEY_COMPATIBILITY,
    KEY_ENABLE_GSM,
    KEY_GSM_SOURCE,
    KEY_GSM_VIDEO_MODE,
    KEY_GSM_X_OFFSET,
    KEY_GSM_Y_OFFSET,
    KEY_GSM_SKIP_VIDEOS,
    KEY_GSM_FIELD_FIX,
    KEY_GAME_ID,
    KEY_CUSTOM_ELF,
    KEY_VMC_0,
    KEY_VMC_1,
    KEY_CONFIG_SOURCE,
)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_USHORT_MAX = 2**16 - 1
_ENCODING = "latin-1"


class CompatibilityMode(enum.IntFlag):
    """The eight compatibility modes a game may be launched with."""

    NONE = 0
    MODE_1 = 0b00000001
    MODE_2 = 0b00000010
    MODE_3 = 0b00000100
    MODE_4 = 0b00001000
    MODE_5 = 0b00010000
    MODE_6 = 0b00100000
    MODE_7 = 0b01000000
    MODE_8 = 0b10000000


_ALL_MODES = CompatibilityMode(0xFF)


@dataclass
class GameConfiguration:
    """Settings that apply to one game."""

    modes: CompatibilityMode = CompatibilityMode.NONE
    game_id: str = ""
    custom_elf: str = ""
    vmc0: str = ""
    vmc1: str = ""
    is_gsm_enabled: bool = False
    gsm_x_offset: int = 0
    gsm_y_offset: int = 0
    gsm_video_mode: int = -1
    is_gsm_skip_fmv_enabled: bool = False
    is_gsm_emulate_field_flipping_enabled: bool = False
    is_global_gsm_enabled: bool = False

    def is_mode_enabled(self, mode: CompatibilityMode) -> bool:
        return bool(self.modes & mode)


def _to_int(value: str, low: int = _INT_MIN, high: int = _INT_MAX) -> int:
    """Convert a decimal string; 0 when it is not a number in range."""
    text = value.strip()
    if not _INTEGER_RE.fullmatch(text):
        return 0
    number = int(text)
    return number if low <= number <= high else 0


def _apply(config: GameConfiguration, key: str, value: str) -> None:
    if key == KEY_COMPATIBILITY:
        config.modes = CompatibilityMode(_to_int(value, 0, _USHORT_MAX) & _ALL_MODES)
    elif key == KEY_ENABLE_GSM:
        config.is_gsm_enabled = _to_int(value) == 1
    elif key == KEY_GSM_SOURCE:
        config.is_global_gsm_enabled = _to_int(value) == 0
    elif key == KEY_GSM_VIDEO_MODE:
        config.gsm_video_mode = _to_int(value)
    elif key == KEY_GSM_X_OFFSET:
        config.gsm_x_offset = _to_int(value)
    elif key == KEY_GSM_Y_OFFSET:
        config.gsm_y_offset = _to_int(value)
    elif key == KEY_GSM_SKIP_VIDEOS:
        config.is_gsm_skip_fmv_enabled = _to_int(value) == 1
    elif key == KEY_GSM_FIELD_FIX:
        config.is_gsm_emulate_field_flipping_enabled = _to_int(value) == 1
    elif key == KEY_GAME_ID:
        config.game_id = value
    elif key == KEY_CUSTOM_ELF:
        config.custom_elf = value
    elif key == KEY_VMC_0:
        config.vmc0 = value
    elif key == KEY_VMC_1:
        config.vmc1 = value


def _flag(value: bool) -> str:
    return "1" if value else "0"


def _gsm_only(render: Callable[[GameConfiguration], str]) -> Callable[[GameConfiguration], str]:
    return lambda config: render(config) if config.is_gsm_enabled else ""


_RENDERERS: dict[str, Callable[[GameConfiguration], str]] = {
    KEY_COMPATIBILITY: lambda c: str(int(c.modes & _ALL_MODES)) if c.modes & _ALL_MODES else "",
    KEY_GAME_ID: lambda c: c.game_id,
    KEY_CUSTOM_ELF: lambda c: c.custom_elf,
    KEY_VMC_0: lambda c: c.vmc0,
    KEY_VMC_1: lambda c: c.vmc1,
    KEY_CONFIG_SOURCE: lambda c: "1",
    KEY_ENABLE_GSM: lambda c: _flag(c.is_gsm_enabled),
    KEY_GSM_SOURCE: _gsm_only(lambda c: "0" if c.is_global_gsm_enabled else "1"),
    KEY_GSM_VIDEO_MODE: _gsm_only(lambda c: str(c.gsm_video_mode)),
    KEY_GSM_X_OFFSET: _gsm_only(lambda c: str(c.gsm_x_offset)),
    KEY_GSM_Y_OFFSET: _gsm_only(lambda c: str(c.gsm_y_offset)),
    KEY_GSM_SKIP_VIDEOS: _gsm_only(lambda c: _flag(c.is_gsm_skip_fmv_enabled)),
    KEY_GSM_FIELD_FIX: _gsm_only(lambda c: _flag(c.is_gsm_emulate_field_flipping_enabled)),
}


def _write_key(stream: IO[str], config: GameConfiguration, key: str) -> bool:
    """Write the line of a known key; False if the key is not one we manage."""
    render = _RENDERERS.get(key)
    if render is None:
        return False
    value = render(config)
    if value:
        stream.write(f"{key}={value}\n")
    return True


def _split_line(line: str) -> tuple[str, str] | None:
    index = line.find("=")
    if index > 0:
        return line[:index], line[index + 1:].strip()
    return None


def make_config_filename(library_path: str | os.PathLike[str], game_id: str) -> str:
    """Return the absolute path of the configuration file of a game."""
    return os.path.abspath(
        os.path.join(os.fspath(library_path), CONFIG_DIRECTORY, game_id + CONFIG_EXTENSION)
    )


def load_config(filename: str | os.PathLike[str]) -> GameConfiguration:
    """Read a configuration file; a missing file gives the defaults."""
    config = GameConfiguration()
    if not os.path.exists(filename):
        return config
    with open_file(filename, "r", ) as raw:
        pass
    with open(filename, "r", encoding=_ENCODING) as stream:
        for line in stream:
            pair = _split_line(line)
            if pair is not None:
                _apply(config, *pair)
    return config


def save_config(config: GameConfiguration, filename: str | os.PathLike[str]) -> None:
    """Write a configuration, keeping lines of the file that are not ours."""
    path = os.fspath(filename)
    tmp_path = path + ".tmp"
    os.makedirs(os.path.dirname(os.path.abspath(tmp_path)), exist_ok=True)
    try:
        existing: list[str] = []
        with open(path, "r", encoding=_ENCODING) as source:
            existing = source.readlines()
    except OSError:
        existing = []
    written: set[str] = set()
    with open_file(tmp_path, "w") as raw:
        raw.close()
    with open(tmp_path, "w", encoding=_ENCODING) as target:
        for line in existing:
            pair = _split_line(line)
            if pair is not None and _write_key(target, config, pair[0]):
                written.add(pair[0])
                continue
            target.write(line)
        for key in _KEY_ORDER:
            if key not in written:
                _write_key(target, config, key)
    if os.path.exists(path):
        os.remove(path)
    os.replace(tmp_path, path)