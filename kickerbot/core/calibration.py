"""
Persistence of the line follower's calibration colors.

Each color is a small text file holding "r;g;b". Only PidActor reads or
writes these files.
"""

import logging
from pathlib import Path
from typing import Tuple

logger = logging.getLogger(__name__)

Color = Tuple[int, int, int]


def read_color(path: str, default: int) -> Color:
    """
    Read an "r;g;b" file.

    Returns (default, default, default) if the file is missing or does not
    hold exactly three integers.
    """
    fallback = (default, default, default)
    try:
        text = Path(path).read_text().strip()
    except OSError:
        return fallback

    parts = text.split(";")
    if len(parts) != 3:
        logger.warning("Malformed calibration in %s: %r", path, text)
        return fallback
    try:
        r, g, b = (int(p) for p in parts)
    except ValueError:
        logger.warning("Malformed calibration in %s: %r", path, text)
        return fallback
    return (r, g, b)


def write_color(path: str, color: Color) -> None:
    """Write a color as "r;g;b"."""
    Path(path).write_text(";".join(str(int(c)) for c in color))


class CalibrationStore:
    """Foreground (line) and background (floor) calibration files."""

    def __init__(self, foreground_path: str, background_path: str,
                 default_foreground: int = 20, default_background: int = 200):
        self.foreground_path = foreground_path
        self.background_path = background_path
        self.default_foreground = default_foreground
        self.default_background = default_background

    @classmethod
    def from_config(cls, config) -> "CalibrationStore":
        return cls(
            foreground_path=config.storage.foreground_path,
            background_path=config.storage.background_path,
            default_foreground=config.pid.default_foreground,
            default_background=config.pid.default_background,
        )

    def load_foreground(self) -> Color:
        return read_color(self.foreground_path, self.default_foreground)

    def load_background(self) -> Color:
        return read_color(self.background_path, self.default_background)

    def save_foreground(self, color: Color) -> None:
        write_color(self.foreground_path, color)

    def save_background(self, color: Color) -> None:
        write_color(self.background_path, color)
