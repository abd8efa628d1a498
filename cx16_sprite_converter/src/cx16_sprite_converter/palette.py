"""Palette table handling and Commander X16 palette encoding.

The VERA palette stores 12-bit colors as two little-endian bytes per entry:

* Byte 0: ``GGGGBBBB`` (upper nibble = green, lower nibble = blue)
* Byte 1: ``0000RRRR`` (lower nibble = red)

Source colors are 8-bit per channel and are truncated to their top four bits.
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import ConversionError, SpriteConversionWarning, to_byte

Color = Tuple[int, int, int]

MAX_4BPP_COLORS = 16

_TRIPLE_RE = re.compile(r"(\d+)\s+(\d+)\s+(\d+)(?=\s|$)")


class PaletteTable:
    """Ordered palette; the position of a color is its 4bpp color index."""

    def __init__(self, colors: Iterable[Color]):
        checked: List[Color] = []
        for color in colors:
            r, g, b = color
            checked.append((to_byte(r), to_byte(g), to_byte(b)))
        self._colors: Tuple[Color, ...] = tuple(checked)
        self._lookup: Dict[Color, int] = {}
        for idx, color in enumerate(self._colors):
            # first match wins for duplicated entries
            self._lookup.setdefault(color, idx)

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[Color]:
        return iter(self._colors)

    def __getitem__(self, index: int) -> Color:
        return self._colors[index]

    def __repr__(self) -> str:
        return f"PaletteTable({list(self._colors)!r})"

    @property
    def colors(self) -> Tuple[Color, ...]:
        return self._colors

    def index_of(self, rgb: Color) -> Optional[int]:
        return self._lookup.get(rgb)


@dataclass(frozen=True)
class PaletteEncoding:
    data: bytes
    color_count: int
    oversized: bool


def parse_palette_text(text: str) -> PaletteTable:
    """Collect every ``R G B`` integer triple found in a GIMP-style palette.

    Comment lines (``#``) are skipped, so a commented-out color is never read
    even though it holds a triple. Header lines such as ``GIMP Palette`` or
    ``Columns: 16`` carry no triple and fall through naturally. A line may hold
    more than one triple; they are added in reading order. Color names are never
    interpreted, so undecodable bytes in them are harmless.
    """

    colors: List[Color] = []
    for line in text.splitlines():
        if line.lstrip().startswith("#"):
            continue
        for match in _TRIPLE_RE.finditer(line):
            r, g, b = (int(group) for group in match.groups())
            colors.append((r, g, b))
    return PaletteTable(colors)


def read_palette_file(path: str | Path) -> PaletteTable:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError as exc:
        raise ConversionError(f"Palette file not found: {path}") from exc
    except OSError as exc:
        raise ConversionError(f"Failed to read palette file: {path}") from exc
    return parse_palette_text(text)


def encode_color(color: Color) -> bytes:
    r, g, b = color
    green_blue = to_byte((g >> 4) << 4 | (b >> 4))
    red = to_byte(r >> 4)
    return bytes((green_blue, red))


def encode_palette(palette: PaletteTable) -> PaletteEncoding:
    """Encode ``palette`` into the X16 two-bytes-per-color layout.

    Palettes with more than 16 entries are still encoded in full; a
    :class:`SpriteConversionWarning` is emitted since only 16 colors are
    addressable from 4bpp sprite data.
    """

    count = len(palette)
    oversized = count > MAX_4BPP_COLORS
    if oversized:
        warnings.warn(
            f"{count} colors found in palette. Max is {MAX_4BPP_COLORS} for 4bpp.",
            SpriteConversionWarning,
            stacklevel=2,
        )

    palette_bytes = bytearray()
    for color in palette:
        palette_bytes += encode_color(color)
    return PaletteEncoding(bytes(palette_bytes), count, oversized)
