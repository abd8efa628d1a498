"""4bpp sprite sheet packing.

Sprites are laid out for VERA 4bpp sprite data: each byte holds two pixels,
the left pixel in the high nibble and the right pixel in the low nibble. The
sheet is split into square sprites of ``sprite_size`` pixels which are
emitted one after another, sprite rows first, then sprite columns, and each
sprite is written row by row.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Iterator, Tuple

from PIL import Image

from .errors import ByteRangeError, ConversionError, SpriteConversionWarning, to_byte
from .palette import MAX_4BPP_COLORS, PaletteTable

DEFAULT_SPRITE_SIZE = 32


@dataclass(frozen=True)
class SpritePacking:
    data: bytes
    width: int
    height: int
    columns: int
    rows: int
    unmatched_count: int
    size_mismatch: bool


def validate_sprite_size(sprite_size: int) -> None:
    if sprite_size <= 0 or sprite_size % 2:
        raise ConversionError(
            f"Sprite size must be a positive even number of pixels: {sprite_size}"
        )


def validate_color_index(index: int) -> None:
    if index < 0 or index >= MAX_4BPP_COLORS:
        raise ConversionError(f"Color index must be between 0 and 15: {index}")


def iter_pixel_pairs(
    columns: int, rows: int, sprite_size: int
) -> Iterator[Tuple[int, int]]:
    """Yield the ``(x, y)`` of every high-nibble pixel in output order."""

    for row in range(rows):
        for col in range(columns):
            for y in range(row * sprite_size, (row + 1) * sprite_size):
                for x in range(col * sprite_size, (col + 1) * sprite_size, 2):
                    yield x, y


def pack_nibbles(high: int, low: int) -> int:
    for index in (high, low):
        if index < 0 or index >= MAX_4BPP_COLORS:
            raise ByteRangeError(
                index, f"Palette index {index} does not fit in a 4-bit nibble."
            )
    return to_byte(high << 4 | low)


def pack_sprites(
    image: Image.Image,
    palette: PaletteTable,
    sprite_size: int = DEFAULT_SPRITE_SIZE,
    unmatched_index: int = 0,
) -> SpritePacking:
    """Convert ``image`` into packed 4bpp sprite data using ``palette``.

    Pixels are matched to palette entries by exact RGB value; alpha is
    ignored. A pixel with no matching entry is counted and packed as
    ``unmatched_index``. The returned buffer is always ``width * height // 2``
    bytes; when the image is not a whole number of sprites wide or tall the
    partial sprites are skipped and the trailing bytes stay zero.
    """

    validate_sprite_size(sprite_size)
    validate_color_index(unmatched_index)

    rgba = image.convert("RGBA")
    width, height = rgba.size
    size_mismatch = width % sprite_size != 0 or height % sprite_size != 0
    if size_mismatch:
        warnings.warn(
            f"image does not conform to sprite size ({width}x{height} is not a "
            f"multiple of {sprite_size}x{sprite_size}).",
            SpriteConversionWarning,
            stacklevel=2,
        )

    columns = width // sprite_size
    rows = height // sprite_size
    pixels = rgba.load()

    output = bytearray(width * height // 2)
    byte_index = 0
    unmatched = 0

    def resolve(x: int, y: int) -> int:
        nonlocal unmatched
        r, g, b, _alpha = pixels[x, y]
        index = palette.index_of((r, g, b))
        if index is None:
            unmatched += 1
            return unmatched_index
        return index

    for x, y in iter_pixel_pairs(columns, rows, sprite_size):
        if byte_index >= len(output):
            raise ConversionError(
                f"Sprite traversal overran the {len(output)}-byte output buffer."
            )
        output[byte_index] = pack_nibbles(resolve(x, y), resolve(x + 1, y))
        byte_index += 1

    if not size_mismatch and byte_index != len(output):
        raise ConversionError(
            f"Sprite traversal wrote {byte_index} bytes, expected {len(output)}."
        )

    if unmatched:
        warnings.warn(
            f"{unmatched} pixels were found that weren't in the original palette.",
            SpriteConversionWarning,
            stacklevel=2,
        )

    return SpritePacking(
        data=bytes(output),
        width=width,
        height=height,
        columns=columns,
        rows=rows,
        unmatched_count=unmatched,
        size_mismatch=size_mismatch,
    )


def unpack_sprites(
    data: bytes,
    palette: PaletteTable,
    width: int,
    height: int,
    sprite_size: int = DEFAULT_SPRITE_SIZE,
) -> Image.Image:
    """Render packed sprite data back into an RGB sheet for previewing.

    Indices beyond the end of the palette are drawn black. Pixels outside
    whole sprites are left black as well.
    """

    validate_sprite_size(sprite_size)
    expected = width * height // 2
    if len(data) != expected:
        raise ConversionError(
            f"Sprite data must be {expected} bytes for a {width}x{height} sheet: {len(data)}"
        )

    def lookup(index: int) -> Tuple[int, int, int]:
        if index < len(palette):
            return palette[index]
        return (0, 0, 0)

    preview = Image.new("RGB", (width, height))
    canvas = preview.load()
    pairs = iter_pixel_pairs(width // sprite_size, height // sprite_size, sprite_size)
    for value, (x, y) in zip(data, pairs):
        canvas[x, y] = lookup(value >> 4)
        canvas[x + 1, y] = lookup(value & 0x0F)
    return preview
