import random
import warnings

import pytest
from PIL import Image

from cx16_sprite_converter.errors import ByteRangeError, ConversionError, SpriteConversionWarning
from cx16_sprite_converter.palette import PaletteTable
from cx16_sprite_converter.sprite import pack_nibbles, pack_sprites, unpack_sprites

PALETTE = PaletteTable([(i * 16, 255 - i * 16, (i * 37) % 256) for i in range(16)])
MISSING = (1, 2, 3)


def _make_image(width, height, indices, alpha=255):
    """Build an RGBA image from palette indices (``None`` = color not in palette)."""

    image = Image.new("RGBA", (width, height))
    pixels = []
    for idx in indices:
        rgb = MISSING if idx is None else PALETTE[idx]
        pixels.append((*rgb, alpha))
    image.putdata(pixels)
    return image


def _pack_quietly(image, palette=PALETTE, **kwargs):
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        return pack_sprites(image, palette, **kwargs)


def test_pack_nibbles():
    assert pack_nibbles(3, 7) == 0x37
    assert pack_nibbles(15, 0) == 0xF0
    with pytest.raises(ByteRangeError):
        pack_nibbles(16, 0)
    with pytest.raises(ByteRangeError):
        pack_nibbles(0, 16)


def test_pair_packs_high_then_low_nibble():
    image = _make_image(2, 2, [3, 7, 0, 0])

    result = _pack_quietly(image, sprite_size=2)

    assert result.data == bytes([0x37, 0x00])
    assert result.unmatched_count == 0


def test_sprites_are_emitted_one_after_another():
    image = _make_image(4, 2, [1, 2, 3, 4, 5, 6, 7, 8])

    result = _pack_quietly(image, sprite_size=2)

    assert result.data == bytes([0x12, 0x56, 0x34, 0x78])
    assert (result.columns, result.rows) == (2, 1)


def test_sprite_rows_follow_sprite_columns():
    # 2x4 sheet of 2x2 sprites: top sprite first, then the bottom one
    image = _make_image(2, 4, [1, 2, 3, 4, 5, 6, 7, 8])

    result = _pack_quietly(image, sprite_size=2)

    assert result.data == bytes([0x12, 0x34, 0x56, 0x78])


def test_non_conforming_size_warns_once_and_keeps_full_length():
    image = _make_image(4, 2, [0] * 8)

    with pytest.warns(SpriteConversionWarning) as record:
        result = pack_sprites(image, PALETTE, sprite_size=32)

    assert len(record) == 1
    assert "does not conform" in str(record[0].message)
    assert result.size_mismatch
    assert result.data == bytes(4)


def test_partial_sprites_are_skipped_and_left_zero():
    indices = [1] * 24
    image = _make_image(6, 4, indices)

    with pytest.warns(SpriteConversionWarning):
        result = pack_sprites(image, PALETTE, sprite_size=4)

    assert len(result.data) == 12
    assert result.data[:8] == bytes([0x11] * 8)
    assert result.data[8:] == bytes(4)


def test_alpha_is_ignored():
    image = _make_image(2, 2, [2, 9, 4, 5], alpha=0)

    result = _pack_quietly(image, sprite_size=2)

    assert result.data == bytes([0x29, 0x45])


def test_unmatched_pixel_is_counted_and_packed_as_sentinel():
    image = _make_image(2, 2, [None, 7, 4, 5])

    with pytest.warns(SpriteConversionWarning, match="1 pixels"):
        result = pack_sprites(image, PALETTE, sprite_size=2)

    assert result.unmatched_count == 1
    assert result.data == bytes([0x07, 0x45])


def test_both_pixels_of_a_pair_unmatched():
    image = _make_image(2, 2, [None, None, 4, 5])

    with pytest.warns(SpriteConversionWarning, match="2 pixels"):
        result = pack_sprites(image, PALETTE, sprite_size=2, unmatched_index=0xA)

    assert result.unmatched_count == 2
    assert result.data == bytes([0xAA, 0x45])


def test_index_beyond_sixteen_colors_is_fatal():
    palette = PaletteTable(list(PALETTE) + [MISSING])
    image = _make_image(2, 2, [None, 0, 0, 0])

    with pytest.raises(ByteRangeError) as excinfo:
        pack_sprites(image, palette, sprite_size=2)

    assert excinfo.value.value == 16


@pytest.mark.parametrize("sprite_size", [0, -2, 3])
def test_invalid_sprite_size(sprite_size):
    image = _make_image(2, 2, [0] * 4)

    with pytest.raises(ConversionError):
        pack_sprites(image, PALETTE, sprite_size=sprite_size)


def test_invalid_unmatched_index():
    image = _make_image(2, 2, [0] * 4)

    with pytest.raises(ConversionError):
        pack_sprites(image, PALETTE, sprite_size=2, unmatched_index=16)


def test_indexed_png_mode_is_accepted():
    image = Image.new("P", (2, 2))
    flat = [channel for color in PALETTE for channel in color]
    image.putpalette(flat)
    image.putdata([3, 7, 15, 1])

    result = _pack_quietly(image, sprite_size=2)

    assert result.data == bytes([0x37, 0xF1])


def test_pack_then_unpack_restores_colors():
    rng = random.Random(16)
    width, height = 16, 8
    indices = [rng.randrange(16) for _ in range(width * height)]
    image = _make_image(width, height, indices)

    result = _pack_quietly(image, sprite_size=8)
    restored = unpack_sprites(result.data, PALETTE, width, height, sprite_size=8)

    assert len(result.data) == width * height // 2
    assert restored.tobytes() == image.convert("RGB").tobytes()


def test_unpack_rejects_wrong_length():
    with pytest.raises(ConversionError):
        unpack_sprites(b"\x00", PALETTE, 4, 4, sprite_size=2)
