"""PNG sprite sheet to Commander X16 4bpp sprite converter.

The converter packs an indexed-color sprite sheet into VERA 4bpp sprite data
and encodes its palette into the 12-bit X16 palette layout. It can be invoked
through the CLI (``python -m cx16_sprite_converter``) or imported to work on
in-memory images.
"""

from .converter import ConversionReport, ConvertOptions, convert_sprite_sheet, load_sprite_sheet
from .errors import ByteRangeError, ConversionError, SpriteConversionWarning
from .palette import (
    MAX_4BPP_COLORS,
    PaletteEncoding,
    PaletteTable,
    encode_palette,
    parse_palette_text,
    read_palette_file,
)
from .sprite import DEFAULT_SPRITE_SIZE, SpritePacking, pack_sprites, unpack_sprites

__all__ = [
    "ByteRangeError",
    "ConversionError",
    "ConversionReport",
    "ConvertOptions",
    "DEFAULT_SPRITE_SIZE",
    "MAX_4BPP_COLORS",
    "PaletteEncoding",
    "PaletteTable",
    "SpriteConversionWarning",
    "SpritePacking",
    "convert_sprite_sheet",
    "encode_palette",
    "load_sprite_sheet",
    "pack_sprites",
    "parse_palette_text",
    "read_palette_file",
    "unpack_sprites",
]
