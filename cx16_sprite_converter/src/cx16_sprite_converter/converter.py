"""Sprite sheet conversion pipeline.

Reads a GIMP-style palette and an indexed-color sprite sheet, then writes the
Commander X16 4bpp sprite data and, optionally, the matching palette data.
Every output is staged beside its target and moved into place only once all of
them were written, so a failed run never leaves a partially converted set behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from PIL import Image

from .errors import ConversionError
from .palette import PaletteEncoding, PaletteTable, encode_palette, read_palette_file
from .sprite import DEFAULT_SPRITE_SIZE, SpritePacking, pack_sprites, unpack_sprites


@dataclass
class ConvertOptions:
    """Input/output paths and packing settings for one conversion."""

    palette_file: Path
    sprite_sheet_file: Path
    sprite_output_file: Path
    palette_output_file: Optional[Path] = None
    sprite_size: int = DEFAULT_SPRITE_SIZE
    unmatched_index: int = 0
    uppercase_names: bool = False  # X16 file names are conventionally upper case
    preview_file: Optional[Path] = None


@dataclass
class ConversionReport:
    palette: PaletteTable
    palette_encoding: PaletteEncoding
    sprites: SpritePacking
    written: List[Path] = field(default_factory=list)


def load_sprite_sheet(path: str | Path) -> Image.Image:
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except FileNotFoundError as exc:
        raise ConversionError(f"Input file not found: {path}") from exc
    except (OSError, Image.DecompressionBombError) as exc:
        raise ConversionError(f"Failed to read image: {path}") from exc


def output_path(path: str | Path, uppercase: bool = False) -> Path:
    path = Path(path)
    if uppercase:
        return path.with_name(path.name.upper())
    return path


def _staging_path(target: Path) -> Path:
    return target.with_name(f".{target.name}.tmp")


def _stage(target: Path, write: Callable[[Path], None]) -> Path:
    staged = _staging_path(target)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        write(staged)
    except OSError as exc:
        if staged.exists():
            staged.unlink()
        raise ConversionError(f"Failed to write {target}: {exc}") from exc
    return staged


def commit_outputs(outputs: List[Tuple[Path, Callable[[Path], None]]]) -> List[Path]:
    """Write every output to a staging file, then move them all into place.

    If any write fails the staged files are removed and no target is touched.
    """

    staged: List[Tuple[Path, Path]] = []
    try:
        for target, write in outputs:
            staged.append((_stage(target, write), target))
    except ConversionError:
        for staged_path, _target in staged:
            staged_path.unlink(missing_ok=True)
        raise

    for staged_path, target in staged:
        try:
            staged_path.replace(target)
        except OSError as exc:
            for leftover, _target in staged:
                leftover.unlink(missing_ok=True)
            raise ConversionError(f"Failed to write {target}: {exc}") from exc
    return [target for _staged, target in staged]


def convert_sprite_sheet(options: ConvertOptions) -> ConversionReport:
    palette = read_palette_file(options.palette_file)
    if not len(palette):
        raise ConversionError(f"No colors found in palette file: {options.palette_file}")

    palette_encoding = encode_palette(palette)
    image = load_sprite_sheet(options.sprite_sheet_file)
    sprites = pack_sprites(
        image,
        palette,
        sprite_size=options.sprite_size,
        unmatched_index=options.unmatched_index,
    )

    outputs: List[Tuple[Path, Callable[[Path], None]]] = []
    if options.palette_output_file is not None:
        target = output_path(options.palette_output_file, options.uppercase_names)
        outputs.append((target, lambda path: path.write_bytes(palette_encoding.data)))

    target = output_path(options.sprite_output_file, options.uppercase_names)
    outputs.append((target, lambda path: path.write_bytes(sprites.data)))

    if options.preview_file is not None:
        preview = unpack_sprites(
            sprites.data, palette, sprites.width, sprites.height, options.sprite_size
        )
        outputs.append((Path(options.preview_file), lambda path: preview.save(path, format="PNG")))

    report = ConversionReport(palette, palette_encoding, sprites)
    report.written.extend(commit_outputs(outputs))
    return report
