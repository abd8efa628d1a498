"""Command line interface for the CX16 sprite converter."""

from __future__ import annotations

import argparse
import sys
import warnings
from pathlib import Path

from .converter import ConvertOptions, convert_sprite_sheet
from .errors import ConversionError
from .sprite import DEFAULT_SPRITE_SIZE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Convert indexed color PNG sprite sheets for use as sprites in the Commander X16.\n"
            "Pixels are matched to the palette file by exact RGB value (alpha is ignored) and "
            "packed two per byte as 4bpp color indices."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        "--palette-file",
        required=True,
        type=Path,
        help="GIMP-formatted palette file (RGB values as plain text) to convert to CX16 12-bit color",
    )
    parser.add_argument(
        "--sprite-sheet-file",
        required=True,
        type=Path,
        help="PNG indexed color sprite sheet to convert to CX16 4bpp indexed sprites",
    )
    parser.add_argument(
        "--sprite-size",
        type=int,
        default=DEFAULT_SPRITE_SIZE,
        help="Size of one side of a square sprite in pixels (default: %(default)s)",
    )
    parser.add_argument(
        "--sprite-output-file",
        required=True,
        type=Path,
        help="CX16 sprite data, ready to load directly into VRAM",
    )
    parser.add_argument(
        "--palette-output-file",
        type=Path,
        help="CX16 palette data, ready to be loaded at a 16-color palette offset",
    )
    parser.add_argument(
        "--unmatched-index",
        type=int,
        default=0,
        help="Color index written for pixels missing from the palette (0-15, default: %(default)s)",
    )
    parser.add_argument(
        "--uppercase-names",
        action="store_true",
        help="Upper-case the output file names",
    )
    parser.add_argument(
        "--preview",
        type=Path,
        help="Optional PNG rendering of the packed sprite data for checking the result",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    options = ConvertOptions(
        palette_file=args.palette_file,
        sprite_sheet_file=args.sprite_sheet_file,
        sprite_output_file=args.sprite_output_file,
        palette_output_file=args.palette_output_file,
        sprite_size=args.sprite_size,
        unmatched_index=args.unmatched_index,
        uppercase_names=args.uppercase_names,
        preview_file=args.preview,
    )

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                report = convert_sprite_sheet(options)
            finally:
                for warning in caught:
                    print(f"Warning: {warning.message}", file=sys.stderr)
    except ConversionError as exc:
        print(exc, file=sys.stderr)
        return 1

    for target in report.written:
        print(f"wrote {target}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
