#!/usr/bin/env python3
"""
Pack a list of icon images into one grid sprite sheet.

- Near-square grid: cols = ceil(sqrt(n)), rows = ceil(n / cols)
- Every cell has the size of the first icon
- Icons are copied unscaled, in input order, row by row
- Transparent (RGBA) background; unused trailing cells stay fully transparent

The result is the sheet image plus one placement record per icon, in the
same order as the input paths.

Usage:
    python build_spritesheet.py icon_a.png icon_b.png icon_c.png sheet.png
"""

from __future__ import annotations

import argparse
import math
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple, Union

import numpy as np
from PIL import Image
from tqdm import tqdm

PathLike = Union[str, Path]


class IconDecodeError(RuntimeError):
    """An icon file exists but is not an image Pillow can decode."""

    def __init__(self, path: PathLike, reason: object):
        super().__init__(f"Cannot decode icon {path}: {reason}")
        self.path = Path(path)


class IconSizeMismatchError(RuntimeError):
    """An icon does not have the cell size taken from the first icon."""

    def __init__(self, path: PathLike, expected: Tuple[int, int], actual: Tuple[int, int]):
        super().__init__(
            f"Icon size mismatch: {path} is {actual[0]}x{actual[1]}, "
            f"expected {expected[0]}x{expected[1]}"
        )
        self.path = Path(path)
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class PlacementRecord:
    name: str
    x: int
    y: int
    width: int
    height: int

    def as_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class SheetLayout:
    """Grid shape and cell size shared by sheet sizing and icon placement."""

    columns: int
    rows: int
    icon_width: int
    icon_height: int

    @property
    def sheet_size(self) -> Tuple[int, int]:
        return self.icon_width * self.columns, self.icon_height * self.rows

    def cell_origin(self, index: int) -> Tuple[int, int]:
        row = index // self.columns
        col = index % self.columns
        return col * self.icon_width, row * self.icon_height


def choose_layout(num_icons: int) -> Tuple[int, int]:
    """
    Decide (cols, rows) for a nearly square grid.
    When n is not a perfect square, cols >= rows.
    """
    if num_icons <= 0:
        raise ValueError(f"Cannot lay out {num_icons} icons")

    cols = math.isqrt(num_icons)
    if cols * cols < num_icons:
        cols += 1
    rows = -(-num_icons // cols)
    return cols, rows


def decode_icon(path: PathLike) -> Image.Image:
    """
    Decode one icon file into an RGBA image.

    A file that cannot be opened raises OSError unchanged; a file that opens
    but does not decode as an image raises IconDecodeError.
    """
    with open(path, "rb") as handle:
        try:
            with Image.open(handle) as im:
                return im.convert("RGBA")
        except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
            raise IconDecodeError(path, exc) from exc


def _paste_pixels(sheet: np.ndarray, pixels: np.ndarray, x: int, y: int) -> None:
    # Straight copy (no alpha blending), clipped at the sheet edge.
    h = min(pixels.shape[0], sheet.shape[0] - y)
    w = min(pixels.shape[1], sheet.shape[1] - x)
    if h > 0 and w > 0:
        sheet[y:y + h, x:x + w] = pixels[:h, :w]


def create_spritesheet(
    icon_paths: Sequence[PathLike],
    allow_mixed_sizes: bool = False,
    progress: bool = False,
) -> Tuple[Image.Image, List[PlacementRecord]]:
    """
    Composite ``icon_paths`` into one sheet and return it with the placements.

    Every cell takes the size of the first icon. By default any icon of a
    different size raises IconSizeMismatchError before the sheet is returned.
    With ``allow_mixed_sizes`` such icons are copied at their cell origin at
    their own size, which may spill into neighbouring cells.
    """
    paths = [Path(p) for p in icon_paths]
    if not paths:
        raise ValueError("No icons to pack")

    cols, rows = choose_layout(len(paths))

    first_icon = decode_icon(paths[0])
    icon_w, icon_h = first_icon.size
    layout = SheetLayout(cols, rows, icon_w, icon_h)

    sheet_w, sheet_h = layout.sheet_size
    # Transparent background
    sheet = np.zeros((sheet_h, sheet_w, 4), dtype=np.uint8)
    records: List[PlacementRecord] = []

    indexed: Iterable[Tuple[int, Path]] = enumerate(paths)
    if progress:
        indexed = tqdm(indexed, total=len(paths), desc="Compositing", unit="icon")

    for idx, icon_path in indexed:
        icon = first_icon if idx == 0 else decode_icon(icon_path)
        if icon.size != (icon_w, icon_h) and not allow_mixed_sizes:
            raise IconSizeMismatchError(icon_path, (icon_w, icon_h), icon.size)

        x, y = layout.cell_origin(idx)
        _paste_pixels(sheet, np.asarray(icon), x, y)
        icon.close()

        records.append(PlacementRecord(icon_path.stem, x, y, icon_w, icon_h))

    return Image.fromarray(sheet), records


def find_duplicate_names(records: Sequence[PlacementRecord]) -> Dict[str, List[int]]:
    """Names carried by more than one record, with the indices of those records."""
    seen: Dict[str, List[int]] = defaultdict(list)
    for idx, record in enumerate(records):
        seen[record.name].append(idx)
    return {name: indices for name, indices in seen.items() if len(indices) > 1}


def main():
    parser = argparse.ArgumentParser(
        description="Pack icon images (in the given order) into a grid sprite sheet."
    )
    parser.add_argument("icons", nargs="+", help="Icon image files, in placement order.")
    parser.add_argument("output", help="Output sprite sheet path (e.g. icons.png).")
    parser.add_argument(
        "--allow-mixed-sizes",
        action="store_true",
        help="Copy icons whose size differs from the first icon instead of failing.",
    )

    args = parser.parse_args()
    sheet, records = create_spritesheet(
        args.icons,
        allow_mixed_sizes=args.allow_mixed_sizes,
        progress=True,
    )
    sheet.save(args.output)
    print(f"Saved {len(records)} icons ({sheet.width}x{sheet.height}) to: {args.output}")


if __name__ == "__main__":
    main()
