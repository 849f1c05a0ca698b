#!/usr/bin/env python3
"""
Build an icon sprite sheet and its lookup module from a folder of icons.

- Collects every file below the icon folder (optionally filtered by extension)
- Packs them into a near-square grid, in sorted path order
- Writes the sheet image and a Luau (or JSON) module mapping icon name -> rect
- Nothing is written unless every icon decoded and fit its cell

Missing paths are asked for interactively.

Usage:
    python build_icon_sheet.py icons/ out/icons.png out/Icons.luau
    python build_icon_sheet.py icons/ out/icons.webp out/icons.json --ext png
    python build_icon_sheet.py                      # prompts for the three paths
"""

from __future__ import annotations

import argparse
import io
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Set

from PIL import Image
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from build_spritesheet import (
    IconDecodeError,
    IconSizeMismatchError,
    PlacementRecord,
    create_spritesheet,
    find_duplicate_names,
)
from collect_icons import collect_icon_files, parse_extensions
from icon_module import MODULE_FORMATS, module_format_for, render_module, save_module_text

console = Console()


class DuplicateIconNameError(RuntimeError):
    pass


def _writable_rgba_format(path: Path) -> str:
    """Pillow format name for ``path``, if Pillow can write RGBA images in it."""
    fmt = Image.registered_extensions().get(path.suffix.lower())
    if fmt is None or fmt not in Image.SAVE:
        raise ValueError(f"Unsupported sheet image format: {path.name}")
    try:
        Image.new("RGBA", (1, 1)).save(io.BytesIO(), format=fmt)
    except (OSError, KeyError, ValueError) as exc:
        raise ValueError(f"Cannot write RGBA sheet as {fmt}: {path.name}") from exc
    return fmt


def _required_path(value: Optional[str], label: str, prompt: Callable[[str], str]) -> str:
    # Path("") means the current folder, so blank answers are refused before conversion.
    text = (value or prompt(label) or "").strip()
    if not text:
        raise ValueError(f"{label} is empty")
    return text


@dataclass
class SheetConfig:
    input_dir: Path
    output_image: Path
    output_module: Path
    module_format: str = "luau"
    extensions: Optional[Set[str]] = None
    allow_mixed_sizes: bool = False
    strict_names: bool = False
    progress: bool = True
    verbose: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace, prompt: Callable[[str], str] = Prompt.ask) -> "SheetConfig":
        input_dir = _required_path(args.input_dir, "Path to icons", prompt)
        output_image = _required_path(args.output, "Output path", prompt)
        output_module = _required_path(args.module_output, "Module output path", prompt)

        return cls(
            input_dir=Path(input_dir),
            output_image=Path(output_image),
            output_module=Path(output_module),
            module_format=args.format or module_format_for(output_module),
            extensions=parse_extensions(args.ext),
            allow_mixed_sizes=args.allow_mixed_sizes,
            strict_names=args.strict_names,
            progress=not args.no_progress,
            verbose=args.verbose,
        )

    def validate(self) -> None:
        if not self.input_dir.exists():
            raise FileNotFoundError(f"Icon folder not found: {self.input_dir}")
        if not self.input_dir.is_dir():
            raise NotADirectoryError(f"Icon path is not a folder: {self.input_dir}")

        for label, path in (("Output path", self.output_image), ("Module output path", self.output_module)):
            if not str(path).strip() or path == Path("."):
                raise ValueError(f"{label} is empty")
            if path.is_dir():
                raise ValueError(f"{label} is a folder: {path}")

        if self.output_image.resolve() == self.output_module.resolve():
            raise ValueError("Output path and module output path are the same file")
        if self.module_format not in MODULE_FORMATS:
            raise ValueError(f"Unknown module format: {self.module_format}")
        _writable_rgba_format(self.output_image)


def save_sheet(sheet: Image.Image, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".webp":
        # Lossless WebP keeps icon pixels exact
        sheet.save(path, "WEBP", lossless=True, quality=100, method=6, exact=True)
    else:
        sheet.save(path)


def placement_table(records: List[PlacementRecord]) -> Table:
    table = Table(title="Icon placements")
    table.add_column("#", justify="right")
    table.add_column("Icon")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("Width", justify="right")
    table.add_column("Height", justify="right")
    for idx, r in enumerate(records):
        table.add_row(str(idx), escape(r.name), str(r.x), str(r.y), str(r.width), str(r.height))
    return table


def write_outputs(config: SheetConfig, sheet: Image.Image, records: List[PlacementRecord]) -> None:
    """Write the sheet and the module; if either fails, remove what was written."""
    text = render_module(records, config.module_format, image=config.output_image.name)

    written: List[Path] = []
    try:
        written.append(config.output_image)
        save_sheet(sheet, config.output_image)
        written.append(config.output_module)
        save_module_text(config.output_module, text)
    except OSError:
        for path in written:
            if path.is_file():
                path.unlink()
        raise


def run(config: SheetConfig, out: Console = console) -> int:
    outputs = {config.output_image.resolve(), config.output_module.resolve()}
    icon_files = [
        p for p in collect_icon_files(config.input_dir, config.extensions)
        if p.resolve() not in outputs
    ]
    if not icon_files:
        out.print(f"[yellow]No icon files found in {escape(str(config.input_dir))}. Nothing written.[/yellow]")
        return 0

    out.print(f"[cyan]Found {len(icon_files)} icon files. Building sprite sheet…[/cyan]")
    sheet, records = create_spritesheet(
        icon_files,
        allow_mixed_sizes=config.allow_mixed_sizes,
        progress=config.progress,
    )

    duplicates = find_duplicate_names(records)
    if duplicates:
        names = ", ".join(sorted(duplicates))
        if config.strict_names:
            raise DuplicateIconNameError(f"Duplicate icon names: {names}")
        out.print(f"[yellow]Duplicate icon names (the last one wins in the lookup): {escape(names)}[/yellow]")

    write_outputs(config, sheet, records)

    if config.verbose:
        out.print(placement_table(records))

    out.print(
        f"[green]Saved {len(records)} icons ({sheet.width}x{sheet.height}) to:[/green] "
        f"{escape(str(config.output_image))}"
    )
    out.print(f"[green]Saved {config.module_format} module to:[/green] {escape(str(config.output_module))}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Pack a folder of icons into a grid sprite sheet plus a name -> rect lookup module."
    )
    parser.add_argument("input_dir", nargs="?", help="Folder containing the icon files (searched recursively).")
    parser.add_argument("output", nargs="?", help="Output sprite sheet path (e.g. icons.png).")
    parser.add_argument("module_output", nargs="?", help="Output module path (e.g. Icons.luau or icons.json).")
    parser.add_argument(
        "--format",
        choices=MODULE_FORMATS,
        default=None,
        help="Module format. Default: json for a .json module path, luau otherwise.",
    )
    parser.add_argument(
        "--ext",
        default=None,
        help="Comma-separated icon extensions to include (e.g. png,webp). Default: every file.",
    )
    parser.add_argument(
        "--allow-mixed-sizes",
        action="store_true",
        help="Copy icons whose size differs from the first icon instead of failing.",
    )
    parser.add_argument(
        "--strict-names",
        action="store_true",
        help="Fail when two icons share the same name instead of warning.",
    )
    parser.add_argument("--no-progress", action="store_true", help="Hide the compositing progress bar.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print a table of icon placements.")
    return parser


def main(argv: Optional[List[str]] = None, out: Console = console) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = SheetConfig.from_args(args)
        config.validate()
        return run(config, out)
    except (IconDecodeError, IconSizeMismatchError, DuplicateIconNameError) as e:
        out.print(f"[red]{escape(str(e))}[/red]")
    except OSError as e:
        out.print(f"[red]I/O error: {escape(str(e))}[/red]")
    except ValueError as e:
        out.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
    return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
