#!/usr/bin/env python3
"""
Find the icon files under a folder, in a stable order.

The order decides where each icon lands in the sprite sheet, so the list is
always sorted by path (component by component), never by filesystem order.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union


def parse_extensions(text: Optional[str]) -> Optional[Set[str]]:
    """'png, .WEBP' -> {'.png', '.webp'}; empty or None means no filter."""
    if not text:
        return None
    exts = set()
    for part in text.split(","):
        part = part.strip().lower()
        if not part:
            continue
        exts.add(part if part.startswith(".") else "." + part)
    return exts or None


def collect_icon_files(root: Union[str, Path], extensions: Optional[Iterable[str]] = None) -> List[Path]:
    """Collect all files recursively below ``root``, sorted by path."""
    root_path = Path(root)
    if not root_path.exists():
        raise FileNotFoundError(f"Icon folder not found: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Icon path is not a folder: {root_path}")

    wanted = {e.lower() for e in extensions} if extensions else None

    files = []
    for file_path in root_path.rglob("*"):
        if not file_path.is_file():
            continue
        if wanted is not None and file_path.suffix.lower() not in wanted:
            continue
        files.append(file_path)

    return sorted(files, key=lambda p: p.parts)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        raise SystemExit("Usage: python collect_icons.py <icon_folder> [png,webp]")
    for icon in collect_icon_files(sys.argv[1], parse_extensions(sys.argv[2] if len(sys.argv) > 2 else None)):
        print(icon)
