"""Render placement records as a lookup module (Luau table or JSON)."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

from build_spritesheet import PlacementRecord

MODULE_FORMATS = ("luau", "json")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
GENERATOR = "build_icon_sheet.py"

_LUAU_ESCAPES = {
    "\\": "\\\\",
    "'": "\\'",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def luau_string(text: str) -> str:
    """Quote ``text`` as a single-quoted Luau string literal."""
    out = []
    for ch in text:
        if ch in _LUAU_ESCAPES:
            out.append(_LUAU_ESCAPES[ch])
        elif ord(ch) < 32 or ord(ch) == 127:
            out.append(f"\\{ord(ch):03d}")
        else:
            out.append(ch)
    return "'" + "".join(out) + "'"


def _timestamp(generated_at: Optional[datetime]) -> str:
    return (generated_at or datetime.now()).strftime(TIMESTAMP_FORMAT)


def generate_luau_module(records: Sequence[PlacementRecord], generated_at: Optional[datetime] = None) -> str:
    """
    Luau module returning an ``Icons`` table keyed by icon name.

    Entries keep the record order. A repeated name is written again, so the
    later assignment wins when the module runs.
    """
    lines = [
        f"--[[ module generated by {GENERATOR} :: generated at {_timestamp(generated_at)} ]]",
        "",
        "local Icons = {}",
    ]
    for r in records:
        lines.append(
            f"Icons[{luau_string(r.name)}] = "
            f"{{ x = {r.x}, y = {r.y}, width = {r.width}, height = {r.height} }}"
        )
    lines.append("")
    lines.append("return Icons")
    return "\n".join(lines) + "\n"


def generate_json_module(
    records: Sequence[PlacementRecord],
    generated_at: Optional[datetime] = None,
    image: Optional[str] = None,
) -> str:
    icons = {}
    for r in records:
        icons[r.name] = r.as_dict()

    data = {"generatedAt": _timestamp(generated_at)}
    if image:
        data["image"] = image
    data["icons"] = icons
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


def module_format_for(path: Union[str, Path]) -> str:
    return "json" if Path(path).suffix.lower() == ".json" else "luau"


def render_module(
    records: Sequence[PlacementRecord],
    module_format: str = "luau",
    image: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    if module_format == "luau":
        return generate_luau_module(records, generated_at)
    if module_format == "json":
        return generate_json_module(records, generated_at, image=image)
    raise ValueError(f"Unknown module format: {module_format}")


def save_module_text(path: Union[str, Path], text: str) -> Path:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8", newline="\n") as f:
        f.write(text)
    return out_path


def write_module(
    path: Union[str, Path],
    records: Sequence[PlacementRecord],
    module_format: str = "luau",
    image: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> Path:
    text = render_module(records, module_format, image=image, generated_at=generated_at)
    return save_module_text(path, text)
