import numpy as np
import pytest
from PIL import Image

from build_spritesheet import (
    IconDecodeError,
    IconSizeMismatchError,
    PlacementRecord,
    SheetLayout,
    choose_layout,
    create_spritesheet,
    decode_icon,
    find_duplicate_names,
)
from conftest import BLUE, CLEAR, GREEN, RED


@pytest.mark.parametrize(
    "count, expected",
    [
        (1, (1, 1)),
        (2, (2, 1)),
        (3, (2, 2)),
        (4, (2, 2)),
        (5, (3, 2)),
        (10, (4, 3)),
        (16, (4, 4)),
        (17, (5, 4)),
        (10**12, (10**6, 10**6)),
    ],
)
def test_choose_layout(count, expected):
    assert choose_layout(count) == expected


def test_choose_layout_always_fits_and_favors_width():
    for n in range(1, 300):
        cols, rows = choose_layout(n)
        assert cols * rows >= n
        assert cols >= rows
        # No wasted full row
        assert cols * (rows - 1) < n


@pytest.mark.parametrize("count", [0, -3])
def test_choose_layout_rejects_empty(count):
    with pytest.raises(ValueError):
        choose_layout(count)


def test_sheet_layout_cell_origin():
    layout = SheetLayout(columns=3, rows=2, icon_width=10, icon_height=20)
    assert layout.sheet_size == (30, 40)
    assert layout.cell_origin(0) == (0, 0)
    assert layout.cell_origin(2) == (20, 0)
    assert layout.cell_origin(3) == (0, 20)
    assert layout.cell_origin(5) == (20, 20)


def test_three_icons(abc_icons):
    sheet, records = create_spritesheet(abc_icons)

    assert sheet.mode == "RGBA"
    assert sheet.size == (32, 32)
    assert records == [
        PlacementRecord("a", 0, 0, 16, 16),
        PlacementRecord("b", 16, 0, 16, 16),
        PlacementRecord("c", 0, 16, 16, 16),
    ]
    assert sheet.getpixel((0, 0)) == RED
    assert sheet.getpixel((15, 15)) == RED
    assert sheet.getpixel((16, 0)) == GREEN
    assert sheet.getpixel((31, 15)) == GREEN
    assert sheet.getpixel((0, 16)) == BLUE
    # Trailing cell stays transparent
    assert sheet.getpixel((16, 16)) == CLEAR
    assert sheet.getpixel((31, 31)) == CLEAR


def test_single_icon(tmp_path, make_icon):
    icon = make_icon(tmp_path / "only.png", size=(8, 8), color=GREEN)
    sheet, records = create_spritesheet([icon])

    assert sheet.size == (8, 8)
    assert records == [PlacementRecord("only", 0, 0, 8, 8)]
    assert np.all(np.asarray(sheet) == GREEN)


def test_accepts_string_paths(abc_icons):
    _, records = create_spritesheet([str(p) for p in abc_icons])
    assert [r.name for r in records] == ["a", "b", "c"]


def test_is_deterministic(tmp_path, make_icon):
    icons = [
        make_icon(tmp_path / f"icon_{i}.png", size=(5, 7), color=(i * 20, 255 - i * 20, i, 255))
        for i in range(7)
    ]
    sheet_1, records_1 = create_spritesheet(icons)
    sheet_2, records_2 = create_spritesheet(icons)

    assert sheet_1.tobytes() == sheet_2.tobytes()
    assert records_1 == records_2


def test_placements_do_not_overlap_and_follow_input_order(tmp_path, make_icon):
    icons = [make_icon(tmp_path / f"{name}.png", size=(6, 4)) for name in "zyxwvut"]
    sheet, records = create_spritesheet(icons)

    assert [r.name for r in records] == [p.stem for p in icons]
    cols, rows = choose_layout(len(icons))
    assert sheet.size == (6 * cols, 4 * rows)

    for i, a in enumerate(records):
        assert a.x + a.width <= sheet.width
        assert a.y + a.height <= sheet.height
        for b in records[i + 1:]:
            disjoint = (
                a.x + a.width <= b.x
                or b.x + b.width <= a.x
                or a.y + a.height <= b.y
                or b.y + b.height <= a.y
            )
            assert disjoint, (a, b)


def test_pixels_are_copied_without_blending(tmp_path):
    path = tmp_path / "half.png"
    icon = Image.new("RGBA", (2, 1), (10, 20, 30, 128))
    icon.putpixel((1, 0), (0, 0, 0, 0))
    icon.save(path)

    sheet, _ = create_spritesheet([path])
    assert sheet.getpixel((0, 0)) == (10, 20, 30, 128)
    assert sheet.getpixel((1, 0)) == (0, 0, 0, 0)


def test_non_rgba_icons_are_converted(tmp_path):
    path = tmp_path / "rgb.png"
    Image.new("RGB", (3, 3), (1, 2, 3)).save(path)

    sheet, _ = create_spritesheet([path])
    assert sheet.getpixel((2, 2)) == (1, 2, 3, 255)


def test_size_mismatch_is_rejected(tmp_path, make_icon):
    icons = [
        make_icon(tmp_path / "a.png", size=(4, 4)),
        make_icon(tmp_path / "b.png", size=(5, 4)),
    ]
    with pytest.raises(IconSizeMismatchError) as info:
        create_spritesheet(icons)

    assert info.value.path == icons[1]
    assert info.value.expected == (4, 4)
    assert info.value.actual == (5, 4)


def test_mixed_sizes_when_allowed(tmp_path, make_icon):
    icons = [
        make_icon(tmp_path / "a.png", size=(4, 4), color=RED),
        make_icon(tmp_path / "b.png", size=(2, 2), color=GREEN),
        make_icon(tmp_path / "c.png", size=(8, 8), color=BLUE),
    ]
    sheet, records = create_spritesheet(icons, allow_mixed_sizes=True)

    assert sheet.size == (8, 8)
    # Records always carry the first icon's size
    assert [(r.width, r.height) for r in records] == [(4, 4)] * 3
    # Smaller icon leaves the rest of its cell transparent
    assert sheet.getpixel((4, 0)) == GREEN
    assert sheet.getpixel((7, 3)) == CLEAR
    # Larger icon spills into the next cell and is clipped at the sheet edge
    assert sheet.getpixel((0, 4)) == BLUE
    assert sheet.getpixel((7, 7)) == BLUE


def test_progress_bar_does_not_change_result(abc_icons):
    plain, records = create_spritesheet(abc_icons)
    with_bar, records_bar = create_spritesheet(abc_icons, progress=True)
    assert plain.tobytes() == with_bar.tobytes()
    assert records == records_bar


def test_empty_input_is_rejected():
    with pytest.raises(ValueError):
        create_spritesheet([])


def test_undecodable_icon(tmp_path, make_icon):
    good = make_icon(tmp_path / "a.png")
    bad = tmp_path / "b.png"
    bad.write_bytes(b"definitely not an image")

    with pytest.raises(IconDecodeError) as info:
        create_spritesheet([good, bad])
    assert info.value.path == bad
    assert "b.png" in str(info.value)


def test_missing_icon_raises_os_error(tmp_path):
    with pytest.raises(FileNotFoundError):
        decode_icon(tmp_path / "missing.png")


def test_decode_icon_returns_rgba(tmp_path):
    path = tmp_path / "gray.png"
    Image.new("L", (3, 2), 77).save(path)

    icon = decode_icon(path)
    assert icon.mode == "RGBA"
    assert icon.size == (3, 2)
    assert icon.getpixel((0, 0)) == (77, 77, 77, 255)


def test_find_duplicate_names():
    records = [
        PlacementRecord("a", 0, 0, 1, 1),
        PlacementRecord("b", 1, 0, 1, 1),
        PlacementRecord("a", 0, 1, 1, 1),
    ]
    assert find_duplicate_names(records) == {"a": [0, 2]}
    assert find_duplicate_names(records[:2]) == {}


def test_placement_record_as_dict():
    assert PlacementRecord("x", 1, 2, 3, 4).as_dict() == {"x": 1, "y": 2, "width": 3, "height": 4}
