"""Draw a rendered calendar table into a PIL image."""

import os
from datetime import date

from PIL import Image, ImageDraw, ImageFont

from calendar_view import Node

# Colours
ACCENT = "#0078D4"
HEADER_BG = "#F3F3F3"
GRID_BG = "white"
GRID_LINE = "#DDDDDD"
WEEKEND_FG = "#CC0000"


def _rows(table: Node) -> list[Node]:
    rows: list[Node] = []
    for section in table.children:
        rows.extend(r for r in section.children if r.tag == "tr")
    return rows


def _is_weekend(node: Node) -> bool:
    try:
        return date.fromisoformat(node.key).weekday() >= 5
    except ValueError:
        return False


def _cell_colors(node: Node) -> tuple[str, str]:
    """Return (background, foreground) for one cell."""
    if node.active:
        return ACCENT, "white"
    if node.tag == "th":
        return HEADER_BG, "#333333"
    if _is_weekend(node):
        return GRID_BG, WEEKEND_FG
    return GRID_BG, "black"


def render_image(table: Node, cell_width: int = 36, cell_height: int = 24) -> Image.Image:
    """Return an RGB image of ``table``, one band of cells per row."""
    rows = _rows(table)
    img = Image.new("RGB", (7 * cell_width, max(1, len(rows)) * cell_height), GRID_BG)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    for r, row in enumerate(rows):
        y0 = r * cell_height
        col = 0
        for node in row.children:
            x0 = col * cell_width
            x1 = (col + node.colspan) * cell_width - 1
            col += node.colspan
            if node.pad:
                continue
            bg, fg = _cell_colors(node)
            draw.rectangle((x0, y0, x1, y0 + cell_height - 1), fill=bg, outline=GRID_LINE)
            if node.text:
                # Centre the visible pixels, compensating for font metric offsets
                bbox = draw.textbbox((0, 0), node.text, font=font)
                x = x0 + (x1 - x0 + 1 - (bbox[2] - bbox[0])) / 2 - bbox[0]
                y = y0 + (cell_height - (bbox[3] - bbox[1])) / 2 - bbox[1]
                draw.text((x, y), node.text, fill=fg, font=font)
    return img


def save_image(table: Node, path: str | os.PathLike, **kwargs) -> None:
    """Render ``table`` and write it to ``path`` as PNG."""
    render_image(table, **kwargs).save(path, format="PNG")
