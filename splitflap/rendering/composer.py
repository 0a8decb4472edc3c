"""Frame composer for the split-flap preview image."""

from __future__ import annotations

from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from splitflap.display.flaps import BLANK, COLOR_CODES

TILE_WIDTH = 24
TILE_HEIGHT = 36
TILE_GAP = 4
MARGIN = 8

COLOR_BACKGROUND = (20, 20, 20)
COLOR_TILE = (40, 40, 40)
COLOR_HINGE = (12, 12, 12)
COLOR_TEXT = (235, 235, 235)

FLAP_COLORS = {
    "r": (200, 30, 30),
    "o": (235, 120, 20),
    "y": (230, 200, 20),
    "g": (30, 160, 60),
    "b": (30, 80, 200),
    "v": (130, 50, 180),
    "p": (230, 110, 170),
    "t": (30, 180, 180),
    "w": (240, 240, 240),
}

FONT = ImageFont.load_default()


def tile_origin(index: int) -> tuple[int, int]:
    """Top-left pixel of the tile at ``index``."""
    return MARGIN + index * (TILE_WIDTH + TILE_GAP), MARGIN


def _draw_tile(draw: ImageDraw.ImageDraw, index: int, char: str) -> None:
    left, top = tile_origin(index)
    right = left + TILE_WIDTH - 1
    bottom = top + TILE_HEIGHT - 1

    if char in COLOR_CODES:
        draw.rectangle((left, top, right, bottom), fill=FLAP_COLORS[char])
        return

    draw.rectangle((left, top, right, bottom), fill=COLOR_TILE)
    hinge_y = top + TILE_HEIGHT // 2
    draw.line((left, hinge_y, right, hinge_y), fill=COLOR_HINGE)
    if char == BLANK:
        return

    bbox = draw.textbbox((0, 0), char, font=FONT)
    text_width = bbox[2] - bbox[0]
    text_height = bbox[3] - bbox[1]
    text_x = left + (TILE_WIDTH - text_width) // 2 - bbox[0]
    text_y = top + (TILE_HEIGHT - text_height) // 2 - bbox[1]
    draw.text((text_x, text_y), char, font=FONT, fill=COLOR_TEXT)


def compose_frame(text: str) -> Image.Image:
    """Compose an RGB preview with one flap tile per character of ``text``."""
    if not text:
        raise ValueError("Frame text must not be empty.")

    width = MARGIN * 2 + len(text) * TILE_WIDTH + (len(text) - 1) * TILE_GAP
    height = MARGIN * 2 + TILE_HEIGHT
    image = Image.new("RGB", (width, height), COLOR_BACKGROUND)
    draw = ImageDraw.Draw(image)

    for index, char in enumerate(text):
        _draw_tile(draw, index, char)

    return image


def save_frame(text: str, path: str | Path = "emulator_output/frame.png") -> Path:
    """Render ``text`` and write it to ``path`` as PNG, creating parent directories."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    compose_frame(text).save(output_path, format="PNG")
    return output_path


__all__ = ["compose_frame", "save_frame", "tile_origin"]
