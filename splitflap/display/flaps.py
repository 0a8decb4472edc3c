"""Character wheel alphabet for the split-flap display."""

from __future__ import annotations

COLOR_CODES = ("r", "o", "y", "g", "b", "v", "p", "t", "w")

COLOR_NAMES = {
    "r": "red",
    "o": "orange",
    "y": "yellow",
    "g": "green",
    "b": "blue",
    "v": "violet",
    "p": "pink",
    "t": "turquoise",
    "w": "white",
}

# Order matches the physical wheel, starting at the blank flap.
FLAP_SEQUENCE = " " + "".join(COLOR_CODES) + "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.=?$&!"

BLANK = " "


def fit_frame(text: str, width: int) -> str:
    """Pad with blanks or truncate so the frame is exactly ``width`` characters."""
    return text.ljust(width, BLANK)[:width]


def center_frame(text: str, width: int) -> str:
    """Centre ``text`` in a frame of ``width`` characters."""
    return fit_frame(text.center(width, BLANK), width)


__all__ = ["BLANK", "COLOR_CODES", "COLOR_NAMES", "FLAP_SEQUENCE", "center_frame", "fit_frame"]
