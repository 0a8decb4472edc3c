"""Preview rendering for the split-flap display."""

from splitflap.rendering.composer import compose_frame, save_frame

__all__ = ["compose_frame", "save_frame"]
