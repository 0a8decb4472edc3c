"""Per-position calibration of logical frames into wheel commands.

Each wheel powers up resting on some flap other than the blank one. The
calibration profile records, per position, which flap that is; the transform
re-expresses every requested character as a step count from that home flap.
"""

from __future__ import annotations

from splitflap.display.flaps import FLAP_SEQUENCE


def _shift(frame: str, profile: str | None, sequence: str, direction: int) -> str:
    if not profile:
        return frame

    size = len(sequence)
    out = []
    for position, char in enumerate(frame):
        target = sequence.find(char)
        home = sequence.find(profile[position % len(profile)])
        if target < 0 or home < 0:
            out.append(char)
            continue
        out.append(sequence[(target + direction * home + size) % size])
    return "".join(out)


def calibrate(frame: str, profile: str | None, sequence: str = FLAP_SEQUENCE) -> str:
    """Translate a logical frame into the characters the wheels must be sent.

    Characters outside ``sequence`` and positions whose home character is not
    in ``sequence`` pass through unchanged. The profile is reused cyclically
    when shorter than the frame.
    """
    return _shift(frame, profile, sequence, -1)


def decalibrate(frame: str, profile: str | None, sequence: str = FLAP_SEQUENCE) -> str:
    """Inverse of :func:`calibrate` for the same profile."""
    return _shift(frame, profile, sequence, 1)


__all__ = ["calibrate", "decalibrate"]
