from __future__ import annotations

import pytest

from splitflap.display import FLAP_SEQUENCE, calibrate, decalibrate
from splitflap.display.flaps import center_frame, fit_frame

SIMPLE_SEQUENCE = " ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def test_no_profile_is_identity() -> None:
    assert calibrate("HELLO r", None) == "HELLO r"
    assert calibrate("HELLO r", "") == "HELLO r"


def test_home_character_shifts_target() -> None:
    # A wheel resting on 'A' must be told 'B' to show 'C'.
    assert calibrate("C", "A", SIMPLE_SEQUENCE) == "B"
    assert calibrate(" ", "A", SIMPLE_SEQUENCE) == "Z"


def test_blank_home_leaves_frame_unchanged() -> None:
    assert calibrate("HELLO", "     ") == "HELLO"


@pytest.mark.parametrize("profile", ["A", "Z9!", "rQ.w", FLAP_SEQUENCE])
def test_decalibrate_inverts_calibrate_for_every_flap(profile: str) -> None:
    frame = FLAP_SEQUENCE

    wheels = calibrate(frame, profile)

    assert len(wheels) == len(frame)
    assert decalibrate(wheels, profile) == frame


def test_characters_outside_sequence_pass_through() -> None:
    assert calibrate("a#C", "AAA", SIMPLE_SEQUENCE) == "a#B"


def test_home_outside_sequence_passes_position_through() -> None:
    assert calibrate("CC", "#A", SIMPLE_SEQUENCE) == "CB"


def test_short_profile_is_reused_cyclically() -> None:
    assert calibrate("CCCC", "A ", SIMPLE_SEQUENCE) == "BCBC"


def test_fit_frame_pads_and_truncates() -> None:
    assert fit_frame("HI", 4) == "HI  "
    assert fit_frame("HELLO", 3) == "HEL"
    assert center_frame("HI", 6) == "  HI  "
