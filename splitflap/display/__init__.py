"""Display alphabet, calibration and output."""

from splitflap.display.calibration import calibrate, decalibrate
from splitflap.display.flaps import COLOR_CODES, FLAP_SEQUENCE, center_frame, fit_frame
from splitflap.display.output import DisplayOutput

__all__ = [
    "COLOR_CODES",
    "DisplayOutput",
    "FLAP_SEQUENCE",
    "calibrate",
    "center_frame",
    "decalibrate",
    "fit_frame",
]
