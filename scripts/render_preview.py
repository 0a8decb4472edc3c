"""Render a preview image of a frame as the display would show it."""

from __future__ import annotations

import argparse

from splitflap.display import calibrate, fit_frame
from splitflap.rendering import save_frame


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("text", help="Frame text; lower-case r o y g b v p t w are colour flaps")
    parser.add_argument("--output", default="emulator_output/frame.png")
    parser.add_argument("--width", type=int, default=None, help="Pad or truncate to this many flaps")
    parser.add_argument("--calibration", default=None, help="Print the wheel commands for this profile")
    args = parser.parse_args()

    frame = args.text if args.width is None else fit_frame(args.text, args.width)
    if args.calibration:
        wheels = calibrate(frame, args.calibration)
        print(f"Wheel commands: {wheels!r}")

    path = save_frame(frame, args.output)
    print(f"Wrote {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
