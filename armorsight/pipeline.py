"""Per-frame detection, tracking and debug drawing, plus a file-based runner."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

import numpy as np

from armorsight.armor import Armor
from armorsight.detector import ArmorDetector, draw_armors
from armorsight.tracker import ArmorTracker

_PREDICTION_COLOR = (255, 0, 0)  # blue in BGR
_PREDICTION_RADIUS = 6
_PREDICTION_THICKNESS = 2


def draw_prediction(image, point) -> None:
    """Draw a ring marking a predicted position onto a BGR image in place."""
    cx, cy = int(round(point[0])), int(round(point[1]))
    h, w = image.shape[:2]
    yy, xx = np.ogrid[:h, :w]
    dist = np.sqrt((xx - cx) ** 2 + (yy - cy) ** 2)
    image[np.abs(dist - _PREDICTION_RADIUS) <= _PREDICTION_THICKNESS / 2] = _PREDICTION_COLOR


@dataclass
class FrameResult:
    """What processing one frame produced."""

    armors: List[Armor]
    debug_image: np.ndarray
    prediction: Optional[Tuple[int, int]]


class ArmorPipeline:
    """Detects armors in each frame and keeps one of them tracked."""

    def __init__(self, detector: Optional[ArmorDetector] = None,
                 tracker: Optional[ArmorTracker] = None) -> None:
        self.detector = detector or ArmorDetector()
        self.tracker = tracker or ArmorTracker()

    def process(self, frame, stamp: Any) -> FrameResult:
        """Detect, update the tracker and draw the debug image for one BGR frame."""
        frame = np.asarray(frame)
        armors = self.detector.detect(frame)
        debug = frame.copy()
        draw_armors(debug, armors)

        if armors:
            if not self.tracker.is_tracking:
                self.tracker.start(armors[0], stamp)
            else:
                self.tracker.update(armors, stamp)

        self.tracker.predict_once()

        prediction = None
        if self.tracker.is_tracking:
            state = self.tracker.predicted_state
            prediction = (int(round(state[0])), int(round(state[1])))
            draw_prediction(debug, prediction)
        return FrameResult(armors, debug, prediction)


def _to_bgr(frame: np.ndarray) -> np.ndarray:
    frame = np.asarray(frame)
    if frame.ndim == 2:
        frame = np.stack([frame] * 3, axis=-1)
    elif frame.shape[2] == 4:
        frame = frame[:, :, :3]
    return np.ascontiguousarray(frame[:, :, ::-1]).astype(np.uint8)


def main(argv=None) -> int:
    """Run the pipeline over image or video files and save debug frames."""
    import imageio.v3 as iio

    parser = argparse.ArgumentParser(prog="armorsight",
                                     description="Detect and track armor plates.")
    parser.add_argument("inputs", nargs="+", help="image or video files")
    parser.add_argument("--output-dir", default="debug", help="where debug frames go")
    args = parser.parse_args(argv)

    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    pipeline = ArmorPipeline()
    stamp = 0
    for name in args.inputs:
        path = Path(name)
        for index, rgb in enumerate(iio.imiter(path)):
            result = pipeline.process(_to_bgr(rgb), stamp)
            stamp += 1
            target = out_dir / f"{path.stem}_{index:05d}.png"
            iio.imwrite(target, np.ascontiguousarray(result.debug_image[:, :, ::-1]))
            print(f"{target}: {len(result.armors)} armor(s)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())