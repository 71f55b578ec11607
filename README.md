# armorsight

Find armor plates in camera frames and follow them from frame to frame.

An armor plate appears in an image as two bright, upright light bars side by
side. `armorsight` finds those bars in the red channel of a BGR frame. It
pairs bars that match in tilt, length and height, and classes each plate as
small or large by how far apart its bars are. It then follows the plate's
centre with a constant-velocity extended Kalman filter.

## Installation

```
pip install .
```

This installs `numpy`, `scipy` and `imageio`. To run the tests as well:

```
pip install ".[test]"
pytest
```

## Detecting plates

```python
import imageio.v3 as iio
from armorsight.detector import ArmorDetector, draw_armors

frame = iio.imread("frame.png")[..., ::-1].copy()   # RGB to BGR
detector = ArmorDetector()

armors = detector.detect(frame)
for armor in armors:
    print(armor.type, armor.center)

draw_armors(frame, armors)                          # draws on the frame in place
```

`detect` runs two steps, and you can call each one yourself:

- `find_lights(image)` takes a 3-channel image and raises `ValueError` for any
  other shape. It thresholds the red channel at 220 and blurs the result with
  a 5×5 Gaussian. It then returns a `Light` for each outer contour that has
  at least five points, is more than 1.2 times as long as it is wide, and is
  more than 10 pixels long.
- `match_armors(lights)` tries every pair of lights and keeps each pair that
  `is_valid_armor_pair` accepts. It builds an `Armor` from the pair with
  `Armor.from_lights`, which orders the lights left to right, and sets its
  type to `ArmorType.LARGE` or `ArmorType.SMALL`.

Two lights make a valid pair when all of these hold:

- their tilt angles differ by at most 10 degrees;
- their lengths differ by at most 30 %;
- the vertical offset between their centres is at most half the horizontal
  offset, and the horizontal offset is not zero;
- the distance between their centres is between 1 and 5 times their mean
  length.

A pair whose centre distance is more than 3.2 times the mean length is a
large plate.

`draw_armors` draws a 2-pixel blue box around each light of every plate and
a filled green dot at each plate's centre.

The image steps the detector uses are in `armorsight.geometry`:
`threshold`, `gaussian_blur`, `find_external_contours`, `min_area_rect`
(which returns a `RotatedRect`), `contour_area` and `bounding_rect`.

## Tracking

```python
from armorsight.tracker import ArmorTracker

tracker = ArmorTracker()
tracker.start(armors[0], stamp=0.0)
tracker.update(next_armors, stamp=0.033)
state = tracker.predict_once()       # [x, y, vx, vy]
```

`ArmorTracker` keeps the state `[x, y, vx, vy]` of the tracked plate's
centre.

- `start` sets the position from the first plate it is given and sets the
  velocity to zero. Once tracking has begun, further calls do nothing.
- `update` takes the plate chosen by `select_best_armor`, which is the first
  in the list. It predicts one step and then corrects with that plate's
  centre. It does nothing before `start` or when the list is empty.
- `predict_once` advances the filter one step without a measurement and
  returns the new state.
- `is_tracking`, `predicted_state`, `tracked_armor` and `last_update_time`
  show where the tracker stands.

`constant_velocity_filter()` builds the filter the tracker uses.

`armorsight.kalman.ExtendedKalmanFilter` also works on its own. Give it the
process and measurement functions, their Jacobians, the noise covariance
functions and an initial covariance. Then call `set_state`, `predict` and
`update`. Calling `update` before any `predict` raises `RuntimeError`.
`measurement(state)` applies the measurement function, and `predicted_state`
is the latest prior state.

## Whole pipeline

`armorsight.pipeline.ArmorPipeline` runs detection and tracking together.
`process(frame, stamp)` does the following for each frame:

1. It detects plates and draws them on a copy of the frame.
2. It starts the tracker on the first detection and updates the tracker on
   later ones.
3. It advances the tracker one more step with `predict_once`.

It returns a `FrameResult` with the detected `armors`, the `debug_image` and
the `prediction`. While a plate is being tracked, `prediction` holds the
predicted position in whole pixels. `draw_prediction` then marks that
position with a blue ring. Otherwise `prediction` is `None`.

The `armorsight` command runs the pipeline over image or video files:

```
armorsight clip.mp4 --output-dir debug
armorsight --help
```

The command reads every frame of every input in order and passes the frame
index as the stamp. For each frame it writes a debug PNG named
`<input stem>_<frame number>.png` to the output directory (`debug` by
default) and prints how many plates it found.

## What it does not do

- It does not receive or publish live image streams. It works on arrays you
  pass in, or on files read by the `armorsight` command.
- It does not check the colour of lights: `is_color_match` always returns
  `True`.
- It does not read the numbers on plates. The `number`, `confidence` and
  `classification_result` fields of `Armor` are never filled in.