import imageio.v3 as iio
import numpy as np

from armorsight.armor import ArmorType
from armorsight.pipeline import ArmorPipeline, draw_prediction, main


def ellipse_frame(centers, shape=(100, 160)):
    frame = np.zeros(shape + (3,), dtype=np.uint8)
    yy, xx = np.mgrid[: shape[0], : shape[1]]
    for cx, cy in centers:
        mask = ((xx - cx) / 4.0) ** 2 + ((yy - cy) / 18.0) ** 2 <= 1.0
        frame[mask] = (0, 0, 255)
    return frame


def test_blank_frame_yields_nothing():
    frame = np.zeros((60, 80, 3), dtype=np.uint8)
    pipeline = ArmorPipeline()
    result = pipeline.process(frame, 0)
    assert result.armors == []
    assert result.prediction is None
    assert pipeline.tracker.is_tracking is False
    assert np.array_equal(result.debug_image, frame)


def test_frame_is_not_modified():
    frame = ellipse_frame([(40, 50), (100, 50)])
    original = frame.copy()
    ArmorPipeline().process(frame, 0)
    assert np.array_equal(frame, original)


def test_two_bars_form_a_small_armor_and_start_tracking():
    frame = ellipse_frame([(40, 50), (100, 50)])
    pipeline = ArmorPipeline()
    result = pipeline.process(frame, 1)
    assert len(result.armors) == 1
    armor = result.armors[0]
    assert armor.type is ArmorType.SMALL
    assert armor.left_light.center[0] < armor.right_light.center[0]
    assert pipeline.tracker.is_tracking
    assert pipeline.tracker.last_update_time == 1
    px, py = result.prediction
    assert abs(px - armor.center[0]) <= 1
    assert abs(py - armor.center[1]) <= 1


def test_second_frame_updates_tracker():
    frame = ellipse_frame([(40, 50), (100, 50)])
    pipeline = ArmorPipeline()
    pipeline.process(frame, 1)
    result = pipeline.process(frame, 2)
    assert pipeline.tracker.last_update_time == 2
    assert abs(result.prediction[0] - result.armors[0].center[0]) <= 1


def test_draw_prediction_draws_ring():
    image = np.zeros((40, 40, 3), dtype=np.uint8)
    draw_prediction(image, (20, 20))
    assert tuple(image[20, 26]) == (255, 0, 0)
    assert tuple(image[14, 20]) == (255, 0, 0)
    assert tuple(image[20, 20]) == (0, 0, 0)


def test_draw_prediction_outside_image_is_clipped():
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    draw_prediction(image, (500, 500))
    assert not image.any()


def test_main_writes_debug_frames(tmp_path):
    bgr = ellipse_frame([(40, 50), (100, 50)])
    source = tmp_path / "frame.png"
    iio.imwrite(source, np.ascontiguousarray(bgr[:, :, ::-1]))
    out_dir = tmp_path / "out"
    assert main([str(source), "--output-dir", str(out_dir)]) == 0
    written = out_dir / "frame_00000.png"
    assert written.exists()
    assert iio.imread(written).shape == bgr.shape