import numpy as np
import pytest

from armorsight.armor import Armor, Light, Rect
from armorsight.tracker import ArmorTracker, constant_velocity_filter


def make_light(cx, cy, length=30.0):
    box = Rect(int(cx) - 2, int(cy - length / 2), 5, int(length))
    return Light.from_endpoints(box, (cx, cy - length / 2), (cx, cy + length / 2), 120, 0.0)


def make_armor(cx, cy):
    return Armor.from_lights(make_light(cx - 20, cy), make_light(cx + 20, cy))


def test_new_tracker_is_idle():
    tracker = ArmorTracker()
    assert tracker.is_tracking is False
    assert tracker.tracked_armor is None


def test_start_begins_tracking_at_armor_centre():
    tracker = ArmorTracker()
    armor = make_armor(100.0, 50.0)
    tracker.start(armor, 7)
    assert tracker.is_tracking
    assert tracker.tracked_armor is armor
    assert tracker.last_update_time == 7
    tracker.predict_once()
    assert np.allclose(tracker.predicted_state, [100.0, 50.0, 0.0, 0.0])


def test_second_start_is_ignored():
    tracker = ArmorTracker()
    first = make_armor(100.0, 50.0)
    tracker.start(first, 1)
    tracker.start(make_armor(300.0, 200.0), 2)
    assert tracker.tracked_armor is first
    assert tracker.last_update_time == 1


def test_update_before_start_does_nothing():
    tracker = ArmorTracker()
    tracker.update([make_armor(10.0, 10.0)], 3)
    assert tracker.is_tracking is False
    assert tracker.tracked_armor is None
    assert tracker.last_update_time is None


def test_update_with_no_armors_keeps_state():
    tracker = ArmorTracker()
    armor = make_armor(100.0, 50.0)
    tracker.start(armor, 1)
    tracker.update([], 2)
    assert tracker.tracked_armor is armor
    assert tracker.last_update_time == 1


def test_update_selects_first_armor_and_records_stamp():
    tracker = ArmorTracker()
    tracker.start(make_armor(100.0, 50.0), 1)
    first = make_armor(110.0, 50.0)
    second = make_armor(400.0, 300.0)
    tracker.update([first, second], 2)
    assert tracker.tracked_armor is first
    assert tracker.last_update_time == 2


def test_update_moves_estimate_towards_measurement():
    tracker = ArmorTracker()
    tracker.start(make_armor(100.0, 50.0), 1)
    tracker.update([make_armor(110.0, 60.0)], 2)
    tracker.predict_once()
    x, y = tracker.predicted_state[:2]
    assert 105.0 < x < 110.0
    assert 55.0 < y < 60.0


def test_select_best_armor_requires_candidates():
    with pytest.raises(ValueError):
        ArmorTracker().select_best_armor([])


def test_select_best_armor_returns_first():
    armors = [make_armor(1.0, 1.0), make_armor(50.0, 1.0)]
    assert ArmorTracker().select_best_armor(armors) is armors[0]


def test_filter_moves_position_by_velocity():
    ekf = constant_velocity_filter()
    x = np.array([1.0, 2.0, 3.0, 4.0])
    ekf.set_state(x)
    pred = ekf.predict()
    assert np.allclose(pred[:2], x[:2] + x[2:])
    assert np.allclose(pred[2:], x[2:])


def test_filter_measures_position():
    ekf = constant_velocity_filter()
    state = [5.0, 6.0, 7.0, 8.0]
    assert np.allclose(ekf.measurement(state), state[:2])