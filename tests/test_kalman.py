import numpy as np
import pytest

from armorsight.kalman import ExtendedKalmanFilter

F = np.array([[1, 0, 1, 0], [0, 1, 0, 1], [0, 0, 1, 0], [0, 0, 0, 1]], dtype=float)
H = np.array([[1, 0, 0, 0], [0, 1, 0, 0]], dtype=float)


def _ekf():
    return ExtendedKalmanFilter(
        lambda x: F @ x,
        lambda x: H @ x,
        lambda x: F,
        lambda x: H,
        lambda x: np.diag([1e-2, 1e-2, 1e-1, 1e-1]),
        lambda z: np.eye(2) * 1e-2,
        np.eye(4),
    )


def _diagonal_sum(matrix):
    return float(np.asarray(matrix).diagonal().sum())


def test_predict_moves_with_velocity():
    ekf = _ekf()
    ekf.set_state([1.0, 2.0, 3.0, -1.0])
    pred = ekf.predict()
    assert pred == pytest.approx([4.0, 1.0, 3.0, -1.0])
    assert ekf.predicted_state == pytest.approx(pred)


def test_update_with_consistent_measurement_keeps_state():
    ekf = _ekf()
    ekf.set_state([5.0, 5.0, 0.0, 0.0])
    pred = ekf.predict()
    post = ekf.update(ekf.measurement(pred))
    assert post == pytest.approx(pred)


def test_update_reduces_uncertainty_and_pulls_toward_measurement():
    ekf = _ekf()
    ekf.set_state([0.0, 0.0, 0.0, 0.0])
    ekf.predict()
    before = _diagonal_sum(ekf.p_post)
    post = ekf.update([10.0, -10.0])
    assert _diagonal_sum(ekf.p_post) < before
    assert 0 < post[0] <= 10.0
    assert -10.0 <= post[1] < 0


def test_update_before_predict_raises():
    with pytest.raises(RuntimeError):
        _ekf().update([0.0, 0.0])


def test_measurement_projects_position():
    assert _ekf().measurement([7.0, 8.0, 1.0, 1.0]).tolist() == [7.0, 8.0]