"""Follow one armor plate across frames with a constant-velocity EKF."""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from armorsight.armor import Armor
from armorsight.kalman import ExtendedKalmanFilter


def _transition(x: np.ndarray) -> np.ndarray:
    return np.array([x[0] + x[2], x[1] + x[3], x[2], x[3]], dtype=float)


def _observe(x: np.ndarray) -> np.ndarray:
    return np.array([x[0], x[1]], dtype=float)


def _transition_jacobian(x: np.ndarray) -> np.ndarray:
    jac = np.zeros((4, 4))
    jac[0, 0] = jac[0, 2] = 1.0
    jac[1, 1] = jac[1, 3] = 1.0
    return jac


def _observation_jacobian(x: np.ndarray) -> np.ndarray:
    jac = np.zeros((2, 4))
    jac[0, 0] = jac[1, 1] = 1.0
    return jac


def _process_noise(x: np.ndarray) -> np.ndarray:
    return np.diag([1e-2, 1e-2, 1e-1, 1e-1])


def _measurement_noise(z: np.ndarray) -> np.ndarray:
    return np.diag([1e-2, 1e-2])


def constant_velocity_filter() -> ExtendedKalmanFilter:
    """EKF over (x, y, vx, vy) observing image position (x, y)."""
    return ExtendedKalmanFilter(
        _transition,
        _observe,
        _transition_jacobian,
        _observation_jacobian,
        _process_noise,
        _measurement_noise,
        np.eye(4),
    )


class ArmorTracker:
    """Tracks a single armor plate by its image centre."""

    def __init__(self) -> None:
        self.filter = constant_velocity_filter()
        self.tracked_armor: Optional[Armor] = None
        self.last_update_time: Any = None
        self._initialized = False

    @property
    def is_tracking(self) -> bool:
        return self._initialized

    @property
    def predicted_state(self) -> np.ndarray:
        """The filter's latest prior state (x, y, vx, vy)."""
        return self.filter.predicted_state

    def start(self, armor: Armor, stamp) -> None:
        """Begin tracking ``armor``; ignored once tracking has started."""
        if self._initialized:
            return
        self.tracked_armor = armor
        self.filter.set_state([armor.center[0], armor.center[1], 0.0, 0.0])
        self.last_update_time = stamp
        self._initialized = True

    def update(self, armors: Sequence[Armor], stamp) -> None:
        """Predict, then correct with the best of the detected armors."""
        if not self._initialized or not armors:
            return
        self.tracked_armor = self.select_best_armor(armors)
        z = np.array(self.tracked_armor.center, dtype=float)
        self.filter.predict()
        self.filter.update(z)
        self.last_update_time = stamp

    def predict_once(self) -> np.ndarray:
        """Advance the filter one step without a measurement."""
        return self.filter.predict()

    def select_best_armor(self, armors: Sequence[Armor]) -> Armor:
        """Choose which armor to follow: the first one."""
        if not armors:
            raise ValueError("no armors to choose from")
        return armors[0]