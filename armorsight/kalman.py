"""Extended Kalman filter with user-supplied models."""

from __future__ import annotations

from typing import Callable, Optional

import numpy as np

VecFunc = Callable[[np.ndarray], np.ndarray]


class ExtendedKalmanFilter:
    """EKF driven by process/measurement functions and their Jacobians."""

    def __init__(self, f: VecFunc, h: VecFunc, jacobian_f: VecFunc, jacobian_h: VecFunc,
                 update_q: VecFunc, update_r: VecFunc, p0) -> None:
        self.f = f
        self.h = h
        self.jacobian_f = jacobian_f
        self.jacobian_h = jacobian_h
        self.update_q = update_q
        self.update_r = update_r
        self.p_post = np.array(p0, dtype=float)
        self.n = self.p_post.shape[0]
        self.identity = np.eye(self.n)
        self.x_pri = np.zeros(self.n)
        self.x_post = np.zeros(self.n)
        self.p_pri: Optional[np.ndarray] = None

    def set_state(self, x0) -> None:
        self.x_post = np.array(x0, dtype=float)

    def predict(self) -> np.ndarray:
        """Advance the state one step; the prediction also becomes the posterior."""
        jf = np.asarray(self.jacobian_f(self.x_post), dtype=float)
        q = np.asarray(self.update_q(self.x_post), dtype=float)
        self.x_pri = np.asarray(self.f(self.x_post), dtype=float)
        self.p_pri = jf @ self.p_post @ jf.T + q
        self.x_post = self.x_pri.copy()
        self.p_post = self.p_pri.copy()
        return self.x_pri.copy()

    def update(self, z) -> np.ndarray:
        """Correct the predicted state with measurement ``z``."""
        if self.p_pri is None:
            raise RuntimeError("update called before predict")
        z = np.asarray(z, dtype=float)
        jh = np.asarray(self.jacobian_h(self.x_pri), dtype=float)
        r = np.asarray(self.update_r(z), dtype=float)
        gain = self.p_pri @ jh.T @ np.linalg.inv(jh @ self.p_pri @ jh.T + r)
        self.x_post = self.x_pri + gain @ (z - np.asarray(self.h(self.x_pri), dtype=float))
        self.p_post = (self.identity - gain @ jh) @ self.p_pri
        return self.x_post.copy()

    def measurement(self, state) -> np.ndarray:
        return np.asarray(self.h(np.asarray(state, dtype=float)), dtype=float)

    @property
    def predicted_state(self) -> np.ndarray:
        return self.x_pri.copy()