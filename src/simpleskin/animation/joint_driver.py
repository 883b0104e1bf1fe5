"""Placeholder joint animation: oscillating rotation about a fixed axis."""

import math
from typing import Sequence

import numpy as np

from simpleskin.core.math_utils import quat_from_axis_angle
from simpleskin.core.scene_graph import JointHandle, JointHierarchy


class OscillatingRotationDriver:
    """Swings joints back and forth: angle = amplitude * sin(speed * t + phase).

    Only writes local rotations; world transforms are left to the
    propagation step that runs afterwards.
    """

    DEFAULT_AMPLITUDE = 0.5 * math.pi  # ±90°
    DEFAULT_SPEED = 1.0  # rad/s

    def __init__(
        self,
        joints: Sequence[JointHandle],
        axis=(0.0, 0.0, 1.0),
        amplitude: float = DEFAULT_AMPLITUDE,
        speed: float = DEFAULT_SPEED,
        phase: float = 0.0,
    ):
        self.joints = list(joints)
        self.axis = np.asarray(axis, dtype=np.float64)
        if np.linalg.norm(self.axis) < 1e-10:
            raise ValueError("Rotation axis must be non-zero")
        self.amplitude = amplitude
        self.speed = speed
        self.phase = phase
        self.elapsed = 0.0

    def angle_at(self, elapsed: float) -> float:
        return self.amplitude * math.sin(self.speed * elapsed + self.phase)

    def apply(self, hierarchy: JointHierarchy, elapsed: float) -> float:
        """Set every driven joint's rotation for time ``elapsed``; returns the angle."""
        angle = self.angle_at(elapsed)
        q = quat_from_axis_angle(self.axis, angle)
        for handle in self.joints:
            hierarchy.set_rotation(handle, q)
        return angle

    def update(self, hierarchy: JointHierarchy, dt: float) -> float:
        """Advance internal time by dt and apply."""
        self.elapsed += dt
        return self.apply(hierarchy, self.elapsed)
