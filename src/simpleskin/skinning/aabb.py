"""Axis-aligned bounding boxes from world-space vertex positions."""

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
from numpy.typing import NDArray

from simpleskin.constants import FLOAT_MAX, FLOAT_MIN
from simpleskin.core.math_utils import Vec3


@dataclass(frozen=True, eq=False)
class Aabb:
    """Box stored as center + half extents (the form renderers cull with)."""
    center: Vec3
    half_extents: Vec3

    @classmethod
    def from_min_max(cls, minimum, maximum) -> "Aabb":
        lo = np.asarray(minimum, dtype=np.float64)
        hi = np.asarray(maximum, dtype=np.float64)
        return cls(center=(lo + hi) * 0.5, half_extents=(hi - lo) * 0.5)

    @property
    def min(self) -> Vec3:
        return self.center - self.half_extents

    @property
    def max(self) -> Vec3:
        return self.center + self.half_extents

    @property
    def size(self) -> Vec3:
        return self.half_extents * 2.0

    def merge(self, other: "Aabb") -> "Aabb":
        return Aabb.from_min_max(
            np.minimum(self.min, other.min),
            np.maximum(self.max, other.max),
        )

    def contains(self, point, tol: float = 1e-6) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(p >= self.min - tol) and np.all(p <= self.max + tol))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Aabb):
            return NotImplemented
        return bool(
            np.array_equal(self.center, other.center)
            and np.array_equal(self.half_extents, other.half_extents)
        )

    def __repr__(self) -> str:
        return f"Aabb(min={self.min.tolist()}, max={self.max.tolist()})"


def _min_max(positions) -> tuple[NDArray, NDArray]:
    """Running component-wise min/max, seeded with the float sentinels."""
    minimum = np.full(3, FLOAT_MAX, dtype=np.float64)
    maximum = np.full(3, FLOAT_MIN, dtype=np.float64)

    if isinstance(positions, np.ndarray):
        flat = positions.ndim == 1 and positions.size % 3 == 0
        if not flat and (positions.ndim != 2 or positions.shape[1] != 3):
            raise ValueError(f"Expected (N, 3) or flat N*3 positions, got shape {positions.shape}")
        pts = positions.reshape(-1, 3)
        if len(pts):
            minimum = np.minimum(minimum, pts.min(axis=0))
            maximum = np.maximum(maximum, pts.max(axis=0))
        return minimum, maximum

    for p in positions:
        p = np.asarray(p, dtype=np.float64)
        np.minimum(minimum, p, out=minimum)
        np.maximum(maximum, p, out=maximum)
    return minimum, maximum


def compute_aabb(positions) -> Optional[Aabb]:
    """Smallest axis-aligned box around ``positions``.

    Accepts an (N, 3) array, a flat N*3 array, or any iterable of 3-vectors.
    Returns None for empty input: there is no box around zero points.
    Raises ValueError for an array that is neither (N, 3) nor flat N*3.
    """
    minimum, maximum = _min_max(positions)
    if np.any(minimum == FLOAT_MAX) or np.any(maximum == FLOAT_MIN):
        return None
    return Aabb.from_min_max(minimum, maximum)


def merge_aabbs(boxes: Iterable[Optional[Aabb]]) -> Optional[Aabb]:
    """Combine partial boxes (e.g. one per vertex partition); None entries are skipped."""
    result: Optional[Aabb] = None
    for box in boxes:
        if box is None:
            continue
        result = box if result is None else result.merge(box)
    return result
