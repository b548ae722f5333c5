"""Bounding volumes for CEM models: axis-aligned boxes and sphere radii.

Two streaming builders accumulate over 3D points:

    CenterBuilder       running AABB; build() gives the box midpoint.
                        Picked once per model as its reference center.
    ColliderBuilder     running AABB plus the largest squared distance to a
                        fixed center; build() gives Collider(aabb, radius).
                        Run once per animation frame.

Both seed their box with INFINITE_AABB (lower = +inf, upper = -inf) so the
first point replaces it. Arithmetic is done in float32, which is what the
game files store; files written by the game tools were computed in
higher precision, so compare radii with colliders_match().
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .cem_constants import RADIUS_TOLERANCE


Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class Aabb:
    """An axis-aligned bounding box with a lower and an upper corner."""
    lower: Vec3
    upper: Vec3

    def with_point(self, point) -> "Aabb":
        """Box grown to contain point."""
        return Aabb(
            tuple(min(a, b) for a, b in zip(self.lower, point)),
            tuple(max(a, b) for a, b in zip(self.upper, point)),
        )

    @property
    def is_inverted(self) -> bool:
        return any(lo > hi for lo, hi in zip(self.lower, self.upper))

    @property
    def size(self) -> Vec3:
        return tuple(hi - lo for lo, hi in zip(self.lower, self.upper))

    @classmethod
    def read(cls, reader):
        return cls(reader.read_vec3(), reader.read_vec3())

    def write(self, writer):
        writer.write_vec3(self.lower)
        writer.write_vec3(self.upper)


INFINITE_AABB = Aabb(
    (math.inf, math.inf, math.inf),
    (-math.inf, -math.inf, -math.inf),
)

ZERO_AABB = Aabb((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


@dataclass(frozen=True)
class Collider:
    """Bounding box plus bounding sphere radius around the model center."""
    aabb: Aabb = ZERO_AABB
    radius: float = 0.0


def colliders_match(a, b, tolerance=RADIUS_TOLERANCE):
    """Compare two colliders, tolerating float32 drift.

    Radius differences below `tolerance` count as equal; box corners are
    compared with the same absolute tolerance.
    """
    if abs(a.radius - b.radius) >= tolerance:
        return False
    for ca, cb in ((a.aabb.lower, b.aabb.lower), (a.aabb.upper, b.aabb.upper)):
        for va, vb in zip(ca, cb):
            if abs(va - vb) >= tolerance:
                return False
    return True


def _to_vec3(array):
    return tuple(float(v) for v in array)


class _BoxAccumulator:
    """Running float32 AABB shared by both builders."""

    __slots__ = ('lower', 'upper', 'count')

    def __init__(self):
        self.lower = np.array(INFINITE_AABB.lower, dtype=np.float32)
        self.upper = np.array(INFINITE_AABB.upper, dtype=np.float32)
        self.count = 0

    def add(self, point):
        np.minimum(self.lower, point, out=self.lower)
        np.maximum(self.upper, point, out=self.upper)
        self.count += 1

    def add_many(self, points):
        np.minimum(self.lower, points.min(axis=0), out=self.lower)
        np.maximum(self.upper, points.max(axis=0), out=self.upper)
        self.count += len(points)


class CenterBuilder:
    """Accumulates points and returns the midpoint of their bounding box."""

    def __init__(self):
        self._box = _BoxAccumulator()

    @classmethod
    def begin(cls):
        return cls()

    def update(self, point):
        self._box.add(np.asarray(point, dtype=np.float32))

    def update_many(self, points):
        points = np.asarray(points, dtype=np.float32).reshape(-1, 3)
        if len(points):
            self._box.add_many(points)

    def build(self) -> Vec3:
        """Midpoint of the accumulated box, or the origin if it is empty."""
        if self._box.count == 0:
            return (0.0, 0.0, 0.0)
        mid = (self._box.upper + self._box.lower) / np.float32(2.0)
        return _to_vec3(mid)


class ColliderBuilder:
    """Accumulates points around a fixed center into a Collider.

    Args:
        center: (x, y, z) model center the radius is measured from
    """

    def __init__(self, center):
        self.center = np.asarray(center, dtype=np.float32)
        self._box = _BoxAccumulator()
        self._radius_squared = np.float32(0.0)

    @classmethod
    def begin(cls, center):
        return cls(center)

    def update(self, point):
        point = np.asarray(point, dtype=np.float32)
        delta = point - self.center
        dist2 = delta[0] * delta[0] + delta[1] * delta[1] + delta[2] * delta[2]
        if dist2 > self._radius_squared:
            self._radius_squared = dist2
        self._box.add(point)

    def update_many(self, points):
        points = np.asarray(points, dtype=np.float32).reshape(-1, 3)
        if not len(points):
            return
        delta = points - self.center
        dist2 = (delta[:, 0] * delta[:, 0] + delta[:, 1] * delta[:, 1]
                 + delta[:, 2] * delta[:, 2])
        self._radius_squared = max(self._radius_squared, dist2.max())
        self._box.add_many(points)

    def build(self) -> Collider:
        """Collider of the accumulated points.

        With no points the box is ZERO_AABB, never the inverted sentinel.
        """
        if self._box.count == 0:
            aabb = ZERO_AABB
        else:
            aabb = Aabb(_to_vec3(self._box.lower), _to_vec3(self._box.upper))
        radius = float(np.sqrt(np.float32(self._radius_squared)))
        return Collider(aabb, radius)


def compute_center(points):
    """Reference center for a point cloud (CenterBuilder over all points)."""
    builder = CenterBuilder()
    builder.update_many(list(points))
    return builder.build()


def compute_collider(points, center):
    """Collider for a point cloud around center."""
    builder = ColliderBuilder(center)
    builder.update_many(list(points))
    return builder.build()
