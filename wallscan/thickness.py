"""Per-vertex ray-cast thickness measurement and the per-vertex result store."""

import enum
import math
import sys
from typing import NamedTuple

import numpy as np

from wallscan.config import ZERO_TOLERANCE

# Value reported for vertices without a measurement.
THICKNESS_SENTINEL = sys.float_info.max


class Measurement(NamedTuple):
    """Outcome of casting one vertex: a distance, or no measurement."""
    measured: bool
    distance: float = math.inf


UNMEASURED = Measurement(False)


def measure_vertex_thickness(
    position,
    normal,
    spatial,
    normal_offset: float = ZERO_TOLERANCE * 10,
    max_distance: float = math.inf,
    exclude=None,
) -> Measurement:
    """Measure wall thickness at a single vertex.

    A ray starts ``normal_offset`` outside the surface along the normal and
    travels inward (against the normal). The nearest triangle it hits is
    re-intersected exactly, and the offset is subtracted from the hit
    distance.

    Parameters
    ----------
    position : (3,) array-like
        Vertex position.
    normal : (3,) array-like
        Outward vertex normal, any non-zero length.
    spatial : RaySpatialIndex
        Index over the mesh triangles.
    normal_offset : float
        Outward displacement of the ray origin.
    max_distance : float
        Longest ray searched.
    exclude : array-like of int, optional
        Triangles ignored during the nearest-hit search.

    Returns
    -------
    Measurement
        ``UNMEASURED`` for a degenerate normal, a miss, or an unconfirmed
        hit. Never raises for geometric reasons.
    """
    normal = np.asarray(normal, dtype=float)
    length = float(np.linalg.norm(normal))
    if not length >= ZERO_TOLERANCE:
        return UNMEASURED
    unit = normal / length

    origin = np.asarray(position, dtype=float) + unit * normal_offset
    direction = -unit

    tid = spatial.find_nearest_hit_triangle(origin, direction, max_distance, exclude)
    if tid is None:
        return UNMEASURED

    hit = spatial.intersect_triangle(tid, origin, direction)
    if not hit.hit:
        return UNMEASURED

    return Measurement(True, max(0.0, hit.distance - normal_offset))


class SlotState(enum.IntEnum):
    UNSET = 0
    MEASURED = 1
    UNMEASURED = 2


class ThicknessField:
    """Thickness per vertex id, with an explicit state for every slot.

    Slots start UNSET and are written once each. Only slots of existing
    vertices carry meaning.
    """

    def __init__(self, size: int):
        self.distances = np.full(size, np.inf, dtype=float)
        self.states = np.full(size, SlotState.UNSET, dtype=np.int8)

    def __len__(self):
        return len(self.states)

    def store(self, vid: int, measurement: Measurement) -> None:
        if measurement.measured:
            self.distances[vid] = measurement.distance
            self.states[vid] = SlotState.MEASURED
        else:
            self.states[vid] = SlotState.UNMEASURED

    def value(self, vid: int) -> float:
        """Thickness at ``vid``, or THICKNESS_SENTINEL if it has none."""
        if self.states[vid] != SlotState.MEASURED:
            return THICKNESS_SENTINEL
        return float(self.distances[vid])

    @property
    def measured_mask(self) -> np.ndarray:
        return self.states == SlotState.MEASURED

    def to_array(self, fill: float = THICKNESS_SENTINEL) -> np.ndarray:
        """Copy of the distances with ``fill`` in every slot lacking a measurement."""
        return np.where(self.measured_mask, self.distances, fill)

    def count(self, state: SlotState) -> int:
        return int(np.count_nonzero(self.states == state))
