"""Ray queries against the triangles of a SurfaceMesh.

The index is a snapshot: it copies the triangle geometry when it is built,
so later edits to the mesh are not seen until a new index is built.
"""

import math
import threading
from typing import NamedTuple, Optional

import numpy as np
from trimesh import intersections
from trimesh import triangles as triangles_mod
from trimesh.ray.ray_triangle import ray_triangle_candidates

from wallscan.mesh import SurfaceMesh

# Barycentric slack so that rays through shared edges and vertices still
# register a hit on at least one of the adjoining triangles.
HIT_TOLERANCE = 1e-9


class RayHit(NamedTuple):
    hit: bool
    distance: float


NO_HIT = RayHit(False, math.inf)


class RaySpatialIndex:
    """Nearest ray-hit queries over a triangle mesh.

    Candidate triangles come from an r-tree over the triangle bounds
    (trimesh's ``bounds_tree``), so each query only touches the triangles
    whose boxes overlap the ray. Candidates are then tested exactly with a
    plane intersection and barycentric containment.

    Parameters
    ----------
    mesh : SurfaceMesh
        Mesh to index. Only positions and faces are read.
    """

    def __init__(self, mesh: SurfaceMesh):
        self.triangle_count = mesh.triangle_count
        self._lock = threading.Lock()

        if self.triangle_count == 0:
            self._triangles = np.zeros((0, 3, 3))
            self._normals = np.zeros((0, 3))
            self._tree = None
            self.bounds = np.zeros((2, 3))
            return

        tri_mesh = mesh.to_trimesh()
        # fancy indexing copies, which makes the index a snapshot
        self._triangles = np.array(tri_mesh.triangles, dtype=np.float64)
        # degenerate faces get a zero normal and never intersect
        self._normals = np.array(tri_mesh.face_normals, dtype=np.float64)
        self._tree = triangles_mod.bounds_tree(self._triangles)
        self.bounds = np.array(tri_mesh.bounds, dtype=np.float64)

    def find_nearest_hit_triangle(
        self,
        origin,
        direction,
        max_distance: float = math.inf,
        exclude=None,
    ) -> Optional[int]:
        """Return the id of the closest triangle hit by the ray, or None.

        Parameters
        ----------
        origin, direction : (3,) array-like
            Ray start and unit direction.
        max_distance : float
            Hits farther than this along the ray are ignored.
        exclude : array-like of int, optional
            Triangle ids that never count as hits.
        """
        if self.triangle_count == 0:
            return None

        origin = np.asarray(origin, dtype=np.float64)
        direction = np.asarray(direction, dtype=np.float64)

        # queries on one rtree handle are serialized
        with self._lock:
            candidates, _ = ray_triangle_candidates(
                ray_origins=origin.reshape((1, 3)),
                ray_directions=direction.reshape((1, 3)),
                tree=self._tree,
            )
        if exclude is not None and len(candidates):
            candidates = candidates[~np.isin(candidates, exclude)]
        if len(candidates) == 0:
            return None

        hit_ids, distances = self._intersect_candidates(candidates, origin, direction)
        within = distances <= max_distance
        if not within.any():
            return None

        hit_ids = hit_ids[within]
        return int(hit_ids[np.argmin(distances[within])])

    def intersect_triangle(self, tid: int, origin, direction) -> RayHit:
        """Exact ray/triangle test against a single triangle."""
        if not 0 <= tid < self.triangle_count:
            return NO_HIT

        hit_ids, distances = self._intersect_candidates(
            np.array([tid], dtype=np.int64),
            np.asarray(origin, dtype=np.float64),
            np.asarray(direction, dtype=np.float64),
        )
        if len(hit_ids) == 0:
            return NO_HIT
        return RayHit(True, float(distances[0]))

    def _intersect_candidates(self, candidates, origin, direction):
        """Intersect one ray with the candidate triangles.

        Returns the ids of the triangles hit at or ahead of the origin and
        the ray parameter of each hit.
        """
        count = len(candidates)
        locations, valid, distances = intersections.planes_lines(
            plane_origins=self._triangles[candidates, 0],
            plane_normals=self._normals[candidates],
            line_origins=np.tile(origin, (count, 1)),
            line_directions=np.tile(direction, (count, 1)),
            return_distance=True,
        )
        candidates = candidates[valid]
        if len(candidates) == 0:
            return candidates, np.zeros(0)

        barycentric = triangles_mod.points_to_barycentric(
            self._triangles[candidates], locations
        )
        inside = np.logical_and(
            (barycentric >= -HIT_TOLERANCE).all(axis=1),
            (barycentric <= 1.0 + HIT_TOLERANCE).all(axis=1),
        )
        keep = inside & (distances >= 0.0)
        return candidates[keep], distances[keep]
