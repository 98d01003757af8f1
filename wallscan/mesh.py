"""Triangle mesh container consumed by the thickness analysis."""

from typing import Iterable, Optional

import numpy as np
import trimesh

from wallscan.errors import MeshError
from wallscan.normals import compute_vertex_normals

INVALID_ID = -1


class SurfaceMesh:
    """Indexed triangle mesh with stable vertex ids.

    Vertex ids are row indices into ``vertices``. Ids listed in ``removed``
    are tombstones: their slots stay allocated so the remaining ids keep
    their values, but they are not vertices of the mesh. Triangles must
    only reference live vertices.

    Parameters
    ----------
    vertices : (N, 3) float array
    faces : (F, 3) int array
    vertex_normals : (N, 3) float array, optional
        Per-vertex normals, not necessarily unit length.
    removed : iterable of int, optional
        Ids of deleted vertices.
    """

    def __init__(
        self,
        vertices,
        faces,
        vertex_normals=None,
        removed: Optional[Iterable[int]] = None,
    ):
        vertices = np.asarray(vertices, dtype=float)
        if vertices.size == 0:
            vertices = vertices.reshape(0, 3)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise MeshError("vertices must be an (N, 3) array", {"shape": vertices.shape})

        faces = np.asarray(faces, dtype=np.int64)
        if faces.size == 0:
            faces = faces.reshape(0, 3)
        if faces.ndim != 2 or faces.shape[1] != 3:
            raise MeshError("faces must be an (F, 3) array", {"shape": faces.shape})

        alive = np.ones(len(vertices), dtype=bool)
        if removed is not None:
            removed = np.asarray(list(removed), dtype=np.int64)
            if removed.size and (removed.min() < 0 or removed.max() >= len(vertices)):
                raise MeshError("removed vertex id out of range")
            alive[removed] = False

        if len(faces):
            if faces.min() < 0 or faces.max() >= len(vertices):
                raise MeshError("face references a vertex id out of range")
            if not alive[faces].all():
                raise MeshError("face references a removed vertex")

        self.vertices = vertices
        self.faces = faces
        self._alive = alive
        self._vertex_normals = None
        self._incidence = None

        if vertex_normals is not None:
            self.set_vertex_normals(vertex_normals)

    @classmethod
    def from_trimesh(cls, tri_mesh: trimesh.Trimesh, include_normals: bool = True) -> "SurfaceMesh":
        """Wrap a trimesh.Trimesh, optionally carrying over its vertex normals."""
        normals = np.asarray(tri_mesh.vertex_normals) if include_normals else None
        return cls(tri_mesh.vertices, tri_mesh.faces, vertex_normals=normals)

    def to_trimesh(self) -> trimesh.Trimesh:
        """Return a trimesh.Trimesh over the same arrays (no processing)."""
        return trimesh.Trimesh(vertices=self.vertices, faces=self.faces, process=False)

    # ------------------------------------------------------------------
    # Vertices
    # ------------------------------------------------------------------
    @property
    def max_vertex_id(self) -> int:
        """Upper bound on vertex ids: every id is < max_vertex_id."""
        return len(self.vertices)

    @property
    def vertex_count(self) -> int:
        return int(self._alive.sum())

    @property
    def triangle_count(self) -> int:
        return len(self.faces)

    def vertex_indices(self) -> np.ndarray:
        """Ids of existing vertices in ascending order."""
        return np.flatnonzero(self._alive)

    def is_vertex(self, vid: int) -> bool:
        return 0 <= vid < len(self._alive) and bool(self._alive[vid])

    def get_vertex(self, vid: int) -> np.ndarray:
        return self.vertices[vid]

    # ------------------------------------------------------------------
    # Normals
    # ------------------------------------------------------------------
    @property
    def has_vertex_normals(self) -> bool:
        return self._vertex_normals is not None

    @property
    def vertex_normals(self) -> Optional[np.ndarray]:
        return self._vertex_normals

    def get_vertex_normal(self, vid: int) -> np.ndarray:
        if self._vertex_normals is None:
            raise MeshError("mesh has no vertex normals")
        return self._vertex_normals[vid]

    def set_vertex_normals(self, normals) -> None:
        normals = np.asarray(normals, dtype=float)
        if normals.shape != self.vertices.shape:
            raise MeshError(
                "vertex_normals must match the vertices array",
                {"expected": self.vertices.shape, "got": normals.shape},
            )
        self._vertex_normals = normals

    def computed_vertex_normals(self) -> np.ndarray:
        """Area-weighted vertex normals for the current geometry.

        Returns a new array; the mesh itself is left unchanged.
        """
        return compute_vertex_normals(self.vertices, self.faces)

    # ------------------------------------------------------------------
    # Adjacency
    # ------------------------------------------------------------------
    def incident_triangles(self, vid: int) -> np.ndarray:
        """Ids of the triangles that use vertex ``vid``."""
        offsets, triangle_ids = self.build_incidence()
        return triangle_ids[offsets[vid]:offsets[vid + 1]]

    def build_incidence(self):
        """Build the vertex-to-triangle table once and return ``(offsets, triangle_ids)``."""
        if self._incidence is not None:
            return self._incidence
        flat = self.faces.ravel()
        order = np.argsort(flat, kind="stable")
        counts = np.bincount(flat, minlength=len(self.vertices))
        offsets = np.zeros(len(self.vertices) + 1, dtype=np.int64)
        np.cumsum(counts, out=offsets[1:])
        self._incidence = (offsets, order // 3)
        return self._incidence

    def __repr__(self):
        return (
            f"SurfaceMesh(vertices={self.vertex_count}, "
            f"triangles={self.triangle_count}, normals={self.has_vertex_normals})"
        )
