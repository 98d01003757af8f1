"""Face and vertex normal computation."""

from typing import Tuple

import numpy as np


def compute_face_normals(vertices: np.ndarray, faces: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Compute per-face unit normals and triangle areas.

    Degenerate (zero-area) faces get a zero normal.
    """
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=float), np.zeros(0, dtype=float)

    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]

    e1 = v1 - v0
    e2 = v2 - v0

    normals = np.cross(e1, e2)
    lengths = np.linalg.norm(normals, axis=1)

    safe_lengths = np.where(lengths == 0, 1.0, lengths)

    face_normals = normals / safe_lengths[:, np.newaxis]
    face_areas = 0.5 * lengths

    return face_normals, face_areas


def compute_vertex_normals(
    vertices: np.ndarray,
    faces: np.ndarray,
    face_normals: np.ndarray = None,
    face_areas: np.ndarray = None,
) -> np.ndarray:
    """Compute area-weighted per-vertex normals.

    Parameters
    ----------
    vertices : (N, 3) float array
    faces : (F, 3) int array
    face_normals : (F, 3) float array, optional
        Computed from the geometry when omitted.
    face_areas : (F,) float array, optional
        Per-face weights. Computed along with the face normals when both
        are omitted, uniform when only the normals are supplied.

    Returns
    -------
    vertex_normals : (N, 3) float array
        Unit normals. Vertices without any non-degenerate incident face
        get a zero vector, which the thickness analysis treats as
        degenerate.
    """
    vertices = np.asarray(vertices, dtype=float)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)

    if face_normals is None:
        face_normals, face_areas = compute_face_normals(vertices, faces)
    if face_areas is None:
        face_areas = np.ones(len(face_normals))

    vertex_normals = np.zeros((len(vertices), 3), dtype=float)

    weighted = face_normals * face_areas[:, np.newaxis]
    for corner in range(3):
        np.add.at(vertex_normals, faces[:, corner], weighted)

    lengths = np.linalg.norm(vertex_normals, axis=1)
    safe_lengths = np.where(lengths == 0, 1.0, lengths)
    return vertex_normals / safe_lengths[:, np.newaxis]
