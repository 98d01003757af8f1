"""Mesh loading utilities for wallscan."""

from pathlib import Path

import trimesh

from wallscan.errors import MeshError
from wallscan.mesh import SurfaceMesh


def load_mesh(path: str, include_normals: bool = False) -> SurfaceMesh:
    """Load a mesh from an STL (or other trimesh-supported) file.

    Parameters
    ----------
    path : str
        Path to the mesh file.
    include_normals : bool
        Carry over trimesh's vertex normals. When False the analyzer
        computes its own area-weighted normals.

    Returns
    -------
    mesh : SurfaceMesh

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    MeshError
        If the loaded geometry is empty.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Mesh file not found: {p}")

    # force="mesh" flattens multi-body scenes into a single Trimesh
    tri_mesh = trimesh.load(str(p), force="mesh")
    if tri_mesh.is_empty:
        raise MeshError(f"Loaded mesh is empty: {p}")

    return SurfaceMesh.from_trimesh(tri_mesh, include_normals=include_normals)
