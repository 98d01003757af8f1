"""PyVista-based visualization helpers."""

from typing import Optional

import numpy as np
import pyvista as pv

from wallscan.mesh import SurfaceMesh


def to_polydata(mesh: SurfaceMesh, scalars: Optional[np.ndarray] = None, name: str = "thickness") -> pv.PolyData:
    """Convert a SurfaceMesh to PyVista PolyData.

    Parameters
    ----------
    mesh : SurfaceMesh
    scalars : (N,) array, optional
        Per-vertex values attached as point data under ``name``.
    """
    faces = np.hstack([
        np.full((mesh.triangle_count, 1), 3, dtype=np.int64),
        mesh.faces,
    ]).ravel()
    pv_mesh = pv.PolyData(mesh.vertices, faces)
    if scalars is not None:
        pv_mesh.point_data[name] = np.asarray(scalars, dtype=float)
    return pv_mesh


def show_thickness(
    mesh: SurfaceMesh,
    thickness: np.ndarray,
    threshold: Optional[float] = None,
    title: str = "Wall thickness",
) -> None:
    """Display per-vertex thickness in an interactive PyVista window.

    Parameters
    ----------
    mesh : SurfaceMesh
    thickness : (N,) array
        Per-vertex thickness, ``np.inf`` where nothing was measured.
    threshold : float, optional
        Color scale upper limit; vertices at or above it saturate.
    title : str
        Window title.
    """
    values = np.asarray(thickness, dtype=float)
    finite = np.isfinite(values)
    # unmeasured vertices are drawn in the NaN color
    values = np.where(finite, values, np.nan)

    pv_mesh = to_polydata(mesh, values)

    clim = None
    if finite.any():
        upper = threshold if threshold is not None else float(values[finite].max())
        clim = [0.0, max(upper, 1e-12)]

    plotter = pv.Plotter()
    plotter.add_mesh(
        pv_mesh,
        scalars="thickness",
        clim=clim,
        nan_color="lightgray",
        show_edges=True,
        scalar_bar_args={"title": "thickness"},
    )
    plotter.add_axes()
    plotter.show(title=title)
