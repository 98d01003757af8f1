# wallscan/checks/thickness.py

from dataclasses import asdict
from typing import Callable, Optional

import numpy as np

from wallscan.analyzer import MeshThicknessAnalyzer
from wallscan.config import ThicknessConfig
from wallscan.mesh import SurfaceMesh
from wallscan.spatial import RaySpatialIndex

LOCAL_MIN_THICKNESS = 0.8    # model units


def check_local_wall_thickness(
    mesh: SurfaceMesh,
    min_thickness: float = LOCAL_MIN_THICKNESS,
    config: Optional[ThicknessConfig] = None,
    spatial: Optional[RaySpatialIndex] = None,
    cancel: Optional[Callable[[], bool]] = None,
) -> dict:
    """
    Ray-cast wall thickness check.

    Every vertex casts a ray along its inverted normal; vertices whose
    measured thickness is below ``min_thickness`` are reported as thin.

    Returns:
        dict with:
            status ("OK", "WARNING", "UNKNOWN" or "CANCELLED")
            message
            min_thickness
            min_vertex_id
            num_thin_vertices
            thin_vertices
            threshold
            statistics
            per_vertex_thickness   (np.inf where nothing was measured)
    """
    analyzer = MeshThicknessAnalyzer(mesh, spatial=spatial, config=config, cancel=cancel)
    completed = analyzer.compute()

    stats = analyzer.compute_statistics()
    thin_vertices = analyzer.find_thin_vertices(min_thickness)
    num_thin = len(thin_vertices)
    per_vertex = analyzer.thickness_array(fill=np.inf)

    result = {
        "min_thickness": None,
        "min_vertex_id": None,
        "num_thin_vertices": num_thin,
        "thin_vertices": thin_vertices,
        "threshold": float(min_thickness),
        "statistics": asdict(stats),
        "per_vertex_thickness": per_vertex,
    }

    if not completed:
        result["status"] = "CANCELLED"
        result["message"] = (
            f"Local wall thickness check cancelled after "
            f"{stats.valid_vertex_count} measured vertices."
        )
        return result

    if stats.valid_vertex_count == 0:
        result["status"] = "UNKNOWN"
        result["message"] = "No opposing surface found for any vertex."
        return result

    result["min_thickness"] = stats.min_thickness
    result["min_vertex_id"] = stats.min_vertex_id

    if num_thin > 0:
        result["status"] = "WARNING"
        result["message"] = (
            f"Local wall thickness issue: min ~{stats.min_thickness:.3f} "
            f"< target {min_thickness:.3f} (model units) at {num_thin} vertices."
        )
    else:
        result["status"] = "OK"
        result["message"] = (
            f"Local wall thickness OK: min ~{stats.min_thickness:.3f} "
            f"≥ target {min_thickness:.3f}."
        )

    return result
