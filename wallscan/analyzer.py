"""
Mesh wall thickness analyzer.

For each vertex, a ray is cast along the inverted vertex normal to find the
opposing surface; the distance to it is the local wall thickness. Typical
use::

    analyzer = MeshThicknessAnalyzer(mesh)
    analyzer.compute()
    thin = analyzer.find_thin_vertices(0.5)   # vertices thinner than 0.5 mm
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional

import numpy as np

from wallscan.config import DEFAULT_THIN_THRESHOLD, ThicknessConfig
from wallscan.errors import ConfigurationError, NotComputedError
from wallscan.logging_config import PerformanceTimer
from wallscan.mesh import INVALID_ID, SurfaceMesh
from wallscan.parallel import parallel_for_each
from wallscan.spatial import RaySpatialIndex
from wallscan.thickness import (
    THICKNESS_SENTINEL,
    SlotState,
    ThicknessField,
    measure_vertex_thickness,
)

logger = logging.getLogger(__name__)


class BorrowedSpatialIndex:
    """Index supplied by the caller and reused as is.

    The caller keeps it consistent with the mesh; this lets one index serve
    several analyses.
    """

    def __init__(self, index: RaySpatialIndex):
        self.index = index

    def acquire(self, mesh: SurfaceMesh) -> RaySpatialIndex:
        return self.index


class OwnedSpatialIndex:
    """Index built by the analyzer from the mesh at every compute()."""

    def __init__(self):
        self.index: Optional[RaySpatialIndex] = None

    def acquire(self, mesh: SurfaceMesh) -> RaySpatialIndex:
        with PerformanceTimer(logger, "spatial index build"):
            self.index = RaySpatialIndex(mesh)
        return self.index


class MinimumThickness(NamedTuple):
    thickness: float
    vertex_id: int


@dataclass
class ThicknessStats:
    """Summary of a thickness field over the existing vertices."""
    min_thickness: float = THICKNESS_SENTINEL
    max_thickness: float = 0.0
    average_thickness: float = 0.0
    min_vertex_id: int = INVALID_ID
    max_vertex_id: int = INVALID_ID
    valid_vertex_count: int = 0
    invalid_vertex_count: int = 0  # vertices with no measurement


class MeshThicknessAnalyzer:
    """Per-vertex wall thickness of a triangle mesh.

    Parameters
    ----------
    mesh : SurfaceMesh
        Mesh to analyze. It is read but never modified.
    spatial : RaySpatialIndex, optional
        Prebuilt index to reuse. When omitted the analyzer builds and owns
        its own index.
    config : ThicknessConfig, optional
    cancel : callable, optional
        Polled during compute(); returning True stops the run early.
    """

    def __init__(
        self,
        mesh: SurfaceMesh,
        spatial: Optional[RaySpatialIndex] = None,
        config: Optional[ThicknessConfig] = None,
        cancel: Optional[Callable[[], bool]] = None,
    ):
        self.mesh = mesh
        self.config = config if config is not None else ThicknessConfig()
        self.cancel = cancel
        if spatial is not None:
            self.index_source = BorrowedSpatialIndex(spatial)
        else:
            self.index_source = OwnedSpatialIndex()

        self._field: Optional[ThicknessField] = None
        self._complete = False

    @property
    def spatial(self) -> Optional[RaySpatialIndex]:
        return self.index_source.index

    @property
    def is_computed(self) -> bool:
        return self._field is not None

    @property
    def is_complete(self) -> bool:
        """True when the last compute() measured every vertex."""
        return self._complete

    # ------------------------------------------------------------------
    # Compute
    # ------------------------------------------------------------------
    def compute(self) -> bool:
        """Compute thickness for all vertices in the mesh.

        Returns
        -------
        bool
            True if every vertex was processed, False if the run was
            cancelled. After a cancelled run some vertices report no
            measurement.

        Raises
        ------
        ConfigurationError
            If the config is invalid, or the mesh has no vertex normals and
            ``auto_compute_normals`` is off.
        """
        config = self.config
        errors = config.validate()
        if errors:
            raise ConfigurationError(
                "MeshThicknessAnalyzer.compute: invalid configuration",
                {"errors": "; ".join(errors)},
            )

        normals = self._resolve_normals()
        spatial = self.index_source.acquire(self.mesh)

        mesh = self.mesh
        vertex_ids = mesh.vertex_indices()
        if config.skip_incident_triangles:
            mesh.build_incidence()

        logger.info(
            f"Computing thickness | vertices={len(vertex_ids)} | triangles={mesh.triangle_count}"
        )

        field = ThicknessField(mesh.max_vertex_id)
        self._field = field
        self._complete = False

        def measure(vid):
            exclude = mesh.incident_triangles(vid) if config.skip_incident_triangles else None
            field.store(vid, measure_vertex_thickness(
                mesh.vertices[vid],
                normals[vid],
                spatial,
                normal_offset=config.normal_offset,
                max_distance=config.max_distance,
                exclude=exclude,
            ))

        with PerformanceTimer(logger, "thickness ray casting") as timer:
            completed = parallel_for_each(
                vertex_ids,
                measure,
                cancel=self.cancel,
                batch_size=config.batch_size,
                max_workers=config.max_workers,
            )

        self._complete = completed
        if not completed:
            logger.warning(
                f"Thickness computation cancelled | "
                f"processed={len(vertex_ids) - field.count(SlotState.UNSET)}/{len(vertex_ids)}"
            )
        else:
            logger.info(
                f"Thickness computed | measured={field.count(SlotState.MEASURED)} | "
                f"unmeasured={field.count(SlotState.UNMEASURED)} | "
                f"duration_seconds={timer.elapsed:.3f}"
            )
        return completed

    def _resolve_normals(self) -> np.ndarray:
        if self.mesh.has_vertex_normals:
            return self.mesh.vertex_normals
        if not self.config.auto_compute_normals:
            raise ConfigurationError(
                "MeshThicknessAnalyzer.compute: mesh has no vertex normals "
                "and auto_compute_normals is False"
            )
        logger.debug("Mesh has no vertex normals, computing area-weighted normals")
        return self.mesh.computed_vertex_normals()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def _require_field(self, operation: str) -> ThicknessField:
        if self._field is None:
            raise NotComputedError(operation)
        return self._field

    def _existing_ids(self, field: ThicknessField) -> np.ndarray:
        ids = self.mesh.vertex_indices()
        return ids[ids < len(field)]

    def get_thickness(self, vid: int) -> float:
        """Thickness at vertex ``vid``.

        Returns THICKNESS_SENTINEL if ``vid`` is not a vertex or no opposing
        surface was found.
        """
        field = self._require_field("get_thickness")
        if not self.mesh.is_vertex(vid) or vid >= len(field):
            return THICKNESS_SENTINEL
        return field.value(vid)

    def find_thin_vertices(self, threshold: float = DEFAULT_THIN_THRESHOLD) -> List[int]:
        """Ids of vertices with measured thickness strictly below ``threshold``, ascending.

        Only measured vertices are candidates. A vertex whose ray found no
        opposing surface is never reported, even for ``threshold=math.inf``.
        """
        field = self._require_field("find_thin_vertices")
        ids = self._existing_ids(field)
        measured = field.measured_mask[ids]
        thin = measured & (field.distances[ids] < threshold)
        return ids[thin].tolist()

    def get_minimum_thickness(self) -> MinimumThickness:
        """Smallest measured thickness and its vertex.

        Ties go to the lowest vertex id. Returns
        ``(THICKNESS_SENTINEL, INVALID_ID)`` when nothing was measured.
        """
        field = self._require_field("get_minimum_thickness")
        ids = self._existing_ids(field)
        ids = ids[field.measured_mask[ids]]
        if len(ids) == 0:
            return MinimumThickness(THICKNESS_SENTINEL, INVALID_ID)
        values = field.distances[ids]
        i = int(np.argmin(values))
        return MinimumThickness(float(values[i]), int(ids[i]))

    def compute_statistics(self) -> ThicknessStats:
        """Min, max and mean over measured vertices.

        The max vertex id is set whenever anything was measured, including
        a field where every thickness is 0.
        """
        field = self._require_field("compute_statistics")
        ids = self._existing_ids(field)
        measured = field.measured_mask[ids]

        stats = ThicknessStats(
            valid_vertex_count=int(measured.sum()),
            invalid_vertex_count=int((~measured).sum()),
        )
        if stats.valid_vertex_count == 0:
            return stats

        valid_ids = ids[measured]
        values = field.distances[valid_ids]
        i_min = int(np.argmin(values))
        i_max = int(np.argmax(values))

        stats.min_thickness = float(values[i_min])
        stats.min_vertex_id = int(valid_ids[i_min])
        stats.max_thickness = float(values[i_max])
        stats.max_vertex_id = int(valid_ids[i_max])
        stats.average_thickness = float(values.mean())
        return stats

    def thickness_array(self, fill: float = THICKNESS_SENTINEL) -> np.ndarray:
        """Thickness per vertex slot, ``fill`` where there is no measurement."""
        field = self._require_field("thickness_array")
        return field.to_array(fill)
