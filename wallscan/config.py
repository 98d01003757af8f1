"""Configuration for the mesh thickness analyzer."""

import math
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Optional

# Numerical zero used for normal degeneracy checks.
ZERO_TOLERANCE = 1e-8

# Default DFM threshold (model units, typically mm).
DEFAULT_THIN_THRESHOLD = 0.5


@dataclass
class ThicknessConfig:
    """Options recognized by MeshThicknessAnalyzer.

    Attributes
    ----------
    auto_compute_normals : bool
        Compute vertex normals when the mesh has none. If False, a mesh
        without normals is a configuration error.
    max_distance : float
        Maximum ray length searched for the opposing surface.
        ``math.inf`` searches the whole mesh.
    normal_offset : float
        Ray origins are pushed this far outward along the normal, and the
        same amount is subtracted from the hit distance. Increase it if
        valid geometry measures as zero thickness.
    skip_incident_triangles : bool
        Ignore the triangles around the casting vertex during the hit search.
    batch_size : int
        Number of vertices handed to a worker at a time. Cancellation is
        polled once per batch.
    max_workers : int or None
        Thread pool size. None uses the machine's CPU count.
    """
    auto_compute_normals: bool = True
    max_distance: float = math.inf
    normal_offset: float = ZERO_TOLERANCE * 10
    skip_incident_triangles: bool = True
    batch_size: int = 64
    max_workers: Optional[int] = None

    def validate(self) -> List[str]:
        """Validate configuration parameters."""
        errors = []

        if math.isnan(self.max_distance) or self.max_distance <= 0:
            errors.append(f"max_distance must be positive, got {self.max_distance}")

        if not math.isfinite(self.normal_offset) or self.normal_offset < 0:
            errors.append(
                f"normal_offset must be finite and non-negative, got {self.normal_offset}"
            )

        if self.batch_size < 1:
            errors.append(f"batch_size must be at least 1, got {self.batch_size}")

        if self.max_workers is not None and self.max_workers < 1:
            errors.append(f"max_workers must be at least 1, got {self.max_workers}")

        return errors

    def is_valid(self) -> bool:
        return not self.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThicknessConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
