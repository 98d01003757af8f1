"""Property-based tests for thickness measurement and threshold queries."""

import functools
import math

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from meshes import make_parallel_plates, make_sphere
from wallscan.analyzer import MeshThicknessAnalyzer
from wallscan.spatial import RaySpatialIndex
from wallscan.thickness import THICKNESS_SENTINEL, UNMEASURED, measure_vertex_thickness


@functools.lru_cache(maxsize=None)
def sphere_analyzer():
    analyzer = MeshThicknessAnalyzer(make_sphere(5.0, subdivisions=2))
    analyzer.compute()
    return analyzer


@functools.lru_cache(maxsize=None)
def plates_index(gap):
    mesh = make_parallel_plates(gap, n=3)
    return mesh, RaySpatialIndex(mesh)


thresholds = st.floats(min_value=0.0, max_value=30.0, allow_nan=False)


@settings(max_examples=50, deadline=None)
@given(t1=thresholds, t2=thresholds)
def test_thin_vertices_monotonic_in_threshold(t1, t2):
    low, high = sorted((t1, t2))
    analyzer = sphere_analyzer()

    assert set(analyzer.find_thin_vertices(low)) <= set(analyzer.find_thin_vertices(high))


@settings(max_examples=50, deadline=None)
@given(threshold=thresholds)
def test_thin_vertices_below_threshold(threshold):
    analyzer = sphere_analyzer()

    for vid in analyzer.find_thin_vertices(threshold):
        assert analyzer.get_thickness(vid) < threshold


def test_values_are_finite_and_non_negative():
    analyzer = sphere_analyzer()
    values = analyzer.thickness_array()

    assert not np.isnan(values).any()
    assert (values >= 0.0).all()
    assert ((values < THICKNESS_SENTINEL) | (values == THICKNESS_SENTINEL)).all()


@settings(max_examples=50, deadline=None)
@given(
    offset=st.floats(min_value=1e-9, max_value=0.1),
    scale=st.floats(min_value=1e-3, max_value=1e3),
)
def test_offset_and_normal_length_do_not_change_result(offset, scale):
    gap = 0.4
    mesh, spatial = plates_index(gap)
    vid = 4  # center of the bottom patch

    result = measure_vertex_thickness(
        mesh.get_vertex(vid),
        mesh.get_vertex_normal(vid) * scale,
        spatial,
        normal_offset=offset,
        exclude=mesh.incident_triangles(vid),
    )

    assert result.measured
    assert result.distance == pytest.approx(gap, abs=1e-9)


@pytest.mark.parametrize("normal", [
    [0.0, 0.0, 0.0],
    [1e-12, 0.0, 0.0],
    [math.nan, 0.0, 1.0],
])
def test_degenerate_normals_are_unmeasured(normal):
    mesh, spatial = plates_index(0.4)

    assert measure_vertex_thickness(mesh.get_vertex(4), normal, spatial) == UNMEASURED


def test_miss_is_unmeasured():
    mesh, spatial = plates_index(0.4)

    # facing the wrong way: ray leaves both patches
    result = measure_vertex_thickness(
        mesh.get_vertex(4), [0.0, 0.0, 1.0], spatial, exclude=mesh.incident_triangles(4),
    )
    assert result == UNMEASURED
