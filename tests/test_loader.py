"""Smoke tests for the mesh loader."""

import pytest
import trimesh

from wallscan.loader import load_mesh


def test_loader_missing_file():
    with pytest.raises(FileNotFoundError):
        load_mesh("nonexistent.stl")


def test_loader_reads_stl(tmp_path):
    path = tmp_path / "sphere.stl"
    trimesh.creation.icosphere(subdivisions=2, radius=2.0).export(str(path))

    mesh = load_mesh(str(path))

    assert mesh.vertex_count == 162
    assert mesh.triangle_count == 320
    assert not mesh.has_vertex_normals


def test_loader_keeps_normals_on_request(tmp_path):
    path = tmp_path / "box.stl"
    trimesh.creation.box().export(str(path))

    assert load_mesh(str(path), include_normals=True).has_vertex_normals
