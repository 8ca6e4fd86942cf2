"""Tests for mesh_export module."""
import math

import numpy as np
import pytest
import trimesh

from mesh_export import build_voxel_mesh, export_model
from part_aggregator import aggregate_parts
from pose_engine import compute_pose
from voxels import AnimationType, BodyPart, ModelCategory, Voxel, VoxelModel


def _two_voxel_model():
    return VoxelModel(
        id="m", name="pair", category=ModelCategory.OBJECT,
        voxels=[Voxel(0, 0, 0, "#ff0000", BodyPart.BASE), Voxel(1, 0, 0, "#0000ff", BodyPart.BASE)],
    )


class TestBuildVoxelMesh:

    def test_one_cube_per_voxel(self):
        mesh = build_voxel_mesh(_two_voxel_model())
        assert len(mesh.vertices) == 16
        assert len(mesh.faces) == 24

    def test_rest_pose_bounds(self):
        mesh = build_voxel_mesh(_two_voxel_model())
        # centered on x (offset -0.5), base voxel centers at y=0
        np.testing.assert_allclose(mesh.bounds[0], [-0.975, -0.475, -0.475], atol=1e-9)
        np.testing.assert_allclose(mesh.bounds[1], [0.975, 0.475, 0.475], atol=1e-9)

    def test_face_colors(self):
        mesh = build_voxel_mesh(_two_voxel_model())
        colors = mesh.visual.face_colors
        assert tuple(colors[0][:3]) == (255, 0, 0)
        assert tuple(colors[-1][:3]) == (0, 0, 255)

    def test_pose_is_baked_in(self, crate_model):
        layout = aggregate_parts(crate_model.voxels)
        t = math.pi / 4
        pose = compute_pose(layout, AnimationType.SPIN, ModelCategory.OBJECT, t)
        rest = build_voxel_mesh(crate_model, layout=layout)
        spun = build_voxel_mesh(crate_model, pose=pose, layout=layout)
        assert spun.bounds[1][1] == pytest.approx(rest.bounds[1][1] + math.sin(2 * t) * 0.1)
        assert not np.allclose(spun.vertices, rest.vertices)

    def test_empty_model(self):
        model = VoxelModel(id="e", name="empty", category=ModelCategory.OBJECT)
        assert len(build_voxel_mesh(model).vertices) == 0


def test_export_writes_file(tmp_path, humanoid_model):
    out = tmp_path / "knight.ply"
    export_model(humanoid_model, str(out))
    loaded = trimesh.load(str(out))
    assert len(loaded.faces) == 12 * len(humanoid_model.voxels)
