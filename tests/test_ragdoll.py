"""Tests for ragdoll parameters, body seeding, and the PyBullet backend."""
import numpy as np
import pytest

from part_aggregator import aggregate_parts
from ragdoll import RagdollConfig, build_ragdoll_bodies, hex_to_rgba, ragdoll_params


class TestRagdollParams:

    def test_rigid(self):
        params = ragdoll_params(1.0)
        assert params.damping == pytest.approx(0.6)
        assert params.gravity_multiplier == pytest.approx(2.0)
        assert params.gravity == pytest.approx(9.81 * 2)

    def test_loose(self):
        params = ragdoll_params(0.0)
        assert params.damping == pytest.approx(0.1)
        assert params.gravity_multiplier == pytest.approx(1.0)
        assert params.gravity == pytest.approx(9.81)

    def test_custom_base_gravity(self):
        params = ragdoll_params(0.5, RagdollConfig(base_gravity=1.0))
        assert params.gravity == pytest.approx(1.5)

    def test_clamped(self):
        assert ragdoll_params(5.0).damping == pytest.approx(0.6)


class TestBuildBodies:

    def test_one_body_per_voxel(self, humanoid_model):
        layout = aggregate_parts(humanoid_model.voxels)
        bodies = build_ragdoll_bodies(humanoid_model.voxels, layout.center_offset, 0.5)
        assert len(bodies) == len(humanoid_model.voxels)
        assert [b.index for b in bodies] == list(range(len(bodies)))

    def test_horizontal_centering_only(self, head_torso_voxels):
        layout = aggregate_parts(head_torso_voxels)
        bodies = build_ragdoll_bodies(head_torso_voxels, layout.center_offset, 0.5)
        for body, voxel in zip(bodies, head_torso_voxels):
            # offset is (-0.5, 2.0, -0.5); y is left alone
            np.testing.assert_allclose(body.position, [voxel.x - 0.5, voxel.y, voxel.z - 0.5])

    def test_damping_and_mass(self, head_torso_voxels):
        bodies = build_ragdoll_bodies(head_torso_voxels, np.zeros(3), 1.0)
        for body in bodies:
            assert body.mass == pytest.approx(1.0)
            assert body.linear_damping == pytest.approx(0.6)
            assert body.angular_damping == pytest.approx(0.6)
            assert body.half_extents == pytest.approx((0.475, 0.475, 0.475))

    def test_empty(self):
        assert build_ragdoll_bodies([], np.zeros(3), 0.5) == []


@pytest.mark.parametrize("color,expected", [
    ("#ff0000", [1.0, 0.0, 0.0, 1.0]),
    ("#0f0", [0.0, 1.0, 0.0, 1.0]),
    ("not-a-color", [0.5, 0.5, 0.5, 1.0]),
])
def test_hex_to_rgba(color, expected):
    assert hex_to_rgba(color) == pytest.approx(expected)


class TestRagdollSimulator:
    """Headless PyBullet runs."""

    @pytest.fixture(autouse=True)
    def _require_pybullet(self):
        pytest.importorskip("pybullet")

    def test_bodies_settle_on_ground(self, humanoid_model):
        from ragdoll_simulator import RagdollSimulator

        voxels = humanoid_model.voxels
        layout = aggregate_parts(voxels)
        bodies = build_ragdoll_bodies(voxels, layout.center_offset, 0.5)
        sim = RagdollSimulator(stiffness=0.5)
        try:
            result = sim.settle(bodies, duration=2.0)
        finally:
            sim.close()

        assert result.final_positions.shape == (len(voxels), 3)
        assert result.final_positions[:, 1].min() > -0.2
        assert result.to_dict()["body_count"] == len(voxels)

    def test_spawn_and_step(self, crate_model):
        from ragdoll_simulator import RagdollSimulator

        voxels = [v for v in crate_model.voxels if v.y == 2][:2]
        bodies = build_ragdoll_bodies(voxels, np.zeros(3), 0.0)
        sim = RagdollSimulator(stiffness=0.0)
        try:
            ids = sim.spawn(bodies)
            start = sim.positions()
            sim.step(60)
            after = sim.positions()
        finally:
            sim.close()

        assert len(ids) == 2
        assert np.all(after[:, 1] < start[:, 1])
