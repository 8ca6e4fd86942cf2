"""Tests for edit_mutator module."""
import pytest

from edit_mutator import EditTool, apply_edit, erase, paint


class TestPaint:

    def test_changes_only_target_color(self, humanoid_model):
        voxels = humanoid_model.voxels
        updated = paint(voxels, 5, "#abcdef")

        assert len(updated) == len(voxels)
        assert updated[5].color == "#abcdef"
        assert (updated[5].x, updated[5].y, updated[5].z) == (voxels[5].x, voxels[5].y, voxels[5].z)
        assert updated[5].part is voxels[5].part
        for i, (before, after) in enumerate(zip(voxels, updated)):
            if i != 5:
                assert before == after

    def test_input_list_untouched(self, head_torso_voxels):
        original = list(head_torso_voxels)
        paint(head_torso_voxels, 0, "#000000")
        assert head_torso_voxels == original


class TestErase:

    def test_removes_exactly_one(self, humanoid_model):
        voxels = humanoid_model.voxels
        updated = erase(voxels, 3)
        assert len(updated) == len(voxels) - 1
        assert updated == voxels[:3] + voxels[4:]

    def test_later_indices_shift_down(self, head_torso_voxels):
        updated = erase(head_torso_voxels, 0)
        assert updated[0] == head_torso_voxels[1]

    def test_last_voxel(self, head_torso_voxels):
        updated = erase(head_torso_voxels, len(head_torso_voxels) - 1)
        assert updated == head_torso_voxels[:-1]


class TestApplyEdit:

    def test_outside_edit_mode_is_noop(self, head_torso_voxels):
        result = apply_edit(head_torso_voxels, 0, EditTool.ERASE, edit_mode=False)
        assert result is head_torso_voxels

    def test_no_model_is_noop(self):
        assert apply_edit(None, 0, EditTool.PAINT, "#fff") is None

    @pytest.mark.parametrize("index", [-1, 16, 999])
    def test_out_of_range_is_noop(self, head_torso_voxels, index):
        assert apply_edit(head_torso_voxels, index, EditTool.PAINT, "#fff") is head_torso_voxels

    def test_paint_tool(self, head_torso_voxels):
        result = apply_edit(head_torso_voxels, 2, EditTool.PAINT, "#123456")
        assert result is not head_torso_voxels
        assert result[2].color == "#123456"

    def test_erase_tool(self, head_torso_voxels):
        result = apply_edit(head_torso_voxels, 2, EditTool.ERASE)
        assert len(result) == 15
