"""Tests for box_decompressor module."""
import pytest

from box_decompressor import (
    BoxElement,
    VoxelElement,
    decompress_elements,
    decompress_raw,
    element_from_dict,
)
from voxels import BodyPart


class TestElementParsing:
    """Test parsing of raw service elements."""

    def test_box_with_dimensions(self):
        el = element_from_dict({
            "type": "box", "x": 1, "y": 2, "z": 3,
            "width": 4, "height": 5, "depth": 6,
            "color": "#123456", "part": "torso",
        })
        assert isinstance(el, BoxElement)
        assert (el.width, el.height, el.depth) == (4, 5, 6)
        assert el.part is BodyPart.TORSO

    def test_box_missing_dimensions_default_to_one(self):
        el = element_from_dict({
            "type": "box", "x": 0, "y": 0, "z": 0, "color": "#fff", "part": "base",
        })
        assert el.size() == (1, 1, 1)

    def test_voxel_element(self):
        el = element_from_dict({
            "type": "voxel", "x": 5, "y": 6, "z": 7, "color": "#000", "part": "head",
        })
        assert isinstance(el, VoxelElement)
        assert (el.x, el.y, el.z) == (5, 6, 7)

    def test_unknown_part_rejected(self):
        with pytest.raises(ValueError):
            element_from_dict({
                "type": "box", "x": 0, "y": 0, "z": 0, "color": "#fff", "part": "tentacle",
            })

    def test_missing_coordinate_rejected(self):
        with pytest.raises(KeyError):
            element_from_dict({"type": "voxel", "x": 0, "y": 0, "color": "#fff", "part": "head"})


class TestDecompression:
    """Test box expansion into voxels."""

    @pytest.mark.parametrize("w,h,d", [(1, 1, 1), (2, 3, 4), (5, 1, 2), (3, 3, 3)])
    def test_box_emits_volume_voxels(self, w, h, d):
        box = BoxElement(10, -4, 2, w, h, d, "#abcdef", BodyPart.LEFT_LEG)
        voxels = decompress_elements([box])

        assert len(voxels) == w * h * d
        coords = {(v.x, v.y, v.z) for v in voxels}
        expected = {
            (10 + ix, -4 + iy, 2 + iz)
            for ix in range(w) for iy in range(h) for iz in range(d)
        }
        assert coords == expected
        assert all(v.color == "#abcdef" and v.part is BodyPart.LEFT_LEG for v in voxels)

    @pytest.mark.parametrize("w,h,d", [(0, 0, 0), (-3, 0, -1), (0, -5, 0)])
    def test_degenerate_box_emits_one_voxel(self, w, h, d):
        box = BoxElement(1, 2, 3, w, h, d, "#ff0000", BodyPart.TAIL)
        voxels = decompress_elements([box])
        assert len(voxels) == 1
        assert (voxels[0].x, voxels[0].y, voxels[0].z) == (1, 2, 3)

    def test_partially_degenerate_box_floors_only_bad_axis(self):
        box = BoxElement(0, 0, 0, 3, 0, 2, "#ff0000", BodyPart.BASE)
        assert len(decompress_elements([box])) == 6

    def test_emission_order_is_x_then_y_then_z(self):
        box = BoxElement(0, 0, 0, 2, 2, 2, "#fff", BodyPart.TORSO)
        coords = [(v.x, v.y, v.z) for v in decompress_elements([box])]
        assert coords == [
            (0, 0, 0), (0, 0, 1), (0, 1, 0), (0, 1, 1),
            (1, 0, 0), (1, 0, 1), (1, 1, 0), (1, 1, 1),
        ]

    def test_elements_keep_source_order(self):
        voxels = decompress_elements([
            VoxelElement(9, 9, 9, "#111", BodyPart.HEAD),
            BoxElement(0, 0, 0, 2, 1, 1, "#222", BodyPart.TORSO),
            VoxelElement(-1, -1, -1, "#333", BodyPart.TAIL),
        ])
        assert [v.color for v in voxels] == ["#111", "#222", "#222", "#333"]

    def test_repeat_decompression_is_identical(self, head_torso_elements):
        assert decompress_raw(head_torso_elements) == decompress_raw(head_torso_elements)

    def test_head_torso_scenario(self, head_torso_elements):
        voxels = decompress_raw(head_torso_elements)
        assert len(voxels) == 16
        assert sum(1 for v in voxels if v.part is BodyPart.HEAD) == 8
        assert sum(1 for v in voxels if v.part is BodyPart.TORSO) == 8

    def test_empty_element_list(self):
        assert decompress_elements([]) == []

    def test_missing_type_is_single_voxel(self):
        voxels = decompress_raw([
            {"x": 0, "y": 0, "z": 0, "width": 5, "color": "#fff", "part": "base"},
        ])
        assert len(voxels) == 1
