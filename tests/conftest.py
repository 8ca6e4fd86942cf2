"""
Shared test fixtures for voxel rig tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from box_decompressor import decompress_raw
from voxels import AnimationType, BodyPart, ModelCategory, ModelMetadata, Voxel, VoxelModel


@pytest.fixture
def head_torso_elements():
    """Two 2x2x2 boxes: a head sitting on a torso."""
    return [
        {"type": "box", "x": 0, "y": 0, "z": 0, "width": 2, "height": 2, "depth": 2,
         "color": "#ff0000", "part": "head"},
        {"type": "box", "x": 0, "y": -2, "z": 0, "width": 2, "height": 2, "depth": 2,
         "color": "#00ff00", "part": "torso"},
    ]


@pytest.fixture
def head_torso_voxels(head_torso_elements):
    return decompress_raw(head_torso_elements)


@pytest.fixture
def humanoid_elements():
    """A small humanoid: legs 0..3, torso 4..7, head 8..10, arms beside the torso."""
    return [
        {"type": "box", "x": -2, "y": 0, "z": 0, "width": 2, "height": 4, "depth": 2,
         "color": "#1e3a8a", "part": "left_leg"},
        {"type": "box", "x": 0, "y": 0, "z": 0, "width": 2, "height": 4, "depth": 2,
         "color": "#1e3a8a", "part": "right_leg"},
        {"type": "box", "x": -2, "y": 4, "z": 0, "width": 4, "height": 4, "depth": 3,
         "color": "#dc2626", "part": "torso"},
        {"type": "box", "x": -2, "y": 8, "z": 0, "width": 4, "height": 3, "depth": 3,
         "color": "#fcd34d", "part": "head"},
        {"type": "box", "x": -3, "y": 4, "z": 1, "width": 1, "height": 4, "depth": 1,
         "color": "#fcd34d", "part": "left_arm"},
        {"type": "box", "x": 2, "y": 4, "z": 1, "width": 1, "height": 4, "depth": 1,
         "color": "#fcd34d", "part": "right_arm"},
        {"type": "voxel", "x": -1, "y": 9, "z": 3, "color": "#000000", "part": "head"},
        {"type": "voxel", "x": 0, "y": 9, "z": 3, "color": "#000000", "part": "head"},
    ]


@pytest.fixture
def humanoid_model(humanoid_elements):
    return VoxelModel(
        id="humanoid-1",
        name="Test Knight",
        category=ModelCategory.CHARACTER,
        voxels=decompress_raw(humanoid_elements),
        animation=AnimationType.IDLE,
        metadata=ModelMetadata(
            complexity="Simple",
            description="a knight",
            created_at=1700000000.0,
            suggested_animation=AnimationType.IDLE,
        ),
    )


@pytest.fixture
def crate_model():
    """An object: a 3x3x3 crate."""
    voxels = [
        Voxel(x, y, z, "#92400e", BodyPart.BASE)
        for x in range(3) for y in range(3) for z in range(3)
    ]
    return VoxelModel(
        id="crate-1",
        name="Crate",
        category=ModelCategory.OBJECT,
        voxels=voxels,
        animation=AnimationType.SPIN,
    )


@pytest.fixture
def generation_response():
    """JSON text as the generation service returns it."""
    return (
        '{"name": "Tiny Knight", "category": "character", "suggestedAnimation": "walk", '
        '"elements": ['
        '{"type": "box", "x": 0, "y": 2, "z": 0, "width": 2, "height": 2, "depth": 2, '
        '"color": "#ff0000", "part": "torso"}, '
        '{"type": "box", "x": 0, "y": 0, "z": 0, "width": 1, "height": 2, "depth": 1, '
        '"color": "#0000ff", "part": "left_leg"}, '
        '{"type": "voxel", "x": 0, "y": 4, "z": 0, "color": "#ffcc00", "part": "head"}'
        "]}"
    )
