"""
Export a (posed) voxel model as a triangle mesh.

Each voxel becomes one colored cube at its posed world position and with its
part's rotation. Cubes are not merged, so the output mirrors what the
renderer draws frame by frame.
"""
import logging
from typing import Optional

import numpy as np
import trimesh

from part_aggregator import RigLayout, aggregate_parts
from pose_engine import Pose, posed_voxel_positions, reset_pose
from ragdoll import hex_to_rgba
from voxels import VoxelModel

logger = logging.getLogger(__name__)

CUBE_SIZE = 0.95


def build_voxel_mesh(
    model: VoxelModel,
    pose: Optional[Pose] = None,
    layout: Optional[RigLayout] = None,
    cube_size: float = CUBE_SIZE,
) -> trimesh.Trimesh:
    """
    Build one mesh with a cube per voxel.

    Args:
        model: Model to export
        pose: Pose to bake in; rest pose if omitted
        layout: Precomputed layout for model.voxels
        cube_size: Cube edge length

    Returns:
        trimesh.Trimesh with per-face colors. Empty model -> empty mesh.
    """
    if not model.voxels:
        return trimesh.Trimesh()

    if layout is None:
        layout = aggregate_parts(model.voxels)
    if pose is None:
        pose = reset_pose(layout)

    centers = posed_voxel_positions(layout, pose)
    root = pose.root.matrix()

    cubes = []
    for part, group in layout.groups.items():
        transform = pose.parts.get(part)
        if transform is None:
            continue
        rotation = (root @ transform.matrix())[:3, :3]
        for voxel, index in group.members:
            cube = trimesh.creation.box(extents=[cube_size] * 3)
            m = np.eye(4)
            m[:3, :3] = rotation
            m[:3, 3] = centers[index]
            cube.apply_transform(m)
            rgba = (np.array(hex_to_rgba(voxel.color)) * 255).astype(np.uint8)
            cube.visual.face_colors = np.tile(rgba, (len(cube.faces), 1))
            cubes.append(cube)

    if not cubes:
        return trimesh.Trimesh()
    mesh = trimesh.util.concatenate(cubes)
    logger.info("Built mesh for %r: %d cubes, %d faces", model.name, len(cubes), len(mesh.faces))
    return mesh


def export_model(model: VoxelModel, output_path: str, pose: Optional[Pose] = None) -> str:
    """Write the model mesh; format follows the file extension (glb, obj, stl, ply)."""
    mesh = build_voxel_mesh(model, pose=pose)
    mesh.export(output_path)
    logger.info("Mesh saved to: %s", output_path)
    return output_path
