"""
Procedural pose engine.

Every frame the engine rebuilds the whole pose from (animation, category,
t, stiffness) and the rig layout. Nothing carries over between frames, so
switching animation is instantaneous and there is no drift.

Conventions:
- Y is up. Rotations are Euler angles (rx, ry, rz) in radians, applied in
  XYZ order (matrix = Rx @ Ry @ Rz).
- A part's position is where its pivot sits in model space; its voxels are
  stored relative to that pivot.
- The root transform places the whole model; its rest position is the
  layout's centering offset.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import numpy as np

from part_aggregator import RigLayout
from voxels import AnimationType, BodyPart, ModelCategory

WALK_SPEED = 6.0
RUN_SPEED = 10.0
WALK_INTENSITY = 0.4
RUN_INTENSITY = 0.6
JUMP_RATE = 4.0
JUMP_HEIGHT = 3.0
JUMP_TUCK_THRESHOLD = 0.5
ATTACK_RATE = 8.0

X, Y, Z = 0, 1, 2  # Euler / position axes


@dataclass
class PartTransform:
    """Local position and rotation of one part (or of the root)."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def matrix(self) -> np.ndarray:
        """4x4 homogeneous transform."""
        m = np.eye(4)
        m[:3, :3] = rotation_matrix_xyz(*self.rotation)
        m[:3, 3] = self.position
        return m


@dataclass
class Pose:
    """Output of one engine tick: per-part transforms plus the root."""
    root: PartTransform
    parts: Dict[BodyPart, PartTransform] = field(default_factory=dict)

    def get(self, part: BodyPart) -> Optional[PartTransform]:
        return self.parts.get(part)


def rotation_matrix_xyz(rx: float, ry: float, rz: float) -> np.ndarray:
    """Build a 3x3 rotation matrix for XYZ-ordered Euler angles."""
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)

    rx_m = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    ry_m = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rz_m = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rx_m @ ry_m @ rz_m


def flex_from_stiffness(stiffness: float) -> float:
    """Motion amplitude multiplier: 2.0 when loose, 0.0 when rigid."""
    stiffness = min(1.0, max(0.0, float(stiffness)))
    return (1.0 - stiffness) * 2.0


def reset_pose(layout: RigLayout) -> Pose:
    """Rest pose: every part at its pivot, no rotation, root at the offset."""
    parts = {
        part: PartTransform(position=group.pivot.astype(float).copy())
        for part, group in layout.groups.items()
    }
    root = PartTransform(position=layout.center_offset.astype(float).copy())
    return Pose(root=root, parts=parts)


def _rotate(pose: Pose, part: BodyPart, axis: int, angle: float) -> None:
    # Absent parts are skipped
    transform = pose.parts.get(part)
    if transform is not None:
        transform.rotation[axis] = angle


def _lift(pose: Pose, part: BodyPart, dy: float) -> None:
    transform = pose.parts.get(part)
    if transform is not None:
        transform.position[Y] += dy


def _pose_object(pose: Pose, animation: AnimationType, t: float) -> None:
    root = pose.root
    if animation is AnimationType.SPIN:
        root.rotation[Y] = t
        root.position[Y] += math.sin(t * 2) * 0.1
    elif animation is AnimationType.FLOAT:
        root.position[Y] += math.sin(t) * 0.3
        root.rotation[X] = math.sin(t * 0.5) * 0.05
        root.rotation[Z] = math.cos(t * 0.4) * 0.05
    elif animation is AnimationType.IDLE:
        root.position[Y] += math.sin(t) * 0.05


def _pose_idle(pose: Pose, t: float, flex: float) -> None:
    breathe = math.sin(t * 2) * 0.05 * flex
    _lift(pose, BodyPart.TORSO, breathe)
    _lift(pose, BodyPart.HEAD, breathe * 0.5)
    _rotate(pose, BodyPart.HEAD, X, math.sin(t * 1.5) * 0.05 * flex)
    _rotate(pose, BodyPart.TAIL, X, math.sin(t * 3) * 0.1 * flex)
    _rotate(pose, BodyPart.WING_L, Z, math.sin(t * 4) * 0.2)
    _rotate(pose, BodyPart.WING_R, Z, -math.sin(t * 4) * 0.2)

    sway = math.sin(t * 2) * 0.05
    _rotate(pose, BodyPart.LEFT_ARM, Z, (0.1 + sway) * flex)
    _rotate(pose, BodyPart.RIGHT_ARM, Z, (-0.1 - sway) * flex)


def _pose_locomotion(pose: Pose, t: float, flex: float, running: bool) -> None:
    speed = RUN_SPEED if running else WALK_SPEED
    intensity = (RUN_INTENSITY if running else WALK_INTENSITY) * flex
    cycle = t * speed

    pose.root.position[Y] += abs(math.sin(cycle)) * 0.2 * flex
    pose.root.rotation[X] = math.sin(cycle) * 0.05 * flex

    _rotate(pose, BodyPart.LEFT_LEG, X, math.sin(cycle) * intensity)
    _rotate(pose, BodyPart.RIGHT_LEG, X, math.sin(cycle + math.pi) * intensity)
    # each arm swings against the leg on its own side
    _rotate(pose, BodyPart.LEFT_ARM, X, math.sin(cycle + math.pi) * intensity)
    _rotate(pose, BodyPart.RIGHT_ARM, X, math.sin(cycle) * intensity)

    _rotate(pose, BodyPart.HEAD, X, math.sin(cycle * 2) * 0.05 * flex)
    _rotate(pose, BodyPart.TAIL, X, math.sin(cycle * 2) * 0.2 * flex)
    _rotate(pose, BodyPart.WING_L, Z, math.sin(cycle * 2) * 0.5)
    _rotate(pose, BodyPart.WING_R, Z, -math.sin(cycle * 2) * 0.5)


def _pose_jump(pose: Pose, t: float, flex: float) -> None:
    height = max(0.0, math.sin(t * JUMP_RATE) * JUMP_HEIGHT)
    pose.root.position[Y] += height
    if height <= JUMP_TUCK_THRESHOLD:
        return

    _rotate(pose, BodyPart.LEFT_LEG, X, -0.5 * flex)
    _rotate(pose, BodyPart.RIGHT_LEG, X, -0.5 * flex)
    _rotate(pose, BodyPart.LEFT_ARM, X, 0.3 * flex)
    _rotate(pose, BodyPart.RIGHT_ARM, X, 0.3 * flex)
    _rotate(pose, BodyPart.WING_L, Z, 0.8)
    _rotate(pose, BodyPart.WING_R, Z, -0.8)


def _pose_attack(pose: Pose, t: float, flex: float) -> None:
    strike = math.sin(t * ATTACK_RATE)
    _rotate(pose, BodyPart.TORSO, Y, strike * 0.3 * flex)
    _rotate(pose, BodyPart.RIGHT_ARM, X, (-math.pi / 2 + strike * 1.5) * flex)
    _rotate(pose, BodyPart.HEAD, Y, strike * 0.2 * flex)


def compute_pose(
    layout: RigLayout,
    animation: Union[AnimationType, str],
    category: Union[ModelCategory, str],
    t: float,
    stiffness: float = 0.5,
    edit_mode: bool = False,
    ragdoll: bool = False,
) -> Pose:
    """
    Compute the full pose for one frame.

    Args:
        layout: Output of aggregate_parts for the current buffer
        animation: Selected animation
        category: Model category; objects only move the root
        t: Elapsed time in seconds
        stiffness: 0 (loose, large motion) .. 1 (rigid, no limb motion)
        edit_mode: Direct editing in progress; returns the rest pose
        ragdoll: Physics owns the voxels; returns the rest pose

    Returns:
        Pose with a transform for every part present in the layout.
    """
    animation = AnimationType(animation)
    category = ModelCategory(category)
    pose = reset_pose(layout)

    if animation is AnimationType.NONE or edit_mode or ragdoll:
        return pose

    if category is ModelCategory.OBJECT:
        _pose_object(pose, animation, t)
        return pose

    flex = flex_from_stiffness(stiffness)
    if animation is AnimationType.IDLE:
        _pose_idle(pose, t, flex)
    elif animation in (AnimationType.WALK, AnimationType.RUN):
        _pose_locomotion(pose, t, flex, running=animation is AnimationType.RUN)
    elif animation is AnimationType.JUMP:
        _pose_jump(pose, t, flex)
    elif animation is AnimationType.ATTACK:
        _pose_attack(pose, t, flex)
    return pose


def posed_voxel_positions(layout: RigLayout, pose: Pose) -> np.ndarray:
    """
    World-space centers of every voxel under a pose.

    Returns:
        (N, 3) array indexed like the voxel buffer.
    """
    positions = np.zeros((layout.voxel_count, 3))
    root = pose.root.matrix()
    for part, group in layout.groups.items():
        transform = pose.parts.get(part)
        if transform is None:
            continue
        local = np.array([(v.x, v.y, v.z) for v, _ in group.members], dtype=float) - group.pivot
        homogeneous = np.hstack([local, np.ones((len(local), 1))])
        world = homogeneous @ (root @ transform.matrix()).T
        positions[group.indices] = world[:, :3]
    return positions
