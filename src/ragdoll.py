"""
Ragdoll mode: every voxel becomes a free rigid body.

There are no joint constraints between neighbouring voxels, so a model falls
apart on impact. Stiffness stands in for joint strength in two ways:
damping grows with it (motion dies down faster) and so does gravity (the
pieces fall and settle sooner).
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from voxels import Voxel

BASE_GRAVITY = 9.81


@dataclass
class RagdollConfig:
    """Physical constants for ragdoll bodies and their world."""
    base_gravity: float = BASE_GRAVITY
    body_size: float = 0.95         # edge length, matches the rendered cube
    mass: float = 1.0
    ground_height: float = -0.1
    time_step: float = 1.0 / 240.0


@dataclass
class RagdollParams:
    """Stiffness-derived simulation parameters."""
    stiffness: float
    damping: float                  # used for both linear and angular damping
    gravity_multiplier: float
    gravity: float                  # magnitude, acts along -Y


@dataclass
class RagdollBody:
    """Spawn description for one voxel's rigid body."""
    index: int                      # index of the voxel in the buffer
    position: np.ndarray            # (3,) initial center
    mass: float
    linear_damping: float
    angular_damping: float
    color: str
    half_extents: Tuple[float, float, float]


def ragdoll_params(stiffness: float, config: Optional[RagdollConfig] = None) -> RagdollParams:
    """
    Derive damping and gravity from the stiffness control.

    stiffness 0.0 -> damping 0.1, gravity x1
    stiffness 1.0 -> damping 0.6, gravity x2
    """
    if config is None:
        config = RagdollConfig()
    stiffness = min(1.0, max(0.0, float(stiffness)))
    multiplier = 1.0 + stiffness
    return RagdollParams(
        stiffness=stiffness,
        damping=0.1 + stiffness * 0.5,
        gravity_multiplier=multiplier,
        gravity=config.base_gravity * multiplier,
    )


def build_ragdoll_bodies(
    voxels: Sequence[Voxel],
    center_offset: np.ndarray,
    stiffness: float,
    config: Optional[RagdollConfig] = None,
) -> List[RagdollBody]:
    """
    Seed one rigid body per voxel.

    Bodies are centered horizontally (x, z) with the model's centering offset
    but keep their raw y; the physics world settles them against the ground.
    """
    if config is None:
        config = RagdollConfig()
    params = ragdoll_params(stiffness, config)
    shift = np.array([center_offset[0], 0.0, center_offset[2]], dtype=float)
    half = config.body_size / 2.0

    bodies = []
    for index, voxel in enumerate(voxels):
        bodies.append(RagdollBody(
            index=index,
            position=np.array([voxel.x, voxel.y, voxel.z], dtype=float) + shift,
            mass=config.mass,
            linear_damping=params.damping,
            angular_damping=params.damping,
            color=voxel.color,
            half_extents=(half, half, half),
        ))
    return bodies


def hex_to_rgba(color: str, alpha: float = 1.0) -> List[float]:
    """"#rrggbb" (or "#rgb") to an [r, g, b, a] list in 0..1. Unknown formats map to grey."""
    value = color.strip().lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        return [0.5, 0.5, 0.5, alpha]
    try:
        r, g, b = (int(value[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    except ValueError:
        return [0.5, 0.5, 0.5, alpha]
    return [r, g, b, alpha]
