"""
Group a voxel buffer by part tag and derive the implicit rig.

There is no bone hierarchy. Each part tag becomes one rigid group that
rotates about a pivot inferred from the group's bounding box:

- arms and legs pivot at their top (shoulder / hip line)
- the head pivots at its bottom (neck line)
- everything else pivots at its vertical midpoint

All pivots sit at the horizontal (x, z) center of the group's bounds.
The layout is rebuilt from scratch whenever the buffer changes.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from voxels import BodyPart, Voxel


@dataclass
class PartGroup:
    """Voxels sharing a part tag, with their bounds and joint pivot."""
    part: BodyPart
    members: List[Tuple[Voxel, int]]    # (voxel, index in the buffer)
    bounds_min: np.ndarray              # (3,) per-axis minimum
    bounds_max: np.ndarray              # (3,) per-axis maximum
    pivot: np.ndarray                   # (3,) rotation origin

    @property
    def indices(self) -> List[int]:
        return [index for _, index in self.members]

    def __len__(self) -> int:
        return len(self.members)


@dataclass
class RigLayout:
    """
    Everything the pose engine needs about a buffer.

    Attributes:
        groups: Part groups keyed by tag, in order of first appearance
        center_offset: Translation that puts the model's base on y=0 and
            centers it on x=0, z=0
        voxel_count: Size of the buffer this layout was built from
    """
    groups: Dict[BodyPart, PartGroup] = field(default_factory=dict)
    center_offset: np.ndarray = field(default_factory=lambda: np.zeros(3))
    voxel_count: int = 0

    @property
    def pivots(self) -> Dict[BodyPart, np.ndarray]:
        return {part: group.pivot for part, group in self.groups.items()}

    def get(self, part: BodyPart) -> Optional[PartGroup]:
        return self.groups.get(part)

    def __contains__(self, part: BodyPart) -> bool:
        return part in self.groups

    def __iter__(self) -> Iterator[BodyPart]:
        return iter(self.groups)


def compute_pivot(part: BodyPart, bounds_min: np.ndarray, bounds_max: np.ndarray) -> np.ndarray:
    """Joint origin for a part, from its bounds alone."""
    center_x = (bounds_min[0] + bounds_max[0]) / 2.0
    center_z = (bounds_min[2] + bounds_max[2]) / 2.0

    if part.is_limb:
        pivot_y = bounds_max[1]
    elif part is BodyPart.HEAD:
        pivot_y = bounds_min[1]
    else:
        pivot_y = (bounds_min[1] + bounds_max[1]) / 2.0

    return np.array([center_x, pivot_y, center_z], dtype=float)


def compute_center_offset(coords: np.ndarray) -> np.ndarray:
    """-(center x, min y, center z) of an (N, 3) coordinate array."""
    if len(coords) == 0:
        return np.zeros(3)
    mins = coords.min(axis=0)
    maxs = coords.max(axis=0)
    return -np.array([
        (mins[0] + maxs[0]) / 2.0,
        mins[1],
        (mins[2] + maxs[2]) / 2.0,
    ], dtype=float)


def aggregate_parts(voxels: Sequence[Voxel]) -> RigLayout:
    """
    Build the rig layout for a voxel buffer.

    Single pass for grouping; bounds come from per-group numpy reductions so
    the total work stays linear in the buffer size.

    Args:
        voxels: The voxel buffer, in index order

    Returns:
        RigLayout. An empty buffer gives no groups and a zero offset.
    """
    members: Dict[BodyPart, List[Tuple[Voxel, int]]] = {}
    for index, voxel in enumerate(voxels):
        members.setdefault(voxel.part, []).append((voxel, index))

    if not members:
        return RigLayout()

    coords = np.array([(v.x, v.y, v.z) for v in voxels], dtype=float)

    groups: Dict[BodyPart, PartGroup] = {}
    for part, entries in members.items():
        part_coords = coords[[index for _, index in entries]]
        bounds_min = part_coords.min(axis=0)
        bounds_max = part_coords.max(axis=0)
        groups[part] = PartGroup(
            part=part,
            members=entries,
            bounds_min=bounds_min,
            bounds_max=bounds_max,
            pivot=compute_pivot(part, bounds_min, bounds_max),
        )

    return RigLayout(
        groups=groups,
        center_offset=compute_center_offset(coords),
        voxel_count=len(voxels),
    )
