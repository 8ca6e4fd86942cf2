"""
Core data structures for animatable voxel models.

A model is a flat, ordered list of colored unit cubes. Each cube carries a
coarse body-part tag; the tags stand in for a skeleton (see part_aggregator).
"""
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class BodyPart(Enum):
    """Closed set of part tags a voxel can belong to."""
    HEAD = "head"
    TORSO = "torso"
    LEFT_ARM = "left_arm"
    RIGHT_ARM = "right_arm"
    LEFT_LEG = "left_leg"
    RIGHT_LEG = "right_leg"
    TAIL = "tail"
    BASE = "base"
    WING_L = "wing_l"
    WING_R = "wing_r"

    @property
    def is_limb(self) -> bool:
        """Arms and legs hang from their top edge (shoulder / hip line)."""
        return "leg" in self.value or "arm" in self.value


class ModelCategory(Enum):
    """What kind of subject a model is; picks the animation vocabulary."""
    CHARACTER = "character"
    ANIMAL = "animal"
    OBJECT = "object"


class AnimationType(Enum):
    """Procedural animations the pose engine knows about."""
    NONE = "none"
    IDLE = "idle"
    WALK = "walk"
    RUN = "run"
    JUMP = "jump"
    ATTACK = "attack"
    SPIN = "spin"
    FLOAT = "float"


@dataclass(frozen=True)
class Voxel:
    """
    A single unit cube on the integer grid.

    Voxels are never mutated; edits replace the entry in the buffer.
    Two voxels may share a coordinate (overlap keeps joints solid).

    Attributes:
        x, y, z: Integer grid coordinates (Y is up, 0 is the floor)
        color: Opaque color string, usually "#rrggbb"
        part: Body-part tag
    """
    x: int
    y: int
    z: int
    color: str
    part: BodyPart

    def with_color(self, color: str) -> "Voxel":
        return replace(self, color=color)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "color": self.color,
            "part": self.part.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Voxel":
        return cls(
            x=int(data["x"]),
            y=int(data["y"]),
            z=int(data["z"]),
            color=str(data["color"]),
            part=BodyPart(data["part"]),
        )


@dataclass
class ModelMetadata:
    """Descriptive data recorded when a model is created."""
    complexity: str = "Detailed"
    description: str = ""
    created_at: float = field(default_factory=time.time)
    suggested_animation: Optional[AnimationType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complexity": self.complexity,
            "description": self.description,
            "created_at": self.created_at,
            "suggested_animation": (
                self.suggested_animation.value if self.suggested_animation else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelMetadata":
        suggested = data.get("suggested_animation")
        return cls(
            complexity=str(data.get("complexity", "Detailed")),
            description=str(data.get("description", "")),
            created_at=float(data.get("created_at", 0.0)),
            suggested_animation=AnimationType(suggested) if suggested else None,
        )


@dataclass
class VoxelModel:
    """
    A generated (or loaded) voxel model.

    Attributes:
        id: Unique identifier, fixed for the model's lifetime
        name: Display name
        category: Fixed at creation; selects the pose-engine branch
        voxels: The voxel buffer. Index into this list is the edit handle.
        animation: Currently selected animation
        metadata: Creation details (prompt, complexity, suggestion)
    """
    id: str
    name: str
    category: ModelCategory
    voxels: List[Voxel] = field(default_factory=list)
    animation: AnimationType = AnimationType.NONE
    metadata: ModelMetadata = field(default_factory=ModelMetadata)

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    def copy(self) -> "VoxelModel":
        """Snapshot copy; voxels are immutable so a new list is enough."""
        return replace(self, voxels=list(self.voxels), metadata=replace(self.metadata))

    def part_counts(self) -> Dict[BodyPart, int]:
        counts: Dict[BodyPart, int] = {}
        for voxel in self.voxels:
            counts[voxel.part] = counts.get(voxel.part, 0) + 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "animation": self.animation.value,
            "voxels": [v.to_dict() for v in self.voxels],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoxelModel":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            category=ModelCategory(data.get("category", "character")),
            voxels=[Voxel.from_dict(v) for v in data.get("voxels", [])],
            animation=AnimationType(data.get("animation") or "none"),
            metadata=ModelMetadata.from_dict(data.get("metadata") or {}),
        )
