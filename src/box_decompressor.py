"""
Expand compact box/voxel elements into a flat voxel buffer.

The generation service describes a model as a short list of solid boxes plus
a few single voxels for details. This module turns that list into one Voxel
per unit cube, in a reproducible order: source element order, then x, then y,
then z inside each box. Edit operations address voxels by index, so the
order must not change between runs.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Tuple, Union

from voxels import BodyPart, Voxel


@dataclass
class BoxElement:
    """A solid cuboid; (x, y, z) is its min corner."""
    x: int
    y: int
    z: int
    width: int
    height: int
    depth: int
    color: str
    part: BodyPart

    def size(self) -> Tuple[int, int, int]:
        """Edge lengths with the degenerate-dimension floor applied."""
        return (max(1, self.width), max(1, self.height), max(1, self.depth))


@dataclass
class VoxelElement:
    """A single cube, used for fine details like eyes or buttons."""
    x: int
    y: int
    z: int
    color: str
    part: BodyPart


Element = Union[BoxElement, VoxelElement]


def _dimension(value: Any) -> int:
    # Missing, null and zero all mean "one unit"
    if value is None:
        return 1
    return int(value) or 1


def element_from_dict(data: Dict[str, Any]) -> Element:
    """Parse one element from the service's JSON.

    Raises:
        KeyError: If a required field is missing.
        ValueError: If a coordinate is not an integer or the part is unknown.
    """
    x, y, z = int(data["x"]), int(data["y"]), int(data["z"])
    color = str(data["color"])
    part = BodyPart(data["part"])

    if data.get("type") == "box":
        return BoxElement(
            x=x, y=y, z=z,
            width=_dimension(data.get("width")),
            height=_dimension(data.get("height")),
            depth=_dimension(data.get("depth")),
            color=color,
            part=part,
        )
    return VoxelElement(x=x, y=y, z=z, color=color, part=part)


def parse_elements(raw_elements: Iterable[Dict[str, Any]]) -> List[Element]:
    return [element_from_dict(el) for el in raw_elements]


def iter_element_voxels(element: Element) -> Iterator[Voxel]:
    """Yield the voxels covered by one element, x-major then y then z."""
    if isinstance(element, VoxelElement):
        yield Voxel(element.x, element.y, element.z, element.color, element.part)
        return

    width, height, depth = element.size()
    for ix in range(width):
        for iy in range(height):
            for iz in range(depth):
                yield Voxel(
                    element.x + ix,
                    element.y + iy,
                    element.z + iz,
                    element.color,
                    element.part,
                )


def decompress_elements(elements: Iterable[Element]) -> List[Voxel]:
    """
    Expand elements into a complete voxel buffer.

    The whole list is built before it is returned, so callers only ever see a
    fully formed buffer.

    Args:
        elements: Parsed BoxElement / VoxelElement objects, in source order

    Returns:
        Flat list of voxels. A box of w x h x d contributes exactly w*h*d
        voxels; non-positive dimensions count as 1.
    """
    voxels: List[Voxel] = []
    for element in elements:
        voxels.extend(iter_element_voxels(element))
    return voxels


def decompress_raw(raw_elements: Iterable[Dict[str, Any]]) -> List[Voxel]:
    """Parse and expand elements straight from decoded JSON."""
    return decompress_elements(parse_elements(raw_elements))
