"""
Paint / erase edits against the voxel buffer.

Voxels are addressed by their index in the buffer. Erasing shifts every
later index down by one, so an index is only good until the next erase.
Edits never modify the list they are given; they return a new list, which
gives the buffer a new identity and triggers re-aggregation downstream.
"""
import logging
from enum import Enum
from typing import List, Optional, Sequence

from voxels import Voxel

logger = logging.getLogger(__name__)

DEFAULT_BRUSH_COLOR = "#3b82f6"


class EditTool(Enum):
    PAINT = "paint"
    ERASE = "erase"


def _in_range(voxels: Sequence[Voxel], index: int) -> bool:
    return 0 <= index < len(voxels)


def paint(voxels: Sequence[Voxel], index: int, color: str) -> List[Voxel]:
    """Recolor the voxel at index; coordinates and part are kept."""
    if not _in_range(voxels, index):
        logger.debug("paint ignored, index %d out of range (%d voxels)", index, len(voxels))
        return list(voxels)
    updated = list(voxels)
    updated[index] = voxels[index].with_color(color)
    return updated


def erase(voxels: Sequence[Voxel], index: int) -> List[Voxel]:
    """Remove the voxel at index."""
    if not _in_range(voxels, index):
        logger.debug("erase ignored, index %d out of range (%d voxels)", index, len(voxels))
        return list(voxels)
    return list(voxels[:index]) + list(voxels[index + 1:])


def apply_edit(
    voxels: Optional[List[Voxel]],
    index: int,
    tool: EditTool,
    color: str = DEFAULT_BRUSH_COLOR,
    edit_mode: bool = True,
) -> Optional[List[Voxel]]:
    """
    Apply one hit-tested edit.

    Args:
        voxels: Current buffer, or None when no model is loaded
        index: Buffer index delivered by the renderer's hit test
        tool: Paint or erase
        color: Brush color for paint
        edit_mode: Whether edit mode is active

    Returns:
        The new buffer. When edit mode is off, there is no model, or the
        index is stale, the input is returned as the same object.
    """
    if voxels is None or not edit_mode:
        return voxels
    if not _in_range(voxels, index):
        logger.debug("edit ignored, index %d out of range (%d voxels)", index, len(voxels))
        return voxels
    if tool is EditTool.ERASE:
        return erase(voxels, index)
    return paint(voxels, index, color)
