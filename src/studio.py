"""
Per-session state for the voxel studio.

StudioSession owns the current model, the saved-model library, the edit and
ragdoll toggles, and the one outstanding generation request. Rendering code
calls tick(t) once per frame and draws what comes back.

Generation is the only slow step. A request is identified by a sequence
number; starting a new request or resetting the session bumps the number,
so a result that arrives for an older request is dropped instead of
replacing the model.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from edit_mutator import DEFAULT_BRUSH_COLOR, EditTool, apply_edit
from model_store import ModelStore, StoreError, remove_model, upsert_model
from part_aggregator import RigLayout, aggregate_parts
from pose_engine import Pose, compute_pose
from ragdoll import RagdollBody, RagdollConfig, build_ragdoll_bodies
from voxel_provider import (
    CONCEPT_FAILURE_MESSAGE, SERVICE_FAILURE_MESSAGE,
    GenerationOptions, GenerationServiceError, ProviderError, VoxelProvider,
)
from voxels import AnimationType, ModelCategory, Voxel, VoxelModel

logger = logging.getLogger(__name__)


class GenerationStatus(Enum):
    IDLE = "idle"
    THINKING = "thinking"       # concept image pending
    GENERATING = "generating"   # model pending
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class FrameOutput:
    """What the renderer needs for one frame."""
    mode: str                                   # "rig", "ragdoll" or "empty"
    pose: Optional[Pose] = None
    layout: Optional[RigLayout] = None
    bodies: List[RagdollBody] = field(default_factory=list)


class StudioSession:
    """Single-user, single-threaded session state."""

    def __init__(
        self,
        provider: Optional[VoxelProvider] = None,
        store: Optional[ModelStore] = None,
        ragdoll_config: Optional[RagdollConfig] = None,
    ):
        self.provider = provider
        self.store = store
        self.ragdoll_config = ragdoll_config or RagdollConfig()

        self.prompt = ""
        self.category = ModelCategory.CHARACTER
        self.options = GenerationOptions()
        self.status = GenerationStatus.IDLE
        self.error: Optional[str] = None
        self.concept_image: Optional[str] = None

        self.current_model: Optional[VoxelModel] = None
        self.library: List[VoxelModel] = []

        self.edit_mode = False
        self.ragdoll_enabled = False
        self.edit_tool = EditTool.PAINT
        self.brush_color = DEFAULT_BRUSH_COLOR
        self.stiffness = 0.5

        self._request_seq = 0
        self._pending_request: Optional[int] = None
        self._buffer_version = 0
        self._layout: Optional[RigLayout] = None
        self._layout_version = -1
        self._ragdoll_bodies: Optional[List[RagdollBody]] = None

        if self.store is not None:
            try:
                self.library = self.store.load_all()
            except StoreError as e:
                logger.warning("Starting with an empty library: %s", e)

    # ── Buffer ownership ───────────────────────────────────────────────

    @property
    def is_pending(self) -> bool:
        return self._pending_request is not None

    @property
    def buffer_version(self) -> int:
        return self._buffer_version

    def _install_model(self, model: Optional[VoxelModel]) -> None:
        """Swap in a whole model; the only way the buffer changes besides edits."""
        self.current_model = model
        self._buffer_version += 1
        self._ragdoll_bodies = None

    def _replace_voxels(self, voxels: List[Voxel]) -> None:
        self.current_model.voxels = voxels
        self._buffer_version += 1
        self._ragdoll_bodies = None

    @property
    def layout(self) -> RigLayout:
        """Rig layout for the current buffer, rebuilt when the buffer changes."""
        if self._layout is None or self._layout_version != self._buffer_version:
            voxels = self.current_model.voxels if self.current_model else []
            self._layout = aggregate_parts(voxels)
            self._layout_version = self._buffer_version
        return self._layout

    # ── Generation ─────────────────────────────────────────────────────

    def begin_generation(self) -> int:
        """Start a model request; any older outstanding request becomes stale."""
        self._request_seq += 1
        self._pending_request = self._request_seq
        self.status = GenerationStatus.GENERATING
        self.error = None
        self.edit_mode = False
        self.ragdoll_enabled = False
        return self._request_seq

    def complete_generation(self, request_id: int, model: VoxelModel) -> bool:
        """Install a finished model if its request is still the current one."""
        if request_id != self._pending_request:
            logger.warning("Discarding stale generation result for request %d", request_id)
            return False
        self._pending_request = None
        self._install_model(model)
        self.status = GenerationStatus.SUCCESS
        return True

    def fail_generation(self, request_id: int, error: Exception) -> bool:
        """Record a failed request; the previous model stays in place."""
        if request_id != self._pending_request:
            logger.warning("Ignoring failure of stale request %d: %s", request_id, error)
            return False
        self._pending_request = None
        self.status = GenerationStatus.ERROR
        self.error = getattr(error, "user_message", SERVICE_FAILURE_MESSAGE)
        logger.warning("Generation failed: %s", error)
        return True

    async def generate_model(self, image_data_uri: Optional[str] = None) -> Optional[VoxelModel]:
        """
        Request a model for the current prompt and install it.

        The provider call runs in a worker thread; the session itself is only
        touched from the calling event loop.

        Returns:
            The installed model, or None if the request failed or went stale.
        """
        if self.provider is None:
            raise RuntimeError("No voxel provider configured")

        prompt = self.prompt.strip() or "Concept from image"
        image = image_data_uri or self.concept_image
        category = self.category
        options = GenerationOptions(self.options.style, self.options.complexity)
        request_id = self.begin_generation()

        try:
            model = await asyncio.to_thread(
                self.provider.generate_model, prompt, category, image, options
            )
        except ProviderError as e:
            self.fail_generation(request_id, e)
            return None
        except Exception as e:
            logger.exception("Unexpected generation failure")
            self.fail_generation(request_id, GenerationServiceError(str(e)))
            return None

        if self.complete_generation(request_id, model):
            return model
        return None

    async def generate_concept(self) -> Optional[str]:
        """Request a reference-sheet image for the current prompt."""
        if self.provider is None:
            raise RuntimeError("No voxel provider configured")
        if not self.prompt.strip():
            return None

        self._request_seq += 1
        request_id = self._request_seq
        self._pending_request = request_id
        self.status = GenerationStatus.THINKING
        self.error = None

        try:
            image = await asyncio.to_thread(
                self.provider.generate_concept_image, self.prompt, self.category, self.options
            )
        except Exception as e:
            if request_id == self._pending_request:
                self._pending_request = None
                self.status = GenerationStatus.ERROR
                self.error = CONCEPT_FAILURE_MESSAGE
            logger.warning("Concept generation failed: %s", e)
            return None

        if request_id != self._pending_request:
            logger.warning("Discarding stale concept image for request %d", request_id)
            return None
        self._pending_request = None
        self.concept_image = image
        self.status = GenerationStatus.IDLE
        return image

    def reset(self) -> None:
        """Drop the current model and forget any outstanding request."""
        self._pending_request = None
        self._install_model(None)
        self.ragdoll_enabled = False
        self.edit_mode = False
        self.concept_image = None
        self.status = GenerationStatus.IDLE
        self.error = None

    # ── Controls ───────────────────────────────────────────────────────

    def set_animation(self, animation: AnimationType) -> None:
        if self.current_model is None:
            return
        animation = AnimationType(animation)
        self.current_model.animation = animation
        if animation is not AnimationType.NONE:
            self.edit_mode = False
            self.ragdoll_enabled = False

    def set_ragdoll(self, enabled: bool) -> None:
        """Toggle physics mode; turning it on stops animation and editing."""
        self.ragdoll_enabled = bool(enabled)
        self._ragdoll_bodies = None
        if self.ragdoll_enabled:
            self.edit_mode = False
            if self.current_model is not None:
                self.current_model.animation = AnimationType.NONE

    def set_edit_mode(self, enabled: bool) -> None:
        """Toggle direct editing; turning it on stops the animation."""
        if self.is_pending:
            return
        self.edit_mode = bool(enabled) and self.current_model is not None
        if self.edit_mode:
            self.current_model.animation = AnimationType.NONE

    def set_stiffness(self, stiffness: float) -> None:
        self.stiffness = min(1.0, max(0.0, float(stiffness)))
        self._ragdoll_bodies = None

    def click_voxel(self, index: int) -> bool:
        """
        Apply the active edit tool to the voxel the renderer hit.

        Returns:
            True if the buffer changed.
        """
        if self.current_model is None or self.is_pending:
            return False
        voxels = self.current_model.voxels
        updated = apply_edit(
            voxels, index, self.edit_tool, self.brush_color, edit_mode=self.edit_mode
        )
        if updated is voxels:
            return False
        self._replace_voxels(updated)
        return True

    # ── Library ────────────────────────────────────────────────────────

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save_all(self.library)

    def save(self) -> None:
        if self.current_model is None:
            return
        self.library = upsert_model(self.library, self.current_model.copy())
        self._persist()

    def delete(self, model_id: str) -> None:
        self.library = remove_model(self.library, model_id)
        self._persist()

    def load(self, model: VoxelModel) -> None:
        """Open a saved model; its stored animation choice is kept as is."""
        if self.is_pending:
            self._pending_request = None
        self._install_model(model.copy())
        self.status = GenerationStatus.SUCCESS
        self.ragdoll_enabled = False
        self.category = model.category

    # ── Per-frame ──────────────────────────────────────────────────────

    def ragdoll_bodies(self) -> List[RagdollBody]:
        """Spawn list for the physics collaborator, rebuilt on change."""
        if self._ragdoll_bodies is None:
            voxels = self.current_model.voxels if self.current_model else []
            self._ragdoll_bodies = build_ragdoll_bodies(
                voxels, self.layout.center_offset, self.stiffness, self.ragdoll_config
            )
        return self._ragdoll_bodies

    def tick(self, t: float) -> FrameOutput:
        """Compute the frame at elapsed time t (seconds)."""
        if self.current_model is None:
            return FrameOutput(mode="empty")
        if self.ragdoll_enabled:
            return FrameOutput(mode="ragdoll", bodies=self.ragdoll_bodies())

        layout = self.layout
        pose = compute_pose(
            layout,
            self.current_model.animation,
            self.current_model.category,
            t,
            self.stiffness,
            edit_mode=self.edit_mode,
        )
        return FrameOutput(mode="rig", pose=pose, layout=layout)
