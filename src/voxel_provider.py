"""
Abstract voxel-model provider interface for generative model APIs.

A provider turns a text prompt (optionally with a reference image) into a
structured element list, which box_decompressor expands into voxels. It can
also render a concept reference sheet to guide the model step.
"""
import json
import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from box_decompressor import decompress_raw
from voxels import AnimationType, ModelCategory, ModelMetadata, VoxelModel

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = "Model is too complex. Please try 'Simple' detail or a shorter prompt."
SERVICE_FAILURE_MESSAGE = "Failed to construct 3D model. Please try again."
CONCEPT_FAILURE_MESSAGE = "Concept generation failed."

STYLE_DESCRIPTIONS = {
    "Modern": "Clean 3D Voxel Art, plastic toy finish, bright studio lighting",
    "Cyberpunk": "Neon, dark, digital, glowing",
    "Retro": "8-bit, NES style, bright flat colors",
    "Nature": "Earthy, organic, soft lighting",
}

PART_NAMES = [
    "head", "torso", "left_arm", "right_arm", "left_leg",
    "right_leg", "tail", "base", "wing_l", "wing_r",
]

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "category": {"type": "STRING", "enum": [c.value for c in ModelCategory]},
        "suggestedAnimation": {
            "type": "STRING",
            "enum": ["idle", "walk", "run", "attack", "spin", "float", "none"],
        },
        "elements": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "type": {"type": "STRING", "enum": ["box", "voxel"]},
                    # for a box this is the min (bottom-left-front) corner
                    "x": {"type": "INTEGER"},
                    "y": {"type": "INTEGER"},
                    "z": {"type": "INTEGER"},
                    "width": {"type": "INTEGER"},
                    "height": {"type": "INTEGER"},
                    "depth": {"type": "INTEGER"},
                    "color": {"type": "STRING"},
                    "part": {"type": "STRING", "enum": PART_NAMES},
                },
                "required": ["type", "x", "y", "z", "color", "part"],
            },
        },
    },
    "required": ["name", "elements", "category", "suggestedAnimation"],
}


class ProviderError(Exception):
    """Base exception for provider errors."""

    user_message = SERVICE_FAILURE_MESSAGE


class GenerationParseError(ProviderError):
    """Structured output did not parse, usually truncation of a long answer."""

    user_message = PARSE_FAILURE_MESSAGE


class GenerationServiceError(ProviderError):
    """Any other failure of the generation call."""
    pass


class ProviderTimeoutError(GenerationServiceError):
    """Request took too long to complete."""
    pass


class ProviderAuthError(GenerationServiceError):
    """API key missing or rejected."""
    pass


class ProviderRateLimitError(GenerationServiceError):
    """API rate limit hit."""
    pass


@dataclass
class GenerationOptions:
    """User-selected style and density for a generation."""
    style: str = "Modern"
    complexity: str = "Detailed"

    @property
    def style_description(self) -> str:
        return STYLE_DESCRIPTIONS.get(self.style, STYLE_DESCRIPTIONS["Modern"])


@dataclass
class ProviderConfig:
    """Configuration for a voxel provider."""
    api_key: str
    model_name: str = "gemini-3-flash-preview"
    image_model_name: str = "gemini-2.5-flash-image"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 300.0
    max_output_tokens: int = 32768
    thinking_budget: int = 4096

    @classmethod
    def from_env(cls, api_key: Optional[str] = None, **overrides) -> "ProviderConfig":
        """Build a config, reading the key from GEMINI_API_KEY or API_KEY."""
        key = api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        if not key:
            raise ProviderAuthError("Set GEMINI_API_KEY environment variable or pass an API key")
        return cls(api_key=key, **overrides)


def build_concept_prompt(prompt: str, category: ModelCategory, options: GenerationOptions) -> str:
    """Prompt for the reference-sheet image."""
    if category is ModelCategory.CHARACTER:
        layout = (
            'CRITICAL INSTRUCTION: YOU MUST CREATE A "CHARACTER TURNAROUND SHEET".\n'
            "LAYOUT:\n"
            "- A single horizontal row containing exactly THREE poses of the SAME character.\n"
            "- Pose 1 (Left): FRONT VIEW, facing the camera directly.\n"
            "- Pose 2 (Center): SIDE VIEW, profile. Must clearly show body thickness.\n"
            "- Pose 3 (Right): 3/4 FRONT VIEW, angled 45 degrees towards the camera.\n"
            "CONTENT RULES:\n"
            "- The character is the SOLE subject. No other objects, animals or scenery.\n"
            "BACKGROUND:\n"
            "- Solid, plain, light grey background (#E5E7EB). No gradients or floor shadows."
        )
    elif category is ModelCategory.ANIMAL:
        layout = (
            "STRICT LAYOUT REQUIREMENT:\n"
            'Generate an "ANIMAL REFERENCE SHEET" with 3 views:\n'
            "1. Side Profile (Full length).\n"
            "2. Front Face.\n"
            "3. 3/4 Front View."
        )
    else:
        layout = (
            "STRICT LAYOUT REQUIREMENT:\n"
            'Generate an "OBJECT BLUEPRINT":\n'
            "1. Perspective View (Main).\n"
            "2. Front View.\n"
            "3. Top/Side View."
        )

    return (
        f'Create a Technical Voxel Reference Sheet for: "{prompt}".\n\n'
        f"{layout}\n\n"
        f"STYLE: {options.style_description}.\n"
        "AESTHETIC: Chunky, Volumetric, Toy-like."
    )


def build_model_instruction(category: ModelCategory, options: GenerationOptions) -> str:
    """System instruction asking for box-based construction."""
    if category is ModelCategory.CHARACTER:
        strategy = (
            "CONSTRUCTION STRATEGY (BLOCKING):\n"
            "1. Base Mesh: define the character using LARGE, SOLID CUBOIDS (boxes),\n"
            "   e.g. a box for the head, a box for the torso, boxes for legs.\n"
            "   The torso must be thick (depth > 3). The head must be a solid block.\n"
            "2. Details: add individual voxels ONLY for fine details like eyes or buttons."
        )
    else:
        strategy = "CONSTRUCTION STRATEGY:\nDecompose the subject into solid primitive boxes."

    return (
        "You are a Voxel Architect.\n"
        "Define the model using VOLUMETRIC PRIMITIVES (BOXES) instead of listing points.\n"
        "Your output contains an array of 'elements'. An element is either a 'box' "
        "(fills a region) or a 'voxel' (single point).\n\n"
        f"{strategy}\n\n"
        "OPTIMIZATION IS CRITICAL:\n"
        "- Always use the largest possible box for volumes of the same color.\n"
        "- Do not list adjacent voxels individually.\n\n"
        "RULES FOR IMAGE REPLICATION:\n"
        "- Break the reference image down into its core geometric shapes.\n"
        "- Match the colors from the image exactly.\n"
        "- ENSURE SOLIDITY: no gaps between head and body; overlap coordinates if needed.\n"
        f"- Level of detail: {options.complexity}. Style: {options.style_description}.\n\n"
        "Tag every element with the body part it belongs to.\n\n"
        "COORDINATE SYSTEM:\n"
        "- X: Left/Right (width)\n"
        "- Y: Up/Down (height). 0 is the floor.\n"
        "- Z: Forward/Back (depth).\n"
        "- Center the model roughly at X=0, Z=0.\n\n"
        "Output pure JSON matching the schema."
    )


def strip_json_fence(text: str) -> str:
    """Remove surrounding whitespace and a ```json ... ``` wrapper if present."""
    text = text.strip()
    if text.startswith("```"):
        text = text[3:]
        if text.startswith("json"):
            text = text[4:]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_generation_response(text: str) -> Dict[str, Any]:
    """
    Decode the service's JSON answer.

    Raises:
        GenerationParseError: If the text is not valid JSON or has no element list.
    """
    try:
        parsed = json.loads(strip_json_fence(text or ""))
    except json.JSONDecodeError as e:
        raise GenerationParseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(parsed, dict) or not isinstance(parsed.get("elements"), list):
        raise GenerationParseError("Response has no 'elements' array")
    return parsed


def build_model_from_response(
    parsed: Dict[str, Any],
    prompt: str,
    category: ModelCategory,
    options: GenerationOptions,
    created_at: Optional[float] = None,
) -> VoxelModel:
    """
    Turn a parsed response into a fresh VoxelModel.

    The category is the one the user asked for. The suggested animation
    becomes the initial selection and is kept in metadata.

    Raises:
        GenerationParseError: If an element is malformed.
    """
    try:
        voxels = decompress_raw(parsed["elements"])
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise GenerationParseError(f"Malformed element in response: {e}") from e

    try:
        suggested = AnimationType(parsed.get("suggestedAnimation") or "none")
    except ValueError:
        logger.warning("Ignoring unknown suggested animation %r", parsed.get("suggestedAnimation"))
        suggested = None

    return VoxelModel(
        id=VoxelModel.new_id(),
        name=str(parsed.get("name") or prompt),
        category=category,
        voxels=voxels,
        animation=suggested or AnimationType.NONE,
        metadata=ModelMetadata(
            complexity=options.complexity,
            description=prompt,
            created_at=created_at if created_at is not None else time.time(),
            suggested_animation=suggested,
        ),
    )


class VoxelProvider(ABC):
    """Abstract base class for generative voxel-model providers.

    Implementations must handle:
    - API authentication
    - Sending the request and decoding the structured answer
    - Mapping transport errors onto the ProviderError hierarchy
    """

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier (e.g., 'gemini')."""
        ...

    @abstractmethod
    def request_elements(
        self,
        prompt: str,
        category: ModelCategory,
        image_data_uri: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> str:
        """Send a model request and return the raw JSON text of the answer.

        Raises:
            GenerationServiceError: If the call fails.
        """
        ...

    @abstractmethod
    def generate_concept_image(
        self,
        prompt: str,
        category: ModelCategory,
        options: Optional[GenerationOptions] = None,
    ) -> str:
        """Generate a reference sheet and return it as a data URI.

        Raises:
            GenerationServiceError: If the call fails or returns no image.
        """
        ...

    def generate_model(
        self,
        prompt: str,
        category: ModelCategory,
        image_data_uri: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> VoxelModel:
        """Generate a complete VoxelModel.

        Args:
            prompt: Text description of the subject.
            category: Character, animal or object.
            image_data_uri: Optional reference image ("data:image/png;base64,...").
            options: Style and complexity.

        Returns:
            A new VoxelModel with a decompressed voxel buffer.

        Raises:
            GenerationParseError: If the answer is not valid structured output.
            GenerationServiceError: For any other failure.
        """
        options = options or GenerationOptions()
        category = ModelCategory(category)
        logger.info("Requesting %s model from %s: %s", category.value, self.name, prompt)

        try:
            text = self.request_elements(prompt, category, image_data_uri, options)
        except ProviderError:
            raise
        except Exception as e:
            raise GenerationServiceError(f"{self.name} request failed: {e}") from e

        try:
            parsed = parse_generation_response(text)
            model = build_model_from_response(parsed, prompt, category, options)
        except ProviderError:
            raise
        except Exception as e:
            raise GenerationServiceError(f"{self.name} response could not be built: {e}") from e
        logger.info("Built model %r with %d voxels", model.name, len(model.voxels))
        return model
