"""JSON-file repository for saved voxel models.

The whole collection is read at session start and written back in one go
after every change. Newest models come first.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from voxels import VoxelModel

logger = logging.getLogger(__name__)

DEFAULT_STORE_PATH = "voxel_models.json"


class StoreError(Exception):
    """Store file exists but cannot be read back as a model collection."""
    pass


class ModelStore:
    """Load-all / save-all repository keyed by model id."""

    def __init__(self, path: str = DEFAULT_STORE_PATH):
        self.path = Path(path)

    def load_all(self) -> List[VoxelModel]:
        """Read every saved model. A missing file is an empty collection."""
        if not self.path.exists():
            return []
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
            records = payload.get("models", []) if isinstance(payload, dict) else payload
            return [VoxelModel.from_dict(record) for record in records]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            raise StoreError(f"Cannot read model store {self.path}: {e}") from e

    def save_all(self, models: List[VoxelModel]) -> None:
        """Replace the stored collection. Written to a temp file then swapped in."""
        payload: Dict[str, Any] = {"models": [m.to_dict() for m in models]}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug("Saved %d models to %s", len(models), self.path)

    def get(self, model_id: str) -> Optional[VoxelModel]:
        for model in self.load_all():
            if model.id == model_id:
                return model
        return None


def upsert_model(models: List[VoxelModel], model: VoxelModel) -> List[VoxelModel]:
    """Replace by id in place, or prepend if new."""
    if any(m.id == model.id for m in models):
        return [model if m.id == model.id else m for m in models]
    return [model] + list(models)


def remove_model(models: List[VoxelModel], model_id: str) -> List[VoxelModel]:
    return [m for m in models if m.id != model_id]
