"""
Model Library — named, reusable bundles of line items ("saved models").

A model is only created by an explicit save and only removed by an explicit
delete. Loading hands back copies with new line ids, so editing the loaded
lines can never reach the stored bundle.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from .config import settings
from .errors import NotFoundError, ValidationError
from .line_items import copy_lines
from .models import LineItem, SavedModel

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ModelLibrary:
    """In-memory store of SavedModel records, keyed by model id."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow
        self._models: dict[str, SavedModel] = {}
        self._counter = 0

    def save(self, name: str, line_items: Iterable[LineItem]) -> SavedModel:
        """Store a copy of `line_items` under `name`. Rejects blank names and empty bundles."""
        name = (name or "").strip()
        items = tuple(line_items)
        if not name:
            raise ValidationError("Model name is required")
        if not items:
            raise ValidationError(f"Model '{name}' needs at least one line item")

        self._counter += 1
        model = SavedModel(
            id=f"{settings.MODEL_ID_PREFIX}-{self._counter}",
            name=name,
            items=copy_lines(items),
            created_at=self._clock(),
        )
        self._models[model.id] = model
        logger.info("Saved model %s '%s' with %d items", model.id, name, len(items))
        return model

    def get(self, model_id: str) -> SavedModel:
        try:
            return self._models[model_id]
        except KeyError:
            raise NotFoundError(f"Saved model '{model_id}' not found", id=model_id) from None

    def load(self, model_id: str) -> list[LineItem]:
        """Fresh copies of the model's lines, each with a new id."""
        return list(copy_lines(self.get(model_id).items))

    def list_models(self) -> list[SavedModel]:
        return list(self._models.values())

    def delete(self, model_id: str) -> None:
        self.get(model_id)
        del self._models[model_id]
        logger.info("Deleted saved model %s", model_id)
