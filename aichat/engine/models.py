from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol


@dataclass(frozen=True, slots=True)
class Model:
    """An entry of the model catalog.

    ``name`` is the identifier the backend uses in requests and in the ``model``
    field of its responses; ``key`` is the stable client-side identifier.
    """

    key: str
    name: str
    display_name: str = ""
    supports_tools: bool = False


class ModelService(Protocol):
    def resolve_key_by_name(self, name: str) -> str | None: ...


class ModelCatalog:
    """Read-only lookup of models by backend name."""

    def __init__(self, models: Iterable[Model] = ()) -> None:
        self._models: dict[str, Model] = {}
        for model in models:
            if model.key in self._models:
                raise ValueError(f"model already registered: {model.key}")
            self._models[model.key] = model

    def get(self, key: str) -> Model | None:
        return self._models.get(key)

    def models(self) -> list[Model]:
        return list(self._models.values())

    def resolve_key_by_name(self, name: str) -> str | None:
        for model in self._models.values():
            if model.name == name:
                return model.key
        return None
