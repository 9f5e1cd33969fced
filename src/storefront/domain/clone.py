"""
Копирование сущностей между арендаторами (multi-tenant clone).

CloneContext запоминает уже созданные копии, поэтому граф объектов,
скопированный в одном контексте, содержит ровно одну копию каждого оригинала.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class CloneResult(Generic[T]):
    clone: T
    already_cloned: bool = False


@dataclass(slots=True)
class CloneContext:
    tenant: str | None = None
    _copies: dict[tuple[type, Any], Any] = field(default_factory=dict)

    @staticmethod
    def _key(original: Any) -> tuple[type, Any]:
        entity_id = getattr(original, "id", None)
        if entity_id is None:
            return type(original), ("transient", id(original))
        return type(original), entity_id

    def lookup(self, original: Any) -> Any | None:
        return self._copies.get(self._key(original))

    def remember(self, original: Any, copy: Any) -> None:
        self._copies[self._key(original)] = copy

    def __len__(self) -> int:
        return len(self._copies)


class MultiTenantCloneable(Protocol[T]):
    def create_or_retrieve_copy_instance(self, context: CloneContext) -> CloneResult[T]: ...
