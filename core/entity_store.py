# core/entity_store.py
from __future__ import annotations

from itertools import count
from typing import Dict, Iterator, Optional

from core.entities import Entity, GeometryType


class EntityStore:
    """
    Tabla central de entidades confirmadas, indexada por id estable.
    Cada herramienta guarda solo los ids que le pertenecen; mover y
    eliminar operan a través de esta tabla.
    """

    def __init__(self):
        # id -> entidad, en orden de inserción
        self._entities: Dict[str, Entity] = {}
        self._id_source = count(1)

    def next_id(self, kind: GeometryType) -> str:
        return f"{kind.value.lower()}_{next(self._id_source)}"

    def add(self, entity: Entity) -> str:
        if entity.id in self._entities:
            raise ValueError(f"Ya existe una entidad con id '{entity.id}'")
        self._entities[entity.id] = entity
        return entity.id

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def remove(self, entity_id: str) -> Optional[Entity]:
        entity = self._entities.pop(entity_id, None)
        if entity is not None:
            # invalida peticiones asíncronas pendientes
            entity.generation += 1
        return entity

    def bump_generation(self, entity_id: str) -> None:
        entity = self._entities.get(entity_id)
        if entity is not None:
            entity.generation += 1

    def is_current(self, entity: Entity, generation: int) -> bool:
        """True if ``entity`` is still stored and its token matches."""
        return self._entities.get(entity.id) is entity and entity.generation == generation

    def clear(self):
        for entity in self._entities.values():
            entity.generation += 1
        self._entities.clear()

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._entities.values()))
