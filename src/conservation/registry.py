from __future__ import annotations

from typing import Generic, Iterable, TypeVar

from .errors import EntityNotFoundError, ErrorKind, ValidationError
from .logging_config import get_logger
from .models import Animal, Cage, Category, Keeper, Position

logger = get_logger(__name__)

T = TypeVar("T", Animal, Cage, Keeper)


class Registry(Generic[T]):
    """In-memory, id-keyed store with auto-increment ids.

    Ids are never reused: ``remove`` and ``clear`` leave the counter alone and
    ``initialize_from_persistence`` only ever moves it forward.
    """

    entity_type = "Entity"
    id_attr = "id"

    def __init__(self) -> None:
        self._items: dict[int, T] = {}
        self._last_id = 0

    def _id_of(self, entity: T) -> int:
        return int(getattr(entity, self.id_attr))

    def _label(self, entity: T) -> str:
        return str(self._id_of(entity))

    def add(self, entity: T) -> int:
        if entity is None:
            raise ValidationError(ErrorKind.INVALID_INPUT, f"Cannot add null {self.entity_type.lower()}")
        self._last_id += 1
        new_id = self._last_id
        setattr(entity, self.id_attr, new_id)
        self._items[new_id] = entity
        logger.info("%s added: %s (ID: %d)", self.entity_type, self._label(entity), new_id)
        return new_id

    def find_by_id(self, entity_id: int) -> T | None:
        return self._items.get(entity_id)

    def get(self, entity_id: int) -> T:
        entity = self._items.get(entity_id)
        if entity is None:
            raise EntityNotFoundError(self.entity_type, entity_id)
        return entity

    def get_all(self) -> list[T]:
        return [self._items[key] for key in sorted(self._items)]

    def remove(self, entity_id: int) -> bool:
        removed = self._items.pop(entity_id, None)
        if removed is None:
            return False
        logger.info("%s removed: %s (ID: %d)", self.entity_type, self._label(removed), entity_id)
        return True

    def exists(self, entity_id: int) -> bool:
        return entity_id in self._items

    def count(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()
        logger.debug("All %s entries cleared", self.entity_type.lower())

    def initialize_from_persistence(self, entities: Iterable[T]) -> None:
        self._items.clear()
        for entity in entities:
            entity_id = self._id_of(entity)
            self._items[entity_id] = entity
            self._last_id = max(self._last_id, entity_id)
        logger.info(
            "%s registry initialised: %d loaded, next ID will be %d",
            self.entity_type,
            len(self._items),
            self._last_id + 1,
        )

    @property
    def last_id(self) -> int:
        return self._last_id

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._items


class AnimalRegistry(Registry[Animal]):
    entity_type = "Animal"
    id_attr = "animal_id"

    def _label(self, entity: Animal) -> str:
        return entity.name

    def find_by_name(self, name: str) -> Animal | None:
        if not name or not name.strip():
            return None
        wanted = name.strip().lower()
        return next((a for a in self.get_all() if a.name.lower() == wanted), None)

    def find_by_category(self, category: Category) -> list[Animal]:
        return [a for a in self.get_all() if a.category == category]

    def find_by_species(self, species: str) -> list[Animal]:
        if not species or not species.strip():
            return []
        wanted = species.strip().lower()
        return [a for a in self.get_all() if a.species.lower() == wanted]


class CageRegistry(Registry[Cage]):
    entity_type = "Cage"
    id_attr = "cage_id"

    def _label(self, entity: Cage) -> str:
        return entity.cage_number

    def find_by_cage_number(self, cage_number: str) -> Cage | None:
        if not cage_number or not cage_number.strip():
            return None
        wanted = cage_number.strip().lower()
        return next((c for c in self.get_all() if c.cage_number.lower() == wanted), None)

    def find_empty(self) -> list[Cage]:
        return [c for c in self.get_all() if c.is_empty]

    def find_full(self) -> list[Cage]:
        return [c for c in self.get_all() if c.is_full]

    def find_available(self) -> list[Cage]:
        return [c for c in self.get_all() if not c.is_full]

    def find_unassigned(self) -> list[Cage]:
        return [c for c in self.get_all() if not c.has_keeper]

    def find_by_keeper_id(self, keeper_id: int) -> list[Cage]:
        return [c for c in self.get_all() if c.keeper_id == keeper_id]

    def find_by_animal_id(self, animal_id: int) -> Cage | None:
        return next((c for c in self.get_all() if animal_id in c.animal_ids), None)

    def find_by_capacity(self, capacity: int) -> list[Cage]:
        return [c for c in self.get_all() if c.capacity == capacity]

    def total_capacity(self) -> int:
        return sum(c.capacity for c in self._items.values())

    def total_occupancy(self) -> int:
        return sum(c.occupancy for c in self._items.values())


class KeeperRegistry(Registry[Keeper]):
    entity_type = "Keeper"
    id_attr = "keeper_id"

    def _label(self, entity: Keeper) -> str:
        return f"{entity.full_name} [{entity.position}]"

    def find_by_full_name(self, full_name: str) -> Keeper | None:
        if not full_name or not full_name.strip():
            return None
        wanted = full_name.strip().lower()
        return next((k for k in self.get_all() if k.full_name.lower() == wanted), None)

    def find_by_position(self, position: Position) -> list[Keeper]:
        return [k for k in self.get_all() if k.position == position]

    def find_available(self, max_cages: int) -> list[Keeper]:
        return [k for k in self.get_all() if k.can_accept_more_cages(max_cages)]

    def find_overloaded(self, max_cages: int) -> list[Keeper]:
        return [k for k in self.get_all() if not k.can_accept_more_cages(max_cages)]

    def find_by_cage_id(self, cage_id: int) -> list[Keeper]:
        return [k for k in self.get_all() if cage_id in k.cage_ids]
