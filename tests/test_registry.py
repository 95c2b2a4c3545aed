from datetime import date

import pytest

from conservation.errors import EntityNotFoundError, ErrorKind, ValidationError
from conservation.models import Animal, Cage, Keeper
from conservation.registry import AnimalRegistry, CageRegistry, KeeperRegistry


def _animal(name: str, species: str = "Tiger", category: str = "PREDATOR") -> Animal:
    return Animal(name, species, category, date(2020, 5, 15), date(2023, 11, 20), "MALE")


def test_ids_are_sequential_and_never_reused() -> None:
    registry = AnimalRegistry()
    first = registry.add(_animal("Leo"))
    second = registry.add(_animal("Ana"))
    assert (first, second) == (1, 2)
    assert registry.get(1).animal_id == 1

    assert registry.remove(second)
    assert not registry.remove(second)
    assert registry.add(_animal("Max")) == 3

    registry.clear()
    assert registry.count() == 0
    assert registry.add(_animal("Zed")) == 4


def test_add_none_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        CageRegistry().add(None)  # type: ignore[arg-type]
    assert excinfo.value.kind is ErrorKind.INVALID_INPUT


def test_get_missing_raises_not_found() -> None:
    registry = KeeperRegistry()
    assert registry.find_by_id(9) is None
    with pytest.raises(EntityNotFoundError) as excinfo:
        registry.get(9)
    assert excinfo.value.entity_type == "Keeper"
    assert str(excinfo.value) == "Keeper not found: ID 9"


def test_get_all_returns_sorted_copy() -> None:
    registry = CageRegistry()
    registry.initialize_from_persistence(
        [Cage("C", "third", 1, cage_id=7), Cage("A", "first", 1, cage_id=2), Cage("B", "second", 1, cage_id=5)]
    )
    cages = registry.get_all()
    assert [c.cage_id for c in cages] == [2, 5, 7]
    cages.clear()
    assert len(registry) == 3
    assert 5 in registry


def test_initialize_from_persistence_advances_counter() -> None:
    registry = AnimalRegistry()
    registry.add(_animal("Early"))
    restored = _animal("Restored")
    restored.animal_id = 10
    registry.initialize_from_persistence([restored])
    assert registry.count() == 1
    assert registry.last_id == 10
    assert registry.add(_animal("Next")) == 11


def test_counter_never_moves_backwards_on_reload() -> None:
    registry = KeeperRegistry()
    for _ in range(5):
        registry.add(Keeper.head("John", "Smith"))
    registry.initialize_from_persistence([Keeper("Jane", "Doe", "HEAD_KEEPER", keeper_id=2)])
    assert registry.add(Keeper.head("Ann", "Lee")) == 6


def test_animal_finders() -> None:
    registry = AnimalRegistry()
    registry.add(_animal("Leo", "Tiger"))
    registry.add(_animal("Bugs", "Rabbit", "PREY"))
    registry.add(_animal("Flopsy", "rabbit", "PREY"))

    assert registry.find_by_name("  leo ").name == "Leo"
    assert registry.find_by_name("") is None
    assert [a.name for a in registry.find_by_category("PREY")] == ["Bugs", "Flopsy"]
    assert len(registry.find_by_species("RABBIT")) == 2
    assert registry.find_by_species(" ") == []


def test_cage_finders_and_totals() -> None:
    registry = CageRegistry()
    registry.add(Cage("Large-01", "Large", 4, animal_ids=[1, 2], keeper_id=1))
    registry.add(Cage("Small-01", "Small", 1, animal_ids=[3]))
    registry.add(Cage("Medium-01", "Medium", 4))

    assert registry.find_by_cage_number("small-01").cage_id == 2
    assert [c.cage_id for c in registry.find_empty()] == [3]
    assert [c.cage_id for c in registry.find_full()] == [2]
    assert [c.cage_id for c in registry.find_available()] == [1, 3]
    assert [c.cage_id for c in registry.find_unassigned()] == [2, 3]
    assert [c.cage_id for c in registry.find_by_keeper_id(1)] == [1]
    assert registry.find_by_animal_id(3).cage_id == 2
    assert registry.find_by_animal_id(99) is None
    assert [c.cage_id for c in registry.find_by_capacity(4)] == [1, 3]
    assert registry.total_capacity() == 9
    assert registry.total_occupancy() == 3


def test_keeper_finders() -> None:
    registry = KeeperRegistry()
    registry.add(Keeper("John", "Smith", "HEAD_KEEPER", cage_ids=[1, 2, 3, 4]))
    registry.add(Keeper.assistant("Jane", "Doe", supervisor_id=1))
    registry.add(Keeper("Bob", "Brown", "HEAD_KEEPER", cage_ids=[5]))

    assert registry.find_by_full_name("jane doe").keeper_id == 2
    assert [k.keeper_id for k in registry.find_by_position("HEAD_KEEPER")] == [1, 3]
    assert [k.keeper_id for k in registry.find_available(4)] == [2, 3]
    assert [k.keeper_id for k in registry.find_overloaded(4)] == [1]
    assert [k.keeper_id for k in registry.find_by_cage_id(5)] == [3]
