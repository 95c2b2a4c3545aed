from __future__ import annotations

from dataclasses import dataclass

from .config import SettingsProvider
from .errors import StateViolationError
from .logging_config import get_logger
from .models import Animal, Cage, CageStatus, Keeper, WorkloadStatus
from .registry import AnimalRegistry, CageRegistry, KeeperRegistry
from .validator import AllocationValidator, ValidationResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class SystemStatistics:
    total_animals: int
    total_keepers: int
    total_cages: int
    empty_cages: int
    full_cages: int
    unassigned_cages: int
    total_capacity: int
    total_occupancy: int

    @property
    def available_space(self) -> int:
        return self.total_capacity - self.total_occupancy

    @property
    def occupancy_rate(self) -> float:
        if self.total_capacity <= 0:
            return 0.0
        return self.total_occupancy * 100.0 / self.total_capacity

    def render(self) -> str:
        return "\n".join(
            [
                "=== SYSTEM STATISTICS ===",
                f"Animals: {self.total_animals}",
                f"Keepers: {self.total_keepers}",
                f"Cages: {self.total_cages} (Empty: {self.empty_cages}, Full: {self.full_cages}, "
                f"Unassigned: {self.unassigned_cages})",
                f"Capacity: {self.total_occupancy}/{self.total_capacity} animals "
                f"({self.available_space} available spaces)",
                f"Occupancy Rate: {self.occupancy_rate:.1f}%",
                "========================",
            ]
        )


class ConservationService:
    """Resolves ids, runs the validator and applies approved changes.

    All mutation for an operation happens after every lookup and check has
    passed, so a raised error never leaves a half-applied change behind.
    """

    def __init__(
        self,
        animals: AnimalRegistry,
        cages: CageRegistry,
        keepers: KeeperRegistry,
        settings: SettingsProvider,
        validator: AllocationValidator | None = None,
    ) -> None:
        self.animals = animals
        self.cages = cages
        self.keepers = keepers
        self.settings = settings
        self.validator = validator or AllocationValidator(animals, cages, keepers, settings)

    @staticmethod
    def _enforce(result: ValidationResult, operation: str) -> None:
        if not result.ok:
            logger.warning("%s rejected [%s]: %s", operation, result.kind.value, result.message)
            result.raise_for_error()

    # Registration

    def add_animal(self, animal: Animal) -> int:
        self._enforce(self.validator.validate_animal_data(animal), "add_animal")
        return self.animals.add(animal)

    def add_cage(self, cage: Cage) -> int:
        self._enforce(self.validator.validate_cage(cage), "add_cage")
        return self.cages.add(cage)

    def add_keeper(self, keeper: Keeper) -> int:
        self._enforce(self.validator.validate_keeper_data(keeper), "add_keeper")
        return self.keepers.add(keeper)

    # Animal placement

    def allocate_animal_to_cage(self, animal_id: int, cage_id: int) -> None:
        animal = self.animals.get(animal_id)
        cage = self.cages.get(cage_id)
        self._enforce(self.validator.validate_animal_to_cage(animal, cage), "allocate_animal_to_cage")

        cage.add_animal(animal_id)
        logger.info(
            "Animal '%s' (ID: %d) allocated to Cage %d (%s). Occupancy: %s",
            animal.name,
            animal_id,
            cage_id,
            cage.cage_number,
            cage.occupancy_info,
        )

    def remove_animal_from_cage(self, animal_id: int, cage_id: int) -> None:
        animal = self.animals.get(animal_id)
        cage = self.cages.get(cage_id)
        self._enforce(self.validator.validate_animal_removal(animal, cage), "remove_animal_from_cage")

        cage.remove_animal(animal_id)
        logger.info(
            "Animal '%s' (ID: %d) removed from Cage %d. Occupancy: %s",
            animal.name,
            animal_id,
            cage_id,
            cage.occupancy_info,
        )

    # Keeper assignment

    def allocate_keeper_to_cage(self, keeper_id: int, cage_id: int) -> None:
        """Assign a keeper to a cage, taking the cage off any previous keeper."""
        keeper = self.keepers.get(keeper_id)
        cage = self.cages.get(cage_id)
        self._enforce(self.validator.validate_keeper_to_cage(keeper, cage), "allocate_keeper_to_cage")

        previous_id = cage.keeper_id
        if previous_id is not None and previous_id != keeper_id:
            previous = self.keepers.find_by_id(previous_id)
            if previous is not None:
                previous.remove_cage(cage_id)
            logger.info("Cage %d reassigned from Keeper %d to Keeper %d", cage_id, previous_id, keeper_id)

        cage.keeper_id = keeper_id
        keeper.allocate_cage(cage_id)
        logger.info(
            "Keeper %s (ID: %d) allocated to Cage %d (%s). Keeper workload: %d/%d cages",
            keeper.full_name,
            keeper_id,
            cage_id,
            cage.cage_number,
            keeper.cage_count,
            self.settings.keeper_constraints.max_cages,
        )

    def remove_keeper_from_cage(self, keeper_id: int, cage_id: int, allow_underload: bool = False) -> bool:
        """Unassign a keeper from a cage.

        Returns False, without changing anything, when the cage is not assigned
        to this keeper.
        """
        keeper = self.keepers.get(keeper_id)
        cage = self.cages.get(cage_id)
        self._enforce(
            self.validator.validate_keeper_removal(keeper, allow_underload=allow_underload),
            "remove_keeper_from_cage",
        )

        if cage.keeper_id != keeper_id:
            logger.info("Keeper %d was not assigned to Cage %d", keeper_id, cage_id)
            return False

        cage.keeper_id = None
        keeper.remove_cage(cage_id)
        logger.info(
            "Keeper %s (ID: %d) removed from Cage %d. Keeper workload: %d cages",
            keeper.full_name,
            keeper_id,
            cage_id,
            keeper.cage_count,
        )
        return True

    # Deregistration

    def remove_animal(self, animal_id: int) -> None:
        animal = self.animals.get(animal_id)
        # A restored snapshot may list the same animal in more than one cage.
        for cage in self.cages.get_all():
            if cage.remove_animal(animal_id):
                logger.info("Removed %s (ID: %d) from cage %s", animal.name, animal_id, cage.cage_number)
        self.animals.remove(animal_id)

    def remove_keeper(self, keeper_id: int) -> None:
        keeper = self.keepers.get(keeper_id)
        if keeper.cage_count > 0:
            raise StateViolationError(
                f"Cannot remove Keeper {keeper_id}. Keeper still has {keeper.cage_count} "
                "allocated cage(s). Unassign cages first."
            )
        self.keepers.remove(keeper_id)

    def remove_cage(self, cage_id: int) -> None:
        cage = self.cages.get(cage_id)
        if not cage.is_empty:
            raise StateViolationError(
                f"Cannot remove Cage {cage_id}. Cage contains {cage.occupancy} animal(s). "
                "Remove animals first."
            )
        if cage.keeper_id is not None:
            keeper = self.keepers.find_by_id(cage.keeper_id)
            if keeper is not None:
                keeper.remove_cage(cage_id)
        self.cages.remove(cage_id)

    # Queries

    def get_available_animals(self) -> list[Animal]:
        housed = {animal_id for cage in self.cages.get_all() for animal_id in cage.animal_ids}
        return [a for a in self.animals.get_all() if a.animal_id not in housed]

    def get_available_cages(self) -> list[Cage]:
        return self.cages.find_available()

    def get_available_keepers(self) -> list[Keeper]:
        return self.keepers.find_available(self.settings.keeper_constraints.max_cages)

    def get_unassigned_cages(self) -> list[Cage]:
        return self.cages.find_unassigned()

    def get_cage_status(self, cage_id: int) -> CageStatus:
        return self.cages.get(cage_id).status

    def get_keeper_workload(self, keeper_id: int) -> WorkloadStatus:
        return self.keepers.get(keeper_id).workload_status(self.settings.keeper_constraints.max_cages)

    def get_statistics(self) -> SystemStatistics:
        return SystemStatistics(
            total_animals=self.animals.count(),
            total_keepers=self.keepers.count(),
            total_cages=self.cages.count(),
            empty_cages=len(self.cages.find_empty()),
            full_cages=len(self.cages.find_full()),
            unassigned_cages=len(self.cages.find_unassigned()),
            total_capacity=self.cages.total_capacity(),
            total_occupancy=self.cages.total_occupancy(),
        )

    def check_consistency(self) -> list[str]:
        """List every broken invariant between the three registries."""
        problems: list[str] = []
        constraints = self.settings.keeper_constraints
        housed: dict[int, int] = {}

        for cage in self.cages.get_all():
            result = self.validator.validate_cage(cage)
            if not result.ok:
                problems.append(result.message)

            occupants = []
            for animal_id in cage.animal_ids:
                animal = self.animals.find_by_id(animal_id)
                if animal is None:
                    problems.append(f"Cage {cage.cage_id} lists unknown animal {animal_id}")
                    continue
                occupants.append(animal)
                if animal_id in housed:
                    problems.append(f"Animal {animal_id} is in cages {housed[animal_id]} and {cage.cage_id}")
                housed[animal_id] = cage.cage_id

            predators = [a for a in occupants if a.is_predator]
            if predators and len(occupants) > len(predators):
                problems.append(f"Cage {cage.cage_id} mixes predators and prey")
            elif predators and len(occupants) > 1 and not self.settings.animal_rules.predator_shareable:
                problems.append(f"Cage {cage.cage_id} holds a predator with other animals")

            if cage.keeper_id is not None:
                keeper = self.keepers.find_by_id(cage.keeper_id)
                if keeper is None:
                    problems.append(f"Cage {cage.cage_id} is assigned to unknown keeper {cage.keeper_id}")
                elif cage.cage_id not in keeper.cage_ids:
                    problems.append(
                        f"Cage {cage.cage_id} names Keeper {keeper.keeper_id}, "
                        "but the keeper does not list the cage"
                    )

        for keeper in self.keepers.get_all():
            for cage_id in keeper.cage_ids:
                cage = self.cages.find_by_id(cage_id)
                if cage is None:
                    problems.append(f"Keeper {keeper.keeper_id} lists unknown cage {cage_id}")
                elif cage.keeper_id != keeper.keeper_id:
                    problems.append(
                        f"Keeper {keeper.keeper_id} lists Cage {cage_id}, "
                        f"but the cage is assigned to {cage.keeper_id}"
                    )
            count = keeper.cage_count
            if count and not constraints.min_cages <= count <= constraints.max_cages:
                problems.append(
                    f"Keeper {keeper.keeper_id} has {count} cage(s), outside "
                    f"[{constraints.min_cages}, {constraints.max_cages}]"
                )
        return problems
