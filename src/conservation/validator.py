"""
Allocation rules for animals, cages and keepers.

Every check returns a ``ValidationResult`` instead of raising, and nothing in
this module mutates an entity or a registry. Checks stop at the first failed
rule, in the order documented on each method.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import SettingsProvider
from .errors import ErrorKind, ValidationError
from .models import Animal, Cage, Keeper
from .registry import AnimalRegistry, CageRegistry, KeeperRegistry


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    kind: ErrorKind | None = None
    message: str = ""

    @classmethod
    def success(cls) -> ValidationResult:
        return cls(True)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str | None = None) -> ValidationResult:
        return cls(False, kind, message or kind.default_message)

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_error(self) -> None:
        if self.ok:
            return
        raise ValidationError(self.kind or ErrorKind.INVALID_INPUT, self.message)


_OK = ValidationResult.success()


class AllocationValidator:
    def __init__(
        self,
        animals: AnimalRegistry,
        cages: CageRegistry,
        keepers: KeeperRegistry,
        settings: SettingsProvider,
    ) -> None:
        self.animals = animals
        self.cages = cages
        self.keepers = keepers
        self.settings = settings

    def validate(self, entity: object) -> ValidationResult:
        if entity is None:
            return ValidationResult.failure(ErrorKind.INVALID_INPUT, "Cannot validate null entity")
        if isinstance(entity, Cage):
            return self.validate_cage(entity)
        if isinstance(entity, Animal):
            return self.validate_animal_data(entity)
        if isinstance(entity, Keeper):
            return self.validate_keeper_data(entity)
        return ValidationResult.failure(
            ErrorKind.INVALID_INPUT,
            f"Cannot validate unknown object type {type(entity).__name__}",
        )

    def validate_animal_to_cage(self, animal: Animal | None, cage: Cage | None) -> ValidationResult:
        """Check that ``animal`` may move into ``cage``.

        Order: missing entities, duplicate placement, housed in another cage,
        predator/prey compatibility, capacity. Capacity comes last so that a full cage with
        an incompatible occupant reports the mix.
        """
        if animal is None:
            return ValidationResult.failure(ErrorKind.INVALID_ANIMAL_DATA, "Animal cannot be null")
        if cage is None:
            return ValidationResult.failure(ErrorKind.INVALID_CAGE_DATA, "Cage cannot be null")

        if animal.animal_id in cage.animal_ids:
            return ValidationResult.failure(
                ErrorKind.INVALID_ANIMAL_DATA,
                f"Animal '{animal.name}' (ID: {animal.animal_id}) is already in "
                f"Cage {cage.cage_id} ({cage.cage_number})",
            )

        current = self.cages.find_by_animal_id(animal.animal_id)
        if current is not None and current.cage_id != cage.cage_id:
            return ValidationResult.failure(
                ErrorKind.INVALID_ANIMAL_DATA,
                f"Animal '{animal.name}' (ID: {animal.animal_id}) is already housed in "
                f"Cage {current.cage_id} ({current.cage_number}). Remove it from that cage first.",
            )

        mix = self._check_compatibility(animal, cage)
        if not mix.ok:
            return mix

        if cage.is_full:
            return ValidationResult.failure(
                ErrorKind.CAGE_CAPACITY_EXCEEDED,
                f"Cage {cage.cage_id} ({cage.cage_number}) is at full capacity "
                f"({cage.occupancy}/{cage.capacity} animals). "
                f"Cannot add '{animal.name}' (ID: {animal.animal_id}).",
            )
        return _OK

    def _check_compatibility(self, animal: Animal, cage: Cage) -> ValidationResult:
        if cage.is_empty:
            return _OK

        rules = self.settings.animal_rules
        # Ids missing from the animal registry carry no category and are skipped.
        occupants = [a for a in (self.animals.find_by_id(i) for i in cage.animal_ids) if a is not None]
        predator = next((a for a in occupants if a.is_predator), None)

        if animal.is_predator:
            has_prey = any(not a.is_predator for a in occupants)
            if not rules.predator_shareable or has_prey:
                return ValidationResult.failure(
                    ErrorKind.INVALID_PREDATOR_PREY_MIX,
                    f"Predator '{animal.name}' (ID: {animal.animal_id}) cannot share cage "
                    f"with other animals. Cage {cage.cage_id} ({cage.cage_number}) "
                    f"currently has {cage.occupancy} animal(s).",
                )
            return _OK

        if predator is not None:
            return ValidationResult.failure(
                ErrorKind.INVALID_PREDATOR_PREY_MIX,
                f"Prey animal '{animal.name}' (ID: {animal.animal_id}) cannot share cage "
                f"with predator '{predator.name}' (ID: {predator.animal_id})",
            )
        if not rules.prey_shareable:
            return ValidationResult.failure(
                ErrorKind.INVALID_PREDATOR_PREY_MIX,
                f"Prey animal '{animal.name}' (ID: {animal.animal_id}) cannot share "
                f"Cage {cage.cage_id} ({cage.cage_number}): prey sharing is disabled",
            )
        return _OK

    def validate_keeper_to_cage(self, keeper: Keeper | None, cage: Cage | None) -> ValidationResult:
        """Order: missing entities, registry membership, duplicate, workload, previous keeper's workload."""
        if keeper is None:
            return ValidationResult.failure(ErrorKind.INVALID_KEEPER_DATA, "Keeper cannot be null")
        if cage is None:
            return ValidationResult.failure(ErrorKind.INVALID_CAGE_DATA, "Cage cannot be null")

        if not self.keepers.exists(keeper.keeper_id):
            return ValidationResult.failure(
                ErrorKind.INVALID_KEEPER_DATA,
                f"Keeper ID {keeper.keeper_id} does not exist in registry. Cannot allocate.",
            )
        if not self.cages.exists(cage.cage_id):
            return ValidationResult.failure(
                ErrorKind.INVALID_CAGE_DATA,
                f"Cage ID {cage.cage_id} does not exist in registry. Cannot allocate.",
            )

        if cage.cage_id in keeper.cage_ids:
            return ValidationResult.failure(
                ErrorKind.INVALID_KEEPER_DATA,
                f"Keeper '{keeper.full_name}' (ID: {keeper.keeper_id}) is already assigned to "
                f"Cage {cage.cage_id} ({cage.cage_number})",
            )

        max_cages = self.settings.keeper_constraints.max_cages
        if keeper.cage_count >= max_cages:
            return ValidationResult.failure(
                ErrorKind.KEEPER_OVERLOAD,
                f"Keeper '{keeper.full_name}' (ID: {keeper.keeper_id}) has reached maximum cage "
                f"allocation ({keeper.cage_count}/{max_cages} cages). "
                f"Cannot assign to Cage {cage.cage_id} ({cage.cage_number}).",
            )

        # The previous keeper may drop to zero cages but not to a partial workload.
        if cage.keeper_id is not None and cage.keeper_id != keeper.keeper_id:
            previous = self.keepers.find_by_id(cage.keeper_id)
            min_cages = self.settings.keeper_constraints.min_cages
            if previous is not None and 0 < previous.cage_count - 1 < min_cages:
                return ValidationResult.failure(
                    ErrorKind.KEEPER_UNDERLOAD,
                    f"Reassigning Cage {cage.cage_id} ({cage.cage_number}) would leave Keeper "
                    f"'{previous.full_name}' (ID: {previous.keeper_id}) with "
                    f"{previous.cage_count - 1} cage(s), minimum required: {min_cages}.",
                )
        return _OK

    def validate_keeper_removal(self, keeper: Keeper | None, allow_underload: bool = False) -> ValidationResult:
        """Check that ``keeper`` may give up one cage.

        A keeper with no cages can always be removed. Otherwise the count left
        after the removal must not drop below ``min_cages`` unless
        ``allow_underload`` is set, which is how a keeper is emptied before
        being deleted.
        """
        if keeper is None:
            return ValidationResult.failure(ErrorKind.INVALID_KEEPER_DATA, "Keeper cannot be null")

        if keeper.cage_count == 0:
            return _OK

        min_cages = self.settings.keeper_constraints.min_cages
        after = keeper.cage_count - 1
        if after < min_cages and not allow_underload:
            return ValidationResult.failure(
                ErrorKind.KEEPER_UNDERLOAD,
                f"Removing cage from Keeper '{keeper.full_name}' (ID: {keeper.keeper_id}) would "
                f"result in underload. Keeper would have {after} cage(s), minimum required: "
                f"{min_cages}. Current: {keeper.cage_count}",
            )
        return _OK

    def validate_animal_removal(self, animal: Animal | None, cage: Cage | None) -> ValidationResult:
        if animal is None:
            return ValidationResult.failure(ErrorKind.INVALID_ANIMAL_DATA, "Animal cannot be null")
        if cage is None:
            return ValidationResult.failure(ErrorKind.INVALID_CAGE_DATA, "Cage cannot be null")
        if animal.animal_id not in cage.animal_ids:
            return ValidationResult.failure(
                ErrorKind.INVALID_ANIMAL_DATA,
                f"Animal '{animal.name}' (ID: {animal.animal_id}) is not in "
                f"Cage {cage.cage_id} ({cage.cage_number}). Cannot remove.",
            )
        return _OK

    def validate_cage(self, cage: Cage | None) -> ValidationResult:
        if cage is None:
            return ValidationResult.failure(ErrorKind.INVALID_CAGE_DATA, "Cage cannot be null")
        if not cage.cage_number or not cage.cage_number.strip():
            return ValidationResult.failure(ErrorKind.INVALID_CAGE_DATA, f"Cage {cage.cage_id} has no cage number")
        if not cage.description or not cage.description.strip():
            return ValidationResult.failure(
                ErrorKind.INVALID_CAGE_DATA,
                f"Cage {cage.cage_id} ({cage.cage_number}) has no description",
            )
        if cage.capacity <= 0:
            return ValidationResult.failure(
                ErrorKind.INVALID_CAGE_DATA,
                f"Cage {cage.cage_id} ({cage.cage_number}) has invalid capacity: {cage.capacity}. "
                "Capacity must be positive.",
            )
        if len(set(cage.animal_ids)) != len(cage.animal_ids):
            return ValidationResult.failure(
                ErrorKind.INVALID_CAGE_DATA,
                f"Cage {cage.cage_id} ({cage.cage_number}) lists the same animal more than once.",
            )
        if cage.occupancy > cage.capacity:
            return ValidationResult.failure(
                ErrorKind.CAGE_CAPACITY_EXCEEDED,
                f"Cage {cage.cage_id} ({cage.cage_number}) is over capacity: "
                f"{cage.occupancy}/{cage.capacity} animals.",
            )
        return _OK

    def validate_animal_data(self, animal: Animal | None) -> ValidationResult:
        if animal is None:
            return ValidationResult.failure(ErrorKind.INVALID_ANIMAL_DATA, "Animal cannot be null")
        checks = (
            (animal.name and animal.name.strip(), "Animal name cannot be empty"),
            (animal.species and animal.species.strip(), "Animal type cannot be empty"),
            (animal.category in ("PREDATOR", "PREY"), "Animal category must be specified (PREDATOR or PREY)"),
            (animal.date_of_birth is not None, "Animal date of birth must be specified"),
            (animal.date_of_acquisition is not None, "Animal date of acquisition must be specified"),
            (animal.sex in ("MALE", "FEMALE"), "Animal sex must be specified (MALE or FEMALE)"),
        )
        for passed, message in checks:
            if not passed:
                return ValidationResult.failure(ErrorKind.INVALID_ANIMAL_DATA, message)
        if animal.date_of_acquisition < animal.date_of_birth:
            return ValidationResult.failure(
                ErrorKind.INVALID_ANIMAL_DATA,
                f"Animal '{animal.name}' was acquired ({animal.date_of_acquisition.isoformat()}) "
                f"before it was born ({animal.date_of_birth.isoformat()})",
            )
        return _OK

    def validate_keeper_data(self, keeper: Keeper | None) -> ValidationResult:
        if keeper is None:
            return ValidationResult.failure(ErrorKind.INVALID_KEEPER_DATA, "Keeper cannot be null")
        if not keeper.first_name or not keeper.first_name.strip():
            return ValidationResult.failure(ErrorKind.INVALID_KEEPER_DATA, "Keeper first name cannot be empty")
        if not keeper.surname or not keeper.surname.strip():
            return ValidationResult.failure(ErrorKind.INVALID_KEEPER_DATA, "Keeper surname cannot be empty")
        if keeper.position not in ("HEAD_KEEPER", "ASSISTANT_KEEPER"):
            return ValidationResult.failure(ErrorKind.INVALID_KEEPER_DATA, "Keeper position must be specified")
        return _OK
