from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Literal

from .errors import ErrorKind, ValidationError

Category = Literal["PREDATOR", "PREY"]
Sex = Literal["MALE", "FEMALE"]
Position = Literal["HEAD_KEEPER", "ASSISTANT_KEEPER"]
CageStatus = Literal["EMPTY", "AVAILABLE", "FULL"]
WorkloadStatus = Literal["AVAILABLE", "OVERLOADED"]

CATEGORIES: tuple[Category, ...] = ("PREDATOR", "PREY")
SEXES: tuple[Sex, ...] = ("MALE", "FEMALE")
POSITIONS: tuple[Position, ...] = ("HEAD_KEEPER", "ASSISTANT_KEEPER")

RESPONSIBILITIES: dict[Position, str] = {
    "HEAD_KEEPER": (
        "Full management responsibilities including animal allocation, "
        "keeper supervision, and welfare decisions"
    ),
    "ASSISTANT_KEEPER": (
        "Daily animal care, health monitoring, and reporting to head keepers. "
        "No allocation or management responsibilities."
    ),
}


def _is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def _animal_error(message: str) -> ValidationError:
    return ValidationError(ErrorKind.INVALID_ANIMAL_DATA, message)


@dataclass
class Animal:
    """An animal held at the facility.

    ``animal_id`` stays 0 until the animal registry assigns one. Field values
    are checked on construction and by every ``set_*`` method; raw attribute
    assignment bypasses the checks and is reserved for rehydration.
    """

    name: str
    species: str
    category: Category
    date_of_birth: date
    date_of_acquisition: date
    sex: Sex
    animal_id: int = 0

    def __post_init__(self) -> None:
        self._check_name(self.name)
        self._check_species(self.species)
        self._check_category(self.category)
        self._check_birth(self.date_of_birth)
        self._check_acquisition(self.date_of_acquisition, self.date_of_birth)
        self._check_sex(self.sex)

    @staticmethod
    def _check_name(name: str | None) -> None:
        if _is_blank(name):
            raise _animal_error("Animal name cannot be null or empty")

    @staticmethod
    def _check_species(species: str | None) -> None:
        if _is_blank(species):
            raise _animal_error("Animal type cannot be null or empty")

    @staticmethod
    def _check_category(category: str | None) -> None:
        if category not in CATEGORIES:
            raise _animal_error("Animal category must be one of: PREDATOR, PREY")

    @staticmethod
    def _check_sex(sex: str | None) -> None:
        if sex not in SEXES:
            raise _animal_error("Animal sex must be one of: MALE, FEMALE")

    @staticmethod
    def _check_birth(date_of_birth: date | None) -> None:
        if date_of_birth is None:
            raise _animal_error("Date of birth cannot be null")
        if date_of_birth > date.today():
            raise _animal_error("Date of birth cannot be in the future")

    @staticmethod
    def _check_acquisition(date_of_acquisition: date | None, date_of_birth: date | None) -> None:
        if date_of_acquisition is None:
            raise _animal_error("Date of acquisition cannot be null")
        if date_of_acquisition > date.today():
            raise _animal_error("Date of acquisition cannot be in the future")
        if date_of_birth is not None and date_of_acquisition < date_of_birth:
            raise _animal_error("Date of acquisition cannot be before date of birth")

    def set_name(self, name: str) -> None:
        self._check_name(name)
        self.name = name

    def set_species(self, species: str) -> None:
        self._check_species(species)
        self.species = species

    def set_category(self, category: Category) -> None:
        self._check_category(category)
        self.category = category

    def set_sex(self, sex: Sex) -> None:
        self._check_sex(sex)
        self.sex = sex

    def set_date_of_birth(self, date_of_birth: date) -> None:
        self._check_birth(date_of_birth)
        if self.date_of_acquisition is not None and self.date_of_acquisition < date_of_birth:
            raise _animal_error("Date of acquisition cannot be before date of birth")
        self.date_of_birth = date_of_birth

    def set_date_of_acquisition(self, date_of_acquisition: date) -> None:
        self._check_acquisition(date_of_acquisition, self.date_of_birth)
        self.date_of_acquisition = date_of_acquisition

    @property
    def is_predator(self) -> bool:
        return self.category == "PREDATOR"

    def age_years(self, today: date | None = None) -> int:
        today = today or date.today()
        years = today.year - self.date_of_birth.year
        if (today.month, today.day) < (self.date_of_birth.month, self.date_of_birth.day):
            years -= 1
        return years


@dataclass
class Cage:
    """A cage with a fixed number of places and at most one keeper.

    Occupants and the keeper are referenced by id only. ``add_animal`` and
    ``remove_animal`` are low-level: rule checks live in the validator and
    only the service should call them.
    """

    cage_number: str
    description: str
    capacity: int
    animal_ids: list[int] = field(default_factory=list)
    keeper_id: int | None = None
    cage_id: int = 0

    def __post_init__(self) -> None:
        self._check_number(self.cage_number)
        self._check_description(self.description)
        if self.capacity <= 0:
            raise ValidationError(ErrorKind.INVALID_CAGE_DATA, "Cage capacity must be positive")

    @staticmethod
    def _check_number(cage_number: str | None) -> None:
        if _is_blank(cage_number):
            raise ValidationError(ErrorKind.INVALID_CAGE_DATA, "Cage number cannot be null or empty")

    @staticmethod
    def _check_description(description: str | None) -> None:
        if _is_blank(description):
            raise ValidationError(ErrorKind.INVALID_CAGE_DATA, "Cage description cannot be null or empty")

    def set_cage_number(self, cage_number: str) -> None:
        self._check_number(cage_number)
        self.cage_number = cage_number

    def set_description(self, description: str) -> None:
        self._check_description(description)
        self.description = description

    def set_capacity(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValidationError(ErrorKind.INVALID_CAGE_DATA, "Cage capacity must be positive")
        if capacity < self.occupancy:
            raise ValidationError(
                ErrorKind.CAGE_CAPACITY_EXCEEDED,
                f"Cannot set capacity of Cage {self.cage_id} to {capacity}: "
                f"it currently holds {self.occupancy} animal(s)",
            )
        self.capacity = capacity

    def add_animal(self, animal_id: int) -> None:
        if self.is_full:
            raise ValidationError(
                ErrorKind.CAGE_CAPACITY_EXCEEDED,
                f"Cage {self.cage_id} is at maximum capacity ({self.occupancy_info} animals)",
            )
        if animal_id in self.animal_ids:
            raise ValidationError(
                ErrorKind.INVALID_ANIMAL_DATA,
                f"Animal {animal_id} is already in cage {self.cage_id}",
            )
        self.animal_ids.append(animal_id)

    def remove_animal(self, animal_id: int) -> bool:
        if animal_id not in self.animal_ids:
            return False
        self.animal_ids.remove(animal_id)
        return True

    @property
    def occupancy(self) -> int:
        return len(self.animal_ids)

    @property
    def is_empty(self) -> bool:
        return not self.animal_ids

    @property
    def is_full(self) -> bool:
        return self.occupancy >= self.capacity

    @property
    def available_space(self) -> int:
        return self.capacity - self.occupancy

    @property
    def occupancy_info(self) -> str:
        return f"{self.occupancy}/{self.capacity}"

    @property
    def has_keeper(self) -> bool:
        return self.keeper_id is not None

    @property
    def status(self) -> CageStatus:
        if self.is_empty:
            return "EMPTY"
        if self.is_full:
            return "FULL"
        return "AVAILABLE"


@dataclass
class Keeper:
    """A keeper; the role is a ``position`` tag rather than a subclass."""

    first_name: str
    surname: str
    position: Position
    address: str = ""
    contact_number: str = ""
    cage_ids: list[int] = field(default_factory=list)
    supervisor_id: int | None = None
    keeper_id: int = 0

    def __post_init__(self) -> None:
        if _is_blank(self.first_name):
            raise ValidationError(ErrorKind.INVALID_KEEPER_DATA, "Keeper first name cannot be empty")
        if _is_blank(self.surname):
            raise ValidationError(ErrorKind.INVALID_KEEPER_DATA, "Keeper surname cannot be empty")
        if self.position not in POSITIONS:
            raise ValidationError(
                ErrorKind.INVALID_KEEPER_DATA,
                "Keeper position must be one of: HEAD_KEEPER, ASSISTANT_KEEPER",
            )
        if self.supervisor_id is not None and self.position == "HEAD_KEEPER":
            raise ValidationError(ErrorKind.INVALID_KEEPER_DATA, "Only assistant keepers have a supervisor")

    @classmethod
    def head(cls, first_name: str, surname: str, address: str = "", contact_number: str = "") -> Keeper:
        return cls(first_name, surname, "HEAD_KEEPER", address, contact_number)

    @classmethod
    def assistant(
        cls,
        first_name: str,
        surname: str,
        address: str = "",
        contact_number: str = "",
        supervisor_id: int | None = None,
    ) -> Keeper:
        return cls(first_name, surname, "ASSISTANT_KEEPER", address, contact_number, supervisor_id=supervisor_id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}"

    @property
    def full_title(self) -> str:
        title = "Head Keeper" if self.position == "HEAD_KEEPER" else "Assistant Keeper"
        return f"{title} {self.full_name}"

    @property
    def has_management_permissions(self) -> bool:
        return self.position == "HEAD_KEEPER"

    @property
    def responsibilities(self) -> str:
        return RESPONSIBILITIES[self.position]

    @property
    def cage_count(self) -> int:
        return len(self.cage_ids)

    def can_accept_more_cages(self, max_cages: int) -> bool:
        return self.cage_count < max_cages

    def workload_status(self, max_cages: int) -> WorkloadStatus:
        return "AVAILABLE" if self.can_accept_more_cages(max_cages) else "OVERLOADED"

    def allocate_cage(self, cage_id: int) -> None:
        if cage_id not in self.cage_ids:
            self.cage_ids.append(cage_id)

    def remove_cage(self, cage_id: int) -> bool:
        if cage_id not in self.cage_ids:
            return False
        self.cage_ids.remove(cage_id)
        return True
