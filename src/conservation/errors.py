from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Classification of expected rule violations."""

    CAGE_CAPACITY_EXCEEDED = "CAGE_CAPACITY_EXCEEDED"
    INVALID_PREDATOR_PREY_MIX = "INVALID_PREDATOR_PREY_MIX"
    KEEPER_OVERLOAD = "KEEPER_OVERLOAD"
    KEEPER_UNDERLOAD = "KEEPER_UNDERLOAD"
    INVALID_ANIMAL_DATA = "INVALID_ANIMAL_DATA"
    INVALID_KEEPER_DATA = "INVALID_KEEPER_DATA"
    INVALID_CAGE_DATA = "INVALID_CAGE_DATA"
    INVALID_INPUT = "INVALID_INPUT"

    @property
    def default_message(self) -> str:
        return DEFAULT_MESSAGES[self]


DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.CAGE_CAPACITY_EXCEEDED: "Cage has reached maximum capacity",
    ErrorKind.INVALID_PREDATOR_PREY_MIX: "Cannot place predator with prey animals",
    ErrorKind.KEEPER_OVERLOAD: "Keeper already has the maximum number of cages",
    ErrorKind.KEEPER_UNDERLOAD: "Keeper would fall below the minimum number of cages",
    ErrorKind.INVALID_ANIMAL_DATA: "Animal data is invalid",
    ErrorKind.INVALID_KEEPER_DATA: "Keeper data is invalid",
    ErrorKind.INVALID_CAGE_DATA: "Cage data is invalid",
    ErrorKind.INVALID_INPUT: "Invalid input provided",
}


class ConservationError(Exception):
    """Base class for every error raised by the conservation package."""


class ValidationError(ConservationError, ValueError):
    """A business rule or field constraint was violated."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or kind.default_message
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ValidationError(kind={self.kind.value}, message={self.message!r})"


class EntityNotFoundError(ConservationError, LookupError):
    """A referenced id does not exist in its registry."""

    def __init__(self, entity_type: str, entity_id: int) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: ID {entity_id}")


class StateViolationError(ConservationError):
    """An entity cannot be deregistered while it still holds relationships."""


class PersistenceError(ConservationError):
    """A snapshot or settings file could not be read or written."""

    def __init__(self, message: str, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"{message}: {self.path}")
