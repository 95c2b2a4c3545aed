from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .errors import ConservationError, PersistenceError
from .logging_config import get_logger
from .models import Animal, Cage, Keeper
from .registry import AnimalRegistry, CageRegistry, KeeperRegistry

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1


@dataclass
class Snapshot:
    animals: list[Animal] = field(default_factory=list)
    cages: list[Cage] = field(default_factory=list)
    keepers: list[Keeper] = field(default_factory=list)


def animal_to_dict(animal: Animal) -> dict[str, Any]:
    return {
        "animal_id": animal.animal_id,
        "name": animal.name,
        "species": animal.species,
        "category": animal.category,
        "date_of_birth": animal.date_of_birth.isoformat(),
        "date_of_acquisition": animal.date_of_acquisition.isoformat(),
        "sex": animal.sex,
    }


def cage_to_dict(cage: Cage) -> dict[str, Any]:
    return {
        "cage_id": cage.cage_id,
        "cage_number": cage.cage_number,
        "description": cage.description,
        "capacity": cage.capacity,
        "animal_ids": list(cage.animal_ids),
        "keeper_id": cage.keeper_id,
    }


def keeper_to_dict(keeper: Keeper) -> dict[str, Any]:
    return {
        "keeper_id": keeper.keeper_id,
        "first_name": keeper.first_name,
        "surname": keeper.surname,
        "position": keeper.position,
        "address": keeper.address,
        "contact_number": keeper.contact_number,
        "cage_ids": list(keeper.cage_ids),
        "supervisor_id": keeper.supervisor_id,
    }


def _to_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def animal_from_dict(data: dict[str, Any]) -> Animal:
    return Animal(
        name=data["name"],
        species=data["species"],
        category=data["category"],
        date_of_birth=date.fromisoformat(data["date_of_birth"]),
        date_of_acquisition=date.fromisoformat(data["date_of_acquisition"]),
        sex=data["sex"],
        animal_id=int(data["animal_id"]),
    )


def cage_from_dict(data: dict[str, Any]) -> Cage:
    return Cage(
        cage_number=data["cage_number"],
        description=data["description"],
        capacity=int(data["capacity"]),
        animal_ids=[int(x) for x in data.get("animal_ids") or []],
        keeper_id=_to_int(data.get("keeper_id")),
        cage_id=int(data["cage_id"]),
    )


def keeper_from_dict(data: dict[str, Any]) -> Keeper:
    return Keeper(
        first_name=data["first_name"],
        surname=data["surname"],
        position=data["position"],
        address=data.get("address") or "",
        contact_number=data.get("contact_number") or "",
        cage_ids=[int(x) for x in data.get("cage_ids") or []],
        supervisor_id=_to_int(data.get("supervisor_id")),
        keeper_id=int(data["keeper_id"]),
    )


def _records(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a list")
    return [x for x in value if isinstance(x, dict)]


def save_snapshot(
    path: str | Path,
    animals: AnimalRegistry,
    cages: CageRegistry,
    keepers: KeeperRegistry,
) -> None:
    """Write all three registries to ``path``, replacing it only once fully written."""
    target = Path(path)
    payload = {
        "version": SNAPSHOT_VERSION,
        "animals": [animal_to_dict(a) for a in animals.get_all()],
        "cages": [cage_to_dict(c) for c in cages.get_all()],
        "keepers": [keeper_to_dict(k) for k in keepers.get_all()],
    }
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise PersistenceError("Failed to write snapshot", target) from exc
    logger.info(
        "Snapshot saved to %s (%d animals, %d cages, %d keepers)",
        target,
        len(payload["animals"]),
        len(payload["cages"]),
        len(payload["keepers"]),
    )


def load_snapshot(path: str | Path) -> Snapshot:
    source = Path(path)
    if not source.exists():
        logger.info("No snapshot at %s, starting empty", source)
        return Snapshot()
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise PersistenceError("Failed to read snapshot", source) from exc
    if not isinstance(data, dict):
        raise PersistenceError("Snapshot must be a JSON object", source)

    version = data.get("version", SNAPSHOT_VERSION)
    if version != SNAPSHOT_VERSION:
        raise PersistenceError(f"Unsupported snapshot version {version!r}", source)

    try:
        snapshot = Snapshot(
            animals=[animal_from_dict(x) for x in _records(data, "animals")],
            cages=[cage_from_dict(x) for x in _records(data, "cages")],
            keepers=[keeper_from_dict(x) for x in _records(data, "keepers")],
        )
    except (KeyError, TypeError, ValueError, ConservationError) as exc:
        raise PersistenceError(f"Invalid snapshot record ({exc})", source) from exc
    logger.info(
        "Snapshot loaded from %s (%d animals, %d cages, %d keepers)",
        source,
        len(snapshot.animals),
        len(snapshot.cages),
        len(snapshot.keepers),
    )
    return snapshot


def restore_registries(
    snapshot: Snapshot,
    animals: AnimalRegistry,
    cages: CageRegistry,
    keepers: KeeperRegistry,
) -> None:
    animals.initialize_from_persistence(snapshot.animals)
    cages.initialize_from_persistence(snapshot.cages)
    keepers.initialize_from_persistence(snapshot.keepers)
