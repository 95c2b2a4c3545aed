from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional

import typer

from .config import SettingsProvider
from .errors import EntityNotFoundError, PersistenceError, StateViolationError, ValidationError
from .logging_config import get_logger, setup_logging
from .models import Animal, Cage, Keeper
from .persistence import (
    animal_to_dict,
    cage_to_dict,
    keeper_to_dict,
    load_snapshot,
    restore_registries,
    save_snapshot,
)
from .registry import AnimalRegistry, CageRegistry, KeeperRegistry
from .service import ConservationService

app = typer.Typer(help="Conservation facility allocation tools")
logger = get_logger(__name__)

EXIT_RULE_VIOLATION = 2
EXIT_NOT_FOUND = 3
EXIT_STATE_VIOLATION = 4
EXIT_PERSISTENCE = 5

DATE_FORMATS = ["%Y-%m-%d"]


@dataclass
class Facility:
    state_path: Path
    service: ConservationService

    def save(self) -> None:
        save_snapshot(self.state_path, self.service.animals, self.service.cages, self.service.keepers)


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _fail(kind: str, message: str, code: int) -> None:
    _echo({"error": kind, "message": message})
    raise typer.Exit(code)


def _run(ctx: typer.Context, action: Callable[[ConservationService], Any], mutates: bool = True) -> Any:
    facility: Facility = ctx.obj
    try:
        result = action(facility.service)
        if mutates:
            facility.save()
    except ValidationError as exc:
        _fail(exc.kind.value, exc.message, EXIT_RULE_VIOLATION)
    except EntityNotFoundError as exc:
        _fail("NOT_FOUND", str(exc), EXIT_NOT_FOUND)
    except StateViolationError as exc:
        _fail("STATE_VIOLATION", str(exc), EXIT_STATE_VIOLATION)
    except PersistenceError as exc:
        _fail("PERSISTENCE", str(exc), EXIT_PERSISTENCE)
    return result


@app.callback()
def main(
    ctx: typer.Context,
    state: Path = typer.Option(
        Path("conservation.json"),
        envvar="CONSERVATION_STATE_PATH",
        help="JSON snapshot holding animals, cages and keepers",
    ),
    settings: Path = typer.Option(
        Path("config/settings.json"),
        envvar="CONSERVATION_SETTINGS_PATH",
        help="JSON settings file with keeper constraints and animal rules",
    ),
    log_level: str = typer.Option("WARNING", envvar="CONSERVATION_LOG_LEVEL", help="Logging level"),
    log_json: bool = typer.Option(
        False, "--log-json", envvar="CONSERVATION_LOG_JSON", help="Write log records to stderr as JSON lines"
    ),
) -> None:
    setup_logging(log_level, use_json_format=log_json)
    animals, cages, keepers = AnimalRegistry(), CageRegistry(), KeeperRegistry()
    try:
        restore_registries(load_snapshot(state), animals, cages, keepers)
    except PersistenceError as exc:
        _fail("PERSISTENCE", str(exc), EXIT_PERSISTENCE)
    provider = SettingsProvider(settings)
    provider.load()
    ctx.obj = Facility(state_path=state, service=ConservationService(animals, cages, keepers, provider))


@app.command("add-animal")
def add_animal(
    ctx: typer.Context,
    name: str = typer.Option(..., help="Animal name"),
    species: str = typer.Option(..., help="Species, e.g. Tiger"),
    category: str = typer.Option(..., help="PREDATOR or PREY"),
    born: datetime = typer.Option(..., formats=DATE_FORMATS, help="Date of birth (YYYY-MM-DD)"),
    acquired: datetime = typer.Option(..., formats=DATE_FORMATS, help="Date of acquisition (YYYY-MM-DD)"),
    sex: str = typer.Option(..., help="MALE or FEMALE"),
) -> None:
    """Register a new animal."""

    def action(service: ConservationService) -> Animal:
        animal = Animal(
            name=name,
            species=species,
            category=category.upper(),
            date_of_birth=born.date(),
            date_of_acquisition=acquired.date(),
            sex=sex.upper(),
        )
        service.add_animal(animal)
        return animal

    _echo(animal_to_dict(_run(ctx, action)))


@app.command("add-cage")
def add_cage(
    ctx: typer.Context,
    number: str = typer.Option(..., help="Cage number, e.g. Large-01"),
    description: str = typer.Option(..., help="Cage description"),
    capacity: int = typer.Option(..., min=1, help="Number of animals the cage holds"),
) -> None:
    """Register a new, empty cage."""

    def action(service: ConservationService) -> Cage:
        cage = Cage(cage_number=number, description=description, capacity=capacity)
        service.add_cage(cage)
        return cage

    _echo(cage_to_dict(_run(ctx, action)))


@app.command("add-keeper")
def add_keeper(
    ctx: typer.Context,
    first_name: str = typer.Option(..., help="First name"),
    surname: str = typer.Option(..., help="Surname"),
    position: str = typer.Option("HEAD_KEEPER", help="HEAD_KEEPER or ASSISTANT_KEEPER"),
    address: str = typer.Option("", help="Postal address"),
    contact: str = typer.Option("", help="Contact number"),
    supervisor_id: Optional[int] = typer.Option(None, help="Supervising head keeper (assistants only)"),
) -> None:
    """Register a new keeper with no cages."""

    def action(service: ConservationService) -> Keeper:
        keeper = Keeper(
            first_name=first_name,
            surname=surname,
            position=position.upper(),
            address=address,
            contact_number=contact,
            supervisor_id=supervisor_id,
        )
        service.add_keeper(keeper)
        return keeper

    _echo(keeper_to_dict(_run(ctx, action)))


@app.command("allocate-animal")
def allocate_animal(ctx: typer.Context, animal_id: int, cage_id: int) -> None:
    """Place an animal in a cage."""

    def action(service: ConservationService) -> Cage:
        service.allocate_animal_to_cage(animal_id, cage_id)
        return service.cages.get(cage_id)

    cage = _run(ctx, action)
    _echo(cage_to_dict(cage))


@app.command("remove-animal-from-cage")
def remove_animal_from_cage(ctx: typer.Context, animal_id: int, cage_id: int) -> None:
    """Take an animal out of a cage without deregistering it."""

    def action(service: ConservationService) -> Cage:
        service.remove_animal_from_cage(animal_id, cage_id)
        return service.cages.get(cage_id)

    cage = _run(ctx, action)
    _echo(cage_to_dict(cage))


@app.command("allocate-keeper")
def allocate_keeper(ctx: typer.Context, keeper_id: int, cage_id: int) -> None:
    """Assign a keeper to a cage, replacing any previous keeper."""

    def action(service: ConservationService) -> Keeper:
        service.allocate_keeper_to_cage(keeper_id, cage_id)
        return service.keepers.get(keeper_id)

    keeper = _run(ctx, action)
    _echo(keeper_to_dict(keeper))


@app.command("remove-keeper-from-cage")
def remove_keeper_from_cage(
    ctx: typer.Context,
    keeper_id: int,
    cage_id: int,
    allow_underload: bool = typer.Option(False, help="Allow the keeper to drop below the minimum workload"),
) -> None:
    """Unassign a keeper from a cage."""
    removed = _run(ctx, lambda s: s.remove_keeper_from_cage(keeper_id, cage_id, allow_underload=allow_underload))
    _echo({"keeper_id": keeper_id, "cage_id": cage_id, "removed": removed})


@app.command("delete-animal")
def delete_animal(ctx: typer.Context, animal_id: int) -> None:
    """Deregister an animal, taking it out of its cage first."""
    _run(ctx, lambda s: s.remove_animal(animal_id))
    _echo({"deleted": "animal", "id": animal_id})


@app.command("delete-keeper")
def delete_keeper(ctx: typer.Context, keeper_id: int) -> None:
    """Deregister a keeper that holds no cages."""
    _run(ctx, lambda s: s.remove_keeper(keeper_id))
    _echo({"deleted": "keeper", "id": keeper_id})


@app.command("delete-cage")
def delete_cage(ctx: typer.Context, cage_id: int) -> None:
    """Deregister an empty cage."""
    _run(ctx, lambda s: s.remove_cage(cage_id))
    _echo({"deleted": "cage", "id": cage_id})


@app.command()
def available(ctx: typer.Context) -> None:
    """List unhoused animals, cages with space and keepers below maximum workload."""

    def action(service: ConservationService) -> dict[str, Any]:
        return {
            "animals": [animal_to_dict(a) for a in service.get_available_animals()],
            "cages": [cage_to_dict(c) for c in service.get_available_cages()],
            "keepers": [keeper_to_dict(k) for k in service.get_available_keepers()],
        }

    _echo(_run(ctx, action, mutates=False))


@app.command()
def stats(ctx: typer.Context, text: bool = typer.Option(False, help="Print the plain-text report")) -> None:
    """Show facility totals."""
    statistics = _run(ctx, lambda s: s.get_statistics(), mutates=False)
    if text:
        typer.echo(statistics.render())
        return
    _echo(
        {
            "animals": statistics.total_animals,
            "keepers": statistics.total_keepers,
            "cages": statistics.total_cages,
            "empty_cages": statistics.empty_cages,
            "full_cages": statistics.full_cages,
            "unassigned_cages": statistics.unassigned_cages,
            "total_capacity": statistics.total_capacity,
            "total_occupancy": statistics.total_occupancy,
            "available_space": statistics.available_space,
            "occupancy_rate": round(statistics.occupancy_rate, 1),
        }
    )


@app.command()
def check(ctx: typer.Context) -> None:
    """Report inconsistencies in the stored state; exits 4 if any are found."""
    problems = _run(ctx, lambda s: s.check_consistency(), mutates=False)
    _echo({"consistent": not problems, "problems": problems})
    if problems:
        logger.warning("Consistency check found %d problem(s)", len(problems))
        raise typer.Exit(EXIT_STATE_VIOLATION)


if __name__ == "__main__":
    app()
