from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .errors import PersistenceError
from .logging_config import get_logger

logger = get_logger(__name__)

SETTINGS_PATH_ENV = "CONSERVATION_SETTINGS_PATH"
DEFAULT_SETTINGS_PATH = Path("config") / "settings.json"


@dataclass(frozen=True)
class KeeperConstraints:
    """Workload bounds for a keeper, in cages."""

    min_cages: int = 1
    max_cages: int = 4

    def __post_init__(self) -> None:
        if self.min_cages < 0:
            raise ValueError("min_cages must be >= 0")
        if self.max_cages < 1:
            raise ValueError("max_cages must be >= 1")
        if self.min_cages > self.max_cages:
            raise ValueError("min_cages cannot exceed max_cages")


@dataclass(frozen=True)
class AnimalRules:
    predator_shareable: bool = False
    prey_shareable: bool = True


@dataclass(frozen=True)
class Settings:
    keeper_constraints: KeeperConstraints = field(default_factory=KeeperConstraints)
    animal_rules: AnimalRules = field(default_factory=AnimalRules)
    first_run: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        constraints = data.get("keeper_constraints") or {}
        rules = data.get("animal_rules") or {}
        return cls(
            keeper_constraints=KeeperConstraints(
                min_cages=int(constraints.get("min_cages", 1)),
                max_cages=int(constraints.get("max_cages", 4)),
            ),
            animal_rules=AnimalRules(
                predator_shareable=bool(rules.get("predator_shareable", False)),
                prey_shareable=bool(rules.get("prey_shareable", True)),
            ),
            first_run=bool(data.get("first_run", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def default_settings_path() -> Path:
    return Path(os.environ.get(SETTINGS_PATH_ENV, str(DEFAULT_SETTINGS_PATH)))


class SettingsProvider:
    """Holds the active settings and reads/writes them as JSON.

    The validator asks for ``current()`` on every check, so ``update`` and
    ``reload`` take effect on the next validation without rebuilding anything.
    """

    def __init__(self, path: str | Path | None = None, settings: Settings | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()
        self._settings = settings

    def load(self) -> Settings:
        if not self.path.exists():
            logger.info("Settings file %s not found, using defaults", self.path)
            self._settings = Settings()
            return self._settings
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings document must be a JSON object")
            self._settings = Settings.from_dict(data)
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Could not load settings from %s (%s), using defaults", self.path, exc)
            self._settings = Settings()
            return self._settings
        logger.info("Settings loaded from %s", self.path)
        return self._settings

    def reload(self) -> Settings:
        return self.load()

    def current(self) -> Settings:
        if self._settings is None:
            return self.load()
        return self._settings

    def update(self, settings: Settings) -> None:
        self._settings = settings

    def save(self, settings: Settings | None = None) -> None:
        if settings is not None:
            self._settings = settings
        payload = self.current().to_dict()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError("Failed to save settings", self.path) from exc
        logger.info("Settings saved to %s", self.path)

    @property
    def keeper_constraints(self) -> KeeperConstraints:
        return self.current().keeper_constraints

    @property
    def animal_rules(self) -> AnimalRules:
        return self.current().animal_rules
