from __future__ import annotations

import os
from pathlib import Path

from conservation.config import SettingsProvider
from conservation.persistence import load_snapshot, restore_registries
from conservation.registry import AnimalRegistry, CageRegistry, KeeperRegistry
from conservation.service import ConservationService


def main() -> None:
    state_path = Path(os.environ.get("CONSERVATION_STATE_PATH", "conservation.json")).resolve()
    animals, cages, keepers = AnimalRegistry(), CageRegistry(), KeeperRegistry()
    restore_registries(load_snapshot(state_path), animals, cages, keepers)
    service = ConservationService(animals, cages, keepers, SettingsProvider())

    print(f"state={state_path}")
    print(f"animals={animals.count()}")
    print(f"cages={cages.count()}")
    print(f"keepers={keepers.count()}")
    print(f"next_ids=animal:{animals.last_id + 1} cage:{cages.last_id + 1} keeper:{keepers.last_id + 1}")

    for cage in cages.get_all():
        keeper = keepers.find_by_id(cage.keeper_id) if cage.keeper_id is not None else None
        print(
            f"cage={cage.cage_number} status={cage.status} occupancy={cage.occupancy_info} "
            f"keeper={keeper.full_name if keeper else None}"
        )

    problems = service.check_consistency()
    print(f"problems={len(problems)}")
    for problem in problems:
        print(f"  - {problem}")


if __name__ == "__main__":
    main()
