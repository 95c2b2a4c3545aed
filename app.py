from datetime import date
from pathlib import Path
import os

import streamlit as st

from conservation.config import SettingsProvider
from conservation.errors import ConservationError, PersistenceError, ValidationError
from conservation.logging_config import setup_logging
from conservation.models import CATEGORIES, POSITIONS, SEXES, Animal, Cage, Keeper
from conservation.persistence import load_snapshot, restore_registries, save_snapshot
from conservation.registry import AnimalRegistry, CageRegistry, KeeperRegistry
from conservation.service import ConservationService

st.set_page_config(page_title="Conservation Facility", page_icon="🐾", layout="wide")
st.title("🐾 Conservation facility allocations")

state_path = os.environ.get("CONSERVATION_STATE_PATH", "conservation.json")
state_abs = str(Path(state_path).resolve())
setup_logging(
    os.environ.get("CONSERVATION_LOG_LEVEL", "WARNING"),
    use_json_format=os.environ.get("CONSERVATION_LOG_JSON", "").lower() in ("1", "true", "yes"),
)

animals, cages, keepers = AnimalRegistry(), CageRegistry(), KeeperRegistry()
try:
    restore_registries(load_snapshot(state_path), animals, cages, keepers)
except PersistenceError as exc:
    st.error(str(exc))
    st.stop()
settings = SettingsProvider()
settings.load()
service = ConservationService(animals, cages, keepers, settings)
limits = settings.keeper_constraints


def apply(action, success: str) -> None:
    try:
        action()
        save_snapshot(state_path, animals, cages, keepers)
    except ValidationError as exc:
        st.error(f"{exc.kind.value}: {exc.message}")
        return
    except ConservationError as exc:
        st.error(str(exc))
        return
    st.success(success)


def animal_label(animal_id: int) -> str:
    animal = animals.get(animal_id)
    return f"{animal.name} ({animal.species}, {animal.category}) #{animal_id}"


def cage_label(cage_id: int) -> str:
    cage = cages.get(cage_id)
    return f"{cage.cage_number} [{cage.occupancy_info}] #{cage_id}"


def keeper_label(keeper_id: int) -> str:
    keeper = keepers.get(keeper_id)
    return f"{keeper.full_title} [{keeper.cage_count}/{limits.max_cages}] #{keeper_id}"


st.sidebar.markdown("### Current state")
st.sidebar.code(f"State: {state_abs}\nSettings: {settings.path}")
st.sidebar.write(f"animals: {animals.count()}")
st.sidebar.write(f"cages: {cages.count()}")
st.sidebar.write(f"keepers: {keepers.count()}")
st.sidebar.caption(f"Keeper workload: {limits.min_cages}-{limits.max_cages} cages")

page = st.sidebar.radio("Page", ["Overview", "Animals", "Keepers", "Register"])

if page == "Overview":
    st.header("Overview")
    stats = service.get_statistics()
    cols = st.columns(4)
    cols[0].metric("Animals", stats.total_animals)
    cols[1].metric("Cages", stats.total_cages)
    cols[2].metric("Keepers", stats.total_keepers)
    cols[3].metric("Occupancy", f"{stats.occupancy_rate:.1f}%")

    rows = []
    for cage in cages.get_all():
        keeper = keepers.find_by_id(cage.keeper_id) if cage.keeper_id is not None else None
        rows.append(
            {
                "cage": cage.cage_number,
                "description": cage.description,
                "status": cage.status,
                "occupancy": cage.occupancy_info,
                "animals": ", ".join(animals.get(i).name for i in cage.animal_ids if animals.exists(i)),
                "keeper": keeper.full_name if keeper else "",
            }
        )
    if rows:
        st.dataframe(rows)
    else:
        st.info("No cages registered yet")

    problems = service.check_consistency()
    if problems:
        st.warning("Stored state is inconsistent")
        for problem in problems:
            st.write(f"- {problem}")

elif page == "Animals":
    st.header("Animal placement")
    free = [a.animal_id for a in service.get_available_animals()]
    open_cages = [c.cage_id for c in service.get_available_cages()]
    if not free or not open_cages:
        st.caption("Need an unhoused animal and a cage with space")
    else:
        animal_id = st.selectbox("Animal", free, format_func=animal_label)
        cage_id = st.selectbox("Cage", open_cages, format_func=cage_label)
        if st.button("Allocate"):
            apply(lambda: service.allocate_animal_to_cage(animal_id, cage_id), "Animal allocated")

    st.divider()
    housed = [(i, c.cage_id) for c in cages.get_all() for i in c.animal_ids if animals.exists(i)]
    if housed:
        choice = st.selectbox(
            "Housed animal",
            housed,
            format_func=lambda pair: f"{animal_label(pair[0])} in {cages.get(pair[1]).cage_number}",
        )
        if st.button("Remove from cage"):
            apply(lambda: service.remove_animal_from_cage(*choice), "Animal removed from cage")

elif page == "Keepers":
    st.header("Keeper assignment")
    keeper_ids = [k.keeper_id for k in keepers.get_all()]
    cage_ids = [c.cage_id for c in cages.get_all()]
    if not keeper_ids or not cage_ids:
        st.caption("Register keepers and cages first")
    else:
        keeper_id = st.selectbox("Keeper", keeper_ids, format_func=keeper_label)
        cage_id = st.selectbox("Cage", cage_ids, format_func=cage_label)
        allow_underload = st.checkbox("Allow dropping below the minimum workload")
        c1, c2 = st.columns(2)
        if c1.button("Assign"):
            apply(lambda: service.allocate_keeper_to_cage(keeper_id, cage_id), "Keeper assigned")
        if c2.button("Unassign"):
            apply(
                lambda: service.remove_keeper_from_cage(keeper_id, cage_id, allow_underload=allow_underload),
                "Keeper unassigned",
            )
        st.write(keeper_label(keeper_id))
        st.caption(keepers.get(keeper_id).responsibilities)

else:
    st.header("Register")
    with st.form("animal"):
        st.subheader("Animal")
        name = st.text_input("Name")
        species = st.text_input("Species")
        category = st.selectbox("Category", CATEGORIES)
        sex = st.selectbox("Sex", SEXES)
        born = st.date_input("Date of birth", value=date.today(), max_value=date.today())
        acquired = st.date_input("Date of acquisition", value=date.today(), max_value=date.today())
        if st.form_submit_button("Add animal"):
            apply(lambda: service.add_animal(Animal(name, species, category, born, acquired, sex)), "Animal added")

    with st.form("cage"):
        st.subheader("Cage")
        number = st.text_input("Cage number", placeholder="Large-01")
        description = st.text_input("Description")
        capacity = st.number_input("Capacity", min_value=1, value=1, step=1)
        if st.form_submit_button("Add cage"):
            apply(lambda: service.add_cage(Cage(number, description, int(capacity))), "Cage added")

    with st.form("keeper"):
        st.subheader("Keeper")
        first_name = st.text_input("First name")
        surname = st.text_input("Surname")
        position = st.selectbox("Position", POSITIONS)
        address = st.text_input("Address")
        contact = st.text_input("Contact number")
        if st.form_submit_button("Add keeper"):
            apply(
                lambda: service.add_keeper(Keeper(first_name, surname, position, address, contact)),
                "Keeper added",
            )
