import pytest

from salon_pos.config import OWNER_DEFAULT_PIN, OWNER_STAFF_ID
from salon_pos.data import DEFAULT_SERVICE_CATALOG
from salon_pos.errors import OperationFailed
from salon_pos.models import QueueEntry, Role
from salon_pos.persistence import PosDatabase


def test_bootstrap_seeds_owner_and_catalog(db):
    owner = db.get_staff(OWNER_STAFF_ID)
    assert owner.has_role(Role.OWNER)
    assert [t.name for t in db.get_service_types()] == list(DEFAULT_SERVICE_CATALOG)
    assert len(db.get_all_services()) == sum(len(v) for v in DEFAULT_SERVICE_CATALOG.values())


def test_bootstrap_is_idempotent(db):
    db.bootstrap_schema()
    assert len(db.get_all_staff()) == 1
    assert len(db.get_service_types()) == len(DEFAULT_SERVICE_CATALOG)


def test_owner_pin_is_tied_to_seeded_owner(db):
    assert db.verify_owner_pin(OWNER_DEFAULT_PIN).staff_id == OWNER_STAFF_ID
    db.create_staff("Second Owner", [Role.OWNER], "5555")
    assert db.verify_owner_pin("5555") is None
    assert db.verify_owner_pin("000000") is None


def test_receptionist_pin(db, staff):
    assert db.verify_receptionist_pin("9999").staff_id == staff["rita"]
    assert db.verify_receptionist_pin("1111") is None
    assert db.verify_staff_pin(staff["anna"], "1111").name == "Anna Le"
    assert db.verify_staff_pin(staff["anna"], "2222") is None


def test_inactive_staff_cannot_authenticate(db):
    db.create_staff("Left Already", [Role.RECEPTIONIST], "7777", is_active=False)
    assert db.verify_pin("7777") is None


def test_remove_techs_renumbers(db, staff):
    db.bulk_add_techs_to_queue([staff["anna"], staff["binh"], staff["chau"]])
    assert db.remove_techs_from_queue([staff["anna"], 999]) == 1
    assert [(e.staff_id, e.order) for e in db.get_queue_state()] == [(staff["binh"], 1), (staff["chau"], 2)]
    assert db.remove_tech_from_queue(999) is False


def test_update_status_of_absent_tech(db):
    assert db.update_tech_status(999, "SERVING") is False


def test_negative_turns_are_refused(db, staff):
    with pytest.raises(OperationFailed):
        db.save_queue_state([QueueEntry(staff_id=staff["anna"], name="", order=1, turns=-1)])
    assert db.get_queue_state() == []


def test_duplicate_staff_name_fails(db, staff):
    with pytest.raises(OperationFailed):
        db.create_staff("Anna Le", [Role.TECH], "8888")


def test_unopenable_database(tmp_path):
    with pytest.raises(OperationFailed):
        PosDatabase(tmp_path).bootstrap_schema()


def test_receptionist_pin_skips_tech_holding_same_pin(db, staff):
    mai = db.create_staff("Mai Ho", [Role.RECEPTIONIST], "1111")
    assert db.verify_pin("1111").staff_id == staff["anna"]
    assert db.verify_receptionist_pin("1111").staff_id == mai
