import pytest

from salon_pos.checkout import CheckoutSession, SplitLedger, candidate_technicians, compute_total
from salon_pos.errors import NotFoundError, ValidationError
from salon_pos.models import CheckoutItem, Service, ServiceLine
from salon_pos.turns import TurnQueue

GEL = Service(service_id=2, type_id=1, name="Gel Manicure", price_cents=3500)
WAX = Service(service_id=11, type_id=4, name="Lip Wax", price_cents=500)


def test_total_mixes_services_and_manual_amounts():
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.add_service(1, GEL)
    session.add_service(1, WAX)
    session.add_technician(2, "Binh")
    session.set_manual_amount(2, 2550)

    assert session.compute_total() == 6550
    assert compute_total(session.items) == 6550


def test_add_technician_is_idempotent_and_selects():
    session = CheckoutSession()
    first = session.add_technician(1, "Anna")
    session.add_service(1, GEL)
    session.add_technician(2, "Binh")
    again = session.add_technician(1, "Anna")

    assert again is first
    assert [item.tech_id for item in session.items] == [1, 2]
    assert session.selected is first
    assert len(first.services) == 1


def test_manual_amount_and_services_are_exclusive():
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.add_service(1, GEL)
    session.set_manual_amount(1, 4000)
    assert session.find(1).services == []
    assert session.find(1).amount_cents == 4000

    session.add_service(1, WAX)
    assert session.find(1).manual_amount_cents is None
    assert session.find(1).amount_cents == 500


def test_manual_amount_must_be_positive():
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    with pytest.raises(ValidationError):
        session.set_manual_amount(1, 0)


def test_unstaged_technician_is_not_found():
    session = CheckoutSession()
    with pytest.raises(NotFoundError):
        session.add_service(7, GEL)
    with pytest.raises(NotFoundError):
        session.select(7)


def test_remove_service_removes_one_line():
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.add_service(1, WAX)
    session.add_service(1, WAX)

    assert session.remove_service(1, WAX.service_id) is True
    assert len(session.find(1).services) == 1
    assert session.remove_service(1, GEL.service_id) is False


def test_ready_for_settlement():
    session = CheckoutSession()
    assert not session.ready_for_settlement()

    session.add_technician(1, "Anna")
    session.add_service(1, GEL)
    session.add_technician(2, "Binh")
    assert not session.ready_for_settlement()

    session.set_manual_amount(2, 1000)
    assert session.ready_for_settlement()


def test_remove_technician_clears_selection():
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.remove_technician(1)
    assert session.is_empty()
    assert session.selected is None


def test_candidates_are_serving_techs(db, staff):
    queue = TurnQueue(db)
    queue.bulk_add([staff["anna"], staff["binh"], staff["chau"]])
    queue.start(staff["chau"])
    queue.start(staff["anna"])

    assert [e.staff_id for e in candidate_technicians(db)] == [staff["anna"], staff["chau"]]


def test_split_round_trip(db):
    ledger = SplitLedger(db)
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.add_service(1, GEL)
    session.add_service(1, WAX)
    session.add_technician(2, "Binh")
    session.set_manual_amount(2, 2550)

    split = ledger.create_split(session)
    assert session.is_empty()
    assert split.total_cents == 6550
    assert [s.split_id for s in ledger.all_splits()] == [split.split_id]

    resumed = CheckoutSession()
    ledger.resume_split(resumed, split.split_id)
    assert resumed.items == [
        CheckoutItem(
            tech_id=1,
            tech_name="Anna",
            services=[ServiceLine.from_service(GEL), ServiceLine.from_service(WAX)],
        ),
        CheckoutItem(tech_id=2, tech_name="Binh", manual_amount_cents=2550),
    ]
    assert resumed.compute_total() == 6550
    assert ledger.all_splits() == []


def test_resume_happens_at_most_once(db):
    ledger = SplitLedger(db)
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.set_manual_amount(1, 1000)
    split = ledger.create_split(session)

    ledger.resume_split(CheckoutSession(), split.split_id)
    with pytest.raises(NotFoundError):
        ledger.resume_split(CheckoutSession(), split.split_id)


def test_split_rejects_unpriced_session(db):
    ledger = SplitLedger(db)
    session = CheckoutSession()
    session.add_technician(1, "Anna")

    with pytest.raises(ValidationError):
        ledger.create_split(session)
    assert not session.is_empty()
    assert ledger.all_splits() == []


def test_delete_split(db):
    ledger = SplitLedger(db)
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    session.set_manual_amount(1, 1000)
    split = ledger.create_split(session)

    ledger.delete_split(split.split_id)
    assert ledger.all_splits() == []
    with pytest.raises(NotFoundError):
        ledger.delete_split(split.split_id)


@pytest.mark.parametrize("amount", [25.5, "2550", True])
def test_manual_amount_must_be_integer_cents(amount):
    session = CheckoutSession()
    session.add_technician(1, "Anna")
    with pytest.raises(ValidationError):
        session.set_manual_amount(1, amount)
    assert session.find(1).manual_amount_cents is None
