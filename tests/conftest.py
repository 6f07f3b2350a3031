import pytest

from salon_pos.models import Role
from salon_pos.persistence import PosDatabase

# Seeded service type ids, in DEFAULT_SERVICE_CATALOG order.
MANICURE = 1
PEDICURE = 2


@pytest.fixture
def db(tmp_path):
    database = PosDatabase(tmp_path / "pos.db")
    database.bootstrap_schema()
    return database


@pytest.fixture
def staff(db):
    """Three techs and a front-desk receptionist; values are staff ids."""
    return {
        "anna": db.create_staff("Anna Le", [Role.TECH], "1111", skills_type_ids=[MANICURE]),
        "binh": db.create_staff("Binh Tran", [Role.TECH], "2222", skills_type_ids=[PEDICURE]),
        "chau": db.create_staff("Chau Pham", [Role.TECH], "3333", skills_type_ids=[MANICURE, PEDICURE]),
        "rita": db.create_staff("Rita Cole", [Role.RECEPTIONIST], "9999"),
    }
