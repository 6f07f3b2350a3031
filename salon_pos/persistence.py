"""SQLite persistence for staff, the turn queue and suspended checkouts."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator

from salon_pos.config import DB_PATH, OWNER_DEFAULT_PIN, OWNER_STAFF_ID
from salon_pos.data import DEFAULT_SERVICE_CATALOG
from salon_pos.errors import OperationFailed
from salon_pos.models import (
    CheckoutItem,
    CheckoutSplit,
    QueueEntry,
    QueueStatus,
    Role,
    Service,
    ServiceLine,
    ServiceType,
    Staff,
)

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS staff (
    staff_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    roles TEXT NOT NULL,
    pin TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    skills_type_ids TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS service_types (
    service_type_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL
);

CREATE TABLE IF NOT EXISTS services (
    service_id INTEGER PRIMARY KEY AUTOINCREMENT,
    type_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    price_cents INTEGER NOT NULL CHECK (price_cents >= 0),
    FOREIGN KEY(type_id) REFERENCES service_types(service_type_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS queue_entries (
    staff_id INTEGER PRIMARY KEY,
    queue_order INTEGER NOT NULL,
    status TEXT NOT NULL CHECK (status IN ('IDLE', 'SERVING')),
    turns INTEGER NOT NULL DEFAULT 0 CHECK (turns >= 0),
    FOREIGN KEY(staff_id) REFERENCES staff(staff_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS checkout_splits (
    split_id INTEGER PRIMARY KEY AUTOINCREMENT,
    total_cents INTEGER NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS checkout_split_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    split_id INTEGER NOT NULL,
    line_index INTEGER NOT NULL,
    tech_id INTEGER NOT NULL,
    tech_name TEXT NOT NULL,
    manual_amount_cents INTEGER,
    FOREIGN KEY(split_id) REFERENCES checkout_splits(split_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS checkout_split_services (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    split_item_id INTEGER NOT NULL,
    line_index INTEGER NOT NULL,
    service_id INTEGER NOT NULL,
    service_name TEXT NOT NULL,
    price_cents INTEGER NOT NULL,
    FOREIGN KEY(split_item_id) REFERENCES checkout_split_items(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_split_items_split_line
    ON checkout_split_items(split_id, line_index);

CREATE INDEX IF NOT EXISTS idx_split_services_item_line
    ON checkout_split_services(split_item_id, line_index);
"""


class PosDatabase:
    """Embedded store behind the identity, queue, split and catalog calls.

    Every public method opens its own connection and commits or rolls back as
    one unit. Any `sqlite3.Error` surfaces as `OperationFailed`.
    """

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as exc:
            raise OperationFailed(f"Cannot open database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("database call failed: %s", exc)
            raise OperationFailed(str(exc)) from exc
        finally:
            conn.close()

    # -------------------- schema --------------------

    def bootstrap_schema(self) -> None:
        """Create the schema and seed the owner and default catalog on first run."""
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

        with self._connect() as conn:
            owner = conn.execute("SELECT 1 FROM staff WHERE staff_id = ?", (OWNER_STAFF_ID,)).fetchone()
            if owner is None:
                logger.info("seeding hardcoded owner")
                now = _utc_now_iso()
                conn.execute(
                    """
                    INSERT INTO staff (staff_id, name, roles, pin, is_active, skills_type_ids, created_at, updated_at)
                    VALUES (?, 'Owner', ?, ?, 1, '[]', ?, ?)
                    """,
                    (
                        OWNER_STAFF_ID,
                        json.dumps([Role.OWNER.value, Role.TECH.value, Role.RECEPTIONIST.value]),
                        OWNER_DEFAULT_PIN,
                        now,
                        now,
                    ),
                )

            has_catalog = conn.execute("SELECT 1 FROM service_types LIMIT 1").fetchone()
            if has_catalog is None:
                logger.info("seeding default service catalog")
                for type_name, services in DEFAULT_SERVICE_CATALOG.items():
                    cur = conn.execute("INSERT INTO service_types (name) VALUES (?)", (type_name,))
                    type_id = int(cur.lastrowid)
                    conn.executemany(
                        "INSERT INTO services (type_id, name, price_cents) VALUES (?, ?, ?)",
                        [(type_id, name, price) for name, price in services],
                    )

    # -------------------- identity --------------------

    def verify_pin(self, pin: str) -> Staff | None:
        """Resolve a PIN to an active staff record."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM staff WHERE pin = ? AND is_active = 1 ORDER BY staff_id LIMIT 1", (pin,)
            ).fetchone()
        return _row_to_staff(row) if row is not None else None

    def verify_staff_pin(self, staff_id: int, pin: str) -> Staff | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM staff WHERE staff_id = ? AND pin = ? AND is_active = 1", (staff_id, pin)
            ).fetchone()
        return _row_to_staff(row) if row is not None else None

    def verify_receptionist_pin(self, pin: str) -> Staff | None:
        """First active receptionist holding `pin`; PINs are not unique."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM staff WHERE pin = ? AND is_active = 1 ORDER BY staff_id", (pin,)).fetchall()
        for row in rows:
            staff = _row_to_staff(row)
            if staff.has_role(Role.RECEPTIONIST):
                return staff
        return None

    def verify_owner_pin(self, pin: str) -> Staff | None:
        """Strict owner gate: only the seeded owner id holding the OWNER role."""
        staff = self.verify_staff_pin(OWNER_STAFF_ID, pin)
        if staff is None or not staff.has_role(Role.OWNER):
            return None
        return staff

    # -------------------- staff & catalog --------------------

    def create_staff(
        self,
        name: str,
        roles: Iterable[Role],
        pin: str,
        skills_type_ids: Iterable[int] = (),
        is_active: bool = True,
    ) -> int:
        now = _utc_now_iso()
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO staff (name, roles, pin, is_active, skills_type_ids, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name,
                    json.dumps([Role(role).value for role in roles]),
                    pin,
                    1 if is_active else 0,
                    json.dumps(list(skills_type_ids)),
                    now,
                    now,
                ),
            )
            return int(cur.lastrowid)

    def get_all_staff(self) -> list[Staff]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM staff ORDER BY staff_id").fetchall()
        return [_row_to_staff(row) for row in rows]

    def get_staff(self, staff_id: int) -> Staff | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM staff WHERE staff_id = ?", (staff_id,)).fetchone()
        return _row_to_staff(row) if row is not None else None

    def create_service_type(self, name: str) -> int:
        with self._connect() as conn:
            cur = conn.execute("INSERT INTO service_types (name) VALUES (?)", (name,))
            return int(cur.lastrowid)

    def get_service_types(self) -> list[ServiceType]:
        with self._connect() as conn:
            rows = conn.execute("SELECT service_type_id, name FROM service_types ORDER BY service_type_id").fetchall()
        return [ServiceType(service_type_id=row["service_type_id"], name=row["name"]) for row in rows]

    def create_service(self, type_id: int, name: str, price_cents: int) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO services (type_id, name, price_cents) VALUES (?, ?, ?)",
                (type_id, name, price_cents),
            )
            return int(cur.lastrowid)

    def get_all_services(self) -> list[Service]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM services ORDER BY type_id, service_id").fetchall()
        return [
            Service(
                service_id=row["service_id"],
                type_id=row["type_id"],
                name=row["name"],
                price_cents=row["price_cents"],
            )
            for row in rows
        ]

    # -------------------- queue --------------------

    _QUEUE_SELECT = """
        SELECT q.staff_id, q.queue_order, q.status, q.turns, s.name, s.skills_type_ids
        FROM queue_entries q
        JOIN staff s ON s.staff_id = q.staff_id
    """

    def get_queue_state(self) -> list[QueueEntry]:
        """Return the roster ordered by `order`."""
        with self._connect() as conn:
            rows = conn.execute(self._QUEUE_SELECT + " ORDER BY q.queue_order").fetchall()
        return [_row_to_queue_entry(row) for row in rows]

    def get_busy_techs(self) -> list[QueueEntry]:
        """Technicians currently SERVING, in roster order."""
        with self._connect() as conn:
            rows = conn.execute(
                self._QUEUE_SELECT + " WHERE q.status = ? ORDER BY q.queue_order",
                (QueueStatus.SERVING.value,),
            ).fetchall()
        return [_row_to_queue_entry(row) for row in rows]

    def save_queue_state(self, entries: Iterable[QueueEntry]) -> None:
        """Replace the whole roster in one transaction."""
        rows = [(e.staff_id, e.order, QueueStatus(e.status).value, e.turns) for e in entries]
        with self._connect() as conn:
            conn.execute("DELETE FROM queue_entries")
            conn.executemany(
                "INSERT INTO queue_entries (staff_id, queue_order, status, turns) VALUES (?, ?, ?, ?)",
                rows,
            )

    def bulk_add_techs_to_queue(self, staff_ids: Iterable[int]) -> None:
        """Append staff not yet queued to the end of the roster as IDLE/0."""
        with self._connect() as conn:
            present = {row[0] for row in conn.execute("SELECT staff_id FROM queue_entries")}
            next_order = conn.execute("SELECT COALESCE(MAX(queue_order), 0) FROM queue_entries").fetchone()[0] + 1
            for staff_id in staff_ids:
                if staff_id in present:
                    continue
                conn.execute(
                    "INSERT INTO queue_entries (staff_id, queue_order, status, turns) VALUES (?, ?, ?, 0)",
                    (staff_id, next_order, QueueStatus.IDLE.value),
                )
                present.add(staff_id)
                next_order += 1

    def update_tech_status(self, staff_id: int, status: QueueStatus) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE queue_entries SET status = ? WHERE staff_id = ?",
                (QueueStatus(status).value, staff_id),
            )
            return cur.rowcount > 0

    def remove_tech_from_queue(self, staff_id: int) -> bool:
        """Remove one entry and close the gap it leaves in the order."""
        return self.remove_techs_from_queue([staff_id]) > 0

    def remove_techs_from_queue(self, staff_ids: Iterable[int]) -> int:
        """Remove entries and renumber the rest to 1..N in one transaction."""
        ids = list(staff_ids)
        with self._connect() as conn:
            removed = 0
            for staff_id in ids:
                cur = conn.execute("DELETE FROM queue_entries WHERE staff_id = ?", (staff_id,))
                removed += cur.rowcount
            remaining = conn.execute("SELECT staff_id FROM queue_entries ORDER BY queue_order").fetchall()
            conn.executemany(
                "UPDATE queue_entries SET queue_order = ? WHERE staff_id = ?",
                [(idx + 1, row[0]) for idx, row in enumerate(remaining)],
            )
        return removed

    def reset_queue(self, delete_splits: bool = False) -> None:
        """Clear the roster, optionally together with every pending split."""
        with self._connect() as conn:
            conn.execute("DELETE FROM queue_entries")
            if delete_splits:
                conn.execute("DELETE FROM checkout_splits")

    # -------------------- checkout splits --------------------

    def create_checkout_split(self, items: Iterable[CheckoutItem], total_cents: int) -> CheckoutSplit:
        """Persist a suspended checkout and return the saved copy."""
        copied = [item.copy() for item in items]
        created_at = _utc_now_iso()
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO checkout_splits (total_cents, created_at) VALUES (?, ?)",
                (total_cents, created_at),
            )
            split_id = int(cur.lastrowid)
            for idx, item in enumerate(copied):
                cur = conn.execute(
                    """
                    INSERT INTO checkout_split_items (split_id, line_index, tech_id, tech_name, manual_amount_cents)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (split_id, idx, item.tech_id, item.tech_name, item.manual_amount_cents),
                )
                split_item_id = int(cur.lastrowid)
                conn.executemany(
                    """
                    INSERT INTO checkout_split_services (split_item_id, line_index, service_id, service_name, price_cents)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    [
                        (split_item_id, line_idx, line.service_id, line.name, line.price_cents)
                        for line_idx, line in enumerate(item.services)
                    ],
                )
        return CheckoutSplit(split_id=split_id, items=copied, total_cents=total_cents, created_at=created_at)

    def get_all_checkout_splits(self) -> list[CheckoutSplit]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM checkout_splits ORDER BY split_id").fetchall()
            return [self._load_split(conn, row) for row in rows]

    def get_checkout_split(self, split_id: int) -> CheckoutSplit | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM checkout_splits WHERE split_id = ?", (split_id,)).fetchone()
            if row is None:
                return None
            return self._load_split(conn, row)

    def delete_checkout_split(self, split_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM checkout_splits WHERE split_id = ?", (split_id,))
            return cur.rowcount > 0

    def delete_all_checkout_splits(self) -> int:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM checkout_splits")
            return cur.rowcount

    def _load_split(self, conn: sqlite3.Connection, row: sqlite3.Row) -> CheckoutSplit:
        items: list[CheckoutItem] = []
        item_rows = conn.execute(
            "SELECT * FROM checkout_split_items WHERE split_id = ? ORDER BY line_index",
            (row["split_id"],),
        ).fetchall()
        for item_row in item_rows:
            service_rows = conn.execute(
                "SELECT * FROM checkout_split_services WHERE split_item_id = ? ORDER BY line_index",
                (item_row["id"],),
            ).fetchall()
            items.append(
                CheckoutItem(
                    tech_id=item_row["tech_id"],
                    tech_name=item_row["tech_name"],
                    services=[
                        ServiceLine(
                            service_id=s["service_id"],
                            name=s["service_name"],
                            price_cents=s["price_cents"],
                        )
                        for s in service_rows
                    ],
                    manual_amount_cents=item_row["manual_amount_cents"],
                )
            )
        return CheckoutSplit(
            split_id=row["split_id"],
            items=items,
            total_cents=row["total_cents"],
            created_at=row["created_at"],
        )


def _row_to_staff(row: sqlite3.Row) -> Staff:
    return Staff(
        staff_id=row["staff_id"],
        name=row["name"],
        roles=tuple(Role(role) for role in json.loads(row["roles"])),
        pin=row["pin"],
        is_active=bool(row["is_active"]),
        skills_type_ids=tuple(json.loads(row["skills_type_ids"])),
    )


def _row_to_queue_entry(row: sqlite3.Row) -> QueueEntry:
    return QueueEntry(
        staff_id=row["staff_id"],
        name=row["name"],
        order=row["queue_order"],
        status=QueueStatus(row["status"]),
        turns=row["turns"],
        skills_type_ids=tuple(json.loads(row["skills_type_ids"])),
    )
