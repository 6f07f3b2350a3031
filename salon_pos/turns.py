"""Turn queue: the roster of on-duty technicians and their IDLE/SERVING state.

Transitions:

    (absent) --bulk_add/save--> IDLE --start--> SERVING
    SERVING --revert_to_idle (PIN)--> IDLE
    IDLE --clock_out (PIN)--> (absent)

`order` is advisory only: the lowest-order IDLE technician is the expected
next pick, but `start` is always an explicit operator action.

Every method reads the persisted state fresh, validates, then writes through
one persistence call. A rejected operation never touches the store.
"""

from __future__ import annotations

import logging
from typing import Iterable

from salon_pos.errors import AuthorizationError, NotFoundError, ValidationError
from salon_pos.models import QueueEntry, QueueStatus, Role, Staff
from salon_pos.persistence import PosDatabase

logger = logging.getLogger(__name__)


class TurnQueue:
    """Queue operations on top of the persistence/identity collaborator."""

    def __init__(self, db: PosDatabase) -> None:
        self.db = db

    # -------------------- reads --------------------

    def entries(self) -> list[QueueEntry]:
        return self.db.get_queue_state()

    def entry(self, staff_id: int) -> QueueEntry:
        for entry in self.db.get_queue_state():
            if entry.staff_id == staff_id:
                return entry
        raise NotFoundError(f"Staff {staff_id} is not in the queue")

    def next_up(self) -> QueueEntry | None:
        """Lowest-order IDLE technician, or None if nobody is idle."""
        idle = [e for e in self.db.get_queue_state() if e.status == QueueStatus.IDLE]
        return min(idle, key=lambda e: e.order) if idle else None

    def filter_by_skill(self, service_type_id: int | None) -> list[QueueEntry]:
        """Entries able to perform a service type; None means everyone."""
        entries = self.db.get_queue_state()
        if service_type_id is None:
            return entries
        return [e for e in entries if service_type_id in e.skills_type_ids]

    # -------------------- clock-in / reorder --------------------

    def bulk_add(self, staff_ids: Iterable[int]) -> list[QueueEntry]:
        """Append technicians to the end of the roster.

        Staff already queued keep their position, status and turns. Raises
        `ValidationError` on a repeated id or an id that is not an active tech.
        """
        ids = list(staff_ids)
        _reject_duplicates(ids)
        self._require_techs(ids)
        self.db.bulk_add_techs_to_queue(ids)
        logger.info("clock-in staff_ids=%s", ids)
        return self.db.get_queue_state()

    def save(self, entries: Iterable[QueueEntry]) -> list[QueueEntry]:
        """Replace the roster with `entries`, keyed by their explicit order.

        The latest persisted state is re-read and merged by staff id first, so
        turns or status changed since the caller loaded the queue survive.
        Staff new to the roster start IDLE with zero turns. Leaving out a
        SERVING technician raises `ValidationError`; only IDLE staff may drop.
        """
        wanted = sorted(entries, key=lambda e: e.order)
        orders = [e.order for e in wanted]
        if orders != list(range(1, len(wanted) + 1)):
            raise ValidationError(f"Queue order must be exactly 1..{len(wanted)}, got {orders}")
        ids = [e.staff_id for e in wanted]
        _reject_duplicates(ids)
        staff_by_id = self._require_techs(ids)

        latest = {e.staff_id: e for e in self.db.get_queue_state()}
        dropped_serving = [
            e.name for e in latest.values() if e.status == QueueStatus.SERVING and e.staff_id not in staff_by_id
        ]
        if dropped_serving:
            logger.warning("queue save rejected: serving staff dropped %s", dropped_serving)
            raise ValidationError(f"Serving technicians cannot leave the queue: {', '.join(dropped_serving)}")
        merged: list[QueueEntry] = []
        for entry in wanted:
            existing = latest.get(entry.staff_id)
            staff = staff_by_id[entry.staff_id]
            merged.append(
                QueueEntry(
                    staff_id=entry.staff_id,
                    name=staff.name,
                    order=entry.order,
                    status=existing.status if existing else QueueStatus.IDLE,
                    turns=existing.turns if existing else 0,
                    skills_type_ids=staff.skills_type_ids,
                )
            )
        self.db.save_queue_state(merged)
        logger.info("queue saved order=%s", ids)
        return self.db.get_queue_state()

    def save_order(self, staff_ids: Iterable[int]) -> list[QueueEntry]:
        """Save a roster given as staff ids in turn order."""
        entries = [QueueEntry(staff_id=staff_id, name="", order=idx + 1) for idx, staff_id in enumerate(staff_ids)]
        return self.save(entries)

    # -------------------- turn transitions --------------------

    def start(self, staff_id: int) -> QueueEntry:
        """IDLE -> SERVING."""
        entry = self.entry(staff_id)
        if entry.status != QueueStatus.IDLE:
            logger.warning("start rejected staff_id=%s status=%s", staff_id, entry.status.value)
            raise ValidationError(f"{entry.name} is already serving")
        self._set_status(staff_id, QueueStatus.SERVING)
        entry.status = QueueStatus.SERVING
        logger.info("start staff_id=%s", staff_id)
        return entry

    def revert_to_idle(self, staff_id: int, pin: str) -> bool:
        """SERVING -> IDLE without counting a turn. Mis-click correction only.

        Returns False when the PIN is neither a receptionist's nor the
        technician's own.
        """
        entry = self.entry(staff_id)
        if entry.status != QueueStatus.SERVING:
            raise ValidationError(f"{entry.name} is not serving")
        try:
            self._authorize_for(staff_id, pin)
        except AuthorizationError as exc:
            logger.warning("revert rejected staff_id=%s: %s", staff_id, exc)
            return False
        self._set_status(staff_id, QueueStatus.IDLE)
        logger.info("revert to idle staff_id=%s", staff_id)
        return True

    def clock_out(self, staff_id: int, pin: str) -> bool:
        """Remove an IDLE technician and compact the order.

        A SERVING technician cannot clock out. Returns False when the PIN is
        neither a receptionist's nor the technician's own.
        """
        entry = self.entry(staff_id)
        if entry.status != QueueStatus.IDLE:
            logger.warning("clock-out rejected staff_id=%s status=%s", staff_id, entry.status.value)
            raise ValidationError(f"{entry.name} is serving and cannot clock out")
        try:
            self._authorize_for(staff_id, pin)
        except AuthorizationError as exc:
            logger.warning("clock-out rejected staff_id=%s: %s", staff_id, exc)
            return False
        if not self.db.remove_tech_from_queue(staff_id):
            raise NotFoundError(f"Staff {staff_id} is not in the queue")
        logger.info("clock-out staff_id=%s", staff_id)
        return True

    def unlock_batch_clock_out(self, pin: str) -> bool:
        """Check a receptionist PIN before batch clock-out."""
        return self.db.verify_receptionist_pin(pin) is not None

    def clock_out_many(self, staff_ids: Iterable[int]) -> list[QueueEntry]:
        """Batch clock-out, already authorized by a receptionist.

        All listed technicians must be queued and IDLE; they are removed and
        the rest renumbered in one transaction.
        """
        ids = list(staff_ids)
        _reject_duplicates(ids)
        by_id = {e.staff_id: e for e in self.db.get_queue_state()}
        for staff_id in ids:
            entry = by_id.get(staff_id)
            if entry is None:
                raise NotFoundError(f"Staff {staff_id} is not in the queue")
            if entry.status != QueueStatus.IDLE:
                raise ValidationError(f"{entry.name} is serving and cannot clock out")
        self.db.remove_techs_from_queue(ids)
        logger.info("batch clock-out staff_ids=%s", ids)
        return self.db.get_queue_state()

    def reset(self) -> None:
        """Clear the roster and every pending split. Irreversible."""
        self.db.reset_queue(delete_splits=True)
        logger.info("queue reset")

    # -------------------- helpers --------------------

    def _set_status(self, staff_id: int, status: QueueStatus) -> None:
        if not self.db.update_tech_status(staff_id, status):
            raise NotFoundError(f"Staff {staff_id} is not in the queue")

    def _authorize_for(self, staff_id: int, pin: str) -> Staff:
        """The technician's own PIN, else any receptionist's PIN."""
        staff = self.db.verify_staff_pin(staff_id, pin) or self.db.verify_receptionist_pin(pin)
        if staff is None:
            raise AuthorizationError(f"PIN does not authorize acting for staff {staff_id}")
        return staff

    def _require_techs(self, staff_ids: list[int]) -> dict[int, Staff]:
        techs = {s.staff_id: s for s in self.db.get_all_staff() if s.is_active and s.has_role(Role.TECH)}
        unknown = [staff_id for staff_id in staff_ids if staff_id not in techs]
        if unknown:
            raise ValidationError(f"Unknown or inactive technicians: {unknown}")
        return {staff_id: techs[staff_id] for staff_id in staff_ids}


def _reject_duplicates(staff_ids: list[int]) -> None:
    seen: set[int] = set()
    dupes: set[int] = set()
    for staff_id in staff_ids:
        if staff_id in seen:
            dupes.add(staff_id)
        seen.add(staff_id)
    if dupes:
        raise ValidationError(f"Duplicate staff ids: {sorted(dupes)}")
