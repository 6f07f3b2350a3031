"""Checkout staging and the split ledger.

`CheckoutSession` is a plain in-memory object owned by the controller; it
never touches storage. `SplitLedger` is the only effectful part: it suspends a
session into a persisted split and resumes it later.
"""

from __future__ import annotations

import logging
from typing import Iterable

from salon_pos.errors import NotFoundError, ValidationError
from salon_pos.models import CheckoutItem, CheckoutSplit, QueueEntry, Service, ServiceLine
from salon_pos.money import is_cents
from salon_pos.persistence import PosDatabase

logger = logging.getLogger(__name__)


def compute_total(items: Iterable[CheckoutItem]) -> int:
    """Sum per technician: the manual amount if set, else the service prices."""
    return sum(item.amount_cents for item in items)


def all_items_priced(items: Iterable[CheckoutItem]) -> bool:
    return all(item.is_priced for item in items)


class CheckoutSession:
    """Charges staged for the customer currently at the counter."""

    def __init__(self) -> None:
        self.items: list[CheckoutItem] = []
        self.selected_tech_id: int | None = None

    # -------------------- technicians --------------------

    def add_technician(self, tech_id: int, tech_name: str) -> CheckoutItem:
        """Stage a technician (no-op if already staged) and select it."""
        item = self.find(tech_id)
        if item is None:
            item = CheckoutItem(tech_id=tech_id, tech_name=tech_name)
            self.items.append(item)
        self.selected_tech_id = tech_id
        return item

    def remove_technician(self, tech_id: int) -> None:
        self.items = [item for item in self.items if item.tech_id != tech_id]
        if self.selected_tech_id == tech_id:
            self.selected_tech_id = None

    def select(self, tech_id: int) -> CheckoutItem:
        item = self._require(tech_id)
        self.selected_tech_id = tech_id
        return item

    def clear_selection(self) -> None:
        self.selected_tech_id = None

    @property
    def selected(self) -> CheckoutItem | None:
        if self.selected_tech_id is None:
            return None
        return self.find(self.selected_tech_id)

    def find(self, tech_id: int) -> CheckoutItem | None:
        for item in self.items:
            if item.tech_id == tech_id:
                return item
        return None

    # -------------------- charges --------------------

    def add_service(self, tech_id: int, service: Service | ServiceLine) -> None:
        """Append a service line; any manual amount for the tech is dropped."""
        item = self._require(tech_id)
        line = ServiceLine.from_service(service) if isinstance(service, Service) else service
        item.add_service(line)

    def set_manual_amount(self, tech_id: int, cents: int) -> None:
        """Replace the tech's services with one flat charge."""
        if not is_cents(cents):
            raise ValidationError(f"Manual amount must be whole cents, got {cents!r}")
        if cents <= 0:
            raise ValidationError("Manual amount must be greater than zero")
        self._require(tech_id).set_manual_amount(cents)

    def remove_service(self, tech_id: int, service_id: int) -> bool:
        """Remove the first line with `service_id`. Returns False if none matched."""
        item = self._require(tech_id)
        for idx, line in enumerate(item.services):
            if line.service_id == service_id:
                del item.services[idx]
                return True
        return False

    # -------------------- totals --------------------

    def compute_total(self) -> int:
        return compute_total(self.items)

    def ready_for_settlement(self) -> bool:
        """Every staged technician has a positive manual amount or a service."""
        return bool(self.items) and all_items_priced(self.items)

    def is_empty(self) -> bool:
        return not self.items

    def clear(self) -> None:
        self.items = []
        self.selected_tech_id = None

    def load(self, items: Iterable[CheckoutItem]) -> None:
        """Replace the staged state with copies of `items`."""
        self.items = [item.copy() for item in items]
        self.selected_tech_id = None

    def _require(self, tech_id: int) -> CheckoutItem:
        item = self.find(tech_id)
        if item is None:
            raise NotFoundError(f"Technician {tech_id} is not in this checkout")
        return item


def candidate_technicians(db: PosDatabase) -> list[QueueEntry]:
    """Technicians that can be checked out: everyone currently SERVING."""
    return db.get_busy_techs()


class SplitLedger:
    """Suspended checkouts, persisted until resumed or deleted."""

    def __init__(self, db: PosDatabase) -> None:
        self.db = db

    def all_splits(self) -> list[CheckoutSplit]:
        return self.db.get_all_checkout_splits()

    def create_split(self, session: CheckoutSession) -> CheckoutSplit:
        """Persist the staged charges with their total frozen, then clear the session."""
        if not session.ready_for_settlement():
            raise ValidationError("Every technician needs a service or an amount before splitting")
        total = session.compute_total()
        if total <= 0:
            raise ValidationError("Cannot split a zero total")
        split = self.db.create_checkout_split(session.items, total)
        session.clear()
        logger.info("split created split_id=%s techs=%s total_cents=%s", split.split_id, len(split.items), total)
        return split

    def resume_split(self, session: CheckoutSession, split_id: int) -> CheckoutSplit:
        """Load a split into the session and delete it, so it resumes at most once."""
        split = self.db.get_checkout_split(split_id)
        if split is None:
            raise NotFoundError(f"Split {split_id} does not exist")
        if not self.db.delete_checkout_split(split_id):
            raise NotFoundError(f"Split {split_id} does not exist")
        session.load(split.items)
        logger.info("split resumed split_id=%s", split_id)
        return split

    def delete_split(self, split_id: int) -> None:
        if not self.db.delete_checkout_split(split_id):
            raise NotFoundError(f"Split {split_id} does not exist")
        logger.info("split deleted split_id=%s", split_id)
