"""Domain models for the salon POS."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    OWNER = "OWNER"
    RECEPTIONIST = "RECEPTIONIST"
    TECH = "TECH"


class QueueStatus(str, Enum):
    IDLE = "IDLE"
    SERVING = "SERVING"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    CHECK = "CHECK"
    GIFT_CARD = "GIFT_CARD"


class DiscountType(str, Enum):
    DOLLAR = "DOLLAR"
    PERCENT = "PERCENT"


class RewardType(str, Enum):
    """Reward kinds of the promo/loyalty catalog (not redeemed at checkout yet)."""

    CREDIT = "CREDIT"
    PERCENT = "PERCENT"


@dataclass(frozen=True)
class Staff:
    """A staff record as seen by the identity checks."""

    staff_id: int
    name: str
    roles: tuple[Role, ...]
    pin: str
    is_active: bool = True
    skills_type_ids: tuple[int, ...] = ()

    def has_role(self, role: Role) -> bool:
        return role in self.roles


@dataclass(frozen=True)
class ServiceType:
    service_type_id: int
    name: str


@dataclass(frozen=True)
class Service:
    """A priced catalog service."""

    service_id: int
    type_id: int
    name: str
    price_cents: int


@dataclass
class QueueEntry:
    """One on-duty technician in the turn roster."""

    staff_id: int
    name: str
    order: int
    status: QueueStatus = QueueStatus.IDLE
    turns: int = 0
    skills_type_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class ServiceLine:
    """A service charged to one technician at checkout."""

    service_id: int
    name: str
    price_cents: int

    @classmethod
    def from_service(cls, service: Service) -> ServiceLine:
        return cls(service_id=service.service_id, name=service.name, price_cents=service.price_cents)


@dataclass
class CheckoutItem:
    """Charges staged for one technician.

    Itemized services and a manual flat amount are mutually exclusive; each
    setter clears the other mode.
    """

    tech_id: int
    tech_name: str
    services: list[ServiceLine] = field(default_factory=list)
    manual_amount_cents: int | None = None

    def add_service(self, line: ServiceLine) -> None:
        self.services.append(line)
        self.manual_amount_cents = None

    def set_manual_amount(self, cents: int) -> None:
        self.services = []
        self.manual_amount_cents = cents

    @property
    def amount_cents(self) -> int:
        if self.manual_amount_cents is not None:
            return self.manual_amount_cents
        return sum(line.price_cents for line in self.services)

    @property
    def is_priced(self) -> bool:
        if self.manual_amount_cents is not None and self.manual_amount_cents > 0:
            return True
        return bool(self.services)

    def copy(self) -> CheckoutItem:
        return CheckoutItem(
            tech_id=self.tech_id,
            tech_name=self.tech_name,
            services=list(self.services),
            manual_amount_cents=self.manual_amount_cents,
        )


@dataclass(frozen=True)
class CheckoutSplit:
    """A suspended checkout saved for later."""

    split_id: int
    items: list[CheckoutItem]
    total_cents: int
    created_at: str


@dataclass
class Payment:
    method: PaymentMethod
    amount_cents: int
