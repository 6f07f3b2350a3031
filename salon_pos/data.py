"""Static seed catalog and display labels."""

from __future__ import annotations

from salon_pos.models import PaymentMethod

# Seeded on first run when the catalog is empty. Prices in cents.
DEFAULT_SERVICE_CATALOG: dict[str, list[tuple[str, int]]] = {
    "Manicure": [
        ("Classic Manicure", 2000),
        ("Gel Manicure", 3500),
        ("Dip Powder", 4500),
    ],
    "Pedicure": [
        ("Classic Pedicure", 3000),
        ("Deluxe Pedicure", 4500),
        ("Gel Pedicure", 5000),
    ],
    "Enhancements": [
        ("Full Set Acrylic", 5500),
        ("Acrylic Fill", 4000),
        ("Nail Art (per nail)", 500),
    ],
    "Waxing": [
        ("Eyebrow Wax", 1200),
        ("Lip Wax", 800),
    ],
}

# Button order on the payment screen.
PAYMENT_METHODS: tuple[PaymentMethod, ...] = (
    PaymentMethod.CARD,
    PaymentMethod.CASH,
    PaymentMethod.CHECK,
    PaymentMethod.GIFT_CARD,
)

_METHOD_LABELS: dict[PaymentMethod, str] = {
    PaymentMethod.CASH: "Cash",
    PaymentMethod.CARD: "Card",
    PaymentMethod.CHECK: "Check",
    PaymentMethod.GIFT_CARD: "Gift Card",
}


def method_label(method: PaymentMethod) -> str:
    """Human label for a payment method."""
    return _METHOD_LABELS[method]


def tech_initials(name: str) -> str:
    """Two-letter avatar initials, e.g. `Anna Le` -> `AL`."""
    return "".join(part[0] for part in name.split() if part).upper()[:2]
