"""Payment settlement: discount, tenders and the cash-only discount.

The module-level functions are pure calculators over cents. `PaymentSession`
holds the state of one settlement and derives every total from it on read, so
there is nothing to keep in sync after a mutation.

Cash discount is a cliff, not a proportion: the bill gets 10% off only when
every tender is CASH and the pre-discount total is fully covered.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from salon_pos.config import CASH_DISCOUNT_PERCENT
from salon_pos.errors import ValidationError
from salon_pos.models import DiscountType, Payment, PaymentMethod
from salon_pos.money import dollars_to_cents, is_cents, percent_of, to_decimal

logger = logging.getLogger(__name__)


def total_paid(payments: list[Payment]) -> int:
    return sum(p.amount_cents for p in payments)


def all_payments_are_cash(payments: list[Payment]) -> bool:
    return bool(payments) and all(p.method == PaymentMethod.CASH for p in payments)


def calculate_potential_cash_discount(total_before_cash_discount: int) -> int:
    return percent_of(total_before_cash_discount, CASH_DISCOUNT_PERCENT)


def calculate_cash_discount(payments: list[Payment], total_before_cash_discount: int) -> int:
    """10% of the bill iff tenders are cash only and cover the pre-discount total."""
    covered = total_before_cash_discount - total_paid(payments) <= 0
    if all_payments_are_cash(payments) and covered:
        return calculate_potential_cash_discount(total_before_cash_discount)
    return 0


def discount_cents_for(subtotal: int, kind: DiscountType, value: int | str | Decimal) -> int:
    """Absolute discount for a DOLLAR (value in cents) or PERCENT discount.

    PERCENT is clamped to [0, 100] of the subtotal; DOLLAR to [0, subtotal].
    """
    kind = DiscountType(kind)
    amount = to_decimal(value)
    if amount is None:
        raise ValidationError(f"Invalid discount value: {value!r}")
    if amount < 0:
        raise ValidationError("Discount cannot be negative")
    if kind == DiscountType.PERCENT:
        return percent_of(subtotal, min(amount, Decimal(100)))
    if amount != amount.to_integral_value():
        raise ValidationError("Dollar discount must be whole cents")
    return min(int(amount), subtotal)


class PaymentSession:
    """One settlement in progress. Discarded on completion or cancel."""

    def __init__(self, subtotal: int, selected_method: PaymentMethod | None = PaymentMethod.CARD) -> None:
        if subtotal < 0:
            raise ValidationError("Subtotal cannot be negative")
        self.subtotal = subtotal
        self.discount_cents = 0
        # Promo and loyalty reward slots; redemption is not implemented.
        self.promo_cents = 0
        self.reward_cents = 0
        self.payments: list[Payment] = []
        self.selected_method = selected_method

    # -------------------- derived totals --------------------

    @property
    def total_before_cash_discount(self) -> int:
        return self.subtotal - self.promo_cents - self.reward_cents - self.discount_cents

    @property
    def total_paid(self) -> int:
        return total_paid(self.payments)

    @property
    def is_cash_only(self) -> bool:
        return all_payments_are_cash(self.payments)

    @property
    def is_fully_covered(self) -> bool:
        return self.total_before_cash_discount - self.total_paid <= 0

    @property
    def cash_discount(self) -> int:
        return calculate_cash_discount(self.payments, self.total_before_cash_discount)

    @property
    def potential_cash_discount(self) -> int:
        """Preview shown while CASH is selected, regardless of coverage."""
        return calculate_potential_cash_discount(self.total_before_cash_discount)

    @property
    def final_total(self) -> int:
        return self.total_before_cash_discount - self.cash_discount

    @property
    def remaining(self) -> int:
        """Amount still owed; negative means change is due."""
        return self.final_total - self.total_paid

    @property
    def change_due(self) -> int:
        return max(0, -self.remaining)

    @property
    def adjusted_remaining(self) -> int:
        """What is left to pay if the rest is settled in cash.

        Nets out the potential cash discount while CASH is selected and no
        other method has been tendered; otherwise equals `remaining`.
        """
        cash_or_none = all(p.method == PaymentMethod.CASH for p in self.payments)
        if self.selected_method == PaymentMethod.CASH and cash_or_none:
            return self.total_before_cash_discount - self.potential_cash_discount - self.total_paid
        return self.remaining

    def is_complete(self) -> bool:
        return self.remaining <= 0

    def payment_for(self, method: PaymentMethod) -> Payment | None:
        for payment in self.payments:
            if payment.method == method:
                return payment
        return None

    # -------------------- mutations --------------------

    def select_method(self, method: PaymentMethod | None) -> None:
        self.selected_method = PaymentMethod(method) if method is not None else None

    def apply_discount(self, kind: DiscountType, value: int | str | Decimal) -> int:
        """Set the single discount slot, replacing any earlier discount."""
        self.discount_cents = discount_cents_for(self.subtotal, kind, value)
        logger.info("discount applied kind=%s value=%s cents=%s", DiscountType(kind).value, value, self.discount_cents)
        return self.discount_cents

    def clear_discount(self) -> None:
        self.discount_cents = 0

    def add_payment(self, method: PaymentMethod, cents: int) -> int:
        """Tender `cents` by `method` and return what was actually applied.

        Non-cash tenders are capped at what is still owed, so only cash can
        produce change. Tenders of a method already used add to its entry.
        """
        method = PaymentMethod(method)
        if not is_cents(cents):
            raise ValidationError(f"Payment amount must be whole cents, got {cents!r}")
        if cents <= 0:
            raise ValidationError("Payment amount must be greater than zero")
        amount = cents
        if method != PaymentMethod.CASH:
            owed = self.remaining
            if owed <= 0:
                logger.warning("payment refused method=%s: nothing owed", method.value)
                return 0
            amount = min(amount, owed)

        existing = self.payment_for(method)
        if existing is not None:
            existing.amount_cents += amount
        else:
            self.payments.append(Payment(method=method, amount_cents=amount))
        logger.info("payment added method=%s cents=%s requested=%s", method.value, amount, cents)
        return amount

    def remove_payment(self, method: PaymentMethod) -> None:
        method = PaymentMethod(method)
        self.payments = [p for p in self.payments if p.method != method]

    def quick_amount(self, dollars: int) -> int:
        """Tender a bill denomination with the selected method."""
        if self.selected_method is None:
            return 0
        return self.add_payment(self.selected_method, dollars_to_cents(dollars))

    def pay_remaining(self) -> int:
        """Tender everything still owed with the selected method."""
        if self.selected_method is None or self.remaining <= 0:
            return 0
        return self.add_payment(self.selected_method, self.remaining)
