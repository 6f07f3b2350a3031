import pytest

from salon_pos.errors import ValidationError
from salon_pos.models import DiscountType, Payment, PaymentMethod
from salon_pos.payment import (
    PaymentSession,
    calculate_cash_discount,
    discount_cents_for,
)


def test_cash_only_full_cover_gets_discount_and_change():
    session = PaymentSession(10000)
    session.add_payment(PaymentMethod.CASH, 10000)

    assert session.cash_discount == 1000
    assert session.final_total == 9000
    assert session.remaining == -1000
    assert session.change_due == 1000
    assert session.is_complete()


def test_card_tender_is_clamped_to_remaining():
    session = PaymentSession(5000)
    applied = session.add_payment(PaymentMethod.CARD, 6000)

    assert applied == 5000
    assert session.payment_for(PaymentMethod.CARD).amount_cents == 5000
    assert session.remaining == 0
    assert session.change_due == 0


def test_percent_discount_lowers_total_before_cash_discount():
    session = PaymentSession(8000)
    assert session.apply_discount(DiscountType.PERCENT, 15) == 1200
    assert session.total_before_cash_discount == 6800


def test_partial_cash_gets_no_discount_until_covered():
    session = PaymentSession(10000)
    session.add_payment(PaymentMethod.CASH, 5000)
    session.add_payment(PaymentMethod.CASH, 4000)
    assert session.cash_discount == 0
    assert session.remaining == 1000

    session.add_payment(PaymentMethod.CASH, 1000)
    assert session.cash_discount == 1000
    assert session.remaining == -1000


def test_mixed_tenders_never_get_cash_discount():
    session = PaymentSession(10000)
    session.add_payment(PaymentMethod.CARD, 5000)
    session.add_payment(PaymentMethod.CASH, 5000)

    assert session.cash_discount == 0
    assert session.final_total == 10000
    assert session.remaining == 0


def test_calculate_cash_discount_requires_cash_only_and_cover():
    assert calculate_cash_discount([], 1000) == 0
    assert calculate_cash_discount([Payment(PaymentMethod.CASH, 999)], 1000) == 0
    assert calculate_cash_discount([Payment(PaymentMethod.CASH, 1000)], 1000) == 100
    assert calculate_cash_discount([Payment(PaymentMethod.CHECK, 1000)], 1000) == 0


def test_non_cash_tender_when_nothing_owed_applies_nothing():
    session = PaymentSession(3000)
    session.add_payment(PaymentMethod.CARD, 3000)

    assert session.add_payment(PaymentMethod.GIFT_CARD, 500) == 0
    assert session.payment_for(PaymentMethod.GIFT_CARD) is None
    assert session.total_paid == 3000


def test_tenders_accumulate_per_method():
    session = PaymentSession(10000)
    session.add_payment(PaymentMethod.CHECK, 2000)
    session.add_payment(PaymentMethod.CHECK, 3000)

    assert len(session.payments) == 1
    assert session.payment_for(PaymentMethod.CHECK).amount_cents == 5000


def test_remove_payment_restores_remaining():
    session = PaymentSession(4000)
    session.add_payment(PaymentMethod.CARD, 1500)
    session.add_payment(PaymentMethod.CASH, 1000)
    session.remove_payment(PaymentMethod.CARD)

    assert [p.method for p in session.payments] == [PaymentMethod.CASH]
    assert session.remaining == 3000


@pytest.mark.parametrize("amount", [0, -100])
def test_non_positive_tender_is_rejected(amount):
    session = PaymentSession(1000)
    with pytest.raises(ValidationError):
        session.add_payment(PaymentMethod.CASH, amount)
    assert session.payments == []


def test_discount_clamps():
    assert discount_cents_for(5000, DiscountType.PERCENT, 150) == 5000
    assert discount_cents_for(5000, DiscountType.DOLLAR, 9000) == 5000
    assert discount_cents_for(5000, DiscountType.DOLLAR, 700) == 700
    assert discount_cents_for(5000, DiscountType.PERCENT, "12.5") == 625


def test_invalid_discounts_are_rejected():
    with pytest.raises(ValidationError):
        discount_cents_for(5000, DiscountType.PERCENT, -1)
    with pytest.raises(ValidationError):
        discount_cents_for(5000, DiscountType.DOLLAR, "10.5")
    with pytest.raises(ValidationError):
        discount_cents_for(5000, DiscountType.DOLLAR, "ten")


def test_apply_discount_replaces_previous():
    session = PaymentSession(10000)
    session.apply_discount(DiscountType.DOLLAR, 2500)
    session.apply_discount(DiscountType.PERCENT, 10)
    assert session.discount_cents == 1000

    session.clear_discount()
    assert session.total_before_cash_discount == 10000


def test_quick_amount_uses_selected_method():
    session = PaymentSession(10000)
    session.select_method(PaymentMethod.CASH)
    session.quick_amount(20)
    session.quick_amount(20)
    assert session.payment_for(PaymentMethod.CASH).amount_cents == 4000

    session.select_method(None)
    assert session.quick_amount(50) == 0


def test_pay_remaining_with_card_completes():
    session = PaymentSession(4550)
    session.add_payment(PaymentMethod.CASH, 1000)
    session.select_method(PaymentMethod.CARD)

    assert session.pay_remaining() == 3550
    assert session.is_complete()
    assert session.pay_remaining() == 0


def test_pay_remaining_in_cash_earns_discount_as_change():
    session = PaymentSession(10000)
    session.select_method(PaymentMethod.CASH)
    assert session.adjusted_remaining == 9000

    session.pay_remaining()
    assert session.total_paid == 10000
    assert session.final_total == 9000
    assert session.change_due == 1000


def test_adjusted_remaining_previews_cash_net():
    session = PaymentSession(10000)
    assert session.adjusted_remaining == 10000
    assert session.potential_cash_discount == 1000

    session.select_method(PaymentMethod.CASH)
    session.add_payment(PaymentMethod.CASH, 2000)
    assert session.adjusted_remaining == 7000
    assert session.remaining == 8000

    session.add_payment(PaymentMethod.CARD, 1000)
    assert session.adjusted_remaining == session.remaining


def test_negative_subtotal_is_rejected():
    with pytest.raises(ValidationError):
        PaymentSession(-1)


@pytest.mark.parametrize("amount", [10.5, 1000.0, "1000", True])
def test_tender_must_be_integer_cents(amount):
    session = PaymentSession(1000)
    with pytest.raises(ValidationError):
        session.add_payment(PaymentMethod.CASH, amount)
    assert session.payments == []
