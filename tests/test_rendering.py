from salon_pos.models import CheckoutItem, PaymentMethod, QueueEntry, QueueStatus, ServiceType
from salon_pos.payment import PaymentSession
from salon_pos.rendering import format_checkout_item, format_payment_summary, format_queue_row

TYPES = [ServiceType(1, "Manicure"), ServiceType(2, "Pedicure")]


def test_queue_row_shows_status_skills_and_next_marker():
    entry = QueueEntry(staff_id=2, name="Anna Le", order=1, turns=2, skills_type_ids=(1,))
    text = format_queue_row(entry, TYPES, is_next=True).plain

    assert "[AL] Anna Le" in text
    assert "turns 2" in text
    assert "IDLE" in text
    assert "Manicure" in text
    assert "next" in text


def test_serving_row_is_busy():
    entry = QueueEntry(staff_id=3, name="Binh", order=2, status=QueueStatus.SERVING)
    assert "BUSY" in format_queue_row(entry, TYPES).plain


def test_checkout_item_flags_manual_and_unpriced():
    assert "[manual amount]" in format_checkout_item(CheckoutItem(1, "Anna", manual_amount_cents=2000)).plain
    assert "(no services yet)" in format_checkout_item(CheckoutItem(2, "Binh")).plain


def test_payment_summary_shows_change_or_remaining():
    session = PaymentSession(10000)
    session.select_method(PaymentMethod.CASH)
    assert "cash saves $10.00" in format_payment_summary(session).plain
    assert "Remaining        $100.00" in format_payment_summary(session).plain

    session.add_payment(PaymentMethod.CASH, 10000)
    summary = format_payment_summary(session).plain
    assert "Cash discount" in summary
    assert "Change due       $10.00" in summary
