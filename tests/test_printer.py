import pytest

from salon_pos.config import RECEIPT_HEADER, RECEIPT_LINE_WIDTH
from salon_pos.models import CheckoutItem, PaymentMethod, ServiceLine
from salon_pos.payment import PaymentSession
from salon_pos.printer import receipt_lines, resolve_printer_font_path


def _items():
    return [
        CheckoutItem(
            tech_id=1,
            tech_name="Anna Le",
            services=[ServiceLine(service_id=2, name="Gel Manicure", price_cents=3500)],
        ),
        CheckoutItem(tech_id=2, tech_name="Binh Tran", manual_amount_cents=6500),
    ]


def test_cash_receipt_lists_discount_and_change():
    session = PaymentSession(10000)
    session.add_payment(PaymentMethod.CASH, 10000)

    lines = receipt_lines(_items(), session, "2024-05-01 10:30")

    assert lines[0] == RECEIPT_HEADER
    assert lines[1] == "2024-05-01 10:30"
    assert any(line.startswith("  Gel Manicure") and line.endswith("$35.00") for line in lines)
    assert any(line.startswith("Cash discount") and line.endswith("-$10.00") for line in lines)
    assert any(line.startswith("TOTAL") and line.endswith("$90.00") for line in lines)
    assert any(line.startswith("Change") and line.endswith("$10.00") for line in lines)
    assert all(len(line) <= RECEIPT_LINE_WIDTH for line in lines)


def test_card_receipt_has_no_cash_lines():
    session = PaymentSession(10000)
    session.add_payment(PaymentMethod.CARD, 10000)

    lines = receipt_lines(_items(), session, "now")

    assert not any(line.startswith("Cash discount") for line in lines)
    assert not any(line.startswith("Change") for line in lines)
    assert any(line.startswith("Card") for line in lines)


def test_font_override_from_env(tmp_path, monkeypatch):
    font = tmp_path / "receipt.ttf"
    font.write_bytes(b"")
    monkeypatch.setenv("SALON_POS_PRINTER_FONT_PATH", str(font))
    assert resolve_printer_font_path() == str(font)


def test_font_missing_everywhere(monkeypatch):
    monkeypatch.setattr("salon_pos.printer.PRINTER_FONT_CANDIDATES", ("/nonexistent/font.ttf",))
    monkeypatch.delenv("SALON_POS_PRINTER_FONT_PATH", raising=False)
    with pytest.raises(RuntimeError):
        resolve_printer_font_path()


def test_font_candidates_are_tried_in_order(tmp_path, monkeypatch):
    second = tmp_path / "mono.ttf"
    second.write_bytes(b"")
    monkeypatch.delenv("SALON_POS_PRINTER_FONT_PATH", raising=False)
    monkeypatch.setattr("salon_pos.printer.PRINTER_FONT_CANDIDATES", (str(tmp_path / "missing.ttf"), str(second)))
    assert resolve_printer_font_path() == str(second)
