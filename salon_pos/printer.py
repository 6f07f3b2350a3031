"""Settlement receipt printing on a USB ESC/POS thermal printer.

`receipt_lines` is pure text layout. The receipt is drawn as a single
bitmap with Pillow and sent with python-escpos, so the printer's built-in
fonts never matter.
"""

from __future__ import annotations

import os
from pathlib import Path

from salon_pos.config import (
    PRINTER_FEED_PX,
    PRINTER_FONT_CANDIDATES,
    PRINTER_FONT_SIZE,
    PRINTER_LINE_SPACING_PX,
    PRINTER_MARGIN_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
    RECEIPT_HEADER,
    RECEIPT_LINE_WIDTH,
)
from salon_pos.data import method_label
from salon_pos.models import CheckoutItem
from salon_pos.money import format_cents
from salon_pos.payment import PaymentSession

FONT_ENV = "SALON_POS_PRINTER_FONT_PATH"
_SEPARATOR = "-" * RECEIPT_LINE_WIDTH


def _two_column(left: str, right: str, width: int = RECEIPT_LINE_WIDTH) -> str:
    """Left text and right-aligned amount on one line, truncating the left side."""
    room = max(1, width - len(right) - 1)
    if len(left) > room:
        left = left[: max(1, room - 1)] + "~"
    return f"{left:<{room}} {right}"


def receipt_lines(items: list[CheckoutItem], session: PaymentSession, printed_at: str) -> list[str]:
    """Text lines of a settlement receipt, top to bottom."""
    lines = [RECEIPT_HEADER, printed_at, _SEPARATOR]
    for item in items:
        lines.append(_two_column(item.tech_name, format_cents(item.amount_cents)))
        if item.manual_amount_cents is None:
            for line in item.services:
                lines.append(_two_column(f"  {line.name}", format_cents(line.price_cents)))
    lines.append(_SEPARATOR)
    lines.append(_two_column("Subtotal", format_cents(session.subtotal)))
    if session.discount_cents:
        lines.append(_two_column("Discount", f"-{format_cents(session.discount_cents)}"))
    if session.cash_discount:
        lines.append(_two_column("Cash discount", f"-{format_cents(session.cash_discount)}"))
    lines.append(_two_column("TOTAL", format_cents(session.final_total)))
    for payment in session.payments:
        lines.append(_two_column(method_label(payment.method), format_cents(payment.amount_cents)))
    if session.change_due:
        lines.append(_two_column("Change", format_cents(session.change_due)))
    lines.append(_SEPARATOR)
    lines.append("Thank you!")
    return lines


def resolve_printer_font_path() -> str:
    """First existing font: the env override, then PRINTER_FONT_CANDIDATES."""
    override = os.environ.get(FONT_ENV, "").strip()
    candidates = ([override] if override else []) + list(PRINTER_FONT_CANDIDATES)
    for candidate in candidates:
        if Path(candidate).is_file():
            return candidate
    raise RuntimeError(f"No receipt font found; set {FONT_ENV} to a .ttf file")


def check_printer_dependencies() -> tuple[bool, str]:
    """(ready, status message) for the status bar at startup."""
    try:
        import escpos.printer  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def render_receipt(lines: list[str], font: object) -> object:
    """Draw every line onto one 1-bit image the width of the paper."""
    from PIL import Image, ImageDraw

    ascent, descent = font.getmetrics()
    pitch = ascent + descent + PRINTER_LINE_SPACING_PX
    height = PRINTER_MARGIN_PX + pitch * len(lines) + PRINTER_FEED_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, height), color=1)
    draw = ImageDraw.Draw(img)
    for row, line in enumerate(lines):
        draw.text((PRINTER_MARGIN_PX, PRINTER_MARGIN_PX + row * pitch), line, font=font, fill=0)
    return img


def print_receipt(lines: list[str]) -> None:
    """Print receipt lines and cut the paper."""
    if not lines:
        return
    from escpos.printer import Usb
    from PIL import ImageFont

    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    try:
        printer.image(render_receipt(lines, font))
        printer.cut()
    finally:
        printer.close()
