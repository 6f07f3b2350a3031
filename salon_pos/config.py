"""Runtime configuration defaults for persistence, settlement and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("SALON_POS_DB_PATH", "data/salon-pos.db")
LOG_PATH = os.environ.get("SALON_POS_LOG_PATH", "/tmp/salon-pos.log")

# Staff id 1 is the hardcoded owner seeded on first run.
OWNER_STAFF_ID = 1
OWNER_DEFAULT_PIN = "123456"

# Cash-only settlements get this percent off the bill.
CASH_DISCOUNT_PERCENT = 10

# Bill denominations offered as quick cash buttons (dollars).
QUICK_AMOUNTS = (100, 50, 20, 10, 5, 2, 1)

PIN_MAX_LENGTH = 6

# Receipt printer (58mm ESC/POS over USB).
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 28
# Monospace fonts tried in order after SALON_POS_PRINTER_FONT_PATH.
PRINTER_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/liberation/LiberationMono-Regular.ttf",
    "/System/Library/Fonts/Menlo.ttc",
)
PRINTER_MARGIN_PX = 8
PRINTER_LINE_SPACING_PX = 6
PRINTER_FEED_PX = 70
RECEIPT_HEADER = "Salon POS"
RECEIPT_LINE_WIDTH = 24
