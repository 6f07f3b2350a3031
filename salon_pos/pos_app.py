"""Main Textual app: the terminal controller for the queue and checkout."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Header, Static

from salon_pos.amount_modal import AmountModal
from salon_pos.checkout import CheckoutSession, SplitLedger, candidate_technicians
from salon_pos.config import QUICK_AMOUNTS
from salon_pos.data import PAYMENT_METHODS, method_label
from salon_pos.errors import PosError
from salon_pos.models import DiscountType, QueueEntry, QueueStatus, Role, Service, ServiceType, Staff
from salon_pos.money import format_cents, parse_amount_cents, to_decimal
from salon_pos.payment import PaymentSession
from salon_pos.persistence import PosDatabase
from salon_pos.pin_modal import PinModal
from salon_pos.printer import check_printer_dependencies, print_receipt, receipt_lines
from salon_pos.rendering import (
    format_checkout_item,
    format_payment_summary,
    format_queue_row,
    format_split,
)
from salon_pos.turns import TurnQueue

logger = logging.getLogger(__name__)

_HELP = {
    "queue": "j/k move  s start  r revert  o clock-out  b batch  [/] reorder  f filter  i clock-in  x reset  c checkout",
    "clockin": "j/k move  Enter pick/unpick  Ctrl+S add to queue  Esc back",
    "checkout": "j/k move  Enter add tech / resume split  d delete split  e edit  v save split  p pay  Esc back",
    "services": "j/k move  Enter add  t type  m manual $  d remove service  x remove tech  Esc back",
    "payment": "j/k method  Enter amount  1-7 quick $  a pay rest  d remove  %/$ discount  Ctrl+S complete  Esc back",
}


class SalonPosApp(App):
    """Queue board, clock-in, checkout staging and settlement in one terminal."""

    TITLE = "Salon POS"
    SUB_TITLE = "Turns / Checkout"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #list-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #side-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #status-bar {
        border: heavy $secondary;
        padding: 0 1;
        height: 4;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    active_view = reactive("queue")
    row_cursor = reactive(0)

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, db: PosDatabase | None = None) -> None:
        super().__init__()
        self.db = db or PosDatabase()
        self.turns = TurnQueue(self.db)
        self.ledger = SplitLedger(self.db)
        self.checkout = CheckoutSession()
        self.payment: PaymentSession | None = None
        self.system_status = ""
        self.batch_mode = False
        self.skill_filter: int | None = None
        self.clockin_picks: list[int] = []
        self.service_type_index = 0
        self.printer_ready = False

        self.queue_rows: list[QueueEntry] = []
        self.service_types: list[ServiceType] = []
        self.services: list[Service] = []
        self.clockin_candidates: list[Staff] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="list-pane"):
                yield Static("Queue", id="list-title", classes="pane-title")
                yield Static(id="list-body")
            with Vertical(id="side-pane"):
                yield Static("", id="side-title", classes="pane-title")
                yield Static(id="side-body")
        yield Static(id="status-bar")

    def on_mount(self) -> None:
        self.db.bootstrap_schema()
        self.service_types = self.db.get_service_types()
        self.services = self.db.get_all_services()
        self.printer_ready, msg = check_printer_dependencies()
        self.system_status = msg
        logger.info("app mounted printer_ready=%s", self.printer_ready)
        self._refresh_all()

    # -------------------- key dispatch --------------------

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        handler: Callable[[Key], bool] = getattr(self, f"_key_{self.active_view}")
        if handler(event):
            event.stop()
            self._refresh_all()

    def _move_cursor(self, key: str, total: int) -> bool:
        if key not in {"j", "k", "down", "up"}:
            return False
        if total <= 0:
            self.row_cursor = 0
            return True
        delta = 1 if key in {"j", "down"} else -1
        self.row_cursor = (self.row_cursor + delta) % total
        return True

    def _attempt(self, action: Callable[[], object], success: str | None = None) -> bool:
        """Run a core call; show PosError messages instead of crashing the app."""
        try:
            action()
        except PosError as exc:
            logger.warning("operation rejected view=%s: %s", self.active_view, exc)
            self.system_status = str(exc)
            return False
        if success:
            self.system_status = success
        return True

    def _switch(self, view: str) -> None:
        self.active_view = view
        self.row_cursor = 0
        self._refresh_all()

    # -------------------- queue view --------------------

    def _key_queue(self, event: Key) -> bool:
        self.queue_rows = self.turns.filter_by_skill(self.skill_filter)
        if self._move_cursor(event.key, len(self.queue_rows)):
            return True
        char = event.character or ""
        entry = self.queue_rows[self.row_cursor] if 0 <= self.row_cursor < len(self.queue_rows) else None

        if char == "s" and entry is not None:
            self._attempt(lambda: self.turns.start(entry.staff_id), f"{entry.name} started serving")
            return True
        if char == "r" and entry is not None:
            self._prompt_pin(f"Revert {entry.name} to idle", lambda pin: self._revert(entry, pin))
            return True
        if char == "o" and entry is not None:
            if self.batch_mode:
                self._attempt(lambda: self.turns.clock_out_many([entry.staff_id]), f"{entry.name} clocked out")
            else:
                self._prompt_pin(f"Clock out {entry.name}", lambda pin: self._clock_out(entry, pin))
            return True
        if char == "b":
            if self.batch_mode:
                self.batch_mode = False
                self.system_status = "Batch clock-out off"
            else:
                self._prompt_pin("Batch clock-out", self._unlock_batch, "Receptionist PIN")
            return True
        if char in {"[", "]"} and entry is not None and self.skill_filter is None:
            self._reorder(entry, -1 if char == "[" else 1)
            return True
        if char == "f":
            ids: list[int | None] = [None, *(t.service_type_id for t in self.service_types)]
            self.skill_filter = ids[(ids.index(self.skill_filter) + 1) % len(ids)]
            self.row_cursor = 0
            return True
        if char == "i":
            self._prompt_pin("Clock-in", self._open_clockin, "Receptionist PIN")
            return True
        if char == "x":
            self._prompt_pin("Reset queue and delete all splits", self._reset, "Receptionist PIN")
            return True
        if char == "c":
            self._switch("checkout")
            return True
        return False

    def _revert(self, entry: QueueEntry, pin: str) -> None:
        ok = False

        def run() -> None:
            nonlocal ok
            ok = self.turns.revert_to_idle(entry.staff_id, pin)

        if self._attempt(run):
            self.system_status = f"{entry.name} is idle again" if ok else "PIN not accepted"

    def _clock_out(self, entry: QueueEntry, pin: str) -> None:
        ok = False

        def run() -> None:
            nonlocal ok
            ok = self.turns.clock_out(entry.staff_id, pin)

        if self._attempt(run):
            self.system_status = f"{entry.name} clocked out" if ok else "PIN not accepted"

    def _unlock_batch(self, pin: str) -> None:
        self.batch_mode = self.turns.unlock_batch_clock_out(pin)
        self.system_status = "Batch clock-out on: o removes without PIN" if self.batch_mode else "PIN not accepted"

    def _reorder(self, entry: QueueEntry, delta: int) -> None:
        ids = [e.staff_id for e in self.turns.entries()]
        idx = ids.index(entry.staff_id)
        target = idx + delta
        if not (0 <= target < len(ids)):
            return
        ids[idx], ids[target] = ids[target], ids[idx]
        if self._attempt(lambda: self.turns.save_order(ids)):
            self.row_cursor = target

    def _reset(self, pin: str) -> None:
        if self.db.verify_receptionist_pin(pin) is None:
            self.system_status = "PIN not accepted"
            return
        if self._attempt(self.turns.reset, "Queue reset"):
            self.checkout.clear()
            self.payment = None
            self.batch_mode = False

    # -------------------- clock-in view --------------------

    def _open_clockin(self, pin: str) -> None:
        if self.db.verify_receptionist_pin(pin) is None:
            self.system_status = "PIN not accepted"
            return
        queued = {e.staff_id for e in self.turns.entries()}
        self.clockin_candidates = [
            s for s in self.db.get_all_staff() if s.is_active and s.has_role(Role.TECH) and s.staff_id not in queued
        ]
        self.clockin_picks = []
        self._switch("clockin")

    def _key_clockin(self, event: Key) -> bool:
        if self._move_cursor(event.key, len(self.clockin_candidates)):
            return True
        if event.key == "escape":
            self._switch("queue")
            return True
        if event.key == "enter" and self.clockin_candidates:
            staff_id = self.clockin_candidates[self.row_cursor].staff_id
            if staff_id in self.clockin_picks:
                self.clockin_picks.remove(staff_id)
            else:
                self.clockin_picks.append(staff_id)
            return True
        if event.key == "ctrl+s":
            if not self.clockin_picks:
                self.system_status = "Nobody picked"
                return True
            if self._attempt(lambda: self.turns.bulk_add(self.clockin_picks), "Clocked in"):
                self._switch("queue")
            return True
        return False

    # -------------------- checkout view --------------------

    def _checkout_rows(self) -> list[tuple[str, object]]:
        rows: list[tuple[str, object]] = [("tech", e) for e in candidate_technicians(self.db)]
        rows.extend(("split", s) for s in self.ledger.all_splits())
        return rows

    def _key_checkout(self, event: Key) -> bool:
        rows = self._checkout_rows()
        if self._move_cursor(event.key, len(rows)):
            return True
        char = event.character or ""
        row = rows[self.row_cursor] if 0 <= self.row_cursor < len(rows) else None

        if event.key == "escape":
            self._switch("queue")
            return True
        if event.key == "enter" and row is not None:
            kind, value = row
            if kind == "tech":
                assert isinstance(value, QueueEntry)
                self.checkout.add_technician(value.staff_id, value.name)
                self._switch("services")
            else:
                self._resume(value.split_id)
            return True
        if char == "d" and row is not None and row[0] == "split":
            self._attempt(lambda: self.ledger.delete_split(row[1].split_id), "Split deleted")
            return True
        if char == "e" and self.checkout.items:
            self.checkout.select(self.checkout.items[0].tech_id)
            self._switch("services")
            return True
        if char == "v":
            self._attempt(lambda: self.ledger.create_split(self.checkout), "Split saved")
            return True
        if char == "p":
            self._open_payment()
            return True
        return False

    def _resume(self, split_id: int) -> None:
        if not self.checkout.is_empty():
            self.system_status = "Save or clear the current checkout before resuming a split"
            return
        self._attempt(lambda: self.ledger.resume_split(self.checkout, split_id), f"Split #{split_id} resumed")

    def _open_payment(self) -> None:
        if not self.checkout.ready_for_settlement():
            self.system_status = "Every technician needs a service or an amount"
            return
        total = self.checkout.compute_total()
        if total <= 0:
            self.system_status = "Nothing to pay"
            return
        self.payment = PaymentSession(total)
        self._switch("payment")

    # -------------------- services view --------------------

    def _visible_services(self) -> list[Service]:
        if not self.service_types:
            return self.services
        type_id = self.service_types[self.service_type_index % len(self.service_types)].service_type_id
        return [s for s in self.services if s.type_id == type_id]

    def _key_services(self, event: Key) -> bool:
        item = self.checkout.selected
        if item is None:
            self._switch("checkout")
            return True
        services = self._visible_services()
        if self._move_cursor(event.key, len(services)):
            return True
        char = event.character or ""

        if event.key == "escape":
            self.checkout.clear_selection()
            self._switch("checkout")
            return True
        if event.key == "enter" and services:
            self._attempt(lambda: self.checkout.add_service(item.tech_id, services[self.row_cursor]))
            return True
        if char == "t" and self.service_types:
            self.service_type_index = (self.service_type_index + 1) % len(self.service_types)
            self.row_cursor = 0
            return True
        if char == "m":
            self.push_screen(AmountModal(f"Manual amount for {item.tech_name}"), self._manual_amount_entered)
            return True
        if char == "d" and services:
            self._attempt(lambda: self.checkout.remove_service(item.tech_id, services[self.row_cursor].service_id))
            return True
        if char == "x":
            self.checkout.remove_technician(item.tech_id)
            self._switch("checkout")
            return True
        return False

    def _manual_amount_entered(self, value: str | None) -> None:
        item = self.checkout.selected
        cents = parse_amount_cents(value) if value else None
        if item is None or cents is None:
            return
        self._attempt(lambda: self.checkout.set_manual_amount(item.tech_id, cents))
        self._refresh_all()

    # -------------------- payment view --------------------

    def _key_payment(self, event: Key) -> bool:
        session = self.payment
        if session is None:
            self._switch("checkout")
            return True
        if self._move_cursor(event.key, len(PAYMENT_METHODS)):
            session.select_method(PAYMENT_METHODS[self.row_cursor])
            return True
        char = event.character or ""

        if event.key == "escape":
            self.payment = None
            self._switch("checkout")
            return True
        if event.key == "enter" and session.selected_method is not None:
            self.push_screen(AmountModal(f"{method_label(session.selected_method)} amount"), self._tender_entered)
            return True
        if char.isdecimal() and 1 <= int(char) <= len(QUICK_AMOUNTS):
            self._attempt(lambda: session.quick_amount(QUICK_AMOUNTS[int(char) - 1]))
            return True
        if char == "a":
            self._attempt(session.pay_remaining)
            return True
        if char == "d" and session.selected_method is not None:
            session.remove_payment(session.selected_method)
            return True
        if char == "%":
            self.push_screen(AmountModal("Discount percent", percent=True), self._percent_entered)
            return True
        if char == "$":
            self.push_screen(AmountModal("Discount amount"), self._dollar_entered)
            return True
        if event.key == "ctrl+s":
            self._complete_payment()
            return True
        return False

    def _tender_entered(self, value: str | None) -> None:
        session = self.payment
        cents = parse_amount_cents(value) if value else None
        if session is None or session.selected_method is None or cents is None:
            return
        method = session.selected_method
        self._attempt(lambda: session.add_payment(method, cents))
        self._refresh_all()

    def _percent_entered(self, value: str | None) -> None:
        percent = to_decimal(value) if value else None
        if self.payment is None or percent is None:
            return
        session = self.payment
        self._attempt(lambda: session.apply_discount(DiscountType.PERCENT, percent))
        self._refresh_all()

    def _dollar_entered(self, value: str | None) -> None:
        cents = parse_amount_cents(value) if value else None
        if self.payment is None or cents is None:
            return
        session = self.payment
        self._attempt(lambda: session.apply_discount(DiscountType.DOLLAR, cents))
        self._refresh_all()

    def _complete_payment(self) -> None:
        session = self.payment
        if session is None or not session.is_complete():
            self.system_status = "Payment is not complete"
            return
        items = [item.copy() for item in self.checkout.items]
        logger.info(
            "checkout complete techs=%s total_cents=%s paid_cents=%s change_cents=%s",
            [item.tech_id for item in items],
            session.final_total,
            session.total_paid,
            session.change_due,
        )
        status = f"Paid {format_cents(session.final_total)}"
        if session.change_due:
            status += f", change {format_cents(session.change_due)}"
        if self.printer_ready:
            try:
                print_receipt(receipt_lines(items, session, datetime.now().strftime("%Y-%m-%d %H:%M")))
            except Exception as exc:
                logger.error("receipt print failed: %s", exc)
                status += f" (receipt failed: {exc})"
        self.checkout.clear()
        self.payment = None
        self.system_status = status
        self._switch("queue")

    # -------------------- PIN prompt --------------------

    def _prompt_pin(self, title: str, on_pin: Callable[[str], None], prompt: str = "Enter your PIN") -> None:
        def done(pin: str | None) -> None:
            if pin is None:
                return
            self._attempt(lambda: on_pin(pin))
            self._refresh_all()

        self.push_screen(PinModal(title, prompt), done)

    # -------------------- rendering --------------------

    def _refresh_all(self) -> None:
        try:
            title = self.query_one("#list-title", Static)
            body = self.query_one("#list-body", Static)
            side_title = self.query_one("#side-title", Static)
            side = self.query_one("#side-body", Static)
            bar = self.query_one("#status-bar", Static)
        except NoMatches:
            return

        renderer = getattr(self, f"_render_{self.active_view}")
        list_title, list_text, side_heading, side_text = renderer()
        title.update(list_title)
        body.update(list_text)
        side_title.update(side_heading)
        side.update(side_text)
        bar.update(f"{_HELP[self.active_view]}\n{self.system_status or 'Ready'}")

    def _pointer(self, idx: int) -> str:
        return "➤ " if idx == self.row_cursor else "  "

    def _render_queue(self) -> tuple[str, Text, str, Text]:
        self.queue_rows = self.turns.filter_by_skill(self.skill_filter)
        next_up = self.turns.next_up()
        lines = Text()
        if not self.queue_rows:
            lines.append("No techs clocked in. Press i to clock in." if self.skill_filter is None else "No techs for this service type.")
        for idx, entry in enumerate(self.queue_rows):
            if idx:
                lines.append("\n")
            lines.append(self._pointer(idx))
            is_next = next_up is not None and next_up.staff_id == entry.staff_id
            lines.append_text(format_queue_row(entry, self.service_types, is_next=is_next))

        filter_name = "All"
        for service_type in self.service_types:
            if service_type.service_type_id == self.skill_filter:
                filter_name = service_type.name
        title = f"Queue ({filter_name})" + ("  [BATCH CLOCK-OUT]" if self.batch_mode else "")
        serving = [e for e in self.queue_rows if e.status == QueueStatus.SERVING]
        side = Text(f"{len(serving)} serving\n{len(self.queue_rows) - len(serving)} idle")
        if not self.checkout.is_empty():
            side.append(f"\n\nCheckout open: {format_cents(self.checkout.compute_total())}", style="bold")
        return title, lines, "Summary", side

    def _render_clockin(self) -> tuple[str, Text, str, Text]:
        lines = Text()
        if not self.clockin_candidates:
            lines.append("Every active tech is already clocked in.")
        for idx, staff in enumerate(self.clockin_candidates):
            if idx:
                lines.append("\n")
            checked = "[x]" if staff.staff_id in self.clockin_picks else "[ ]"
            lines.append(f"{self._pointer(idx)}{checked} {staff.name}")
        names = {s.staff_id: s.name for s in self.clockin_candidates}
        side = Text()
        for pos, staff_id in enumerate(self.clockin_picks, start=1):
            side.append(f"{pos}. {names.get(staff_id, staff_id)}\n")
        return "Clock-in", lines, "Joining queue in order", side

    def _render_checkout(self) -> tuple[str, Text, str, Text]:
        rows = self._checkout_rows()
        lines = Text()
        if not rows:
            lines.append("No techs currently serving and no saved splits.")
        staged = {item.tech_id for item in self.checkout.items}
        for idx, (kind, value) in enumerate(rows):
            if idx:
                lines.append("\n")
            lines.append(self._pointer(idx))
            if kind == "tech":
                assert isinstance(value, QueueEntry)
                lines.append(value.name, style="dim" if value.staff_id in staged else "bold")
            else:
                lines.append("split ", style="dim")
                lines.append_text(format_split(value))
        return "Serving techs / Splits", lines, "Checkout", self._staged_text()

    def _staged_text(self) -> Text:
        text = Text()
        if self.checkout.is_empty():
            text.append("(no techs yet)")
            return text
        for idx, item in enumerate(self.checkout.items):
            if idx:
                text.append("\n")
            marker = "➤ " if item.tech_id == self.checkout.selected_tech_id else "  "
            text.append(marker)
            text.append_text(format_checkout_item(item))
        text.append(f"\n\nTotal {format_cents(self.checkout.compute_total())}", style="bold")
        if not self.checkout.ready_for_settlement():
            text.append("\nEvery tech needs a service or an amount", style="#ffb3b3")
        return text

    def _render_services(self) -> tuple[str, Text, str, Text]:
        services = self._visible_services()
        lines = Text()
        for idx, service in enumerate(services):
            if idx:
                lines.append("\n")
            lines.append(f"{self._pointer(idx)}{service.name}  {format_cents(service.price_cents)}")
        type_name = ""
        if self.service_types:
            type_name = self.service_types[self.service_type_index % len(self.service_types)].name
        item = self.checkout.selected
        heading = f"Charges for {item.tech_name}" if item is not None else "Checkout"
        return f"Services: {type_name}", lines, heading, self._staged_text()

    def _render_payment(self) -> tuple[str, Text, str, Text]:
        session = self.payment
        lines = Text()
        if session is None:
            return "Payment", lines, "", Text()
        for idx, method in enumerate(PAYMENT_METHODS):
            if idx:
                lines.append("\n")
            paid = session.payment_for(method)
            lines.append(f"{self._pointer(idx)}{method_label(method)}")
            if paid is not None:
                lines.append(f"  {format_cents(paid.amount_cents)}", style="bold")
        quick = "  ".join(f"{n}:${amount}" for n, amount in enumerate(QUICK_AMOUNTS, start=1))
        lines.append(f"\n\nQuick: {quick}", style="dim")
        if session.is_complete():
            lines.append("\n\nReady: Ctrl+S to complete", style="bold #5fbf72")
        return "Payment method", lines, "Summary", format_payment_summary(session)
