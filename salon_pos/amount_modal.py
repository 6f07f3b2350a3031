"""Keypad amount entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from salon_pos.money import parse_amount_cents, to_decimal

_MAX_INPUT_LENGTH = 9


class AmountModal(ModalScreen[str | None]):
    """Prompt for a dollar amount or a percent.

    Dismisses with the raw text once it parses to a positive value; Enter does
    nothing while the input is empty or not a number.
    """

    CSS = """
    AmountModal {
        align: center middle;
        background: $background 60%;
    }

    #amount-dialog {
        width: 52;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #amount-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #amount-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #amount-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #amount-help {
        color: #dddddd;
    }
    """

    def __init__(self, title: str, percent: bool = False) -> None:
        super().__init__()
        self.title_text = title
        self.percent = percent
        self.value = ""

    def compose(self) -> ComposeResult:
        with Container(id="amount-dialog"):
            yield Static(self.title_text, id="amount-title")
            yield Static(id="amount-value")
            yield Static(id="amount-error")
            yield Static("Digits and '.'. Enter confirm. Backspace delete. Esc cancel.", id="amount-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def is_committable(self) -> bool:
        if self.percent:
            value = to_decimal(self.value) if self.value else None
            return value is not None and value > 0
        cents = parse_amount_cents(self.value)
        return cents is not None and cents > 0

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            if self.is_committable():
                self.dismiss(self.value)
            event.stop()
            return

        if event.key == "backspace":
            self.value = self.value[:-1]
            self._refresh_content()
            event.stop()
            return

        if not (event.is_printable and event.character):
            return
        char = event.character
        if char.isdigit() or (char == "." and "." not in self.value):
            if len(self.value) < _MAX_INPUT_LENGTH:
                self.value += char
            self._refresh_content()
            event.stop()

    def _refresh_content(self) -> None:
        suffix = " %" if self.percent else ""
        prefix = "" if self.percent else "$ "
        self.query_one("#amount-value", Static).update(f"{prefix}{self.value}{suffix}")
        hint = "" if self.is_committable() or not self.value else "Enter a positive number."
        self.query_one("#amount-error", Static).update(hint)
