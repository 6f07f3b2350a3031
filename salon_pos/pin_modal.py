"""PIN entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from salon_pos.config import PIN_MAX_LENGTH


class PinModal(ModalScreen[str | None]):
    """Prompt for a staff PIN; dismisses with the digits or None on cancel."""

    CSS = """
    PinModal {
        align: center middle;
        background: $background 60%;
    }

    #pin-dialog {
        width: 48;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #pin-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #pin-prompt {
        color: white;
        margin-bottom: 1;
    }

    #pin-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #pin-help {
        color: #dddddd;
    }
    """

    def __init__(self, title: str, prompt: str = "Enter your PIN") -> None:
        super().__init__()
        self.title_text = title
        self.prompt_text = prompt
        self.value = ""

    def compose(self) -> ComposeResult:
        with Container(id="pin-dialog"):
            yield Static(self.title_text, id="pin-title")
            yield Static(self.prompt_text, id="pin-prompt")
            yield Static(id="pin-value")
            yield Static("Digits only. Enter confirm. Backspace delete. Esc cancel.", id="pin-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            if self.value:
                self.dismiss(self.value)
            event.stop()
            return

        if event.key == "backspace":
            self.value = self.value[:-1]
            self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and event.character.isdigit():
            if len(self.value) < PIN_MAX_LENGTH:
                self.value += event.character
            self._refresh_content()
            event.stop()

    def _refresh_content(self) -> None:
        self.query_one("#pin-value", Static).update("●" * len(self.value))
