"""Entry point for the salon POS Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from salon_pos.config import LOG_PATH
from salon_pos.pos_app import SalonPosApp


def configure_logging(log_path: str = LOG_PATH) -> None:
    """Send application logs to a file; the terminal belongs to the UI."""
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("salon_pos")
    root.setLevel(logging.INFO)
    root.addHandler(handler)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    SalonPosApp().run()


if __name__ == "__main__":
    main()
