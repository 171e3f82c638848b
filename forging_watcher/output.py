from __future__ import annotations

from datetime import datetime
from pathlib import Path


class Logger:
    """
    Prints a message with a human-readable timestamp, and appends it to
    log_file when one is configured.
    """

    def __init__(self, log_file: str | None = None):
        self.log_file = log_file

    def __call__(self, message: str) -> None:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        entry = f"[{timestamp}] {message}"
        print(entry, flush=True)
        if self.log_file:
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(entry + "\n")
