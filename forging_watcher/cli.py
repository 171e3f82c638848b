from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from forging_watcher.config import load_settings
from forging_watcher.errors import FatalError
from forging_watcher.output import Logger
from forging_watcher.watcher import ForgingWatcher


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="forging-watcher",
        description="Lisk forging watcher: auto-updates the node, reloads it when it falls behind "
        "or misses blocks, and re-enables forging afterwards.",
    )
    parser.add_argument(
        "config",
        nargs="?",
        type=Path,
        default=Path("config.json"),
        help="Path to the JSON or YAML configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Perform checks without updating, reloading or changing forging state",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_arguments(argv)
    settings = load_settings(args.config, dry_run=args.dry_run)
    log = Logger(settings.log_file)

    shutdown = threading.Event()

    def on_signal(signum: int, frame: object) -> None:
        log(f"Received signal {signum}, stopping after the current cycle")
        shutdown.set()

    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)

    try:
        ForgingWatcher(settings, log=log).run(shutdown)
    except FatalError as e:
        log(f"FATAL: {e}")
        sys.exit(1)
    log("Watcher stopped")


if __name__ == "__main__":
    main()
