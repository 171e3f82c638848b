from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from forging_watcher.actions import NodeActions, ProcessRunner
from forging_watcher.client import NodeClient
from forging_watcher.config import Settings
from forging_watcher.detectors import needs_reload, needs_update
from forging_watcher.errors import FatalError, NodeApiError
from forging_watcher.oracles import HeightOracle, MissedBlockOracle, VersionOracle
from forging_watcher.output import Logger


class ForgingWatcher:
    """
    Keeps one Lisk node updated, in sync with the network and forging.

    Every cycle:
    1. Update if the installed version is not the latest one.
    2. Reload if the node is behind the network or missed a block since the
       previous cycle.
    After either action the node is awaited and forging re-enabled. The
    missed-block baseline is then refreshed and the watcher sleeps.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[NodeClient] = None,
        runner: Optional[ProcessRunner] = None,
        log: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.log = log or Logger(settings.log_file)
        self.client = client or NodeClient(settings)
        self.versions = VersionOracle(settings, self.client)
        self.heights = HeightOracle(self.client)
        self.missed_blocks = MissedBlockOracle(settings, self.client)
        self.actions = NodeActions(settings, self.client, runner=runner, log=self.log, sleep=sleep)

    def check_node_running(self) -> None:
        try:
            self.client.ping()
        except NodeApiError as e:
            raise FatalError(f"Lisk must be running before starting the watcher: {e}") from e

    def log_forging_status(self) -> None:
        try:
            report = self.client.get_forging_status()
        except NodeApiError as e:
            self.log(f"[WARN] Could not read forging status at startup: {e}")
            return
        forging = bool(report) and isinstance(report[0], dict) and report[0].get("forging") is True
        self.log(f"Forging status at startup: {'enabled' if forging else 'disabled'}")

    def recover(self, action: Callable[[], None]) -> None:
        """
        Runs a corrective action, then waits for the API and re-enables
        forging. The order is fixed: the forging call only succeeds against
        a node that answers again.
        """
        action()
        self.actions.wait_until_ready()
        self.actions.enable_forging()

    def run_cycle(self, previous_missed_blocks: int) -> int:
        """
        Runs one reconciliation pass and returns the new missed-block baseline.
        """
        if needs_update(self.versions, log=self.log):
            self.log("[ALERT] Update required. Initiating update...")
            self.recover(self.actions.update)

        # Not an else: an update can itself leave the node behind.
        if needs_reload(self.heights, self.missed_blocks, previous_missed_blocks, log=self.log):
            self.log("[ALERT] Reload required. Initiating reload...")
            self.recover(self.actions.reload)

        return self.missed_blocks.current()

    def run(self, shutdown: Optional[threading.Event] = None, max_cycles: Optional[int] = None) -> int:
        """
        Main execution loop. Returns the last baseline once shutdown is set
        or max_cycles passes have run.
        """
        shutdown = shutdown or threading.Event()
        self.log(f"Starting forging watcher ({self.settings.describe()})")
        if self.settings.dry_run:
            self.log("DRY RUN MODE: update, reload and forging calls will be simulated only")

        self.check_node_running()
        self.log_forging_status()

        baseline = self.missed_blocks.current()
        self.log(f"Initial missed blocks: {baseline}")

        cycles = 0
        while not shutdown.is_set():
            baseline = self.run_cycle(baseline)
            cycles += 1
            self.log(f"Done (missed blocks: {baseline})")
            if max_cycles is not None and cycles >= max_cycles:
                break
            shutdown.wait(timeout=self.settings.check_interval)
        return baseline
