from __future__ import annotations

import os
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence

from forging_watcher.client import NodeClient
from forging_watcher.config import Settings
from forging_watcher.errors import ActionError, NodeApiError
from forging_watcher.retry import RetryOutcome, retry


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    output: str


class ProcessRunner(Protocol):
    def run(self, args: Sequence[str]) -> ProcessResult:
        ...


class SubprocessRunner:
    """Runs external scripts and captures their output."""

    def run(self, args: Sequence[str]) -> ProcessResult:
        result = subprocess.run(list(args), capture_output=True, text=True)
        output = result.stdout
        if result.returncode != 0 and result.stderr:
            output = f"{output}{result.stderr}"
        return ProcessResult(exit_code=result.returncode, output=output)


class NodeActions:
    """
    Corrective actions against the managed node. Each one either reaches its
    post-condition or raises ActionError; none of them retry.
    """

    def __init__(
        self,
        settings: Settings,
        client: NodeClient,
        runner: Optional[ProcessRunner] = None,
        log: Callable[[str], None] = print,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.client = client
        self.runner = runner or SubprocessRunner()
        self.log = log
        self.sleep = sleep
        self.dry_run = settings.dry_run

    def _run_script(self, args: List[str], label: str) -> str:
        try:
            result = self.runner.run(args)
        except OSError as e:
            raise ActionError(f"Could not start {label} ({args[0]}): {e}") from e
        if result.output:
            self.log(result.output.rstrip())
        if result.exit_code != 0:
            raise ActionError(f"{label} exited with status {result.exit_code}")
        return result.output

    def update(self) -> None:
        """
        Downloads a fresh installer and runs it in upgrade mode.
        A failed run leaves the script on disk for inspection.
        """
        settings = self.settings
        script = settings.installer_path
        args = [
            str(script),
            "upgrade",
            "-r", settings.network,
            "-d", settings.endpoint.home_path,
            "-0", "no",
        ]
        if self.dry_run:
            self.log(f"[DRY RUN] Would download {settings.installer_url} and run: {' '.join(args)}")
            return

        try:
            script.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise ActionError(f"Could not remove old installer {script}: {e}") from e

        self.log(f"Downloading installer from {settings.installer_url}")
        try:
            self.client.download(settings.installer_url, script)
        except NodeApiError as e:
            raise ActionError(str(e)) from e
        except OSError as e:
            raise ActionError(f"Could not write installer to {script}: {e}") from e

        try:
            os.chmod(script, 0o755)
        except OSError as e:
            raise ActionError(f"Could not make {script} executable: {e}") from e

        self.log("Beginning Lisk update...")
        self._run_script(args, "Installer")
        self.log("[OK] Update finished")

    def reload(self) -> None:
        args = [str(self.settings.reload_script), "reload"]
        if self.dry_run:
            self.log(f"[DRY RUN] Would execute reload command: {' '.join(args)}")
            return
        self.log(f"Executing reload command: {' '.join(args)}")
        self._run_script(args, "Reload script")
        self.log("[OK] Reload finished")

    def enable_forging(self) -> None:
        """
        Enables forging and checks the node reports it as active.
        """
        if self.dry_run:
            self.log(f"[DRY RUN] Would enable forging for {self.settings.endpoint.public_key}")
            return
        try:
            report = self.client.set_forging(True)
        except NodeApiError as e:
            raise ActionError(f"Enable forging request failed: {e}") from e
        if not report or not isinstance(report[0], dict) or report[0].get("forging") is not True:
            raise ActionError("Could not enable forging")
        self.log("[OK] Forging is enabled")

    def wait_until_ready(self) -> RetryOutcome:
        """
        Polls the node status endpoint until it answers. The API is not
        available immediately after an update or reload.
        """
        max_attempts = self.settings.ready_max_attempts

        def probe(attempt: int):
            try:
                self.client.ping()
            except NodeApiError as e:
                self.log(f"Node API not ready (attempt {attempt}/{max_attempts}): {e}")
                return True, e
            return True, None

        outcome = retry(
            probe,
            max_attempts=max_attempts,
            delay=self.settings.ready_delay,
            sleep=self.sleep,
        )
        self.log("[OK] Node API is ready")
        return outcome
