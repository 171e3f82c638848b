from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from forging_watcher.client import NodeClient
from forging_watcher.config import Settings
from forging_watcher.errors import OracleError

LOCAL_SOURCE = "local"


@dataclass(frozen=True)
class HeightSample:
    source: str
    height: int


def _as_height(value: Any, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise OracleError(f"Invalid height {value!r} reported by {source}")
    return value


def reduce_peer_height(samples: Iterable[HeightSample]) -> int:
    """
    Collapses peer samples into the reference network height: the lowest
    height among the peers.
    """
    heights = [s.height for s in samples]
    if not heights:
        raise OracleError("No peers returned by the public node")
    return min(heights)


class VersionOracle:
    def __init__(self, settings: Settings, client: NodeClient):
        self.settings = settings
        self.client = client

    def local(self) -> str:
        """
        Reads the installed version from package.json in the installation
        directory.
        """
        path = self.settings.package_manifest
        try:
            with open(path, encoding="utf-8") as f:
                manifest = json.load(f)
        except OSError as e:
            raise OracleError(f"Cannot read {path}: {e}") from e
        except ValueError as e:
            raise OracleError(f"Cannot parse {path}: {e}") from e
        version = manifest.get("version") if isinstance(manifest, dict) else None
        if not isinstance(version, str) or not version:
            raise OracleError(f"No version field in {path}")
        return version

    def latest(self) -> str:
        version = self.client.get_text(self.settings.latest_version_url).strip()
        if not version:
            raise OracleError(f"Empty version published at {self.settings.latest_version_url}")
        return version


class HeightOracle:
    def __init__(self, client: NodeClient):
        self.client = client

    def local(self) -> int:
        status = self.client.get_node_status()
        return _as_height(status.get("height"), LOCAL_SOURCE)

    def peer_samples(self) -> List[HeightSample]:
        samples = []
        for peer in self.client.get_peers():
            if not isinstance(peer, dict):
                raise OracleError(f"Malformed peer record: {peer!r}")
            source = str(peer.get("ip", "?"))
            samples.append(HeightSample(source=source, height=_as_height(peer.get("height"), source)))
        return samples

    def peers(self) -> int:
        return reduce_peer_height(self.peer_samples())


class MissedBlockOracle:
    def __init__(self, settings: Settings, client: NodeClient):
        self.delegate = settings.endpoint.delegate
        self.client = client

    def current(self) -> int:
        delegates = self.client.get_delegates(self.delegate)
        if not delegates:
            raise OracleError(f"Delegate '{self.delegate}' not found")
        record: Dict[str, Any] = delegates[0]
        missed = record.get("missedBlocks") if isinstance(record, dict) else None
        if isinstance(missed, bool) or not isinstance(missed, int) or missed < 0:
            raise OracleError(f"Invalid missedBlocks {missed!r} for delegate '{self.delegate}'")
        return missed
