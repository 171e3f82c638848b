from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from forging_watcher import __version__
from forging_watcher.config import Settings
from forging_watcher.errors import NodeApiError


def build_session() -> requests.Session:
    sess = requests.Session()
    sess.headers.update({"User-Agent": f"lisk-forging-watcher/{__version__}"})
    return sess


class NodeClient:
    """
    Thin wrapper over the Lisk Core HTTP API of the managed node, the public
    peer list and the release download host. Every failure is raised as
    NodeApiError; nothing here retries.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or build_session()
        self.timeout = settings.request_timeout
        self.node_url = settings.endpoint.node_url

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            raise NodeApiError(f"{method} {url} failed: {e}") from e

    def _json(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        response = self._request(method, url, **kwargs)
        try:
            payload = response.json()
        except ValueError as e:
            raise NodeApiError(f"Invalid JSON from {url}: {e}") from e
        if not isinstance(payload, dict) or "data" not in payload:
            raise NodeApiError(f"Unexpected response from {url}: missing 'data'")
        return payload

    def _list_data(self, method: str, url: str, **kwargs) -> List[Any]:
        data = self._json(method, url, **kwargs)["data"]
        if not isinstance(data, list):
            raise NodeApiError(f"Unexpected response from {url}: 'data' is not a list")
        return data

    # --- Local node

    def ping(self) -> int:
        """
        Hits the node status endpoint and returns the HTTP status code.
        """
        return self._request("GET", f"{self.node_url}/api/node/status").status_code

    def get_node_status(self) -> Dict[str, Any]:
        data = self._json("GET", f"{self.node_url}/api/node/status")["data"]
        if not isinstance(data, dict):
            raise NodeApiError("Unexpected node status payload")
        return data

    def get_forging_status(self) -> List[Dict[str, Any]]:
        return self._list_data("GET", f"{self.node_url}/api/node/status/forging")

    def set_forging(self, enable: bool = True) -> List[Dict[str, Any]]:
        """
        Toggles forging for the configured delegate key and returns the
        node's per-key forging report.
        """
        body = {
            "forging": enable,
            "publicKey": self.settings.endpoint.public_key,
            "password": self.settings.endpoint.password,
        }
        return self._list_data("PUT", f"{self.node_url}/api/node/status/forging", json=body)

    def get_delegates(self, username: str) -> List[Dict[str, Any]]:
        return self._list_data("GET", f"{self.node_url}/api/delegates", params={"username": username})

    # --- Public network

    def get_peers(self) -> List[Dict[str, Any]]:
        return self._list_data("GET", self.settings.peers_url, params={"limit": self.settings.peer_limit})

    # --- Release host

    def get_text(self, url: str) -> str:
        return self._request("GET", url).text

    def download(self, url: str, dest: Path) -> None:
        """
        Streams url into dest, replacing any existing file.
        """
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)
        except requests.exceptions.RequestException as e:
            raise NodeApiError(f"Download of {url} failed: {e}") from e
