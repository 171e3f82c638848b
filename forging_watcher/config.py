from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULTS: Dict[str, Any] = {
    "network": "test",
    "downloads_url": "https://downloads.lisk.io/lisk",
    "public_node_port": 7000,
    "peer_limit": 100,
    "check_interval": 5,
    "ready_max_attempts": 10,
    "ready_delay": 10,
    "request_timeout": 10,
    "log_file": None,
    "dry_run": False,
}

REQUIRED_KEYS = (
    "node_url",
    "public_key",
    "password",
    "delegate",
    "home_path",
    "installation_path",
    "public_node_url",
)

# CamelCase keys of older config.json files
LEGACY_KEYS = {
    "NodeURL": "node_url",
    "PublicKey": "public_key",
    "Password": "password",
    "Delegate": "delegate",
    "HomePath": "home_path",
    "InstallationPath": "installation_path",
    "PublicNodeURL": "public_node_url",
}


@dataclass(frozen=True)
class NodeEndpoint:
    node_url: str
    public_node_url: str
    installation_path: str
    home_path: str
    delegate: str
    public_key: str
    password: str


@dataclass(frozen=True)
class Settings:
    endpoint: NodeEndpoint
    network: str = DEFAULTS["network"]
    downloads_url: str = DEFAULTS["downloads_url"]
    public_node_port: Optional[int] = DEFAULTS["public_node_port"]
    peer_limit: int = DEFAULTS["peer_limit"]
    check_interval: float = DEFAULTS["check_interval"]
    ready_max_attempts: int = DEFAULTS["ready_max_attempts"]
    ready_delay: float = DEFAULTS["ready_delay"]
    request_timeout: float = DEFAULTS["request_timeout"]
    log_file: Optional[str] = DEFAULTS["log_file"]
    dry_run: bool = DEFAULTS["dry_run"]

    @property
    def peers_url(self) -> str:
        base = self.endpoint.public_node_url
        if self.public_node_port:
            base = f"{base}:{self.public_node_port}"
        return f"{base}/api/peers"

    @property
    def latest_version_url(self) -> str:
        return f"{self.downloads_url}/{self.network}/latest.txt"

    @property
    def installer_url(self) -> str:
        return f"{self.downloads_url}/{self.network}/installLisk.sh"

    @property
    def installer_path(self) -> Path:
        return Path(self.endpoint.home_path) / "installLisk.sh"

    @property
    def reload_script(self) -> Path:
        return Path(self.endpoint.installation_path) / "lisk.sh"

    @property
    def package_manifest(self) -> Path:
        return Path(self.endpoint.installation_path) / "package.json"

    def describe(self) -> str:
        """One-line summary for the startup log. The password is redacted."""
        e = self.endpoint
        return (
            f"Node: {e.node_url} | Delegate: {e.delegate} | Public node: {self.peers_url} | "
            f"Network: {self.network} | Installation: {e.installation_path} | Home: {e.home_path} | "
            f"Interval: {self.check_interval}s | Password: ***"
        )


def read_config_file(path: Path) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise SystemExit(f"Error loading config file {path}: {e}")
    except (ValueError, yaml.YAMLError) as e:
        raise SystemExit(f"Error parsing config file {path}: {e}")
    if not data:
        raise SystemExit(f"Config file {path} is empty")
    if not isinstance(data, dict):
        raise SystemExit(f"Config file {path} must contain a mapping at the top level")
    return data


def normalize_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in raw.items():
        out[LEGACY_KEYS.get(key, key)] = value
    return out


def validate_config(cfg: Dict[str, Any]) -> None:
    """Ensure every required field is present and non-empty."""
    missing = [key for key in REQUIRED_KEYS if not cfg.get(key)]
    if missing:
        raise SystemExit(f"Config is missing required field(s): {', '.join(missing)}")
    try:
        for key in ("check_interval", "ready_delay", "request_timeout"):
            if float(cfg[key]) < 0:
                raise SystemExit(f"Config field '{key}' must not be negative")
        for key in ("ready_max_attempts", "peer_limit"):
            if int(cfg[key]) < 1:
                raise SystemExit(f"Config field '{key}' must be at least 1")
        port = cfg.get("public_node_port")
        if port is not None and int(port) < 1:
            raise SystemExit("Config field 'public_node_port' must be a positive port number or null")
    except (TypeError, ValueError) as e:
        raise SystemExit(f"Config has a non-numeric value: {e}")
    if not isinstance(cfg.get("dry_run"), bool):
        raise SystemExit("Config field 'dry_run' must be true or false")


def build_settings(raw: Dict[str, Any], dry_run: bool = False) -> Settings:
    merged = dict(DEFAULTS)
    merged.update(normalize_keys(raw))
    validate_config(merged)

    endpoint = NodeEndpoint(
        node_url=str(merged["node_url"]).rstrip("/"),
        public_node_url=str(merged["public_node_url"]).rstrip("/"),
        installation_path=str(merged["installation_path"]),
        home_path=str(merged["home_path"]),
        delegate=str(merged["delegate"]),
        public_key=str(merged["public_key"]),
        password=str(merged["password"]),
    )
    port = merged.get("public_node_port")
    return Settings(
        endpoint=endpoint,
        network=str(merged["network"]),
        downloads_url=str(merged["downloads_url"]).rstrip("/"),
        public_node_port=int(port) if port is not None else None,
        peer_limit=int(merged["peer_limit"]),
        check_interval=float(merged["check_interval"]),
        ready_max_attempts=int(merged["ready_max_attempts"]),
        ready_delay=float(merged["ready_delay"]),
        request_timeout=float(merged["request_timeout"]),
        log_file=merged.get("log_file") or None,
        dry_run=dry_run or merged["dry_run"],
    )


def load_settings(path: Path, dry_run: bool = False) -> Settings:
    return build_settings(read_config_file(Path(path)), dry_run=dry_run)
