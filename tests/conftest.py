# tests/conftest.py
import json
from pathlib import Path

import pytest

from forging_watcher.client import NodeClient
from forging_watcher.config import build_settings
from tests.fakes import DOWNLOADS, NODE, PUBLIC, FakeRunner, FakeSession, RecordingLog


@pytest.fixture
def install_dirs(tmp_path: Path):
    home = tmp_path / "home"
    installation = tmp_path / "lisk-test"
    home.mkdir()
    installation.mkdir()
    return home, installation


@pytest.fixture
def raw_config(install_dirs):
    home, installation = install_dirs
    return {
        "node_url": NODE + "/",
        "public_key": "pk",
        "password": "secret",
        "delegate": "genesis_1",
        "home_path": str(home),
        "installation_path": str(installation),
        "public_node_url": PUBLIC,
        "downloads_url": DOWNLOADS,
        "ready_delay": 0,
        "check_interval": 0,
    }


@pytest.fixture
def settings(raw_config):
    return build_settings(raw_config)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(settings, session):
    return NodeClient(settings, session=session)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def log():
    return RecordingLog()


@pytest.fixture
def write_manifest(install_dirs):
    _, installation = install_dirs

    def _write(version):
        (installation / "package.json").write_text(json.dumps({"name": "lisk", "version": version}))

    return _write
