# tests/test_oracles.py
import itertools
import json

import pytest

from forging_watcher.errors import NodeApiError, OracleError
from forging_watcher.oracles import (
    HeightOracle,
    HeightSample,
    MissedBlockOracle,
    VersionOracle,
    reduce_peer_height,
)
from tests.fakes import (
    DELEGATES_URL,
    LATEST_URL,
    PEERS_URL,
    STATUS_URL,
    FakeResponse,
    delegates,
    latest,
    peers,
    status,
)


def samples(*heights):
    return [HeightSample(source=f"peer{i}", height=h) for i, h in enumerate(heights)]


def test_reduce_returns_minimum_for_any_order():
    heights = [98, 150, 99, 120]
    for order in itertools.permutations(heights):
        assert reduce_peer_height(samples(*order)) == 98


def test_reduce_single_peer():
    assert reduce_peer_height(samples(42)) == 42


def test_reduce_without_peers_is_fatal():
    with pytest.raises(OracleError):
        reduce_peer_height([])


def test_local_version_reads_manifest(settings, client, write_manifest):
    write_manifest("1.0.0")
    assert VersionOracle(settings, client).local() == "1.0.0"


def test_local_version_missing_manifest(settings, client):
    with pytest.raises(OracleError):
        VersionOracle(settings, client).local()


def test_local_version_malformed_manifest(settings, client, install_dirs):
    _, installation = install_dirs
    (installation / "package.json").write_text("{not json")
    with pytest.raises(OracleError):
        VersionOracle(settings, client).local()

    (installation / "package.json").write_text(json.dumps({"name": "lisk"}))
    with pytest.raises(OracleError):
        VersionOracle(settings, client).local()


def test_latest_version_is_trimmed(settings, client, session):
    session.add("GET", LATEST_URL, latest("1.0.1"))
    assert VersionOracle(settings, client).latest() == "1.0.1"


def test_latest_version_network_error_is_fatal(settings, client, session):
    session.add("GET", LATEST_URL, FakeResponse(status_code=404))
    with pytest.raises(NodeApiError):
        VersionOracle(settings, client).latest()


def test_latest_version_empty_is_fatal(settings, client, session):
    session.add("GET", LATEST_URL, FakeResponse(text="  \n"))
    with pytest.raises(OracleError):
        VersionOracle(settings, client).latest()


def test_heights(client, session):
    session.add("GET", STATUS_URL, status(100))
    session.add("GET", PEERS_URL, peers(98, 150, 99))
    oracle = HeightOracle(client)

    assert oracle.local() == 100
    assert oracle.peers() == 98
    assert [s.source for s in oracle.peer_samples()] == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]

    _, url, kwargs = session.calls[-1]
    assert url == PEERS_URL
    assert kwargs["params"] == {"limit": 100}


def test_invalid_heights_are_fatal(client, session):
    session.add("GET", STATUS_URL, FakeResponse(json_data={"data": {"height": -1}}))
    with pytest.raises(OracleError):
        HeightOracle(client).local()

    session.add("GET", PEERS_URL, FakeResponse(json_data={"data": [{"ip": "1.2.3.4", "height": "12"}]}))
    with pytest.raises(OracleError):
        HeightOracle(client).peers()


def test_no_peers_is_fatal(client, session):
    session.add("GET", PEERS_URL, peers())
    with pytest.raises(OracleError):
        HeightOracle(client).peers()


def test_missed_blocks(settings, client, session):
    session.add("GET", DELEGATES_URL, delegates(7))
    assert MissedBlockOracle(settings, client).current() == 7
    _, _, kwargs = session.calls[-1]
    assert kwargs["params"] == {"username": "genesis_1"}


def test_unknown_delegate_is_fatal(settings, client, session):
    session.add("GET", DELEGATES_URL, FakeResponse(json_data={"data": []}))
    with pytest.raises(OracleError):
        MissedBlockOracle(settings, client).current()


def test_delegate_mapping_payload_is_fatal(settings, client, session):
    session.add("GET", DELEGATES_URL, FakeResponse(json_data={"data": {"missedBlocks": 3}}))
    with pytest.raises(NodeApiError):
        MissedBlockOracle(settings, client).current()
