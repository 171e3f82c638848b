# tests/test_detectors.py
import pytest

from forging_watcher.detectors import needs_reload, needs_update
from tests.fakes import RecordingLog


class Versions:
    def __init__(self, local, latest):
        self._local = local
        self._latest = latest

    def local(self):
        return self._local

    def latest(self):
        return self._latest


class Heights:
    def __init__(self, local, network):
        self._local = local
        self._network = network

    def local(self):
        return self._local

    def peers(self):
        return self._network


class Missed:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def current(self):
        self.calls += 1
        return self.value


@pytest.mark.parametrize("version", ["1.0.0", "1.0.0-beta.1", ""])
def test_equal_versions_need_no_update(version):
    assert needs_update(Versions(version, version)) is False


@pytest.mark.parametrize(
    "local,published",
    [("1.0.0", "1.0.1"), ("1.0.0", "1.0.0 "), ("1.0.0\n", "1.0.0"), ("v1.0.0", "1.0.0")],
)
def test_any_textual_difference_needs_update(local, published):
    assert needs_update(Versions(local, published)) is True


def test_update_drift_is_logged():
    log = RecordingLog()
    needs_update(Versions("1.0.0", "1.0.1"), log=log)
    assert log.contains("1.0.0 differs from latest 1.0.1")


@pytest.mark.parametrize(
    "local,network,prev,current,expected",
    [
        (100, 150, 5, 5, True),   # behind, no new missed blocks
        (100, 101, 5, 5, False),  # one block behind is tolerated
        (100, 102, 5, 5, True),
        (100, 98, 5, 6, True),    # missed a block, in sync
        (100, 98, 5, 5, False),
        (100, 98, 5, 4, False),   # counter reset
        (100, 150, 5, 6, True),   # both
    ],
)
def test_reload_disjunction(local, network, prev, current, expected):
    assert needs_reload(Heights(local, network), Missed(current), prev) is expected


def test_reload_with_lagging_peer_reference():
    # peers [98, 150, 99] reduce to 98; 100 + 1 < 98 is false
    assert needs_reload(Heights(100, 98), Missed(5), 5) is False


def test_reload_checks_missed_blocks_even_when_behind():
    missed = Missed(5)
    assert needs_reload(Heights(1, 1000), missed, 5) is True
    assert missed.calls == 1


def test_reload_reasons_are_logged():
    log = RecordingLog()
    needs_reload(Heights(100, 150), Missed(6), 5, log=log)
    assert log.contains("behind network height 150")
    assert log.contains("from 5 to 6")
