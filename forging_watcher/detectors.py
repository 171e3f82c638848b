from __future__ import annotations

from typing import Callable, Optional

from forging_watcher.oracles import HeightOracle, MissedBlockOracle, VersionOracle


def needs_update(versions: VersionOracle, log: Optional[Callable[[str], None]] = None) -> bool:
    """
    True when the installed version differs textually from the published one.
    """
    local = versions.local()
    latest = versions.latest()
    drift = local != latest
    if log and drift:
        log(f"[WARN] Installed version {local} differs from latest {latest}")
    return drift


def needs_reload(
    heights: HeightOracle,
    missed_blocks: MissedBlockOracle,
    previous_missed_blocks: int,
    log: Optional[Callable[[str], None]] = None,
) -> bool:
    """
    True when the node is behind the network or has missed a block since the
    previous check. Both conditions are always evaluated.
    """
    local_height = heights.local()
    network_height = heights.peers()
    behind = local_height + 1 < network_height

    missed = missed_blocks.current()
    missed_more = missed > previous_missed_blocks

    if log:
        if behind:
            log(f"[WARN] Local height {local_height} is behind network height {network_height}")
        if missed_more:
            log(f"[WARN] Missed blocks increased from {previous_missed_blocks} to {missed}")
    return behind or missed_more
