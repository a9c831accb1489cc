"""Snapshot assembly and the human-readable formatting helpers."""

from __future__ import annotations

import logging
from dataclasses import asdict, fields
from typing import Any, Callable

from sysindex.config import DEFAULT_CONFIG
from sysindex.host import read_host_metrics
from sysindex.models import HostMetrics, NetworkDetails, Snapshot
from sysindex.probes import probe_network

logger = logging.getLogger(__name__)

BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")


def collect_snapshot(
    config: dict[str, Any] | None = None,
    *,
    read_host: Callable[[], HostMetrics] = read_host_metrics,
    probe: Callable[..., NetworkDetails] = probe_network,
) -> Snapshot:
    """Read the host once, run the network probes and merge both into a Snapshot.

    The Snapshot is built in one constructor call after every source has
    returned, so readers never see a half-filled value. Probes run
    concurrently unless ``concurrent_probes`` is false in the config; in
    that case a refresh may stall for the sum of the probe timeouts.
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    host = read_host()

    if cfg.get("network_probes", True):
        details = probe(cfg, concurrent=bool(cfg.get("concurrent_probes", True)))
    else:
        details = NetworkDetails()

    logger.debug(
        "snapshot collected: %d disks, %d interfaces, public IP %s",
        len(host.disks),
        len(host.networks),
        details.public_ip or "n/a",
    )
    return Snapshot(
        **{f.name: getattr(host, f.name) for f in fields(host)},
        local_ip=details.local_ip,
        public_ip=details.public_ip,
        bandwidth_mbps=details.bandwidth_mbps,
    )


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Plain-dict form of a snapshot, ready for ``json.dumps``."""
    data = asdict(snapshot)
    data["disks"] = list(data["disks"])
    data["networks"] = list(data["networks"])
    return data


# ── Formatting helpers ─────────────────────────────────────────────────────


def format_bytes(n: int | float) -> str:
    """Human-readable byte count, binary steps, two decimals (``1536`` → ``1.50 KB``)."""
    size = float(n)
    unit = 0
    while size >= 1024 and unit < len(BYTE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {BYTE_UNITS[unit]}"


def format_uptime(seconds: int | float) -> str:
    """``90`` → ``1m 30s``; larger units are dropped while they are zero."""
    seconds = int(seconds)
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, secs = divmod(rem, 60)

    if days > 0:
        return f"{days}d {hours}h {minutes}m {secs}s"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def usage_percent(used: int | float, total: int | float) -> float:
    if total <= 0:
        return 0.0
    return used / total * 100.0
