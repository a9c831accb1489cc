"""Host metrics provider.

Reads OS identity, CPU, memory, disk and network counters in one quick pass.
Nothing here raises: fields that cannot be read fall back to ``"Unknown"``,
zero or an empty tuple.
"""

from __future__ import annotations

import logging
import platform
import socket
import time

import psutil

from sysindex.models import UNKNOWN, DiskEntry, HostMetrics, NetworkEntry

logger = logging.getLogger(__name__)


# ── OS identity ─────────────────────────────────────────────────────────────


def _os_identity() -> tuple[str, str]:
    """Distribution name and version, falling back to the platform module."""
    try:
        release = platform.freedesktop_os_release()
        return release.get("NAME") or UNKNOWN, release.get("VERSION_ID") or UNKNOWN
    except OSError:
        pass

    name = platform.system() or UNKNOWN
    if name == "Darwin":
        return "macOS", platform.mac_ver()[0] or UNKNOWN
    return name, platform.version() or UNKNOWN


def _read_cpu_brand() -> str:
    """CPU model string from /proc/cpuinfo, else whatever platform reports."""
    try:
        with open("/proc/cpuinfo") as f:
            for line in f:
                key, _, value = line.partition(":")
                if key.strip() == "model name" and value.strip():
                    return value.strip()
    except OSError:
        pass
    return platform.processor() or UNKNOWN


def _hostname() -> str:
    try:
        return socket.gethostname() or UNKNOWN
    except OSError:
        return platform.node() or UNKNOWN


# ── Storage & network ───────────────────────────────────────────────────────


def _read_disks() -> tuple[DiskEntry, ...]:
    disks: list[DiskEntry] = []
    for part in psutil.disk_partitions(all=False):
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except OSError:
            # Unreadable mount (permissions, stale network share, empty drive)
            logger.debug("skipping unreadable mount %s", part.mountpoint)
            continue
        disks.append(
            DiskEntry(
                name=part.device,
                mount_point=part.mountpoint,
                file_system=part.fstype or UNKNOWN,
                total_space=usage.total,
                available_space=usage.free,
            )
        )
    return tuple(disks)


def _read_networks() -> tuple[NetworkEntry, ...]:
    counters = psutil.net_io_counters(pernic=True) or {}
    return tuple(
        NetworkEntry(
            interface_name=name,
            received_bytes=stats.bytes_recv,
            transmitted_bytes=stats.bytes_sent,
        )
        for name, stats in counters.items()
    )


def _process_count() -> int:
    try:
        return len(psutil.pids())
    except (psutil.Error, OSError):
        return 0


def _uptime_seconds() -> int:
    try:
        return max(0, int(time.time() - psutil.boot_time()))
    except (psutil.Error, OSError):
        return 0


# ── Public entry point ──────────────────────────────────────────────────────


def read_host_metrics() -> HostMetrics:
    """Gather every host metric the dashboard needs in one pass."""
    os_name, os_version = _os_identity()

    ram = psutil.virtual_memory()
    swap = psutil.swap_memory()

    return HostMetrics(
        os_name=os_name,
        os_version=os_version,
        kernel_version=platform.release() or UNKNOWN,
        hostname=_hostname(),
        cpu_brand=_read_cpu_brand(),
        cpu_count=psutil.cpu_count(logical=True) or 0,
        total_memory=ram.total,
        used_memory=min(ram.used, ram.total),
        total_swap=swap.total,
        used_swap=min(swap.used, swap.total),
        disks=_read_disks(),
        networks=_read_networks(),
        processes_count=_process_count(),
        uptime=_uptime_seconds(),
    )
