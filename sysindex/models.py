"""Data models for sysindex."""

from __future__ import annotations

from dataclasses import dataclass, field

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class DiskEntry:
    """One mounted filesystem."""

    name: str
    mount_point: str
    file_system: str
    total_space: int  # Bytes
    available_space: int  # Bytes

    @property
    def used_space(self) -> int:
        return max(0, self.total_space - self.available_space)


@dataclass(frozen=True)
class NetworkEntry:
    """Cumulative byte counters for one network interface."""

    interface_name: str
    received_bytes: int
    transmitted_bytes: int

    @property
    def total_bytes(self) -> int:
        return self.received_bytes + self.transmitted_bytes


@dataclass(frozen=True)
class HostMetrics:
    """Point-in-time read of the local host. Unknown strings are ``"Unknown"``."""

    os_name: str = UNKNOWN
    os_version: str = UNKNOWN
    kernel_version: str = UNKNOWN
    hostname: str = UNKNOWN
    cpu_brand: str = UNKNOWN
    cpu_count: int = 0
    total_memory: int = 0
    used_memory: int = 0
    total_swap: int = 0
    used_swap: int = 0
    disks: tuple[DiskEntry, ...] = field(default_factory=tuple)
    networks: tuple[NetworkEntry, ...] = field(default_factory=tuple)
    processes_count: int = 0
    uptime: int = 0  # Seconds


@dataclass(frozen=True)
class NetworkDetails:
    """Results of the network probes. ``None`` means unavailable."""

    local_ip: str | None = None
    public_ip: str | None = None
    bandwidth_mbps: float | None = None


@dataclass(frozen=True)
class Snapshot(HostMetrics):
    """Immutable capture of everything the dashboard displays."""

    local_ip: str | None = None
    public_ip: str | None = None
    bandwidth_mbps: float | None = None
