"""One-shot text reports: print a section of a Snapshot and exit."""

from __future__ import annotations

import json
from typing import Callable

from sysindex.models import Snapshot
from sysindex.snapshot import format_bytes, format_uptime, snapshot_to_dict, usage_percent

NOT_AVAILABLE = "Not available"


def _title(text: str) -> list[str]:
    return [f"── {text} ──", ""]


def format_overview(snap: Snapshot) -> str:
    lines = _title("SYSTEM OVERVIEW")
    lines += [
        f"  {'Hostname':20s}  {snap.hostname}",
        f"  {'Operating System':20s}  {snap.os_name} {snap.os_version}",
        f"  {'Kernel Version':20s}  {snap.kernel_version}",
        f"  {'System Uptime':20s}  {format_uptime(snap.uptime)}",
        "",
        f"  {'CPU':20s}  {snap.cpu_brand}",
        f"  {'CPU Cores':20s}  {snap.cpu_count}",
        "",
        f"  {'Total Memory':20s}  {format_bytes(snap.total_memory)}",
        f"  {'Used Memory':20s}  {format_bytes(snap.used_memory)}",
        "",
        f"  {'Mounted Disks':20s}  {len(snap.disks)}",
        f"  {'Network Interfaces':20s}  {len(snap.networks)}",
    ]
    if snap.local_ip:
        lines.append(f"  {'Local IP':20s}  {snap.local_ip}")
    if snap.public_ip:
        lines.append(f"  {'Public IP':20s}  {snap.public_ip}")
    lines.append(f"  {'Running Processes':20s}  {snap.processes_count}")
    return "\n".join(lines)


def format_cpu(snap: Snapshot) -> str:
    lines = _title("CPU INFORMATION")
    lines += [
        f"  {'CPU Brand':20s}  {snap.cpu_brand}",
        f"  {'Number of Cores':20s}  {snap.cpu_count}",
    ]
    return "\n".join(lines)


def _usage_lines(kind: str, total: int, used: int) -> list[str]:
    pct = usage_percent(used, total)
    return [
        f"  {'Total ' + kind:20s}  {format_bytes(total)}",
        f"  {'Used ' + kind:20s}  {format_bytes(used)} ({pct:.2f}%)",
        f"  {'Free ' + kind:20s}  {format_bytes(max(0, total - used))}",
    ]


def format_memory(snap: Snapshot) -> str:
    lines = _title("MEMORY INFORMATION")
    lines.append("RAM")
    lines += _usage_lines("Memory", snap.total_memory, snap.used_memory)
    lines += ["", "Swap"]
    lines += _usage_lines("Swap", snap.total_swap, snap.used_swap)
    return "\n".join(lines)


def format_disks(snap: Snapshot) -> str:
    lines = _title("DISK INFORMATION")
    if not snap.disks:
        lines.append("No disk information available.")
        return "\n".join(lines)

    for idx, disk in enumerate(snap.disks, start=1):
        pct = usage_percent(disk.used_space, disk.total_space)
        lines += [
            f"Disk {idx}",
            f"  {'Name':20s}  {disk.name}",
            f"  {'Mount Point':20s}  {disk.mount_point}",
            f"  {'File System':20s}  {disk.file_system}",
            f"  {'Total Space':20s}  {format_bytes(disk.total_space)}",
            f"  {'Used Space':20s}  {format_bytes(disk.used_space)} ({pct:.2f}%)",
            f"  {'Available Space':20s}  {format_bytes(disk.available_space)}",
            "",
        ]
    return "\n".join(lines).rstrip("\n")


def format_network(snap: Snapshot) -> str:
    lines = _title("NETWORK INFORMATION")
    bandwidth = (
        f"{snap.bandwidth_mbps:.2f} Mbps"
        if snap.bandwidth_mbps is not None
        else NOT_AVAILABLE
    )
    lines += [
        "Network details",
        f"  {'Local IP':20s}  {snap.local_ip or NOT_AVAILABLE}",
        f"  {'Public IP':20s}  {snap.public_ip or NOT_AVAILABLE}",
        f"  {'Bandwidth':20s}  {bandwidth}",
        "",
    ]
    if not snap.networks:
        lines.append("No network interfaces available.")
        return "\n".join(lines)

    lines.append("Network interfaces")
    for idx, net in enumerate(snap.networks, start=1):
        lines += [
            f"  Interface {idx}: {net.interface_name}",
            f"    {'Received':18s}  {format_bytes(net.received_bytes)}",
            f"    {'Transmitted':18s}  {format_bytes(net.transmitted_bytes)}",
            f"    {'Total':18s}  {format_bytes(net.total_bytes)}",
        ]
    return "\n".join(lines)


def format_all(snap: Snapshot) -> str:
    return "\n\n".join(
        fmt(snap)
        for fmt in (format_overview, format_cpu, format_memory, format_disks, format_network)
    )


def format_json(snap: Snapshot) -> str:
    return json.dumps(snapshot_to_dict(snap), indent=2)


REPORTS: dict[str, Callable[[Snapshot], str]] = {
    "overview": format_overview,
    "cpu": format_cpu,
    "memory": format_memory,
    "disks": format_disks,
    "network": format_network,
    "all": format_all,
}
