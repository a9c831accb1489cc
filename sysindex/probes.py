"""Best-effort network probes: local IP, public IP and a bandwidth estimate.

Every probe is total. Timeouts, connection errors and bad responses are
logged at DEBUG and reported as ``None`` so connectivity problems never
interrupt the dashboard.
"""

from __future__ import annotations

import logging
import socket
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Sequence

import requests

from sysindex.config import DEFAULT_CONFIG
from sysindex.models import NetworkDetails

logger = logging.getLogger(__name__)

PUBLIC_IP_ENDPOINTS: tuple[str, ...] = tuple(DEFAULT_CONFIG["public_ip"]["endpoints"])
PUBLIC_IP_TIMEOUT = 5.0
BANDWIDTH_URL: str = DEFAULT_CONFIG["bandwidth"]["url"]
BANDWIDTH_TIMEOUT = 10.0
LOCAL_IP_TARGET = "8.8.8.8"

_HEADERS = {"User-Agent": "sysindex/0.1"}


def resolve_local_ip(target: str = LOCAL_IP_TARGET) -> str | None:
    """Address of the interface the OS would route *target* through.

    Connecting a UDP socket sends nothing; it only asks the kernel to pick a
    route, which gives the primary outbound address.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect((target, 80))
            ip = s.getsockname()[0]
    except OSError as e:
        logger.debug("local IP lookup failed: %s", e)
        return None
    return ip or None


def resolve_public_ip(
    endpoints: Sequence[str] = PUBLIC_IP_ENDPOINTS,
    timeout: float = PUBLIC_IP_TIMEOUT,
) -> str | None:
    """Ask IP-echo services for our public address, in order.

    The first endpoint returning a non-empty body wins; the rest are not
    contacted. Returns None only when every endpoint failed.
    """
    for url in endpoints:
        try:
            resp = requests.get(url, timeout=timeout, headers=_HEADERS)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.debug("public IP endpoint %s failed: %s", url, e)
            continue

        body = resp.text.strip()
        if body:
            logger.debug("public IP %s from %s", body, url)
            return body
        logger.debug("public IP endpoint %s returned an empty body", url)

    logger.info("public IP unavailable: all %d endpoints failed", len(endpoints))
    return None


def estimate_bandwidth(
    url: str = BANDWIDTH_URL,
    timeout: float = BANDWIDTH_TIMEOUT,
) -> float | None:
    """Download a ~1 MB payload once and return the observed rate in Mbps."""
    start = time.perf_counter()
    try:
        resp = requests.get(url, timeout=timeout, headers=_HEADERS)
        resp.raise_for_status()
        received = len(resp.content)
    except requests.RequestException as e:
        logger.debug("bandwidth probe against %s failed: %s", url, e)
        return None
    elapsed = time.perf_counter() - start

    if received <= 0 or elapsed <= 0:
        logger.debug("bandwidth probe inconclusive (%d bytes in %.3fs)", received, elapsed)
        return None
    return (received * 8) / (elapsed * 1_000_000)


def probe_network(
    config: dict[str, Any] | None = None,
    concurrent: bool = True,
) -> NetworkDetails:
    """Run all three probes and bundle the results.

    With ``concurrent`` the probes share a three-worker pool and the call
    takes about as long as the slowest probe. Sequentially a refresh can
    block for the sum of all probe timeouts (about 20 s with the defaults).
    Probes are never cancelled; each one stops at its own timeout.
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    local_target: str = cfg.get("local_ip", {}).get("target", LOCAL_IP_TARGET)
    public_cfg: dict[str, Any] = cfg.get("public_ip", {})
    bandwidth_cfg: dict[str, Any] = cfg.get("bandwidth", {})

    tasks: list[tuple[Callable[..., Any], tuple[Any, ...]]] = [
        (resolve_local_ip, (local_target,)),
        (
            resolve_public_ip,
            (
                tuple(public_cfg.get("endpoints", PUBLIC_IP_ENDPOINTS)),
                float(public_cfg.get("timeout", PUBLIC_IP_TIMEOUT)),
            ),
        ),
        (
            estimate_bandwidth,
            (
                str(bandwidth_cfg.get("url", BANDWIDTH_URL)),
                float(bandwidth_cfg.get("timeout", BANDWIDTH_TIMEOUT)),
            ),
        ),
    ]

    if concurrent:
        with ThreadPoolExecutor(max_workers=len(tasks), thread_name_prefix="probe") as pool:
            futures = [pool.submit(fn, *args) for fn, args in tasks]
            local_ip, public_ip, bandwidth = (f.result() for f in futures)
    else:
        local_ip, public_ip, bandwidth = (fn(*args) for fn, args in tasks)

    return NetworkDetails(
        local_ip=local_ip,
        public_ip=public_ip,
        bandwidth_mbps=bandwidth,
    )
