"""Interactive terminal dashboard for sysindex.

Four tabs (overview, memory, disks, network) over the latest Snapshot,
auto-refreshed every couple of seconds, drawn with curses.

Keys:
    q quit   h help   r refresh now   1-4 switch tab
"""

from __future__ import annotations

import curses
import logging
import select
import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable

from sysindex.config import DEFAULT_CONFIG
from sysindex.models import Snapshot
from sysindex.snapshot import collect_snapshot, format_bytes, format_uptime, usage_percent
from sysindex.terminal import InputReadError, run_interactive

logger = logging.getLogger(__name__)

# ── Constants ──────────────────────────────────────────────────────────────

BAR_FILL = "█"
BAR_EMPTY = "░"
PROGRESS_BAR_WIDTH = 50
SECTION = "═══"
NOT_AVAILABLE = "Not available"

WELCOME_MESSAGE = "Welcome to sysindex! Press 'h' for help, 'q' to quit."
HELP_MESSAGE = "Keys: q=quit, r=refresh, 1=overview, 2=memory, 3=disks, 4=network"
REFRESHED_MESSAGE = "System information refreshed!"

# Curses colour-pair IDs
C_NORMAL = 1
C_TITLE = 2
C_DIM = 3


# ── State ──────────────────────────────────────────────────────────────────


class Tab(Enum):
    """Dashboard views, in key order."""

    OVERVIEW = "Overview"
    MEMORY = "Memory"
    DISKS = "Disks"
    NETWORK = "Network"


TAB_KEYS: dict[str, Tab] = {str(i): tab for i, tab in enumerate(Tab, start=1)}


@dataclass
class AppState:
    snapshot: Snapshot
    tab: Tab
    last_refresh: float
    status: str
    running: bool = True


class Dashboard:
    """Tab selection and refresh timing over a snapshot source.

    Args:
        collect: Returns a fresh Snapshot; called once here and on every refresh.
        refresh_interval: Seconds between automatic refreshes.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        collect: Callable[[], Snapshot],
        *,
        refresh_interval: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._collect = collect
        self._clock = clock
        self.refresh_interval = refresh_interval
        self.state = AppState(
            snapshot=collect(),
            tab=Tab.OVERVIEW,
            last_refresh=clock(),
            status=WELCOME_MESSAGE,
        )

    @property
    def running(self) -> bool:
        return self.state.running

    def refresh(self) -> None:
        # Publish only once the new snapshot is complete
        snapshot = self._collect()
        self.state.snapshot = snapshot
        self.state.last_refresh = self._clock()

    def tick(self) -> bool:
        """Refresh if the interval has elapsed. Returns True when it did."""
        if self._clock() - self.state.last_refresh > self.refresh_interval:
            self.refresh()
            return True
        return False

    def select_tab(self, tab: Tab) -> None:
        self.state.tab = tab
        self.state.status = f"Showing: {tab.value}"

    def handle_key(self, key: str) -> None:
        """Apply one key press. Unknown keys leave the state untouched."""
        if key == "q":
            self.state.running = False
        elif key == "h":
            self.state.status = HELP_MESSAGE
        elif key == "r":
            self.refresh()
            self.state.status = REFRESHED_MESSAGE
        elif key in TAB_KEYS:
            self.select_tab(TAB_KEYS[key])


# ── Rendering (pure) ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Frame:
    """Everything needed to draw one screen."""

    header: str
    panel_title: str
    lines: tuple[str, ...]
    status: str


def progress_bar(percent: float) -> str:
    filled = min(PROGRESS_BAR_WIDTH, max(0, int(percent // 2)))
    return BAR_FILL * filled + BAR_EMPTY * (PROGRESS_BAR_WIDTH - filled)


def _or_na(value: str | None) -> str:
    return value if value else NOT_AVAILABLE


def _render_overview(snap: Snapshot) -> tuple[str, list[str]]:
    return "System Overview", [
        f"Hostname: {snap.hostname}",
        f"OS: {snap.os_name} {snap.os_version}",
        f"Kernel: {snap.kernel_version}",
        f"Uptime: {format_uptime(snap.uptime)}",
        "",
        f"CPU: {snap.cpu_brand}",
        f"CPU Cores: {snap.cpu_count}",
        "",
        f"Total Memory: {format_bytes(snap.total_memory)}",
        f"Used Memory: {format_bytes(snap.used_memory)}",
        f"Free Memory: {format_bytes(max(0, snap.total_memory - snap.used_memory))}",
        "",
        f"Total Swap: {format_bytes(snap.total_swap)}",
        f"Used Swap: {format_bytes(snap.used_swap)}",
        "",
        f"Disks: {len(snap.disks)}",
        f"Network Interfaces: {len(snap.networks)}",
        f"Running Processes: {snap.processes_count}",
    ]


def _usage_section(title: str, total: int, used: int) -> list[str]:
    pct = int(usage_percent(used, total))
    return [
        f"{SECTION} {title} {SECTION}",
        f"Total:     {format_bytes(total)}",
        f"Used:      {format_bytes(used)} ({pct}%)",
        f"Free:      {format_bytes(max(0, total - used))}",
        f"Usage Bar: [{progress_bar(pct)}]",
    ]


def _render_memory(snap: Snapshot) -> tuple[str, list[str]]:
    lines = _usage_section("RAM MEMORY", snap.total_memory, snap.used_memory)
    lines.append("")
    lines += _usage_section("SWAP MEMORY", snap.total_swap, snap.used_swap)
    return "Memory Details", lines


def _render_disks(snap: Snapshot) -> tuple[str, list[str]]:
    lines = ["Mounted Disks:", ""]
    for idx, disk in enumerate(snap.disks, start=1):
        pct = int(usage_percent(disk.used_space, disk.total_space))
        lines += [
            f"{SECTION} Disk {idx} {SECTION}",
            f"Name:       {disk.name}",
            f"Mount:      {disk.mount_point}",
            f"Filesystem: {disk.file_system}",
            f"Total:      {format_bytes(disk.total_space)}",
            f"Used:       {format_bytes(disk.used_space)} ({pct}%)",
            f"Available:  {format_bytes(disk.available_space)}",
            f"Usage Bar:  [{progress_bar(pct)}]",
            "",
        ]
    if not snap.disks:
        lines.append("No disks found.")
    return "Disk Information", lines


def _render_network(snap: Snapshot) -> tuple[str, list[str]]:
    bandwidth = (
        f"{snap.bandwidth_mbps:.2f} Mbps"
        if snap.bandwidth_mbps is not None
        else NOT_AVAILABLE
    )
    lines = [
        f"{SECTION} NETWORK DETAILS {SECTION}",
        f"Local IP:   {_or_na(snap.local_ip)}",
        f"Public IP:  {_or_na(snap.public_ip)}",
        f"Bandwidth:  {bandwidth}",
        "",
        "Network Interfaces:",
        "",
    ]
    for idx, net in enumerate(snap.networks, start=1):
        lines += [
            f"{SECTION} Interface {idx} {SECTION}",
            f"Name:        {net.interface_name}",
            f"Received:    {format_bytes(net.received_bytes)}",
            f"Transmitted: {format_bytes(net.transmitted_bytes)}",
            f"Total:       {format_bytes(net.total_bytes)}",
            "",
        ]
    if not snap.networks:
        lines.append("No network interfaces found.")
    return "Network Information", lines


_TAB_RENDERERS: dict[Tab, Callable[[Snapshot], tuple[str, list[str]]]] = {
    Tab.OVERVIEW: _render_overview,
    Tab.MEMORY: _render_memory,
    Tab.DISKS: _render_disks,
    Tab.NETWORK: _render_network,
}

_missing = set(Tab) - _TAB_RENDERERS.keys()
if _missing:
    raise RuntimeError(f"tabs without a renderer: {sorted(t.name for t in _missing)}")


def _tab_bar(current: Tab) -> str:
    labels = []
    for key, tab in TAB_KEYS.items():
        label = f"{key}: {tab.value}"
        labels.append(f"[{label}]" if tab is current else label)
    return " | ".join(labels)


def render(state: AppState) -> Frame:
    """Build the frame for the current state. No side effects."""
    title, lines = _TAB_RENDERERS[state.tab](state.snapshot)
    return Frame(
        header=f"sysindex - {_tab_bar(state.tab)}",
        panel_title=title,
        lines=tuple(lines),
        status=state.status,
    )


# ── Curses drawing ─────────────────────────────────────────────────────────


def _init_colors() -> None:
    if not curses.has_colors():
        return
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(C_NORMAL, curses.COLOR_WHITE, -1)
    curses.init_pair(C_TITLE, curses.COLOR_CYAN, -1)
    curses.init_pair(C_DIM, curses.COLOR_WHITE, -1)


def _safe(win: curses.window, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


def _draw_box(
    win: curses.window,
    y: int,
    x: int,
    h: int,
    w: int,
    title: str = "",
) -> curses.window | None:
    """Draw a bordered box and return the inner sub-window."""
    max_y, max_x = win.getmaxyx()
    h = min(h, max_y - y)
    w = min(w, max_x - x)
    if h < 3 or w < 4:
        return None
    try:
        sub = win.subwin(h, w, y, x)
        sub.box()
        if title and len(title) + 4 < w:
            sub.addstr(
                0, 2, f" {title} ", curses.color_pair(C_TITLE) | curses.A_BOLD
            )
        return sub
    except curses.error:
        return None


def paint(screen: curses.window, frame: Frame) -> None:
    """Draw header, content and status boxes for one frame."""
    max_y, max_x = screen.getmaxyx()
    screen.erase()

    if max_y < 10 or max_x < 40:
        _safe(screen, 0, 0, "Terminal too small (need 40x10+)")
        screen.refresh()
        return

    header = _draw_box(screen, 0, 0, 3, max_x)
    if header is not None:
        text = frame.header[: max_x - 4]
        _safe(
            header,
            1,
            max(1, (max_x - len(text)) // 2),
            text,
            curses.color_pair(C_TITLE) | curses.A_BOLD,
        )

    body_h = max_y - 6
    body = _draw_box(screen, 3, 0, body_h, max_x, frame.panel_title)
    if body is not None:
        for row, line in enumerate(frame.lines[: body_h - 2], start=1):
            attr = curses.color_pair(C_NORMAL)
            if line.startswith(SECTION):
                attr = curses.color_pair(C_TITLE) | curses.A_BOLD
            _safe(body, row, 1, line[: max_x - 3], attr)

    status = _draw_box(screen, max_y - 3, 0, 3, max_x, "Status")
    if status is not None:
        _safe(status, 1, 1, frame.status[: max_x - 3], curses.color_pair(C_DIM))

    screen.refresh()


# ── Main loop ──────────────────────────────────────────────────────────────


def _input_pending(fd: int) -> bool:
    try:
        readable, _, _ = select.select([fd], [], [], 0)
    except (OSError, ValueError):
        # A closed or invalid descriptor counts as readable end-of-input
        return True
    return bool(readable)


def _read_key(screen: curses.window, input_fd: int) -> int:
    """Return the next key, or -1 when none arrived within the poll timeout.

    getch() reports end-of-input as -1, the same as a timeout. If the
    descriptor still polls readable after two empty reads, curses is
    seeing EOF rather than an idle keyboard.
    """
    for _ in range(2):
        try:
            key = screen.getch()
        except curses.error as e:
            raise InputReadError(f"cannot read keyboard input: {e}") from e
        if key != -1 or not _input_pending(input_fd):
            return key
    raise InputReadError("keyboard input stream closed")


def run_loop(
    screen: curses.window,
    dashboard: Dashboard,
    poll_ms: int = 100,
    input_fd: int = 0,
) -> None:
    """Draw, refresh when due, wait briefly for a key; until 'q'."""
    _init_colors()
    screen.timeout(poll_ms)

    while dashboard.running:
        paint(screen, render(dashboard.state))
        dashboard.tick()

        key = _read_key(screen, input_fd)
        if key == -1:
            continue
        if key == curses.KEY_RESIZE:
            screen.clear()
            continue
        if key == curses.KEY_MOUSE:
            try:
                curses.getmouse()
            except curses.error:
                pass
            continue
        if 0 <= key < 256:
            dashboard.handle_key(chr(key))


def run_dashboard(config: dict[str, Any] | None = None, interval: float | None = None) -> None:
    """Collect the first snapshot, take over the terminal and run until quit.

    Raises:
        TerminalLifecycleError: The terminal could not be acquired or restored.
        InputReadError: Keyboard input failed mid-session.
    """
    cfg = config if config is not None else DEFAULT_CONFIG
    refresh_interval = float(interval if interval is not None else cfg["refresh_interval"])
    poll_ms = int(cfg.get("input_poll_ms", 100))

    def _session(screen: curses.window) -> None:
        _safe(screen, 0, 0, "Collecting system information...")
        screen.refresh()
        dashboard = Dashboard(
            partial(collect_snapshot, cfg),
            refresh_interval=refresh_interval,
        )
        run_loop(screen, dashboard, poll_ms)

    logger.info("dashboard starting (refresh every %.1fs)", refresh_interval)
    run_interactive(_session)
    logger.info("dashboard stopped")
