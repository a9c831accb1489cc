"""Exclusive ownership of the interactive terminal.

``TerminalSession`` puts the terminal into the mode the dashboard needs
(alternate screen, raw input, keypad, mouse capture, hidden cursor) and
undoes every step on the way out, whatever the reason for leaving.
"""

from __future__ import annotations

import curses
import logging
import signal
import threading
from types import FrameType, TracebackType
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DashboardError(Exception):
    """Base class for fatal dashboard failures."""


class TerminalLifecycleError(DashboardError):
    """Acquiring or releasing terminal resources failed."""


class InputReadError(DashboardError):
    """The keyboard input stream failed while the dashboard was running."""


class TerminalSession:
    """Context manager owning raw mode, the alternate screen and mouse capture.

    Each acquired resource pushes its release step onto a stack. On exit the
    whole stack is unwound in reverse order; a failing step is recorded and
    the remaining steps still run. The first failure is then raised as
    ``TerminalLifecycleError``.

    Args:
        backend: Module providing the curses API. Tests pass a fake.
        mouse: Enable mouse event capture.
    """

    def __init__(self, backend: Any = curses, mouse: bool = True) -> None:
        self._backend = backend
        self._mouse = mouse
        self._releases: list[tuple[str, Callable[[], object]]] = []
        self.screen: Any = None

    @property
    def active(self) -> bool:
        return bool(self._releases)

    def __enter__(self) -> Any:
        b = self._backend
        try:
            # initscr switches to the alternate screen; endwin switches back
            screen = b.initscr()
            self._releases.append(("leave alternate screen", b.endwin))

            b.noecho()
            self._releases.append(("restore echo", b.echo))

            b.raw()
            self._releases.append(("leave raw mode", b.noraw))

            screen.keypad(True)
            self._releases.append(("disable keypad", lambda: screen.keypad(False)))

            if self._mouse:
                b.mousemask(b.ALL_MOUSE_EVENTS | b.REPORT_MOUSE_POSITION)
                self._releases.append(("disable mouse capture", lambda: b.mousemask(0)))

            self._hide_cursor()
        except b.error as e:
            first = self._release_all()
            if first is not None:
                logger.warning("cleanup after failed terminal setup also failed: %s", first)
            raise TerminalLifecycleError(f"cannot acquire terminal: {e}") from e
        except BaseException:
            # Interrupted mid-setup: __exit__ will not run, so undo here
            self._release_all()
            raise

        self.screen = screen
        logger.debug("terminal acquired (%d release steps)", len(self._releases))
        return screen

    def _hide_cursor(self) -> None:
        b = self._backend
        try:
            previous = b.curs_set(0)
        except b.error:
            # Some terminals cannot change cursor visibility
            logger.debug("terminal does not support hiding the cursor")
            return
        self._releases.append(("restore cursor", lambda: b.curs_set(previous)))

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        first = self._release_all()
        self.screen = None
        if first is not None:
            raise TerminalLifecycleError(f"cannot restore terminal: {first}") from first
        return False

    def _release_all(self) -> Exception | None:
        """Run every pending release step, newest first. Returns the first error."""
        first: Exception | None = None
        while self._releases:
            name, release = self._releases.pop()
            try:
                release()
            except Exception as e:
                logger.error("terminal release step %r failed: %s", name, e)
                if first is None:
                    first = e
        return first


def run_interactive(
    body: Callable[[Any], T],
    *,
    backend: Any = curses,
    mouse: bool = True,
) -> T:
    """Run ``body(screen)`` inside a ``TerminalSession``.

    SIGTERM is turned into ``SystemExit`` for the duration so that being
    killed still unwinds the session.
    """
    previous_handler: Any = None
    on_main_thread = threading.current_thread() is threading.main_thread()

    def _terminate(signum: int, frame: FrameType | None) -> None:
        raise SystemExit(128 + signum)

    if on_main_thread:
        previous_handler = signal.signal(signal.SIGTERM, _terminate)
    try:
        with TerminalSession(backend=backend, mouse=mouse) as screen:
            return body(screen)
    finally:
        if on_main_thread:
            signal.signal(
                signal.SIGTERM,
                previous_handler if previous_handler is not None else signal.SIG_DFL,
            )
