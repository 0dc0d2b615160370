"""
Progress reporting for long-running transfers.

Every line always goes to the console through the enginesync logger. The
windowed reporter additionally mirrors log output into a small tkinter window
owned by a background UI thread. The worker never touches the window: it only
posts messages to a queue that the UI thread drains on a timer.
"""

from __future__ import annotations

import logging
import os
import queue
import threading
from typing import Callable, Optional, Tuple

from enginesync.console import hide_console_window, show_console_window
from enginesync.constants import (
    WINDOW_GEOMETRY,
    WINDOW_POLL_INTERVAL_MS,
    WINDOW_READY_TIMEOUT,
    WINDOW_TITLE,
)
from enginesync.log_utils import logger

Message = Tuple[str, Optional[str]]

MSG_LINE = "line"
MSG_CLOSE = "close"


class ConsoleReporter:
    """
    Reports progress lines through the logger only.
    """

    def start(self) -> None:
        pass

    def line(self, text: str) -> None:
        logger.info(text)

    def reveal_console(self) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self) -> "ConsoleReporter":
        self.start()
        return self

    def __exit__(self, *_exc_info) -> None:
        self.close()


class _QueueHandler(logging.Handler):
    """Forwards formatted log records to the UI message queue."""

    def __init__(self, messages: "queue.Queue[Message]") -> None:
        super().__init__()
        self.messages = messages
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.messages.put((MSG_LINE, self.format(record)))
        except Exception:
            self.handleError(record)


def _terminate_process() -> None:
    # Closing the window aborts the run; running transfers are not cleaned up.
    os._exit(1)


class WindowedReporter(ConsoleReporter):
    """
    Mirrors progress into a status window driven by its own UI thread.

    If tkinter is unavailable or no display can be opened, the reporter logs a
    warning and keeps working as a console reporter.
    """

    def __init__(
        self,
        title: str = WINDOW_TITLE,
        ready_timeout: float = WINDOW_READY_TIMEOUT,
        hide_console: bool = True,
        on_window_closed: Callable[[], None] = _terminate_process,
    ) -> None:
        self.title = title
        self.ready_timeout = ready_timeout
        self.hide_console = hide_console
        self.on_window_closed = on_window_closed
        self.messages: "queue.Queue[Message]" = queue.Queue()
        self.ready = threading.Event()
        self.active = False
        self.console_hidden = False
        self._thread: Optional[threading.Thread] = None
        self._handler = _QueueHandler(self.messages)

    def start(self) -> None:
        """
        Start the UI thread and block until its window exists (or failed to).
        """
        self._thread = threading.Thread(
            target=self._run_ui, name="enginesync-ui", daemon=True
        )
        self._thread.start()

        if not self.ready.wait(self.ready_timeout):
            logger.warning("Status window did not open in time; using console only")
            return
        if not self.active:
            return

        logger.addHandler(self._handler)
        if self.hide_console:
            self.console_hidden = hide_console_window()

    def reveal_console(self) -> None:
        if self.console_hidden:
            show_console_window()
            self.console_hidden = False

    def close(self) -> None:
        if self._handler in logger.handlers:
            logger.removeHandler(self._handler)
        self.reveal_console()
        if self._thread is not None and self._thread.is_alive():
            self.messages.put((MSG_CLOSE, None))
            self._thread.join(timeout=self.ready_timeout)

    def _run_ui(self) -> None:
        try:
            import tkinter as tk
            from tkinter import scrolledtext
        except ImportError as exc:
            logger.warning(f"Status window unavailable: {exc}")
            self.ready.set()
            return

        try:
            root = tk.Tk()
        except tk.TclError as exc:
            logger.warning(f"Status window unavailable: {exc}")
            self.ready.set()
            return

        root.title(self.title)
        root.geometry(WINDOW_GEOMETRY)
        log_view = scrolledtext.ScrolledText(root, state=tk.DISABLED, wrap=tk.WORD)
        log_view.pack(fill=tk.BOTH, expand=True)

        def append(text: str) -> None:
            log_view.configure(state=tk.NORMAL)
            log_view.insert(tk.END, text + "\n")
            log_view.see(tk.END)
            log_view.configure(state=tk.DISABLED)

        def poll() -> None:
            try:
                while True:
                    kind, payload = self.messages.get_nowait()
                    if kind == MSG_CLOSE:
                        root.destroy()
                        return
                    if payload is not None:
                        append(payload)
            except queue.Empty:
                pass
            root.after(WINDOW_POLL_INTERVAL_MS, poll)

        def on_close() -> None:
            self.active = False
            root.destroy()
            self.on_window_closed()

        root.protocol("WM_DELETE_WINDOW", on_close)
        root.update_idletasks()

        self.active = True
        self.ready.set()
        try:
            root.after(0, poll)
            root.mainloop()
        finally:
            self.active = False


def create_reporter(windowed: bool) -> ConsoleReporter:
    """
    Return the reporter for the requested mode.
    """
    if windowed:
        return WindowedReporter()
    return ConsoleReporter()
