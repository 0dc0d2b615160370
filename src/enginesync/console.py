"""
Visibility control for the host console window.

Only Windows exposes the console window to the process; on other platforms these
helpers do nothing and return False.
"""

from __future__ import annotations

import ctypes

from enginesync.env_utils import is_windows
from enginesync.log_utils import logger

SW_HIDE = 0
SW_SHOW = 5


def _set_console_visibility(command: int) -> bool:
    if not is_windows():
        return False
    try:
        kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]
        user32 = ctypes.windll.user32  # type: ignore[attr-defined]
    except AttributeError:
        return False
    hwnd = kernel32.GetConsoleWindow()
    if not hwnd:
        return False
    user32.ShowWindow(hwnd, command)
    return True


def hide_console_window() -> bool:
    """
    Hide the console window. Returns True if a window was hidden.
    """
    hidden = _set_console_visibility(SW_HIDE)
    if hidden:
        logger.debug("Console window hidden")
    return hidden


def show_console_window() -> bool:
    """
    Show the console window again. Returns True if a window was shown.
    """
    return _set_console_visibility(SW_SHOW)
