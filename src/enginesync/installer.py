"""
Installer bootstrap helpers.

Installs a missing backend CLI through the platform package manager, refreshes
the process PATH so the new binary is callable without a restart, and runs the
engine's prerequisite installer after a download.
"""

from __future__ import annotations

import os
import platform
import shutil
import subprocess
from typing import List, Mapping, Optional, Sequence

from enginesync.constants import (
    PREREQ_INSTALLER_SUBPATH,
    PREREQ_QUIET_FLAG,
    WINDOWS_MACHINE_ENV_KEY,
    WINDOWS_USER_ENV_KEY,
)
from enginesync.env_utils import is_windows
from enginesync.exceptions import InstallerError, ToolMissingError
from enginesync.log_utils import logger


def platform_key() -> str:
    """
    Return the platform key used to select install commands.
    """
    if is_windows():
        return "windows"
    return platform.system().lower()


def install_tool(
    executable: str,
    install_commands: Mapping[str, Sequence[str]],
    install_hint: str = "",
) -> None:
    """
    Install a missing CLI with the command registered for the current platform.

    Runs synchronously and raises ToolMissingError when there is no install
    command for this platform, the package manager itself is missing, or the
    install command fails.
    """
    key = platform_key()
    command = install_commands.get(key)
    if not command:
        raise ToolMissingError(
            f"{executable} is not installed and cannot be installed automatically on {key}",
            executable=executable,
            details=install_hint or None,
        )
    if not shutil.which(command[0]):
        raise ToolMissingError(
            f"{executable} is not installed and {command[0]} is not available",
            executable=executable,
            details=install_hint or None,
        )

    logger.info(f"Installing {executable}: {subprocess.list2cmdline(list(command))}")
    try:
        subprocess.run(list(command), check=True)
    except (subprocess.CalledProcessError, OSError) as exc:
        raise ToolMissingError(
            f"Failed to install {executable}",
            executable=executable,
            details=str(exc),
        ) from exc


def _read_windows_path(hive: int, subkey: str) -> str:
    import winreg

    try:
        with winreg.OpenKey(hive, subkey) as key:
            value, _value_type = winreg.QueryValueEx(key, "Path")
    except OSError as exc:
        logger.debug(f"Could not read Path from {subkey}: {exc}")
        return ""
    return os.path.expandvars(str(value))


def refresh_path() -> Optional[str]:
    """
    Rebuild PATH from the machine and user scope values on Windows.

    The cached process PATH is replaced with the machine value followed by the
    user value, so binaries installed during this run become callable. On other
    platforms PATH is left untouched and None is returned.
    """
    if not is_windows():
        logger.debug("PATH refresh is only needed on Windows; skipping")
        return None

    import winreg

    machine_path = _read_windows_path(
        winreg.HKEY_LOCAL_MACHINE, WINDOWS_MACHINE_ENV_KEY
    )
    user_path = _read_windows_path(winreg.HKEY_CURRENT_USER, WINDOWS_USER_ENV_KEY)
    entries: List[str] = [part for part in (machine_path, user_path) if part]
    new_path = os.pathsep.join(entries)
    if new_path:
        os.environ["PATH"] = new_path
        logger.debug("Refreshed PATH from machine and user environment")
    return new_path


def prerequisite_installer_path(engine_path: str) -> str:
    """
    Return the location of the prerequisite installer inside the engine tree.
    """
    return os.path.join(engine_path, *PREREQ_INSTALLER_SUBPATH)


def run_prerequisite_installer(engine_path: str) -> bool:
    """
    Run the engine prerequisite installer unattended.

    Returns:
        bool: True if the installer ran and exited cleanly, False if it was
        skipped or reported a non-zero status.

    Raises:
        InstallerError: If the installer exists but cannot be launched.
    """
    if not is_windows():
        logger.debug("Prerequisite installer is Windows-only; skipping")
        return False

    installer = prerequisite_installer_path(engine_path)
    if not os.path.isfile(installer):
        logger.warning(f"Prerequisite installer not found: {installer}")
        return False

    logger.info("Installing engine prerequisites...")
    try:
        result = subprocess.run([installer, PREREQ_QUIET_FLAG], check=False)
    except OSError as exc:
        raise InstallerError(
            "Failed to launch prerequisite installer", details=str(exc)
        ) from exc

    if result.returncode != 0:
        logger.warning(
            f"Prerequisite installer exited with status {result.returncode}"
        )
        return False
    return True
