"""
Engine registration with the host's engine-discovery registry.

On Windows the engine path is stored as a string value under the current user's
engine builds key. Elsewhere it is written to the launcher's Install.ini.
"""

from __future__ import annotations

import configparser
import os
from typing import Optional

from enginesync.constants import (
    LINUX_INSTALL_INI_DIR,
    LINUX_INSTALL_INI_NAME,
    LINUX_INSTALL_INI_SECTION,
    WINDOWS_ENGINE_BUILDS_KEY,
)
from enginesync.env_utils import is_windows
from enginesync.log_utils import logger


def install_ini_path() -> str:
    directory = os.path.expanduser(os.path.join(*LINUX_INSTALL_INI_DIR))
    return os.path.join(directory, LINUX_INSTALL_INI_NAME)


def _register_windows(name: str, engine_path: str) -> None:
    import winreg

    with winreg.CreateKeyEx(
        winreg.HKEY_CURRENT_USER, WINDOWS_ENGINE_BUILDS_KEY, 0, winreg.KEY_SET_VALUE
    ) as key:
        winreg.SetValueEx(key, name, 0, winreg.REG_SZ, engine_path)


def _register_install_ini(name: str, engine_path: str, ini_path: str) -> None:
    parser = configparser.ConfigParser()
    # Keys are engine identifiers and must keep their case
    parser.optionxform = str  # type: ignore[assignment]
    if os.path.exists(ini_path):
        parser.read(ini_path, encoding="utf-8")
    if not parser.has_section(LINUX_INSTALL_INI_SECTION):
        parser.add_section(LINUX_INSTALL_INI_SECTION)
    parser.set(LINUX_INSTALL_INI_SECTION, name, engine_path)

    os.makedirs(os.path.dirname(ini_path), exist_ok=True)
    with open(ini_path, "w", encoding="utf-8") as handle:
        parser.write(handle)


def register_engine(
    name: str, engine_path: str, ini_path: Optional[str] = None
) -> bool:
    """
    Record `engine_path` under `name` so engine launchers can discover it.

    Returns:
        bool: True if the entry was written, False if `name` is empty.

    Raises:
        OSError: If the registry or Install.ini cannot be written.
    """
    if not name:
        logger.warning("No registryKey configured; skipping engine registration")
        return False

    if is_windows():
        _register_windows(name, engine_path)
        logger.info(f"Registered engine {name} at {engine_path}")
        return True

    target = ini_path or install_ini_path()
    _register_install_ini(name, engine_path, target)
    logger.info(f"Registered engine {name} at {engine_path} in {target}")
    return True
