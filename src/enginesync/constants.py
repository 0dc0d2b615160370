"""
Constants and configuration values for enginesync.

This module contains fixed names, command flags, timeouts, and other constants
used throughout the application.
"""

# Application identity
APP_NAME = "enginesync"
CONFIG_FILE_NAME = "enginesync.yaml"
LOG_FILE_NAME = "enginesync.log"

# Commands understood by the orchestrator
COMMAND_UPLOAD = "upload"
COMMAND_DOWNLOAD = "download"
COMMAND_CHECK = "check"

# Engine path defaults to this many directories above the program location
ENGINE_PATH_LEVELS_UP = 3

# Network timeouts (in seconds)
VERSION_REQUEST_TIMEOUT = 15

# Parallelism flags, differing by direction
UPLOAD_CHECKERS = 16
UPLOAD_TRANSFERS = 16
DOWNLOAD_CHECKERS = 32
DOWNLOAD_TRANSFERS = 32

# Name of the environment-defined rclone remote
RCLONE_REMOTE_NAME = "enginesync"

# Number of trailing output lines kept for error reports
COMMAND_OUTPUT_TAIL_LINES = 20

# Installer bootstrap
AWS_CLI_MSI_URL = "https://awscli.amazonaws.com/AWSCLIV2.msi"
RCLONE_WINGET_ID = "Rclone.Rclone"

# Windows registry locations
WINDOWS_ENGINE_BUILDS_KEY = r"Software\Epic Games\Unreal Engine\Builds"
WINDOWS_MACHINE_ENV_KEY = (
    r"SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
)
WINDOWS_USER_ENV_KEY = "Environment"

# Engine registration on non-Windows hosts
LINUX_INSTALL_INI_DIR = ("~", ".config", "Epic", "UnrealEngine")
LINUX_INSTALL_INI_NAME = "Install.ini"
LINUX_INSTALL_INI_SECTION = "Installations"

# Prerequisite installer relative to the engine path
PREREQ_INSTALLER_SUBPATH = (
    "Engine",
    "Extras",
    "Redist",
    "en-us",
    "UEPrereqSetup_x64.exe",
)
PREREQ_QUIET_FLAG = "/quiet"

# Status window
WINDOW_TITLE = "Engine Sync"
WINDOW_GEOMETRY = "900x480"
WINDOW_POLL_INTERVAL_MS = 100
WINDOW_READY_TIMEOUT = 10.0

# Logging configuration
LOGGER_NAME = "enginesync"
LOG_LEVEL_ENV_VAR = "ENGINESYNC_LOG_LEVEL"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 3
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"

# User-facing messages
MSG_ALREADY_LATEST = "Version is already the latest ({version})"
MSG_PRESS_ENTER = "Press Enter to exit..."
