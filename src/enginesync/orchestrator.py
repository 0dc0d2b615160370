"""
Top-level sync flow: resolve the backend and engine path, then upload or download.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from enginesync import config as sync_config
from enginesync.backends import SyncBackend, get_backend, list_backends
from enginesync.config import SyncConfig
from enginesync.constants import (
    COMMAND_CHECK,
    COMMAND_DOWNLOAD,
    COMMAND_UPLOAD,
    ENGINE_PATH_LEVELS_UP,
    MSG_ALREADY_LATEST,
)
from enginesync.exceptions import (
    ConfigurationError,
    UnrecognizedBackendError,
    UnrecognizedCommandError,
)
from enginesync.installer import run_prerequisite_installer
from enginesync.log_utils import logger
from enginesync.progress import ConsoleReporter
from enginesync.registration import register_engine
from enginesync.runner import CommandSpec, LineSink, run_command
from enginesync.version_gate import VersionCheck, VersionGate

COMMANDS = (COMMAND_UPLOAD, COMMAND_DOWNLOAD, COMMAND_CHECK)

# Outcomes recorded in SyncResult.action
ACTION_UPLOADED = "uploaded"
ACTION_DOWNLOADED = "downloaded"
ACTION_UP_TO_DATE = "up-to-date"
ACTION_CHECKED = "checked"
ACTION_SKIPPED = "skipped"

CommandRunner = Callable[[CommandSpec, LineSink], int]


def default_engine_path() -> str:
    """
    Return the directory three levels above the program location.
    """
    path = sync_config.PROGRAM_DIR
    for _ in range(ENGINE_PATH_LEVELS_UP):
        path = os.path.dirname(path)
    return path


def resolve_engine_path(path: Optional[str] = None) -> str:
    """
    Return the engine path with trailing separators stripped.

    A filesystem root keeps its separator so it still names the root.
    """
    raw = os.path.abspath(os.path.expanduser(path)) if path else default_engine_path()
    stripped = raw.rstrip("/\\")
    if not stripped or stripped.endswith(":"):
        return raw
    return stripped


def version_marker_path(engine_path: str, version_file: str) -> str:
    """
    Return the local version marker location beside the engine path.
    """
    return os.path.join(os.path.dirname(engine_path), version_file)


@dataclass
class SyncResult:
    command: str
    backend: Optional[str]
    engine_path: str
    action: str
    remote_version: Optional[int] = None
    local_version: Optional[int] = None


class SyncOrchestrator:
    """
    Drives one run: ResolveConfig, ResolveBackend, ResolvePath, then a flow.

    Unknown backends and commands are logged and the run completes without
    transferring anything. Every other failure propagates to the caller.

    Attributes:
        config: Configuration loaded for this run.
        reporter: Receives every line of transfer output.
        runner: Executes backend commands; defaults to run_command.
        session: Optional requests session used for the version check.
        force: Download even when the local version is current.
    """

    def __init__(
        self,
        config: SyncConfig,
        reporter: Optional[ConsoleReporter] = None,
        runner: Optional[CommandRunner] = None,
        session: Optional[requests.Session] = None,
        force: bool = False,
    ) -> None:
        self.config = config
        self.reporter = reporter or ConsoleReporter()
        self.runner = runner or run_command
        self.session = session
        self.force = force

    def resolve_backend(self, name: Optional[str]) -> Optional[SyncBackend]:
        selected = name or self.config.default_client
        backend = get_backend(selected)
        if backend is None:
            error = UnrecognizedBackendError(selected or "", list_backends())
            logger.error(str(error))
        else:
            logger.debug(f"Selected backend: {backend.display_name}")
        return backend

    def prepare_engine_path(self, path: Optional[str]) -> str:
        engine_path = resolve_engine_path(path)
        os.makedirs(engine_path, exist_ok=True)
        logger.debug(f"Engine path: {engine_path}")
        return engine_path

    def version_gate(self, engine_path: str) -> VersionGate:
        if not self.config.version_file:
            raise ConfigurationError("versionFile is not configured")
        if not self.config.version_file_url:
            raise ConfigurationError("versionFileUrl is not configured")
        return VersionGate(
            self.config.version_file_url,
            self.config.version_file,
            version_marker_path(engine_path, self.config.version_file),
            session=self.session,
        )

    def run(
        self,
        command: str,
        backend_name: Optional[str] = None,
        path: Optional[str] = None,
    ) -> SyncResult:
        """
        Execute `command` ("upload", "download" or "check").

        Raises:
            EngineSyncError: Any configuration, network, version, tooling or
                transfer failure. Nothing is retried.
        """
        command = (command or "").strip().lower()
        backend = self.resolve_backend(backend_name)
        engine_path = self.prepare_engine_path(path)

        if command == COMMAND_UPLOAD:
            return self.upload(backend, engine_path)
        if command == COMMAND_DOWNLOAD:
            return self.download(backend, engine_path)
        if command == COMMAND_CHECK:
            return self.check(backend, engine_path)

        logger.error(str(UnrecognizedCommandError(command, COMMANDS)))
        return SyncResult(
            command=command,
            backend=backend.name if backend else None,
            engine_path=engine_path,
            action=ACTION_SKIPPED,
        )

    def _run(self, spec: CommandSpec) -> None:
        self.runner(spec, self.reporter.line)

    def upload(self, backend: Optional[SyncBackend], engine_path: str) -> SyncResult:
        """
        Mirror the engine tree to the bucket, then publish the local marker.

        Runs regardless of local or remote version state.
        """
        if backend is None:
            logger.warning("No backend selected; nothing uploaded")
            return SyncResult(COMMAND_UPLOAD, None, engine_path, ACTION_SKIPPED)

        if not self.config.bucket_name:
            raise ConfigurationError("bucketName is not configured")

        mirror = backend.build_sync_command(
            COMMAND_UPLOAD,
            engine_path,
            backend.remote_locator(self.config.bucket_name),
            self.config,
        )
        marker = version_marker_path(engine_path, self.config.version_file)
        publish = backend.build_version_copy_command(marker, self.config)

        backend.ensure_available()
        self._run(mirror)
        self._run(publish)

        logger.info("Upload complete")
        return SyncResult(COMMAND_UPLOAD, backend.name, engine_path, ACTION_UPLOADED)

    def download(
        self, backend: Optional[SyncBackend], engine_path: str
    ) -> SyncResult:
        """
        Mirror the bucket into the engine tree when a newer version is published.

        After a successful mirror the marker is updated, the engine path is
        registered and the prerequisite installer runs, in that order.
        """
        if backend is None:
            logger.warning("No backend selected; nothing downloaded")
            return SyncResult(COMMAND_DOWNLOAD, None, engine_path, ACTION_SKIPPED)

        if not self.config.bucket_name:
            raise ConfigurationError("bucketName is not configured")

        gate = self.version_gate(engine_path)
        versions = gate.check()
        if not versions.update_available and not self.force:
            logger.info(MSG_ALREADY_LATEST.format(version=versions.local))
            return self._versioned_result(
                COMMAND_DOWNLOAD, backend, engine_path, ACTION_UP_TO_DATE, versions
            )

        logger.info(f"Updating engine from version {versions.local} to {versions.remote}")
        backend.ensure_available()
        self._run(
            backend.build_sync_command(
                COMMAND_DOWNLOAD,
                engine_path,
                backend.remote_locator(self.config.bucket_name),
                self.config,
            )
        )

        gate.record(versions.remote)
        register_engine(self.config.registry_key, engine_path)
        run_prerequisite_installer(engine_path)

        logger.info(f"Engine updated to version {versions.remote}")
        return self._versioned_result(
            COMMAND_DOWNLOAD, backend, engine_path, ACTION_DOWNLOADED, versions
        )

    def check(self, backend: Optional[SyncBackend], engine_path: str) -> SyncResult:
        """
        Report local and published versions without transferring anything.
        """
        versions = self.version_gate(engine_path).check()
        if versions.update_available:
            logger.info(
                f"Version {versions.remote} is available (installed: {versions.local})"
            )
        else:
            logger.info(MSG_ALREADY_LATEST.format(version=versions.local))
        return self._versioned_result(
            COMMAND_CHECK, backend, engine_path, ACTION_CHECKED, versions
        )

    @staticmethod
    def _versioned_result(
        command: str,
        backend: Optional[SyncBackend],
        engine_path: str,
        action: str,
        versions: VersionCheck,
    ) -> SyncResult:
        return SyncResult(
            command=command,
            backend=backend.name if backend else None,
            engine_path=engine_path,
            action=action,
            remote_version=versions.remote,
            local_version=versions.local,
        )
