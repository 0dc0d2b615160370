"""
Base definitions for transfer backends.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence

from enginesync.config import SyncConfig
from enginesync.constants import COMMAND_DOWNLOAD, COMMAND_UPLOAD
from enginesync.exceptions import ConfigurationError, ToolMissingError
from enginesync.installer import install_tool, refresh_path
from enginesync.log_utils import logger
from enginesync.runner import CommandSpec

DIRECTIONS = (COMMAND_UPLOAD, COMMAND_DOWNLOAD)


def non_empty_values(values: Mapping[str, str]) -> Dict[str, str]:
    return {key: value for key, value in values.items() if value}


@dataclass
class SyncBackend(ABC):
    name: str
    display_name: str
    executable: str
    install_commands: Mapping[str, Sequence[str]] = field(default_factory=dict)
    install_hint: str = ""

    def which(self) -> Optional[str]:
        """
        Return the resolved path of the backend executable, or None.
        """
        return shutil.which(self.executable)

    def ensure_available(self) -> None:
        """
        Make sure the backend CLI is callable, installing it if necessary.

        Raises:
            ToolMissingError: If the CLI is missing and installation did not help.
        """
        found = self.which()
        if found:
            logger.debug(f"Using {self.display_name} at {found}")
            return

        logger.warning(f"{self.executable} not found on PATH; attempting install")
        install_tool(self.executable, self.install_commands, self.install_hint)
        refresh_path()

        if not self.which():
            raise ToolMissingError(
                f"{self.executable} is still not on PATH after installation",
                executable=self.executable,
                details=self.install_hint or None,
            )

    @abstractmethod
    def prepare_environment(self, config: SyncConfig) -> Dict[str, str]:
        """
        Return environment variables the CLI needs, applied to its process only.
        """

    @abstractmethod
    def remote_locator(self, bucket: str) -> str:
        """
        Return the backend-specific address of `bucket`.
        """

    @abstractmethod
    def sync_arguments(
        self, direction: str, local_path: str, remote_locator: str, config: SyncConfig
    ) -> Sequence[str]:
        """
        Return the CLI arguments, without the executable, for one mirror run.
        """

    @abstractmethod
    def version_copy_arguments(
        self, marker_path: str, remote_target: str, config: SyncConfig
    ) -> Sequence[str]:
        """
        Return the CLI arguments copying the marker file to `remote_target`.
        """

    def build_sync_command(
        self,
        direction: str,
        local_path: str,
        remote_locator: str,
        config: SyncConfig,
    ) -> CommandSpec:
        """
        Build the one-way mirror command for `direction`.

        Upload mirrors local_path to remote_locator; download mirrors the other way.
        """
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown sync direction: {direction}")
        if direction == COMMAND_UPLOAD:
            description = f"Uploading {local_path} to {remote_locator} with {self.display_name}"
        else:
            description = f"Downloading {remote_locator} to {local_path} with {self.display_name}"
        args = self.sync_arguments(direction, local_path, remote_locator, config)
        return CommandSpec(
            argv=(self.executable, *args),
            env=self.prepare_environment(config),
            description=description,
        )

    def build_version_copy_command(
        self, marker_path: str, config: SyncConfig
    ) -> CommandSpec:
        """
        Build the command copying the local version marker to the version bucket.
        """
        if not config.version_bucket_name or not config.version_file:
            raise ConfigurationError(
                "versionBucketName and versionFile must be set to publish a version"
            )
        remote_target = (
            f"{self.remote_locator(config.version_bucket_name)}/{config.version_file}"
        )
        args = self.version_copy_arguments(marker_path, remote_target, config)
        return CommandSpec(
            argv=(self.executable, *args),
            env=self.prepare_environment(config),
            description=f"Publishing version marker to {remote_target}",
        )
