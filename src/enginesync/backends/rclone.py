"""
rclone backend using an environment-defined S3 remote.
"""

from __future__ import annotations

from typing import Dict, Sequence

from enginesync.backends.base import SyncBackend, non_empty_values
from enginesync.config import SyncConfig
from enginesync.constants import (
    COMMAND_UPLOAD,
    DOWNLOAD_CHECKERS,
    DOWNLOAD_TRANSFERS,
    RCLONE_REMOTE_NAME,
    RCLONE_WINGET_ID,
    UPLOAD_CHECKERS,
    UPLOAD_TRANSFERS,
)


class RcloneBackend(SyncBackend):
    """
    Transfers through rclone. Upload compares by checksum; download keeps
    newer local files and uses the server modification time.
    """

    def __init__(self) -> None:
        super().__init__(
            name="rclone",
            display_name="rclone",
            executable="rclone",
            install_commands={
                "windows": (
                    "winget",
                    "install",
                    "--id",
                    RCLONE_WINGET_ID,
                    "-e",
                    "--silent",
                    "--accept-package-agreements",
                    "--accept-source-agreements",
                ),
                "darwin": ("brew", "install", "rclone"),
            },
            install_hint="See https://rclone.org/install/",
        )

    @property
    def _env_prefix(self) -> str:
        return f"RCLONE_CONFIG_{RCLONE_REMOTE_NAME.upper()}_"

    def prepare_environment(self, config: SyncConfig) -> Dict[str, str]:
        prefix = self._env_prefix
        env = {f"{prefix}TYPE": "s3"}
        env.update(
            non_empty_values(
                {
                    f"{prefix}PROVIDER": config.provider,
                    f"{prefix}ACCESS_KEY_ID": config.access_key,
                    f"{prefix}SECRET_ACCESS_KEY": config.secret_key,
                    f"{prefix}ENDPOINT": config.endpoint_url,
                    f"{prefix}REGION": config.region,
                    f"{prefix}ACL": config.acl,
                }
            )
        )
        return env

    def remote_locator(self, bucket: str) -> str:
        return f"{RCLONE_REMOTE_NAME}:{bucket}"

    def sync_arguments(
        self, direction: str, local_path: str, remote_locator: str, config: SyncConfig
    ) -> Sequence[str]:
        if direction == COMMAND_UPLOAD:
            return [
                "sync",
                local_path,
                remote_locator,
                "--checksum",
                "--checkers",
                str(UPLOAD_CHECKERS),
                "--transfers",
                str(UPLOAD_TRANSFERS),
            ]
        return [
            "copy",
            remote_locator,
            local_path,
            "--update",
            "--use-server-modtime",
            "--checkers",
            str(DOWNLOAD_CHECKERS),
            "--transfers",
            str(DOWNLOAD_TRANSFERS),
        ]

    def version_copy_arguments(
        self, marker_path: str, remote_target: str, config: SyncConfig
    ) -> Sequence[str]:
        return ["copyto", marker_path, remote_target]
