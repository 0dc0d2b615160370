"""
AWS CLI backend for S3-compatible storage.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from enginesync.backends.base import SyncBackend, non_empty_values
from enginesync.config import SyncConfig
from enginesync.constants import AWS_CLI_MSI_URL, COMMAND_UPLOAD


class AwsBackend(SyncBackend):
    """
    Transfers through `aws s3`. Upload compares by size only.
    """

    def __init__(self) -> None:
        super().__init__(
            name="aws",
            display_name="AWS CLI",
            executable="aws",
            install_commands={
                "windows": ("msiexec.exe", "/i", AWS_CLI_MSI_URL, "/qn"),
                "darwin": ("brew", "install", "awscli"),
            },
            install_hint="See https://docs.aws.amazon.com/cli/latest/userguide/getting-started-install.html",
        )

    def prepare_environment(self, config: SyncConfig) -> Dict[str, str]:
        return non_empty_values(
            {
                "AWS_ACCESS_KEY_ID": config.access_key,
                "AWS_SECRET_ACCESS_KEY": config.secret_key,
                "AWS_DEFAULT_REGION": config.region,
                "AWS_ENDPOINT_URL": config.endpoint_url,
            }
        )

    def remote_locator(self, bucket: str) -> str:
        return f"s3://{bucket}"

    def sync_arguments(
        self, direction: str, local_path: str, remote_locator: str, config: SyncConfig
    ) -> Sequence[str]:
        if direction == COMMAND_UPLOAD:
            args: List[str] = [
                "s3",
                "sync",
                local_path,
                remote_locator,
                "--size-only",
                "--delete",
            ]
            if config.acl:
                args.extend(["--acl", config.acl])
            return args
        return ["s3", "sync", remote_locator, local_path]

    def version_copy_arguments(
        self, marker_path: str, remote_target: str, config: SyncConfig
    ) -> Sequence[str]:
        args = ["s3", "cp", marker_path, remote_target]
        if config.acl:
            args.extend(["--acl", config.acl])
        return args
