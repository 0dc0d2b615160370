"""
Backend registry.
"""

from typing import Dict, List, Optional

from enginesync.backends.aws import AwsBackend
from enginesync.backends.base import SyncBackend
from enginesync.backends.rclone import RcloneBackend

_BACKENDS: Dict[str, SyncBackend] = {
    "aws": AwsBackend(),
    "rclone": RcloneBackend(),
}


def get_backend(name: Optional[str]) -> Optional[SyncBackend]:
    """
    Return a backend instance by case-insensitive name, or None if not found.
    """
    if not name:
        return None
    return _BACKENDS.get(name.strip().lower())


def list_backends() -> List[str]:
    """
    Return available backend names.
    """
    return sorted(_BACKENDS.keys())
