"""
Transfer backends for enginesync.
"""

from .base import SyncBackend
from .registry import get_backend, list_backends

__all__ = ["SyncBackend", "get_backend", "list_backends"]
