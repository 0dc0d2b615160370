"""
Environment detection helpers.
"""

from __future__ import annotations

import os


def is_windows() -> bool:
    """
    Check if the current host is Windows.
    """
    return os.name == "nt"
