"""
Version marker comparison deciding whether a download is needed.

The remote marker is a single integer published at a public URL; the local
marker is the same integer persisted beside the engine tree after the last
successful download.
"""

from __future__ import annotations

import importlib.metadata
import os
import tempfile
from dataclasses import dataclass
from typing import Optional

import requests

from enginesync.constants import APP_NAME, VERSION_REQUEST_TIMEOUT
from enginesync.exceptions import NetworkError, VersionFormatError
from enginesync.log_utils import logger

_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Return the User-Agent string used for HTTP requests: `enginesync/{version}`.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version(APP_NAME)
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"
        _USER_AGENT_CACHE = f"{APP_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def version_url(base_url: str, version_file: str) -> str:
    """
    Join the public version URL and the version file name.
    """
    return f"{base_url.rstrip('/')}/{version_file.lstrip('/')}"


def parse_version(text: str, source: str) -> int:
    """
    Parse a version marker, tolerating surrounding whitespace and a UTF-8 BOM.

    Raises:
        VersionFormatError: If the text is not an integer.
    """
    cleaned = text.lstrip("\ufeff").strip()
    try:
        return int(cleaned)
    except ValueError:
        raise VersionFormatError(source, text) from None


def fetch_remote_version(
    base_url: str,
    version_file: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> int:
    """
    Fetch the published version marker with a single GET request.

    Raises:
        NetworkError: If the request fails or returns an error status.
        VersionFormatError: If the body is not an integer.
    """
    url = version_url(base_url, version_file)
    getter = session.get if session is not None else requests.get
    logger.debug(f"Fetching remote version from {url}")
    try:
        response = getter(
            url,
            timeout=timeout or VERSION_REQUEST_TIMEOUT,
            headers={"User-Agent": get_user_agent()},
        )
        response.raise_for_status()
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise NetworkError(
            f"Version check failed for {url}",
            url=url,
            status_code=status,
            details=str(exc),
        ) from exc
    except requests.RequestException as exc:
        raise NetworkError(
            f"Could not reach {url}", url=url, details=str(exc)
        ) from exc

    return parse_version(response.text, url)


def read_local_version(path: str) -> int:
    """
    Read the local version marker; a missing file counts as version 0.

    Raises:
        VersionFormatError: If the file exists but does not hold an integer.
    """
    try:
        with open(path, "r", encoding="utf-8") as handle:
            content = handle.read()
    except FileNotFoundError:
        logger.debug(f"No local version marker at {path}")
        return 0
    return parse_version(content, path)


def write_local_version(path: str, version: int) -> None:
    """
    Overwrite the local version marker with `version`.

    Written to a temporary file in the same directory and moved into place so an
    interrupted write never leaves a truncated marker.
    """
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)
    temp_fd, temp_path = tempfile.mkstemp(dir=directory, prefix="tmp-", suffix=".tmp")
    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as temp_f:
            temp_f.write(str(version))
        os.replace(temp_path, path)
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass
    logger.debug(f"Wrote local version {version} to {path}")


@dataclass(frozen=True)
class VersionCheck:
    remote: int
    local: int

    @property
    def update_available(self) -> bool:
        return self.remote > self.local


class VersionGate:
    """
    Compares the published version with the local marker.

    Attributes:
        base_url: Public URL the version file is published under.
        version_file: Name of the version file.
        marker_path: Location of the local marker.
    """

    def __init__(
        self,
        base_url: str,
        version_file: str,
        marker_path: str,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url
        self.version_file = version_file
        self.marker_path = marker_path
        self.session = session

    def check(self) -> VersionCheck:
        remote = fetch_remote_version(
            self.base_url, self.version_file, session=self.session
        )
        local = read_local_version(self.marker_path)
        logger.debug(f"Remote version {remote}, local version {local}")
        return VersionCheck(remote=remote, local=local)

    def record(self, version: int) -> None:
        write_local_version(self.marker_path, version)


def should_download(remote_version_url: str, local_marker_path: str) -> bool:
    """
    Return True iff the published version is strictly newer than the local one.

    `remote_version_url` is the full URL of the published version file.
    """
    base_url, _, version_file = remote_version_url.rstrip("/").rpartition("/")
    gate = VersionGate(base_url, version_file, local_marker_path)
    return gate.check().update_available
