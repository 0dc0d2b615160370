"""
Configuration loading for enginesync.

The configuration is a flat YAML mapping read once per run. Every field is a
plain string and a missing key yields an empty string rather than an error.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, List, Mapping, Optional, Tuple

import platformdirs
import yaml

from enginesync.constants import APP_NAME, CONFIG_FILE_NAME
from enginesync.exceptions import ConfigMissingError, ConfigurationError
from enginesync.log_utils import logger

# Directory holding the enginesync package; the engine tree and the bundled
# config are located relative to it.
PROGRAM_DIR = os.path.dirname(os.path.abspath(__file__))

CONFIG_DIR = platformdirs.user_config_dir(APP_NAME)

# YAML key -> SyncConfig attribute
CONFIG_KEYS: Tuple[Tuple[str, str], ...] = (
    ("defaultClient", "default_client"),
    ("accessKey", "access_key"),
    ("secretKey", "secret_key"),
    ("endpointUrl", "endpoint_url"),
    ("region", "region"),
    ("bucketName", "bucket_name"),
    ("versionBucketName", "version_bucket_name"),
    ("versionFile", "version_file"),
    ("versionFileUrl", "version_file_url"),
    ("provider", "provider"),
    ("acl", "acl"),
    ("registryKey", "registry_key"),
    ("logLevel", "log_level"),
)

# YAML spellings of null; the loader keeps them as text
NULL_SCALARS = ("", "~", "null", "Null", "NULL")


def _scalar_text(key: str, raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, (Mapping, list)):
        raise ConfigurationError(
            f"Configuration value {key} must be a scalar",
            details=f"got {type(raw).__name__}",
        )
    text = str(raw).strip()
    return "" if text in NULL_SCALARS else text


@dataclass(frozen=True)
class SyncConfig:
    default_client: str = ""
    access_key: str = ""
    secret_key: str = ""
    endpoint_url: str = ""
    region: str = ""
    bucket_name: str = ""
    version_bucket_name: str = ""
    version_file: str = ""
    version_file_url: str = ""
    provider: str = ""
    acl: str = ""
    registry_key: str = ""
    log_level: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SyncConfig":
        """
        Build a SyncConfig from a YAML mapping.

        Keys are matched by their camelCase YAML name or by attribute name.
        `None` and YAML null spellings become an empty string; other scalars are
        converted with str().
        Unknown keys are ignored with a debug message.
        """
        values = {}
        known = set()
        for yaml_key, attr in CONFIG_KEYS:
            known.update((yaml_key, attr))
            raw = data.get(yaml_key, data.get(attr))
            values[attr] = _scalar_text(yaml_key, raw)
        for key in data:
            if key not in known:
                logger.debug(f"Ignoring unknown configuration key: {key}")
        return cls(**values)

    def redacted(self) -> dict:
        """
        Return the configuration as a dict with credentials masked, for logging.
        """
        result = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if item.name in ("access_key", "secret_key") and value:
                value = "****"
            result[item.name] = value
        return result


def config_search_paths(explicit: Optional[str] = None) -> List[str]:
    """
    Return candidate configuration file paths in lookup order.

    An explicit path is authoritative and is the only candidate when given.
    Otherwise the program directory is checked before the platformdirs user
    config directory.
    """
    if explicit:
        return [os.path.abspath(os.path.expanduser(explicit))]
    return [
        os.path.join(PROGRAM_DIR, CONFIG_FILE_NAME),
        os.path.join(CONFIG_DIR, CONFIG_FILE_NAME),
    ]


def config_exists(explicit: Optional[str] = None) -> Tuple[bool, Optional[str]]:
    """
    Return whether a configuration file exists and its path.

    Returns:
        (bool, str|None): True and the path of the first existing candidate, or
        False and None when no candidate exists.
    """
    for candidate in config_search_paths(explicit):
        if os.path.isfile(candidate):
            return True, candidate
    return False, None


def load_config(explicit: Optional[str] = None) -> SyncConfig:
    """
    Locate and parse the configuration file.

    Raises:
        ConfigMissingError: If no candidate file exists.
        ConfigurationError: If the file cannot be read or does not hold a mapping.
    """
    exists, config_path = config_exists(explicit)
    if not exists or config_path is None:
        raise ConfigMissingError(config_search_paths(explicit))

    try:
        with open(config_path, "r", encoding="utf-8") as handle:
            # BaseLoader keeps every scalar as written: 0123, 5.10 and no stay text
            data = yaml.load(handle, Loader=yaml.BaseLoader)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(
            f"Failed to read configuration {config_path}", details=str(exc)
        ) from exc

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"Configuration {config_path} must be a mapping",
            details=f"got {type(data).__name__}",
        )

    config = SyncConfig.from_mapping(data)
    logger.debug(f"Loaded configuration from {config_path}: {config.redacted()}")
    return config
