"""
Download settings for releasefetch.

A DownloadSettings object is the single declarative input of a download run.
It can be read from a YAML file (upper-case keys, like the example below),
overridden from the environment and from command-line flags.

    REPOSITORY: owner/repo
    LATEST: true
    PRERELEASE: false
    TAG_PREFIX: v2
    FILE_NAME: "*.zip"
    TARBALL: true
    OUT_DIR: ./downloads
"""

import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import platformdirs
import yaml

from releasefetch.constants import (
    API_URL_ENV_VAR,
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_GITHUB_API_URL,
    DEFAULT_OUT_DIR,
    DEFAULT_REQUEST_TIMEOUT,
)
from releasefetch.exceptions import ConfigError
from releasefetch.log_utils import logger

REPO_PATH_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")

# YAML key -> DownloadSettings field
CONFIG_KEYS: Dict[str, str] = {
    "REPOSITORY": "repo_path",
    "LATEST": "latest",
    "TAG": "tag",
    "ID": "release_id",
    "FILTER_BY_BRANCH": "filter_by_branch",
    "BRANCH": "branch",
    "PRERELEASE": "prerelease",
    "TAG_PREFIX": "tag_prefix",
    "FILE_NAME": "file_name",
    "TARBALL": "tarball",
    "ZIPBALL": "zipball",
    "OUT_DIR": "out_dir",
    "EXTRACT": "extract_assets",
    "API_URL": "api_url",
    "TIMEOUT": "timeout",
    "LOG_LEVEL": "log_level",
}

_BOOL_FIELDS = {
    "latest",
    "filter_by_branch",
    "prerelease",
    "tarball",
    "zipball",
    "extract_assets",
}


def default_config_path() -> Path:
    """Location of the per-user configuration file."""
    return Path(platformdirs.user_config_dir(APP_NAME)) / CONFIG_FILE_NAME


@dataclass(frozen=True)
class DownloadSettings:
    """Everything a download run needs to know."""

    repo_path: str = ""
    latest: bool = False
    tag: str = ""
    release_id: str = ""
    filter_by_branch: bool = False
    branch: str = ""
    prerelease: bool = False
    tag_prefix: str = ""
    file_name: str = ""
    tarball: bool = False
    zipball: bool = False
    out_dir: str = DEFAULT_OUT_DIR
    extract_assets: bool = False
    api_url: str = DEFAULT_GITHUB_API_URL
    timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: Optional[str] = None

    def validate(self) -> "DownloadSettings":
        """
        Check the settings that every run depends on.

        Returns:
            DownloadSettings: `self`, to allow chaining.

        Raises:
            ConfigError: If the repository is not `owner/repo`, the timeout is not positive,
                or branch filtering is on without a branch name.
        """
        if not REPO_PATH_PATTERN.match(self.repo_path or ""):
            raise ConfigError(
                "Config error: repository must be in the form owner/repo",
                details=f"got {self.repo_path!r}",
            )
        if self.timeout <= 0:
            raise ConfigError(f"Config error: timeout must be positive, got {self.timeout}")
        if self.filter_by_branch and not self.branch:
            raise ConfigError("Config error: branch filtering requires a branch name")
        return self

    def merged(self, overrides: Mapping[str, Any]) -> "DownloadSettings":
        """Return a copy with every non-None value of `overrides` applied."""
        known = {f.name for f in fields(self)}
        changes = {
            key: _coerce(key, value)
            for key, value in overrides.items()
            if value is not None and key in known
        }
        return replace(self, **changes)


def _coerce(field_name: str, value: Any) -> Any:
    """Normalise a raw config or environment value for `field_name`."""
    if field_name in _BOOL_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)
    if field_name == "timeout":
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Config error: invalid timeout {value!r}") from e
    return str(value)


def load_settings_file(path: os.PathLike | str) -> Dict[str, Any]:
    """
    Read a YAML settings file into DownloadSettings field overrides.

    Parameters:
        path (PathLike | str): YAML file with upper-case keys (see module docstring).

    Returns:
        Dict[str, Any]: Field name -> value for every recognised key. Unknown keys are
            logged and ignored; an empty file yields an empty mapping.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or is not a mapping.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Config error: cannot read {path}", details=str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Config error: invalid YAML in {path}", details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config error: {path} must contain a mapping, got {type(data).__name__}"
        )

    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        field_name = CONFIG_KEYS.get(str(key).upper())
        if field_name is None:
            logger.warning(f"Ignoring unknown configuration key {key!r} in {path}")
            continue
        overrides[field_name] = value
    return overrides


def settings_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Field overrides taken from environment variables."""
    env = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    api_url = env.get(API_URL_ENV_VAR)
    if api_url:
        overrides["api_url"] = api_url
    return overrides


def build_settings(
    config_path: Optional[os.PathLike | str] = None,
    cli_overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DownloadSettings:
    """
    Assemble validated settings: defaults < config file < environment < CLI flags.

    When `config_path` is None the per-user config file is used if it exists.

    Raises:
        ConfigError: If the config file is unusable or the result fails validation.
    """
    settings = DownloadSettings()

    if config_path is None:
        candidate = default_config_path()
        if candidate.is_file():
            logger.debug(f"Using configuration file {candidate}")
            config_path = candidate
    if config_path is not None:
        settings = settings.merged(load_settings_file(config_path))

    settings = settings.merged(settings_from_env(environ))
    settings = settings.merged(cli_overrides or {})
    return settings.validate()
