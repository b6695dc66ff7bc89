"""Guard configuration and settings.

This module provides the configuration model and I/O functions that
describe where the protected application lives and which files the
protection engine touches.

Configuration is stored in ~/.config/ccguard/config.toml. Every field has
a default matching a stock CapCut installation, so the file is optional.
"""

import os
import re
import tomllib
from pathlib import Path, PurePosixPath
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ccguard.core.errors import ConfigError, ConfigParseError
from ccguard.core.paths import get_config_path

# Environment variable overriding the application root
APP_ROOT_ENV = "CCGUARD_APP_ROOT"

DEFAULT_PROCESS_NAMES: tuple[str, ...] = ("CapCut", "CapCut.exe")
DEFAULT_STAGING_PATHS: tuple[str, ...] = ("Apps/update.exe", "User Data/Download/update.exe")
DEFAULT_CACHE_DIRS: tuple[str, ...] = ("User Data/Cache", "User Data/Temp")


def _check_relative(value: str) -> str:
    """Reject absolute paths and parent traversal in root-relative entries."""
    posix = PurePosixPath(value.replace("\\", "/"))
    if not value.strip() or posix.is_absolute() or ".." in posix.parts or ":" in value:
        msg = f"must be a relative path inside the application root: {value!r}"
        raise ValueError(msg)
    return posix.as_posix()


class GuardConfig(BaseModel):
    """Configuration for the protection engine.

    Attributes:
        app_root: Application root (contains Apps/ and User Data/).
            None means auto-detect from platform defaults.
        process_names: Executable names that mark the application as running.
        version_pattern: Regex a directory name must match to count as a version.
        install_dir: Install root relative to the application root.
        user_data_dir: User data root relative to the application root.
        config_filename: Pinned configuration file inside the install root.
        manifest_filename: Launcher pointer file inside the install root.
        executable_name: Executable inside each version directory.
        staging_paths: Updater staging locations, relative to the application root.
        cache_dirs: Cache directories, relative to the application root.
        lock_timeout_seconds: How long to wait for the state file lock.
    """

    model_config = ConfigDict(extra="forbid")

    app_root: Annotated[
        Path | None,
        Field(description="Application root (None = auto-detect)"),
    ] = None
    process_names: Annotated[
        list[str],
        Field(min_length=1, description="Process names of the protected application"),
    ] = list(DEFAULT_PROCESS_NAMES)
    version_pattern: Annotated[
        str,
        Field(description="Regex matched against version directory names"),
    ] = r"^\d+(\.\d+)+$"
    install_dir: str = "Apps"
    user_data_dir: str = "User Data"
    config_filename: str = "configure.ini"
    manifest_filename: str = "ProductInfo.xml"
    executable_name: str = "CapCut.exe"
    staging_paths: Annotated[
        list[str],
        Field(description="Updater staging paths to block"),
    ] = list(DEFAULT_STAGING_PATHS)
    cache_dirs: Annotated[
        list[str],
        Field(description="Cache directories whose contents may be purged"),
    ] = list(DEFAULT_CACHE_DIRS)
    lock_timeout_seconds: Annotated[
        float,
        Field(gt=0, le=300, description="State lock timeout in seconds (0-300)"),
    ] = 10.0

    @field_validator("version_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Validate that the version pattern is a valid regular expression."""
        try:
            re.compile(v)
        except re.error as e:
            msg = f"invalid version_pattern: {e}"
            raise ValueError(msg) from None
        return v

    @field_validator("install_dir", "user_data_dir")
    @classmethod
    def validate_dir(cls, v: str) -> str:
        """Validate root-relative directory names."""
        return _check_relative(v)

    @field_validator("staging_paths", "cache_dirs")
    @classmethod
    def validate_relative_paths(cls, v: list[str]) -> list[str]:
        """Validate that every entry stays inside the application root."""
        return [_check_relative(item) for item in v]

    @field_validator("config_filename", "manifest_filename", "executable_name")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Validate bare file names."""
        if not v or "/" in v or "\\" in v:
            msg = f"must be a bare file name: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def effective_app_root(self) -> Path | None:
        """Get the explicitly configured application root.

        The CCGUARD_APP_ROOT environment variable takes precedence over
        the configured value.

        Returns:
            Explicit application root, or None to auto-detect.
        """
        env_root = os.environ.get(APP_ROOT_ENV)
        if env_root:
            return Path(env_root)
        return self.app_root


def load_config(path: Path | None = None) -> GuardConfig:
    """Load guard configuration from a TOML file.

    A missing file is not an error: defaults are returned.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated GuardConfig object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return GuardConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return GuardConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: GuardConfig, path: Path | None = None) -> Path:
    """Save guard configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The GuardConfig object to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(mode="json", exclude_none=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
