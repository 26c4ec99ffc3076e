"""Configuration management for aptdepot.

Handles loading and validation of the YAML repository configuration:
Release metadata, storage layout, publishing, signing and logging.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


DEFAULT_CONFIG_PATH = "/etc/aptdepot/config.yaml"


@dataclass
class ReleaseConfig:
    """Freeform metadata written into the top-level Release file."""

    origin: str = "aptdepot"
    label: str = "aptdepot"
    suite: str = "stable"
    codename: str = "stable"
    version: str = "1.0"
    description: str = ""
    component: str = "main"
    architectures: List[str] = field(default_factory=list)


@dataclass
class StorageConfig:
    """Configuration for the repository root and artifact pool."""

    repo_root: str = "/var/lib/aptdepot/repo"
    max_retries: int = 4
    retry_delay: float = 0.5


@dataclass
class PublishConfig:
    """Configuration for index publishing."""

    retain_snapshots: int = 3
    verify_artifacts: bool = True


@dataclass
class SigningConfig:
    """Configuration for Release signing through gpg."""

    key_id: Optional[str] = None
    gpg_binary: str = "gpg"
    homedir: Optional[str] = None
    timeout: int = 60

    @property
    def enabled(self) -> bool:
        """Check if a signing key is configured."""
        return bool(self.key_id)


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass
class AptDepotConfig:
    """Top-level configuration for aptdepot."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    signing: SigningConfig = field(default_factory=SigningConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_release_config(release_dict: Dict[str, Any]) -> ReleaseConfig:
    """Parse the release section.

    Args:
        release_dict: Release configuration dictionary

    Returns:
        ReleaseConfig instance

    Raises:
        ValueError: If a field contains a newline
    """
    defaults = ReleaseConfig()
    release = ReleaseConfig(
        origin=str(release_dict.get("origin", defaults.origin)),
        label=str(release_dict.get("label", defaults.label)),
        suite=str(release_dict.get("suite", defaults.suite)),
        codename=str(release_dict.get("codename", release_dict.get("suite", defaults.codename))),
        version=str(release_dict.get("version", defaults.version)),
        description=str(release_dict.get("description", defaults.description)),
        component=str(release_dict.get("component", defaults.component)),
        architectures=[str(a) for a in release_dict.get("architectures", [])],
    )

    # Release fields are single-line
    for name in ("origin", "label", "suite", "codename", "version", "description", "component"):
        if "\n" in getattr(release, name):
            raise ValueError(f"Release field '{name}' must be a single line")

    return release


def parse_storage_config(storage_dict: Dict[str, Any]) -> StorageConfig:
    """Parse the storage section.

    Args:
        storage_dict: Storage configuration dictionary

    Returns:
        StorageConfig instance
    """
    defaults = StorageConfig()
    return StorageConfig(
        repo_root=storage_dict.get("repo_root", defaults.repo_root),
        max_retries=int(storage_dict.get("max_retries", defaults.max_retries)),
        retry_delay=float(storage_dict.get("retry_delay", defaults.retry_delay)),
    )


def parse_publish_config(publish_dict: Dict[str, Any]) -> PublishConfig:
    """Parse the publish section.

    Args:
        publish_dict: Publish configuration dictionary

    Returns:
        PublishConfig instance
    """
    return PublishConfig(
        retain_snapshots=int(publish_dict.get("retain_snapshots", 3)),
        verify_artifacts=bool(publish_dict.get("verify_artifacts", True)),
    )


def parse_signing_config(signing_dict: Dict[str, Any]) -> SigningConfig:
    """Parse the signing section.

    Args:
        signing_dict: Signing configuration dictionary

    Returns:
        SigningConfig instance
    """
    return SigningConfig(
        key_id=signing_dict.get("key_id"),
        gpg_binary=signing_dict.get("gpg_binary", "gpg"),
        homedir=signing_dict.get("homedir"),
        timeout=int(signing_dict.get("timeout", 60)),
    )


def parse_config(config_dict: Dict[str, Any]) -> AptDepotConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        AptDepotConfig instance
    """
    logging_dict = config_dict.get("logging", {}) or {}

    return AptDepotConfig(
        release=parse_release_config(config_dict.get("release", {}) or {}),
        storage=parse_storage_config(config_dict.get("storage", {}) or {}),
        publish=parse_publish_config(config_dict.get("publish", {}) or {}),
        signing=parse_signing_config(config_dict.get("signing", {}) or {}),
        logging=LoggingConfig(
            level=logging_dict.get("level", "INFO"),
            log_dir=logging_dict.get("log_dir"),
        ),
    )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        TypeError: If the document root is not a mapping
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration."""
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: str = DEFAULT_CONFIG_PATH) -> AptDepotConfig:
    """Load and parse configuration into typed dataclass.

    Args:
        config_path: Path to configuration file

    Returns:
        AptDepotConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    return parse_config(load_config(config_path))
