"""Configuration management for opt-in regions automation.

This module handles YAML configuration loading for the operator CLI,
environment variable overrides, and the poller settings used by the
Lambda handlers.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import yaml


# Host orchestrator settings of the custom resource provider. The poller
# never enforces these itself.
PROVIDER_QUERY_INTERVAL_SECONDS = 300
PROVIDER_TOTAL_TIMEOUT_SECONDS = 4 * 60 * 60

# Permissions the is-complete handler needs in every member account.
REQUIRED_ACCOUNT_ACTIONS = [
    "account:ListRegions",
    "account:EnableRegion",
    "account:GetRegionOptStatus",
]


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {value!r}")


@dataclass(frozen=True)
class PollerSettings:
    """Tuning knobs for a poll cycle."""

    max_concurrency: int = 10
    max_attempts: int = 10
    base_delay: float = 0.15
    max_delay: float = 20.0
    propagate_federation_errors: bool = False
    role_session_name: str = "OptInRegionsSession"

    ENVIRONMENT_VARIABLES = {
        "max_concurrency": "MAX_CONCURRENCY",
        "max_attempts": "THROTTLE_MAX_ATTEMPTS",
        "base_delay": "THROTTLE_BASE_DELAY",
        "max_delay": "THROTTLE_MAX_DELAY",
        "propagate_federation_errors": "PROPAGATE_FEDERATION_ERRORS",
        "role_session_name": "ROLE_SESSION_NAME",
    }

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError("max_concurrency must be at least 1")
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ConfigurationError("Throttle delays must not be negative")
        if not self.role_session_name:
            raise ConfigurationError("role_session_name must not be empty")

    @classmethod
    def from_dict(cls, values: Optional[Mapping[str, Any]]) -> "PollerSettings":
        """Build settings from a mapping, ignoring unknown keys.

        Args:
            values: Mapping of field names to raw values

        Returns:
            PollerSettings instance

        Raises:
            ConfigurationError: When a value has the wrong type
        """
        converters = {
            "max_concurrency": int,
            "max_attempts": int,
            "base_delay": float,
            "max_delay": float,
            "propagate_federation_errors": _parse_bool,
            "role_session_name": str,
        }
        kwargs = {}
        for field in fields(cls):
            if values is None or field.name not in values:
                continue
            raw = values[field.name]
            try:
                kwargs[field.name] = converters[field.name](raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid value for '{field.name}': {raw!r} ({e})"
                )
        return cls(**kwargs)

    @classmethod
    def from_environment(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "PollerSettings":
        """Build settings from Lambda environment variables.

        Args:
            environ: Environment mapping, defaults to ``os.environ``

        Returns:
            PollerSettings instance
        """
        environ = os.environ if environ is None else environ
        values = {
            name: environ[variable]
            for name, variable in cls.ENVIRONMENT_VARIABLES.items()
            if variable in environ
        }
        return cls.from_dict(values)


class Configuration:
    """Configuration management with YAML loading and validation.

    This class handles loading the operator configuration file,
    validating its structure, and supporting environment variable
    overrides.
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Optional path to configuration file.
                        If None, auto-detects config.yaml in current directory.

        Raises:
            ConfigurationError: When configuration file is invalid
        """
        self._config: Dict[str, Any] = {}
        self._config_path = self._resolve_config_path(config_path)
        self._load_configuration()
        self._apply_environment_overrides()
        self._validate_configuration()

    def _resolve_config_path(self, config_path: Optional[str]) -> Path:
        """Resolve configuration file path.

        Args:
            config_path: Optional path to configuration file

        Returns:
            Resolved Path object to configuration file

        Raises:
            ConfigurationError: When configuration file not found
        """
        if config_path:
            path = Path(config_path)
        else:
            path = Path("config.yaml")
            if not path.exists():
                path = Path("config/settings.yaml")

        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {path}. "
                "Please create a configuration file or specify a valid path."
            )

        return path

    def _load_configuration(self) -> None:
        """Load configuration from YAML file.

        Raises:
            ConfigurationError: When YAML file is invalid
        """
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file {self._config_path}: {e}"
            )
        except IOError as e:
            raise ConfigurationError(
                f"Unable to read configuration file {self._config_path}: {e}"
            )

        if not isinstance(self._config, dict):
            raise ConfigurationError(
                f"Configuration file {self._config_path} must contain a mapping"
            )

    def _validate_configuration(self) -> None:
        """Validate configuration has required fields.

        Raises:
            ConfigurationError: When required fields are missing
        """
        if "opt_in_regions" not in self._config:
            raise ConfigurationError(
                "Required configuration section 'opt_in_regions' is missing"
            )

        section = self._config["opt_in_regions"]
        if not isinstance(section, dict):
            raise ConfigurationError(
                "Section 'opt_in_regions' must be a mapping"
            )

        for key in ("home_region", "management_account_access_role"):
            value = section.get(key)
            if not isinstance(value, str) or not value:
                raise ConfigurationError(
                    f"Field 'opt_in_regions.{key}' must be a non-empty string"
                )

        for key in ("account_ids", "enabled_regions"):
            if not isinstance(section.get(key), list):
                raise ConfigurationError(
                    f"Field 'opt_in_regions.{key}' must be a list"
                )

        poller = self._config.get("poller", {})
        if not isinstance(poller, dict):
            raise ConfigurationError("Section 'poller' must be a mapping")

    def _apply_environment_overrides(self) -> None:
        """Apply environment variable overrides to configuration."""
        if "AWS_REGION" in os.environ:
            self._set_nested_value(
                "opt_in_regions.home_region", os.environ["AWS_REGION"]
            )

        if "AWS_PROFILE" in os.environ:
            self._set_nested_value(
                "aws.profile_name", os.environ["AWS_PROFILE"]
            )

        if "LOG_LEVEL" in os.environ:
            self._set_nested_value("logging.level", os.environ["LOG_LEVEL"])

    def _set_nested_value(self, key_path: str, value: Any) -> None:
        """Set nested configuration value using dot notation.

        Args:
            key_path: Dot-separated key path (e.g., 'opt_in_regions.home_region')
            value: Value to set
        """
        keys = key_path.split(".")
        current = self._config

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Args:
            key_path: Dot-separated key path (e.g., 'poller.max_concurrency')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        current = self._config

        try:
            for key in keys:
                current = current[key]
            return current
        except (KeyError, TypeError):
            return default

    def get_props_dict(self) -> Dict[str, Any]:
        """Get the opt-in regions section in custom resource property shape.

        Returns:
            Dictionary with the camelCase keys of the custom resource props
        """
        section = self._config["opt_in_regions"]
        props = {
            "accountIds": section.get("account_ids", []),
            "homeRegion": section.get("home_region"),
            "enabledRegions": section.get("enabled_regions", []),
            "managementAccountAccessRole": section.get(
                "management_account_access_role"
            ),
            "partition": section.get("partition", "aws"),
        }
        if section.get("management_account_id"):
            props["managementAccountId"] = str(section["management_account_id"])
        if section.get("global_region"):
            props["globalRegion"] = section["global_region"]
        return props

    def get_poller_settings(self) -> PollerSettings:
        """Get poller settings from the 'poller' section.

        Returns:
            PollerSettings instance
        """
        return PollerSettings.from_dict(self._config.get("poller") or {})

    def get_profile_name(self) -> Optional[str]:
        """Get AWS profile name, if configured."""
        return self.get("aws.profile_name")

    def get_log_level(self) -> str:
        """Get log level, defaulting to INFO."""
        return str(self.get("logging.level", "INFO")).upper()
