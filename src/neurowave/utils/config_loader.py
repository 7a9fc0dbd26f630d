"""Configuration loading with validation for neurowave.

Loads a YAML file, applies ``NEUROWAVE_*`` environment overrides and
validates the result against ``SystemConfig``. The ``build_*`` helpers turn
validated configuration into the immutable domain objects used at runtime.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from neurowave.core.profile import EvaluationSettings, TargetProfile
from neurowave.utils.config_schema import SystemConfig, validate_config_dict
from neurowave.utils.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

ENV_PREFIX = "NEUROWAVE_"

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "default_config.yaml"


@dataclass
class ConfigLoader:
    """Load and validate configuration files with schema validation."""

    @staticmethod
    def load_config(
        path: str | Path,
        validate: bool = True,
        env_override: bool = True,
    ) -> dict[str, Any]:
        """Load configuration from file with optional validation.

        Args:
            path: Path to a YAML (.yaml, .yml) or JSON file
            validate: If True, validate against schema
            env_override: If True, apply NEUROWAVE_* environment overrides

        Returns:
            Configuration dictionary

        Raises:
            ConfigurationError: If the file is missing, unreadable, has an
                unsupported format or fails validation
        """
        path = str(path)
        if not Path(path).is_file():
            raise ConfigurationError(
                ErrorCode.E801_INVALID_CONFIG_FILE,
                f"Configuration file not found: {path}",
                details={"path": path},
            )

        if not path.endswith((".yaml", ".yml", ".json")):
            raise ConfigurationError(
                ErrorCode.E801_INVALID_CONFIG_FILE,
                "Unsupported configuration file format. "
                "Only YAML (.yaml, .yml) and JSON (.json) are supported.",
                details={"path": path},
            )

        config = ConfigLoader._load_yaml(path)

        if env_override:
            config = ConfigLoader._apply_env_overrides(config)

        if validate:
            config = validate_config_dict(config).model_dump()

        logger.debug("Loaded configuration from %s", path)
        return config

    @staticmethod
    def _load_yaml(path: str) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                ErrorCode.E801_INVALID_CONFIG_FILE,
                f"Invalid YAML syntax in '{path}': {e}",
                details={"path": path},
            ) from e
        except OSError as e:
            raise ConfigurationError(
                ErrorCode.E801_INVALID_CONFIG_FILE,
                f"Error reading configuration file '{path}': {e}",
                details={"path": path},
            ) from e

        if not isinstance(config, dict):
            raise ConfigurationError(
                ErrorCode.E801_INVALID_CONFIG_FILE,
                f"Configuration file '{path}' must contain a mapping at the top level",
                details={"path": path},
            )
        return config

    @staticmethod
    def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables are prefixed with NEUROWAVE_ and use double
        underscores for nested keys. For example:
        - NEUROWAVE_SETTINGS__SAMPLE_RATE=60
        - NEUROWAVE_SETTINGS__SUCCESS_THRESHOLD=0.8
        - NEUROWAVE_SERVER__PORT=9000

        Variables without a nested key (e.g. NEUROWAVE_CONFIG_PATH) are
        not configuration values and are skipped.
        """
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX) or "__" not in env_key:
                continue

            config_key = env_key[len(ENV_PREFIX):].lower()
            parts = [p for p in config_key.split("__") if p]
            if not parts:
                continue

            target = config
            path_segments: list[str] = []

            for part in parts[:-1]:
                path_segments.append(part)
                existing = target.get(part)
                if existing is None:
                    target[part] = {}
                    target = target[part]
                elif isinstance(existing, dict):
                    target = existing
                else:
                    raise ConfigurationError(
                        ErrorCode.E803_CONFIG_VALIDATION_FAILED,
                        "Environment override target is not a mapping; refusing to overwrite "
                        f"path '{'.'.join(path_segments)}' "
                        f"(existing type: {type(existing).__name__}).",
                        details={"env_key": env_key},
                    )

            target[parts[-1]] = ConfigLoader._parse_env_value(env_value)

        return config

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Parse environment variable value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    @staticmethod
    def load_validated_config(path: str | Path, env_override: bool = True) -> SystemConfig:
        """Load and return validated configuration as SystemConfig object."""
        config_dict = ConfigLoader.load_config(path, validate=False, env_override=env_override)
        return validate_config_dict(config_dict)

    @staticmethod
    def load_default_config(env_override: bool = True) -> SystemConfig:
        """Load the bundled configuration with the sample citizen profiles."""
        return ConfigLoader.load_validated_config(DEFAULT_CONFIG_PATH, env_override=env_override)

    @staticmethod
    def build_settings(config: SystemConfig) -> EvaluationSettings:
        return EvaluationSettings(**config.settings.model_dump())

    @staticmethod
    def build_profiles(config: SystemConfig) -> dict[str, TargetProfile]:
        """Build domain profiles keyed by profile id, in file order."""
        return {
            profile.profile_id: TargetProfile(**profile.model_dump())
            for profile in config.profiles
        }
