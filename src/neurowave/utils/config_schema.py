"""Configuration schema and validation for neurowave.

Pydantic models for the evaluation settings, the target profiles, and the
logging and server sections. Everything is validated before any domain
object is built from it.
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from typing_extensions import Self

from neurowave.config.calibration import (
    BAND_COUNT,
    EVALUATION_DEFAULTS,
    PROFILE_DEFAULTS,
)
from neurowave.utils.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)


class EvaluationConfig(BaseModel):
    """Shared evaluation settings.

    Thresholds apply to the metric fed to every actor's state machine;
    the smoothing weight is derived from ``sample_rate`` and
    ``smoothing_tau``.
    """
    sample_rate: float = Field(
        default=EVALUATION_DEFAULTS.sample_rate,
        gt=0.0,
        le=1000.0,
        description="Evaluation ticks per second (Hz)."
    )
    smoothing_tau: float = Field(
        default=EVALUATION_DEFAULTS.smoothing_tau,
        gt=0.0,
        description="EMA time constant in seconds. Higher = smoother, slower score."
    )
    success_threshold: float = Field(
        default=EVALUATION_DEFAULTS.success_threshold,
        ge=0.0,
        le=1.0,
        description="Metric at or above which the wave counts as a match."
    )
    overload_threshold: float = Field(
        default=EVALUATION_DEFAULTS.overload_threshold,
        ge=0.0,
        le=1.0,
        description="Metric at or below which instability builds."
    )
    instability_fail_threshold: float = Field(
        default=EVALUATION_DEFAULTS.instability_fail_threshold,
        ge=0.0,
        le=1.0,
        description="Instability that triggers critical failure."
    )
    instability_recovery_rate: float = Field(
        default=EVALUATION_DEFAULTS.instability_recovery_rate,
        ge=0.0,
        description="Instability recovered per second while the metric is good."
    )
    verbose_logging: bool = Field(
        default=False,
        description="Log every state transition at DEBUG level."
    )

    @model_validator(mode='after')
    def validate_threshold_order(self) -> Self:
        """Ensure overload_threshold <= success_threshold."""
        if self.overload_threshold > self.success_threshold:
            raise ValueError(
                f"overload_threshold ({self.overload_threshold}) must be <= "
                f"success_threshold ({self.success_threshold})"
            )
        return self


def _default_bands(value: float) -> list[float]:
    return [value] * BAND_COUNT


class ProfileConfig(BaseModel):
    """One target profile (one kind of actor)."""
    profile_id: str = Field(min_length=1, description="Unique profile identifier.")
    display_name: str = Field(default="Citizen", description="Human-readable name.")
    targets: list[float] = Field(
        default_factory=lambda: _default_bands(PROFILE_DEFAULTS.band_target),
        description="Desired value per band, each in [0, 1]."
    )
    tolerances: list[float] = Field(
        default_factory=lambda: _default_bands(PROFILE_DEFAULTS.band_tolerance),
        description="Acceptable deviation per band, strictly positive."
    )
    weights: list[float] = Field(
        default_factory=lambda: _default_bands(PROFILE_DEFAULTS.band_weight),
        description="Relative importance per band, non-negative."
    )
    baseline_instability: float = Field(default=PROFILE_DEFAULTS.baseline_instability, ge=0.0, le=1.0)
    instability_rate: float = Field(default=PROFILE_DEFAULTS.instability_rate, ge=0.0)
    min_stimulation_time: float = Field(default=PROFILE_DEFAULTS.min_stimulation_time, ge=0.0)
    recovery_time: float = Field(default=PROFILE_DEFAULTS.recovery_time, ge=0.0)
    starting_obedience: float = Field(default=PROFILE_DEFAULTS.starting_obedience, ge=0.0, le=100.0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("targets", "tolerances", "weights")
    @classmethod
    def validate_band_length(cls, value: list[float]) -> list[float]:
        if len(value) != BAND_COUNT:
            raise ValueError(f"expected {BAND_COUNT} band values, got {len(value)}")
        return value

    @field_validator("targets")
    @classmethod
    def validate_targets(cls, value: list[float]) -> list[float]:
        if any(not 0.0 <= v <= 1.0 for v in value):
            raise ValueError(f"targets must be in [0, 1], got {value}")
        return value

    @field_validator("tolerances")
    @classmethod
    def validate_tolerances(cls, value: list[float]) -> list[float]:
        if any(v <= 0.0 for v in value):
            raise ValueError(f"tolerances must be > 0, got {value}")
        return value

    @field_validator("weights")
    @classmethod
    def validate_weights(cls, value: list[float]) -> list[float]:
        if any(v < 0.0 for v in value):
            raise ValueError(f"weights must be >= 0, got {value}")
        return value


class ObservabilityConfig(BaseModel):
    """Logging and metrics configuration."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level for the neurowave package logger."
    )
    json_logging: bool = Field(default=False, description="Emit JSON log lines.")
    log_dir: str | None = Field(default=None, description="Directory for the event log file.")
    log_file: str | None = Field(
        default=None,
        description="Event log file name; structured events go to console only when unset."
    )
    metrics_enabled: bool = Field(default=True, description="Collect Prometheus metrics.")


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = Field(default="127.0.0.1", description="Bind address.")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port.")


class SystemConfig(BaseModel):
    """Complete neurowave configuration."""
    settings: EvaluationConfig = Field(
        default_factory=EvaluationConfig,
        description="Shared evaluation settings."
    )
    profiles: list[ProfileConfig] = Field(
        default_factory=list,
        description="Target profiles available for registration."
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics configuration."
    )
    server: ServerConfig = Field(
        default_factory=ServerConfig,
        description="HTTP server configuration."
    )

    @model_validator(mode='after')
    def validate_unique_profiles(self) -> Self:
        """Ensure profile ids are unique."""
        seen: set[str] = set()
        for profile in self.profiles:
            if profile.profile_id in seen:
                raise ValueError(f"Duplicate profile_id: {profile.profile_id}")
            seen.add(profile.profile_id)
        return self

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "examples": [
                {
                    "settings": {
                        "sample_rate": 30.0,
                        "smoothing_tau": 0.3,
                        "success_threshold": 0.75,
                        "overload_threshold": 0.25,
                        "instability_fail_threshold": 0.8,
                        "instability_recovery_rate": 0.2,
                    },
                    "profiles": [
                        {
                            "profile_id": "artist",
                            "display_name": "Vincent Canvas",
                            "instability_rate": 0.6,
                        }
                    ],
                }
            ]
        }
    )


def validate_config_dict(config_dict: dict[str, Any]) -> SystemConfig:
    """Validate a configuration dictionary against the schema.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            ErrorCode.E803_CONFIG_VALIDATION_FAILED,
            f"Configuration must be a mapping, got {type(config_dict).__name__}",
        )
    try:
        return SystemConfig(**config_dict)
    except ValidationError as e:
        err_str = str(e)
        unknown = sorted(set(config_dict) - set(SystemConfig.model_fields))
        if unknown:
            message = (
                f"Configuration validation failed: unknown top-level keys: {unknown}. "
                f"Allowed keys: {sorted(SystemConfig.model_fields)}.\n"
                f"Original error: {err_str}"
            )
        else:
            message = f"Configuration validation failed: {err_str}"
        raise ConfigurationError(
            ErrorCode.E803_CONFIG_VALIDATION_FAILED,
            message,
            details={"errors": e.error_count()},
        ) from e


def get_default_config() -> SystemConfig:
    return SystemConfig()
