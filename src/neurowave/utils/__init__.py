"""
neurowave utility modules.

Provides:
- Configuration schema (loading lives in ``neurowave.utils.config_loader``)
- Structured error codes and exceptions
- Time provider abstraction for deterministic testing
"""

from .config_schema import (
    EvaluationConfig,
    ObservabilityConfig,
    ProfileConfig,
    ServerConfig,
    SystemConfig,
    get_default_config,
    validate_config_dict,
)
from .errors import (
    ActorNotFoundError,
    ConfigurationError,
    ErrorCode,
    ErrorDetails,
    NeuroWaveError,
    SchedulerError,
    ValidationError,
    create_error_response,
    get_http_status_for_error,
)
from .time_provider import (
    DefaultTimeProvider,
    FakeTimeProvider,
    TimeProvider,
    get_default_time_provider,
)

__all__ = [
    "ActorNotFoundError",
    "ConfigurationError",
    "DefaultTimeProvider",
    "ErrorCode",
    "ErrorDetails",
    "EvaluationConfig",
    "FakeTimeProvider",
    "NeuroWaveError",
    "ObservabilityConfig",
    "ProfileConfig",
    "SchedulerError",
    "ServerConfig",
    "SystemConfig",
    "TimeProvider",
    "ValidationError",
    "create_error_response",
    "get_default_config",
    "get_default_time_provider",
    "get_http_status_for_error",
    "validate_config_dict",
]
