"""FastAPI application over the coordinator.

All state lives on ``app.state`` (coordinator, progress tracker, metrics,
profiles), so several applications can coexist in one process.
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from neurowave import __version__
from neurowave.api import health
from neurowave.observability.logger import configure_logging, get_observability_logger
from neurowave.observability.metrics import MetricsExporter
from neurowave.runtime.coordinator import ActivationResult, Coordinator
from neurowave.runtime.progress import ProgressTracker
from neurowave.utils.config_loader import ConfigLoader
from neurowave.utils.config_schema import SystemConfig
from neurowave.utils.errors import (
    ActorNotFoundError,
    ErrorCode,
    NeuroWaveError,
    create_error_response,
    get_http_status_for_error,
)

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "NEUROWAVE_CONFIG_PATH"


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class SampleRequest(BaseModel):
    """Raw band values; malformed vectors are sanitized, not rejected."""

    bands: list[float] = Field(description="One value per band, expected in [0, 1]")


class RegisterRequest(BaseModel):
    actor_id: str = Field(min_length=1, description="Unique actor identifier")
    profile_id: str = Field(min_length=1, description="Configured profile to use")


class ProcessedRequest(BaseModel):
    obedience: float = Field(default=100.0, ge=0.0, le=100.0, description="Exit obedience")


class ActivationResponse(BaseModel):
    actor_id: str
    result: str
    active_actor_id: str | None


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_coordinator(request: Request) -> Coordinator:
    return request.app.state.coordinator


def get_progress(request: Request) -> ProgressTracker:
    return request.app.state.progress


def _telemetry_or_404(coordinator: Coordinator, actor_id: str) -> dict[str, Any]:
    telemetry = coordinator.telemetry(actor_id)
    if telemetry is None:
        raise ActorNotFoundError(actor_id)
    return telemetry.to_dict()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and stop every evaluation loop on shutdown."""
    observability = app.state.observability
    observability.log_system_startup(
        version=__version__,
        config={"actors": len(app.state.coordinator), "profiles": len(app.state.profiles)},
    )

    yield

    await app.state.coordinator.shutdown()
    observability.log_system_shutdown(reason="application lifespan ended")


def _resolve_config(config: SystemConfig | None, config_path: str | None) -> SystemConfig:
    if config is not None:
        return config
    path = config_path or os.getenv(CONFIG_PATH_ENV)
    if path:
        return ConfigLoader.load_validated_config(path)
    return ConfigLoader.load_default_config()


def create_app(
    config: SystemConfig | None = None,
    *,
    config_path: str | None = None,
    register_profiles: bool = True,
) -> FastAPI:
    """Create a FastAPI application backed by a fresh coordinator.

    Args:
        config: Validated configuration; loaded from ``config_path``, the
            NEUROWAVE_CONFIG_PATH environment variable or the bundled
            default when None
        config_path: Configuration file to load when ``config`` is None
        register_profiles: Register one actor per configured profile,
            using the profile id as actor id
    """
    system_config = _resolve_config(config, config_path)
    obs_config = system_config.observability
    configure_logging(obs_config.log_level, obs_config.json_logging)

    settings = ConfigLoader.build_settings(system_config)
    profiles = ConfigLoader.build_profiles(system_config)
    metrics = MetricsExporter() if obs_config.metrics_enabled else None
    observability = get_observability_logger(
        log_dir=obs_config.log_dir, log_file=obs_config.log_file
    )

    coordinator = Coordinator(settings, metrics=metrics, observability=observability)
    if register_profiles:
        coordinator.register_many((profile_id, profile) for profile_id, profile in profiles.items())

    progress = ProgressTracker(total_actors=len(coordinator))
    coordinator.add_listener(progress.handle_state_changed)

    fastapi_app = FastAPI(
        title="neurowave",
        version=__version__,
        description="Per-actor wave evaluation and emotional state runtime",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    fastapi_app.state.config = system_config
    fastapi_app.state.settings = settings
    fastapi_app.state.profiles = profiles
    fastapi_app.state.metrics = metrics
    fastapi_app.state.observability = observability
    fastapi_app.state.coordinator = coordinator
    fastapi_app.state.progress = progress

    @fastapi_app.exception_handler(NeuroWaveError)
    async def neurowave_error_handler(request: Request, exc: NeuroWaveError) -> JSONResponse:
        return JSONResponse(
            status_code=get_http_status_for_error(exc),
            content=create_error_response(exc),
        )

    fastapi_app.include_router(health.router)
    _add_routes(fastapi_app)
    return fastapi_app


def _add_routes(app: FastAPI) -> None:
    @app.get("/v1/profiles")
    async def list_profiles(request: Request) -> dict[str, Any]:
        profiles = request.app.state.profiles
        return {"profiles": [profile.to_dict() for profile in profiles.values()]}

    @app.get("/v1/settings")
    async def get_settings(request: Request) -> dict[str, Any]:
        return request.app.state.settings.to_dict()

    @app.get("/v1/actors")
    async def list_actors(coordinator: Coordinator = Depends(get_coordinator)) -> dict[str, Any]:
        return {
            "active_actor_id": coordinator.active_actor_id,
            "actors": [t.to_dict() for t in coordinator.all_telemetry()],
        }

    @app.post("/v1/actors", status_code=status.HTTP_201_CREATED)
    async def register_actor(
        body: RegisterRequest,
        request: Request,
        coordinator: Coordinator = Depends(get_coordinator),
        progress: ProgressTracker = Depends(get_progress),
    ) -> dict[str, Any]:
        profile = request.app.state.profiles.get(body.profile_id)
        if profile is None:
            raise NeuroWaveError(
                ErrorCode.E905_NOT_FOUND,
                f"Profile not found: {body.profile_id}",
                details={"profile_id": body.profile_id},
            )
        coordinator.register(body.actor_id, profile)
        progress.set_total(len(coordinator))
        return _telemetry_or_404(coordinator, body.actor_id)

    @app.get("/v1/actors/{actor_id}")
    async def get_actor(
        actor_id: str, coordinator: Coordinator = Depends(get_coordinator)
    ) -> dict[str, Any]:
        return _telemetry_or_404(coordinator, actor_id)

    @app.delete("/v1/actors/{actor_id}")
    async def unregister_actor(
        actor_id: str,
        coordinator: Coordinator = Depends(get_coordinator),
        progress: ProgressTracker = Depends(get_progress),
    ) -> dict[str, Any]:
        if not await coordinator.unregister(actor_id):
            raise ActorNotFoundError(actor_id)
        progress.forget(actor_id)
        progress.set_total(len(coordinator))
        return {"actor_id": actor_id, "unregistered": True}

    @app.post("/v1/actors/{actor_id}/activate", response_model=ActivationResponse)
    async def activate_actor(
        actor_id: str, coordinator: Coordinator = Depends(get_coordinator)
    ) -> ActivationResponse:
        result = await coordinator.activate(actor_id)
        if result == ActivationResult.NOT_FOUND:
            raise ActorNotFoundError(actor_id)
        return ActivationResponse(
            actor_id=actor_id,
            result=result.value,
            active_actor_id=coordinator.active_actor_id,
        )

    @app.post("/v1/actors/{actor_id}/reset")
    async def reset_actor(
        actor_id: str, coordinator: Coordinator = Depends(get_coordinator)
    ) -> dict[str, Any]:
        if not await coordinator.reset_actor(actor_id):
            raise ActorNotFoundError(actor_id)
        return _telemetry_or_404(coordinator, actor_id)

    @app.post("/v1/actors/{actor_id}/processed")
    async def mark_processed(
        actor_id: str,
        body: ProcessedRequest,
        coordinator: Coordinator = Depends(get_coordinator),
        progress: ProgressTracker = Depends(get_progress),
    ) -> dict[str, Any]:
        if actor_id not in coordinator:
            raise ActorNotFoundError(actor_id)
        progress.record_processed(actor_id, body.obedience)
        return progress.get_state()

    @app.post("/v1/deactivate")
    async def deactivate(coordinator: Coordinator = Depends(get_coordinator)) -> dict[str, Any]:
        deactivated = await coordinator.deactivate()
        return {"deactivated": deactivated, "active_actor_id": coordinator.active_actor_id}

    @app.post("/v1/sample")
    async def set_sample(
        body: SampleRequest, coordinator: Coordinator = Depends(get_coordinator)
    ) -> dict[str, Any]:
        return coordinator.set_sample(body.bands).to_dict()

    @app.get("/v1/progress")
    async def get_progress_state(
        progress: ProgressTracker = Depends(get_progress),
    ) -> dict[str, Any]:
        return progress.get_state()
