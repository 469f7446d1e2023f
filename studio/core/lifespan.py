import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from studio.ai.providers.openrouter import OpenRouterGenerationService
from studio.config import Settings, get_settings
from studio.core.logging import initialize_logging
from studio.jobs.registry import JobRegistry
from studio.services.orchestrator import GenerationOrchestrator
from studio.services.surfaces import SurfaceController
from studio.storage.artifacts_repo import InMemoryArtifactRepository


def build_services(app: FastAPI, settings: Settings) -> None:
  """Create the process-wide collaborators and attach them to `app.state`."""
  registry = JobRegistry(completed_grace_seconds=settings.job_completed_grace_seconds, cancel_grace_seconds=settings.job_cancel_grace_seconds)
  artifacts = InMemoryArtifactRepository()
  surfaces = SurfaceController(settings.default_surface)
  generation_service = OpenRouterGenerationService(
    artifacts,
    api_key=settings.openrouter_api_key,
    base_url=settings.openrouter_base_url,
    http_referer=settings.openrouter_http_referer,
    title=settings.openrouter_title,
  )
  app.state.job_registry = registry
  app.state.artifacts = artifacts
  app.state.surfaces = surfaces
  app.state.orchestrator = GenerationOrchestrator(
    registry=registry,
    artifacts=artifacts,
    generation_service=generation_service,
    surfaces=surfaces,
    generation_timeout_seconds=settings.generation_timeout_seconds,
    error_message_max_chars=settings.error_message_max_chars,
    provider_base_url=settings.openrouter_base_url,
  )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Initialize logging and services; cancel in-flight generations on shutdown."""
  settings = get_settings()
  logger = logging.getLogger("studio.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # File logging is optional; stdout logging from uvicorn still works.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  # Tests may pre-populate app.state with fakes before startup.
  if getattr(app.state, "orchestrator", None) is None:
    build_services(app, settings)
  logger.info("Startup complete environment=%s default_surface=%s", settings.environment, settings.default_surface)

  try:
    yield
  finally:
    await app.state.orchestrator.aclose()
    app.state.job_registry.close()
    logger.info("Shutdown complete.")
