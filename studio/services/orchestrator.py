"""Generation orchestrator: create the artifact, register the job, open a surface, then generate.

`start_generation` returns as soon as the artifact exists, its job is
registered and a surface has been told to display it. Generation itself runs
in a detached task that the caller may await through `GenerationResult.task`
but never has to. Only the orchestrator writes progress into the registry; a
late success or failure for a job that was cancelled, replaced or already
removed is dropped instead of overwriting the newer state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import get_args

from studio.ai.errors import DEFAULT_MAX_MESSAGE_CHARS, classify_generation_error
from studio.ai.models import OPENROUTER_BASE_URL, ModelConfig, get_model_config
from studio.ai.providers.base import GenerationOutcome, GenerationService
from studio.jobs.models import GenerationRequestParams
from studio.jobs.registry import JobRegistry
from studio.services.surfaces import SurfaceController, SurfaceKind
from studio.storage.artifacts_repo import ArtifactRepository

logger = logging.getLogger(__name__)

SUCCESS_NOTICE_SECONDS = 3.0
ERROR_NOTICE_SECONDS = 6.0


@dataclass(frozen=True)
class GenerationParams:
  """Caller input for one document generation."""

  user_prompt: str
  model_id: str
  system_prompt: str | None = None
  surface: SurfaceKind | None = None
  context_artifact_ids: Sequence[str] = ()
  user_api_key: str | None = field(default=None, repr=False)
  web_search_enabled: bool = False
  title: str | None = None


@dataclass(frozen=True)
class GenerationResult:
  """Outcome of starting a generation.

  `rejected` marks invalid input (nothing was created); `task` is the detached
  generation step on success.
  """

  success: bool
  artifact_key: str | None = None
  job_id: str | None = None
  error: str | None = None
  rejected: bool = False
  task: asyncio.Task[None] | None = field(default=None, repr=False, compare=False)


class GenerationOrchestrator:
  """Sequences side effects across artifacts, the job registry, surfaces and the generation service."""

  def __init__(
    self,
    *,
    registry: JobRegistry,
    artifacts: ArtifactRepository,
    generation_service: GenerationService,
    surfaces: SurfaceController,
    generation_timeout_seconds: float | None = None,
    error_message_max_chars: int = DEFAULT_MAX_MESSAGE_CHARS,
    provider_base_url: str = OPENROUTER_BASE_URL,
  ) -> None:
    self._registry = registry
    self._artifacts = artifacts
    self._generation_service = generation_service
    self._surfaces = surfaces
    self._generation_timeout_seconds = generation_timeout_seconds
    self._error_message_max_chars = error_message_max_chars
    self._provider_base_url = provider_base_url
    self._tasks: set[asyncio.Task[None]] = set()

  @property
  def registry(self) -> JobRegistry:
    return self._registry

  def _validate(self, params: GenerationParams) -> tuple[ModelConfig | None, str | None]:
    """Return the model config, or an error message when the input cannot start a job."""
    if not params.user_prompt or not params.user_prompt.strip():
      self._surfaces.notify("error", "Please enter a prompt.")
      return None, "User prompt is empty."

    model_config = get_model_config(params.model_id)
    if model_config is None:
      self._surfaces.notify("error", f"Unsupported model: {params.model_id}")
      return None, f"Unsupported model id: {params.model_id}"

    if params.surface is not None and params.surface not in get_args(SurfaceKind):
      return None, f"Unsupported surface: {params.surface}"

    return model_config, None

  async def start_generation(self, params: GenerationParams) -> GenerationResult:
    """Start a generation and return before any content is produced."""
    # Validate before any side effect so invalid input never leaves partial state behind.
    model_config, validation_error = self._validate(params)
    if model_config is None:
      logger.info("Rejected generation request: %s", validation_error)
      return GenerationResult(success=False, error=validation_error, rejected=True)

    try:
      artifact_key = await self._artifacts.create_artifact(title=params.title)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to create artifact for generation model_id=%s: %s", params.model_id, exc, exc_info=True)
      message = str(exc) or "Failed to start generation."
      self._surfaces.notify("error", message)
      return GenerationResult(success=False, error=message)

    request = GenerationRequestParams(
      user_prompt=params.user_prompt,
      model_id=params.model_id,
      model_config=model_config,
      system_prompt=params.system_prompt,
      context_artifact_ids=tuple(params.context_artifact_ids),
      web_search_enabled=params.web_search_enabled,
    )
    # Register before opening the surface so the surface always finds a job for the key.
    job_id = self._registry.register_job(artifact_key, request)
    self._surfaces.open_surface(params.surface or self._surfaces.preferred_kind, artifact_key)

    task = asyncio.create_task(self._run_generation(artifact_key, job_id, request, params.user_api_key), name=f"generation-{job_id}")
    self._tasks.add(task)
    task.add_done_callback(self._tasks.discard)
    task.add_done_callback(self._log_task_error)

    return GenerationResult(success=True, artifact_key=artifact_key, job_id=job_id, task=task)

  def cancel_job(self, artifact_key: str) -> bool:
    """Cancel the active job for an artifact; remote compute may continue but is no longer reflected."""
    cancelled = self._registry.cancel(artifact_key)
    if cancelled:
      logger.info("Cancelled generation for artifact %s", artifact_key)
    return cancelled

  def dismiss_job(self, artifact_key: str) -> bool:
    """Clear a finished job after the user dismisses its banner; the artifact is kept."""
    return self._registry.dismiss(artifact_key)

  async def aclose(self) -> None:
    """Cancel outstanding generation tasks and wait for them to unwind."""
    tasks = list(self._tasks)
    for task in tasks:
      task.cancel()
    if tasks:
      await asyncio.gather(*tasks, return_exceptions=True)

  def _is_current(self, artifact_key: str, job_id: str) -> bool:
    """Return True while `job_id` is still the live, uncancelled job for the artifact."""
    job = self._registry.get_job(artifact_key)
    return job is not None and job.job_id == job_id and job.is_active and not job.cancel_signal.triggered

  def _effective_timeout(self, model_config: ModelConfig) -> float | None:
    return model_config.timeout_seconds or self._generation_timeout_seconds

  async def _run_generation(self, artifact_key: str, job_id: str, request: GenerationRequestParams, user_api_key: str | None) -> None:
    started = time.monotonic()
    self._registry.update_status(artifact_key, "streaming")
    job = self._registry.get_job(artifact_key)
    if job is None or not self._is_current(artifact_key, job_id):
      logger.info("Job %s for artifact %s ended before generation began", job_id, artifact_key)
      return

    timeout = self._effective_timeout(request.model_config)
    try:
      slot_key = await self._artifacts.get_content_slot(artifact_key)
      if slot_key is None:
        # Keep ids out of the raw text; the classifier matches on status codes like 429 or 403.
        outcome = GenerationOutcome(success=False, error="Content slot not found")
      else:
        self._registry.resolve_content_slot(artifact_key, slot_key)
        if not self._is_current(artifact_key, job_id):
          logger.info("Job %s for artifact %s was cancelled before the model call", job_id, artifact_key)
          return
        call = self._generation_service.generate(
          artifact_key,
          slot_key,
          request.user_prompt,
          request.model_config,
          context_refs=request.context_artifact_ids,
          search_enabled=request.web_search_enabled,
          system_prompt=request.system_prompt,
          user_api_key=user_api_key,
          cancel_signal=job.cancel_signal,
        )
        outcome = await (asyncio.wait_for(call, timeout) if timeout else call)

    except asyncio.CancelledError:
      # Shutdown or an explicit task cancel: reflect it in shared state, then unwind.
      if self._is_current(artifact_key, job_id):
        self._registry.cancel(artifact_key)
      raise

    except TimeoutError as exc:
      if timeout is None:
        self._record_failure(artifact_key, job_id, request, exc, started, exc_info=exc)
        return
      outcome = GenerationOutcome(success=False, error=f"Generation timed out after {timeout:g}s")

    except Exception as exc:  # noqa: BLE001
      self._record_failure(artifact_key, job_id, request, exc, started, exc_info=exc)
      return

    self._finalize(artifact_key, job_id, request, outcome, started)

  def _finalize(self, artifact_key: str, job_id: str, request: GenerationRequestParams, outcome: GenerationOutcome, started: float) -> None:
    if not self._is_current(artifact_key, job_id):
      logger.info("Dropping late %s result for job %s on artifact %s", "success" if outcome.success else "failure", job_id, artifact_key)
      return

    if outcome.success:
      self._registry.complete(artifact_key)
      self._surfaces.notify("success", "Generation complete.", duration_seconds=SUCCESS_NOTICE_SECONDS)
      logger.info("Generation completed artifact=%s job=%s model_id=%s elapsed_ms=%d", artifact_key, job_id, request.model_id, _elapsed_ms(started))
      return

    if outcome.cancelled:
      self._registry.cancel(artifact_key)
      return

    self._record_failure(artifact_key, job_id, request, outcome.error, started)

  def _record_failure(self, artifact_key: str, job_id: str, request: GenerationRequestParams, raw_error: str | BaseException | None, started: float, *, exc_info: BaseException | None = None) -> None:
    """Write the classified error into the job and log the raw error with full request context."""
    if not self._is_current(artifact_key, job_id):
      logger.info("Dropping late failure for job %s on artifact %s: %s", job_id, artifact_key, raw_error)
      return

    classified = classify_generation_error(raw_error, max_chars=self._error_message_max_chars)
    self._registry.update_status(artifact_key, "error", classified.message)
    self._surfaces.notify("error", classified.message, duration_seconds=ERROR_NOTICE_SECONDS)

    model_config = request.model_config
    logger.error(
      "Generation failed artifact=%s job=%s model_id=%s model_name=%s provider=%s base_url=%s prompt_chars=%d system_prompt=%s elapsed_ms=%d category=%s raw_error=%s",
      artifact_key,
      job_id,
      request.model_id,
      model_config.model_name,
      model_config.provider,
      model_config.base_url or self._provider_base_url,
      len(request.user_prompt),
      request.system_prompt is not None,
      _elapsed_ms(started),
      classified.category.value,
      classified.raw,
      exc_info=exc_info,
    )

  @staticmethod
  def _log_task_error(task: asyncio.Task[None]) -> None:
    """Log unexpected generation task exceptions to avoid silent failures."""
    if task.cancelled():
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Generation task %s failed: %s", task.get_name(), exc, exc_info=exc)


def _elapsed_ms(started: float) -> int:
  return int((time.monotonic() - started) * 1000)
