"""Shared fixtures and in-memory collaborators for studio tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from typing import Any

# Ensure required settings are available before importing the app.
os.environ.setdefault("STUDIO_ALLOWED_ORIGINS", "http://localhost")

import pytest  # noqa: E402

from studio.ai.models import ModelConfig  # noqa: E402
from studio.ai.providers.base import GenerationOutcome  # noqa: E402
from studio.jobs.models import CancelSignal  # noqa: E402
from studio.jobs.registry import JobRegistry  # noqa: E402
from studio.services.orchestrator import GenerationOrchestrator  # noqa: E402
from studio.services.surfaces import SurfaceController  # noqa: E402
from studio.storage.artifacts_repo import InMemoryArtifactRepository  # noqa: E402

# Short grace delays keep cleanup tests fast.
TEST_COMPLETED_GRACE = 0.05
TEST_CANCEL_GRACE = 0.01


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


class ScriptedGenerationService:
  """Generation service double that writes canned chunks and returns a canned outcome."""

  def __init__(self, artifacts: InMemoryArtifactRepository, *, chunks: Sequence[str] = ("# Draft\n", "Body text."), outcome: GenerationOutcome | None = None, error: BaseException | None = None, gate: asyncio.Event | None = None) -> None:
    self.artifacts = artifacts
    self.chunks = tuple(chunks)
    self.outcome = outcome or GenerationOutcome(success=True)
    self.error = error
    self.gate = gate
    self.calls: list[dict[str, Any]] = []
    self.started = asyncio.Event()

  async def generate(
    self,
    artifact_key: str,
    slot_key: str,
    prompt: str,
    model_config: ModelConfig,
    *,
    context_refs: Sequence[str] = (),
    search_enabled: bool = False,
    system_prompt: str | None = None,
    user_api_key: str | None = None,
    cancel_signal: CancelSignal | None = None,
  ) -> GenerationOutcome:
    self.calls.append(
      {
        "artifact_key": artifact_key,
        "slot_key": slot_key,
        "prompt": prompt,
        "model_config": model_config,
        "context_refs": tuple(context_refs),
        "search_enabled": search_enabled,
        "system_prompt": system_prompt,
        "user_api_key": user_api_key,
        "cancel_signal": cancel_signal,
      }
    )
    self.started.set()
    if self.gate is not None:
      await self.gate.wait()
    if self.error is not None:
      raise self.error
    for chunk in self.chunks:
      await self.artifacts.append_content(artifact_key, slot_key, chunk)
    return self.outcome


@pytest.fixture
def registry() -> JobRegistry:
  return JobRegistry(completed_grace_seconds=TEST_COMPLETED_GRACE, cancel_grace_seconds=TEST_CANCEL_GRACE)


@pytest.fixture
def artifacts() -> InMemoryArtifactRepository:
  return InMemoryArtifactRepository()


@pytest.fixture
def surfaces() -> SurfaceController:
  return SurfaceController("overlay")


@pytest.fixture
def generation_service(artifacts: InMemoryArtifactRepository) -> ScriptedGenerationService:
  return ScriptedGenerationService(artifacts)


@pytest.fixture
def orchestrator(registry: JobRegistry, artifacts: InMemoryArtifactRepository, generation_service: ScriptedGenerationService, surfaces: SurfaceController) -> GenerationOrchestrator:
  return GenerationOrchestrator(registry=registry, artifacts=artifacts, generation_service=generation_service, surfaces=surfaces)


@pytest.fixture
def make_orchestrator(registry: JobRegistry, artifacts: InMemoryArtifactRepository, surfaces: SurfaceController):
  """Build an orchestrator around a scripted service configured per test."""

  def _make(*, artifact_repo: Any = None, generation_timeout_seconds: float | None = None, **service_kwargs: Any) -> tuple[GenerationOrchestrator, ScriptedGenerationService]:
    repo = artifact_repo or artifacts
    service = ScriptedGenerationService(artifacts, **service_kwargs)
    orchestrator = GenerationOrchestrator(registry=registry, artifacts=repo, generation_service=service, surfaces=surfaces, generation_timeout_seconds=generation_timeout_seconds)
    return orchestrator, service

  return _make


@pytest.fixture
def make_service(artifacts: InMemoryArtifactRepository):
  def _make(**kwargs: Any) -> ScriptedGenerationService:
    return ScriptedGenerationService(artifacts, **kwargs)

  return _make
