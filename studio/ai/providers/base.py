"""Contracts for the external service that streams generated content into artifacts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from studio.ai.models import ModelConfig
from studio.jobs.models import CancelSignal


@dataclass(frozen=True)
class GenerationOutcome:
  """Overall result of one generation call; content itself goes to the artifact."""

  success: bool
  error: str | None = None
  cancelled: bool = False


class GenerationService(Protocol):
  """Streams model output directly into an artifact's content slot."""

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
    """Run one generation; the cancel signal is advisory and checked by the implementation."""
