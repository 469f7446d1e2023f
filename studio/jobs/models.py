"""Domain models for in-flight document generation jobs."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from studio.ai.models import ModelConfig

JobStatus = Literal["starting", "streaming", "completed", "cancelled", "error"]

ACTIVE_STATUSES: frozenset[str] = frozenset({"starting", "streaming"})
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "cancelled", "error"})

# Slot placeholder used until the content slot is resolved at generation time.
PENDING_CONTENT_SLOT = "pending"


class CancelSignal:
  """Cooperative cancellation token owned by exactly one job.

  Triggering the signal is a request: whoever consumes it decides when to stop.
  """

  def __init__(self) -> None:
    self._event = asyncio.Event()
    self._reason: str | None = None

  @property
  def triggered(self) -> bool:
    return self._event.is_set()

  @property
  def reason(self) -> str | None:
    return self._reason

  def trigger(self, reason: str = "cancelled") -> None:
    """Mark the signal as triggered; repeated calls keep the first reason."""
    if self._event.is_set():
      return
    self._reason = reason
    self._event.set()

  async def wait(self) -> None:
    """Block until the signal is triggered."""
    await self._event.wait()

  def __repr__(self) -> str:
    return f"CancelSignal(triggered={self.triggered}, reason={self._reason!r})"


@dataclass(frozen=True)
class GenerationRequestParams:
  """Inputs that produced a job, kept for traceability."""

  user_prompt: str
  model_id: str
  model_config: ModelConfig
  system_prompt: str | None = None
  context_artifact_ids: tuple[str, ...] = ()
  web_search_enabled: bool = False


@dataclass(frozen=True)
class GenerationJob:
  """Snapshot of one generation attempt targeting one artifact."""

  job_id: str
  artifact_key: str
  content_slot_key: str
  request: GenerationRequestParams
  status: JobStatus
  started_at: datetime
  cancel_signal: CancelSignal = field(repr=False, compare=False)
  error: str | None = None
  ended_at: datetime | None = None

  @property
  def is_active(self) -> bool:
    return self.status in ACTIVE_STATUSES

  @property
  def is_terminal(self) -> bool:
    return self.status in TERMINAL_STATUSES
