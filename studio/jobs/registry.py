"""In-memory registry of generation jobs keyed by target artifact.

The registry is the single shared source of truth for job state. Any number of
surfaces (inline panel, overlay, full page) read it by artifact key and never
talk to each other; the orchestrator is the only writer of progress, and the
registry itself owns cancellation and delayed cleanup.

Every write stores a fresh frozen snapshot, so a snapshot handed to a reader
never changes afterwards. Removal is final: once a key is gone, status writes
for it are no-ops until a new job is registered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime

from studio.jobs.models import PENDING_CONTENT_SLOT, TERMINAL_STATUSES, CancelSignal, GenerationJob, GenerationRequestParams, JobStatus
from studio.utils.ids import generate_job_id

logger = logging.getLogger(__name__)

JobListener = Callable[[GenerationJob | None], None]

DEFAULT_COMPLETED_GRACE_SECONDS = 3.0
DEFAULT_CANCEL_GRACE_SECONDS = 0.1

_ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
  "starting": frozenset({"streaming", "completed", "error", "cancelled"}),
  "streaming": frozenset({"completed", "error", "cancelled"}),
  "completed": frozenset(),
  "cancelled": frozenset(),
  "error": frozenset(),
}


def _utcnow() -> datetime:
  return datetime.now(UTC)


class JobRegistry:
  """Authoritative, observable store of generation job state."""

  def __init__(self, *, completed_grace_seconds: float = DEFAULT_COMPLETED_GRACE_SECONDS, cancel_grace_seconds: float = DEFAULT_CANCEL_GRACE_SECONDS, clock: Callable[[], datetime] = _utcnow) -> None:
    if cancel_grace_seconds <= 0:
      raise ValueError("cancel_grace_seconds must be greater than zero so observers see the cancelled state.")
    self._completed_grace_seconds = completed_grace_seconds
    self._cancel_grace_seconds = cancel_grace_seconds
    self._clock = clock
    self._jobs: dict[str, GenerationJob] = {}
    self._listeners: dict[str, list[JobListener]] = {}
    self._timers: set[asyncio.TimerHandle] = set()

  def register_job(self, artifact_key: str, request: GenerationRequestParams, *, content_slot_key: str = PENDING_CONTENT_SLOT) -> str:
    """Create a `starting` job for an artifact, replacing any existing entry."""
    previous = self._jobs.get(artifact_key)
    if previous is not None and previous.is_active:
      # The replaced job can no longer be observed, so tell its consumer to stop reflecting progress.
      previous.cancel_signal.trigger("superseded")
      logger.warning("Replacing active job %s for artifact %s", previous.job_id, artifact_key)

    job = GenerationJob(
      job_id=generate_job_id(),
      artifact_key=artifact_key,
      content_slot_key=content_slot_key,
      request=request,
      status="starting",
      started_at=self._clock(),
      cancel_signal=CancelSignal(),
    )
    self._store(job)
    logger.info("Registered job %s for artifact %s model=%s", job.job_id, artifact_key, request.model_id)
    return job.job_id

  def update_status(self, artifact_key: str, status: JobStatus, error: str | None = None) -> GenerationJob | None:
    """Move a job to a new status; absent keys and illegal transitions are ignored."""
    job = self._jobs.get(artifact_key)
    if job is None:
      # The entry was already cleaned up; late writers must not resurrect it.
      logger.debug("Ignoring status %s for artifact %s with no registered job", status, artifact_key)
      return None

    if status == job.status and not job.is_terminal:
      return job

    if status not in _ALLOWED_TRANSITIONS[job.status]:
      logger.debug("Ignoring transition %s -> %s for job %s", job.status, status, job.job_id)
      return job

    ended_at = self._clock() if status in TERMINAL_STATUSES else None
    updated = replace(job, status=status, error=error if status == "error" else None, ended_at=ended_at)
    self._store(updated)
    logger.info("Job %s for artifact %s is now %s", job.job_id, artifact_key, status)
    return updated

  def resolve_content_slot(self, artifact_key: str, content_slot_key: str) -> GenerationJob | None:
    """Record the content slot the generation writes into."""
    job = self._jobs.get(artifact_key)
    if job is None or job.content_slot_key == content_slot_key:
      return job
    updated = replace(job, content_slot_key=content_slot_key)
    self._store(updated)
    return updated

  def complete(self, artifact_key: str) -> GenerationJob | None:
    """Mark a job completed and retire it after the success grace delay."""
    updated = self.update_status(artifact_key, "completed")
    if updated is not None and updated.status == "completed":
      self.schedule_cleanup(artifact_key, self._completed_grace_seconds)
    return updated

  def cancel(self, artifact_key: str) -> bool:
    """Signal cancellation and flip the job to `cancelled` immediately.

    Returns False when there is no active job at the key.
    """
    job = self._jobs.get(artifact_key)
    if job is None or not job.is_active:
      return False

    job.cancel_signal.trigger("cancelled")
    self.update_status(artifact_key, "cancelled")
    # Short, non-zero delay so subscribers observe the cancelled state before removal.
    self.schedule_cleanup(artifact_key, self._cancel_grace_seconds)
    return True

  def dismiss(self, artifact_key: str) -> bool:
    """Retire a finished job once the user dismisses its banner."""
    job = self._jobs.get(artifact_key)
    if job is None or not job.is_terminal:
      return False
    self.schedule_cleanup(artifact_key, 0)
    return True

  def schedule_cleanup(self, artifact_key: str, delay_seconds: float) -> None:
    """Remove the entry at `artifact_key` after `delay_seconds`.

    Schedules are not coalesced; whichever timer fires first removes the key and
    the rest find nothing to remove.
    """
    loop = asyncio.get_running_loop()
    handle: asyncio.TimerHandle | None = None

    def _fire() -> None:
      self._timers.discard(handle)
      self._remove(artifact_key)

    handle = loop.call_later(max(delay_seconds, 0), _fire)
    self._timers.add(handle)

  def get_job(self, artifact_key: str) -> GenerationJob | None:
    return self._jobs.get(artifact_key)

  def is_active(self, artifact_key: str) -> bool:
    """Return True while a job at the key is starting or streaming; editors lock on this."""
    job = self._jobs.get(artifact_key)
    return job is not None and job.is_active

  def jobs(self) -> dict[str, GenerationJob]:
    return dict(self._jobs)

  def subscribe(self, artifact_key: str, listener: JobListener) -> Callable[[], None]:
    """Call `listener` with each new snapshot for a key (None on removal)."""
    self._listeners.setdefault(artifact_key, []).append(listener)

    def _unsubscribe() -> None:
      listeners = self._listeners.get(artifact_key)
      if not listeners:
        return
      if listener in listeners:
        listeners.remove(listener)
      if not listeners:
        self._listeners.pop(artifact_key, None)

    return _unsubscribe

  def close(self) -> None:
    """Cancel pending cleanup timers."""
    for handle in list(self._timers):
      handle.cancel()
    self._timers.clear()

  def _store(self, job: GenerationJob) -> None:
    self._jobs[job.artifact_key] = job
    self._notify(job.artifact_key, job)

  def _remove(self, artifact_key: str) -> None:
    removed = self._jobs.pop(artifact_key, None)
    if removed is None:
      return
    logger.debug("Removed job %s for artifact %s", removed.job_id, artifact_key)
    self._notify(artifact_key, None)

  def _notify(self, artifact_key: str, job: GenerationJob | None) -> None:
    for listener in list(self._listeners.get(artifact_key, ())):
      try:
        listener(job)
      except Exception:  # noqa: BLE001
        logger.error("Job listener failed for artifact %s", artifact_key, exc_info=True)
