"""msgspec encoding helpers for the job event stream."""

from __future__ import annotations

import msgspec

from studio.jobs.models import GenerationJob


class JobEvent(msgspec.Struct, omit_defaults=True):
  """One job snapshot pushed to stream subscribers; `status` is None once the job is removed."""

  artifact_key: str
  job_id: str | None = None
  status: str | None = None
  content_slot_key: str | None = None
  error: str | None = None
  started_at: str | None = None
  ended_at: str | None = None


def job_event(artifact_key: str, job: GenerationJob | None) -> JobEvent:
  if job is None:
    return JobEvent(artifact_key=artifact_key)
  return JobEvent(
    artifact_key=artifact_key,
    job_id=job.job_id,
    status=job.status,
    content_slot_key=job.content_slot_key,
    error=job.error,
    started_at=job.started_at.isoformat(),
    ended_at=job.ended_at.isoformat() if job.ended_at else None,
  )


def encode_sse(event_type: str, payload: msgspec.Struct) -> str:
  """Format a Struct as one server-sent event frame."""
  data = msgspec.json.encode(payload).decode("utf-8")
  return f"event: {event_type}\ndata: {data}\n\n"
