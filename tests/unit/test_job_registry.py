"""Unit tests for job registry state transitions, cancellation and cleanup."""

from __future__ import annotations

import asyncio
import logging

import pytest

from studio.ai.models import DEFAULT_MODEL_ID, get_model_config
from studio.jobs.models import PENDING_CONTENT_SLOT, GenerationJob, GenerationRequestParams
from studio.jobs.registry import JobRegistry


def _request(prompt: str = "Write a project brief") -> GenerationRequestParams:
  return GenerationRequestParams(user_prompt=prompt, model_id=DEFAULT_MODEL_ID, model_config=get_model_config(DEFAULT_MODEL_ID))


def test_register_job_creates_starting_job(registry: JobRegistry) -> None:
  job_id = registry.register_job("doc-1", _request())

  job = registry.get_job("doc-1")
  assert job is not None
  assert job.job_id == job_id
  assert job.status == "starting"
  assert job.content_slot_key == PENDING_CONTENT_SLOT
  assert job.ended_at is None
  assert job.error is None
  assert registry.is_active("doc-1")


def test_register_job_replaces_and_signals_previous_active_job(registry: JobRegistry) -> None:
  first_id = registry.register_job("doc-1", _request("first"))
  first = registry.get_job("doc-1")
  second_id = registry.register_job("doc-1", _request("second"))

  assert first_id != second_id
  assert list(registry.jobs()) == ["doc-1"]
  assert registry.get_job("doc-1").job_id == second_id
  assert first.cancel_signal.triggered
  assert first.cancel_signal.reason == "superseded"
  assert not registry.get_job("doc-1").cancel_signal.triggered


def test_job_ids_are_unique_across_keys(registry: JobRegistry) -> None:
  ids = {registry.register_job(f"doc-{index}", _request()) for index in range(20)}
  assert len(ids) == 20


def test_statuses_only_move_forward(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.update_status("doc-1", "streaming")
  registry.update_status("doc-1", "completed")

  # Terminal states are final.
  registry.update_status("doc-1", "streaming")
  registry.update_status("doc-1", "error", "late failure")

  job = registry.get_job("doc-1")
  assert job.status == "completed"
  assert job.error is None


def test_streaming_cannot_return_to_starting(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.update_status("doc-1", "streaming")
  registry.update_status("doc-1", "starting")
  assert registry.get_job("doc-1").status == "streaming"


def test_ended_at_is_set_exactly_for_terminal_statuses(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  assert registry.get_job("doc-1").ended_at is None

  registry.update_status("doc-1", "streaming")
  assert registry.get_job("doc-1").ended_at is None

  registry.update_status("doc-1", "error", "boom")
  job = registry.get_job("doc-1")
  assert job.is_terminal
  assert job.ended_at is not None
  assert job.ended_at >= job.started_at
  assert job.error == "boom"


def test_error_text_is_only_kept_for_error_status(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.update_status("doc-1", "streaming", "ignored")
  assert registry.get_job("doc-1").error is None


def test_update_status_on_missing_key_does_not_create_job(registry: JobRegistry) -> None:
  assert registry.update_status("missing", "streaming") is None
  assert registry.get_job("missing") is None
  assert registry.jobs() == {}


def test_snapshots_are_not_mutated_by_later_writes(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  before = registry.get_job("doc-1")
  registry.update_status("doc-1", "streaming")
  assert before.status == "starting"
  assert registry.get_job("doc-1").status == "streaming"


def test_resolve_content_slot_updates_pending_slot(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.resolve_content_slot("doc-1", "slot_abc")
  assert registry.get_job("doc-1").content_slot_key == "slot_abc"


def test_cancel_grace_must_be_positive() -> None:
  with pytest.raises(ValueError):
    JobRegistry(cancel_grace_seconds=0)


@pytest.mark.anyio
async def test_complete_removes_job_after_grace_delay(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.update_status("doc-1", "streaming")
  registry.complete("doc-1")

  assert registry.get_job("doc-1").status == "completed"
  assert not registry.is_active("doc-1")

  await asyncio.sleep(0.2)
  assert registry.get_job("doc-1") is None


@pytest.mark.anyio
async def test_cancel_flips_status_and_removes_after_short_delay(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  job = registry.get_job("doc-1")

  assert registry.cancel("doc-1") is True
  cancelled = registry.get_job("doc-1")
  assert cancelled.status == "cancelled"
  assert cancelled.ended_at is not None
  assert job.cancel_signal.triggered
  assert job.cancel_signal.reason == "cancelled"

  await asyncio.sleep(0.1)
  assert registry.get_job("doc-1") is None


@pytest.mark.anyio
async def test_cancel_is_rejected_for_missing_or_finished_jobs(registry: JobRegistry) -> None:
  assert registry.cancel("missing") is False

  registry.register_job("doc-1", _request())
  registry.complete("doc-1")
  assert registry.cancel("doc-1") is False
  assert registry.get_job("doc-1").status == "completed"


@pytest.mark.anyio
async def test_removed_job_is_not_resurrected_by_late_writes(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.cancel("doc-1")
  await asyncio.sleep(0.1)

  registry.update_status("doc-1", "completed")
  registry.complete("doc-1")
  assert registry.get_job("doc-1") is None


@pytest.mark.anyio
async def test_dismiss_only_clears_finished_jobs(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  assert registry.dismiss("doc-1") is False
  assert registry.dismiss("missing") is False

  registry.update_status("doc-1", "error", "boom")
  assert registry.dismiss("doc-1") is True
  await asyncio.sleep(0.01)
  assert registry.get_job("doc-1") is None


@pytest.mark.anyio
async def test_subscribe_receives_snapshots_and_removal(registry: JobRegistry) -> None:
  seen: list[GenerationJob | None] = []
  unsubscribe = registry.subscribe("doc-1", seen.append)

  registry.register_job("doc-1", _request())
  registry.update_status("doc-1", "streaming")
  registry.cancel("doc-1")
  await asyncio.sleep(0.1)

  assert [job.status if job else None for job in seen] == ["starting", "streaming", "cancelled", None]

  unsubscribe()
  registry.register_job("doc-1", _request())
  assert len(seen) == 4


def test_failing_listener_does_not_break_writes(registry: JobRegistry, caplog: pytest.LogCaptureFixture) -> None:
  def _broken(_job: GenerationJob | None) -> None:
    raise RuntimeError("listener exploded")

  registry.subscribe("doc-1", _broken)
  with caplog.at_level(logging.ERROR, logger="studio.jobs.registry"):
    registry.register_job("doc-1", _request())

  assert registry.get_job("doc-1").status == "starting"
  assert "Job listener failed" in caplog.text


@pytest.mark.anyio
async def test_close_cancels_pending_cleanup(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.complete("doc-1")
  registry.close()

  await asyncio.sleep(0.2)
  assert registry.get_job("doc-1").status == "completed"


@pytest.mark.anyio
async def test_keys_are_independent(registry: JobRegistry) -> None:
  registry.register_job("doc-1", _request())
  registry.register_job("doc-2", _request())

  registry.cancel("doc-1")
  assert registry.get_job("doc-2").status == "starting"
  assert registry.is_active("doc-2")
