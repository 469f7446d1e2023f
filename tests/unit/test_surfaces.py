from __future__ import annotations

import pytest

from studio.services.surfaces import MAX_TRACKED_EVENTS, SurfaceController, SurfaceEvent


def test_open_surface_publishes_to_listeners() -> None:
  surfaces = SurfaceController()
  received: list[SurfaceEvent] = []
  unsubscribe = surfaces.subscribe(received.append)

  event = surfaces.open_surface("full_page", "doc-1")
  unsubscribe()
  surfaces.notify("info", "ignored after unsubscribe")

  assert received == [event]
  assert event.surface == "full_page"
  assert event.artifact_key == "doc-1"


def test_invalid_surface_kinds_are_rejected() -> None:
  surfaces = SurfaceController()
  with pytest.raises(ValueError):
    surfaces.open_surface("sidebar", "doc-1")  # type: ignore[arg-type]
  with pytest.raises(ValueError):
    surfaces.preferred_kind = "drawer"  # type: ignore[assignment]
  assert surfaces.preferred_kind == "overlay"


def test_failing_listener_does_not_block_others() -> None:
  surfaces = SurfaceController()
  received: list[SurfaceEvent] = []

  def _broken(_event: SurfaceEvent) -> None:
    raise RuntimeError("render failed")

  surfaces.subscribe(_broken)
  surfaces.subscribe(received.append)
  surfaces.notify("error", "Something went wrong", duration_seconds=6.0)

  assert [event.message for event in received] == ["Something went wrong"]


def test_recent_events_are_bounded() -> None:
  surfaces = SurfaceController()
  for index in range(MAX_TRACKED_EVENTS + 5):
    surfaces.notify("info", f"message {index}")

  events = surfaces.recent_events()
  assert len(events) == MAX_TRACKED_EVENTS
  assert events[-1].message == f"message {MAX_TRACKED_EVENTS + 4}"
