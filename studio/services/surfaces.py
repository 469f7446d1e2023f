"""Surface controller: tells UI containers which artifact to display and what to toast."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal, get_args

logger = logging.getLogger(__name__)

SurfaceKind = Literal["inline", "overlay", "full_page"]
NotificationLevel = Literal["info", "success", "error"]
SurfaceEventType = Literal["open", "notify"]

MAX_TRACKED_EVENTS = 100


@dataclass(frozen=True)
class SurfaceEvent:
  """One instruction for the UI: open an artifact on a surface, or show a transient notice."""

  event_type: SurfaceEventType
  surface: SurfaceKind | None = None
  artifact_key: str | None = None
  level: NotificationLevel | None = None
  message: str | None = None
  duration_seconds: float | None = None
  created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


SurfaceListener = Callable[[SurfaceEvent], None]


class SurfaceController:
  """Fan-out point for surface instructions; surfaces subscribe, the orchestrator publishes."""

  def __init__(self, preferred_kind: SurfaceKind = "overlay") -> None:
    self._preferred_kind: SurfaceKind = self._validate_kind(preferred_kind)
    self._events: list[SurfaceEvent] = []
    self._listeners: list[SurfaceListener] = []

  @property
  def preferred_kind(self) -> SurfaceKind:
    return self._preferred_kind

  @preferred_kind.setter
  def preferred_kind(self, kind: SurfaceKind) -> None:
    self._preferred_kind = self._validate_kind(kind)

  def open_surface(self, kind: SurfaceKind, artifact_key: str) -> SurfaceEvent:
    """Ask the surface of the given kind to display an artifact."""
    event = SurfaceEvent(event_type="open", surface=self._validate_kind(kind), artifact_key=artifact_key)
    logger.info("Opening artifact %s on %s surface", artifact_key, kind)
    self._publish(event)
    return event

  def notify(self, level: NotificationLevel, message: str, *, duration_seconds: float | None = None) -> SurfaceEvent:
    """Publish a transient user-facing notification."""
    event = SurfaceEvent(event_type="notify", level=level, message=message, duration_seconds=duration_seconds)
    self._publish(event)
    return event

  def recent_events(self) -> list[SurfaceEvent]:
    return list(self._events)

  def subscribe(self, listener: SurfaceListener) -> Callable[[], None]:
    self._listeners.append(listener)

    def _unsubscribe() -> None:
      if listener in self._listeners:
        self._listeners.remove(listener)

    return _unsubscribe

  def _publish(self, event: SurfaceEvent) -> None:
    self._events.append(event)
    if len(self._events) > MAX_TRACKED_EVENTS:
      self._events = self._events[-MAX_TRACKED_EVENTS:]
    for listener in list(self._listeners):
      try:
        listener(event)
      except Exception:  # noqa: BLE001
        logger.error("Surface listener failed for %s event", event.event_type, exc_info=True)

  @staticmethod
  def _validate_kind(kind: str) -> SurfaceKind:
    if kind not in get_args(SurfaceKind):
      raise ValueError(f"Unsupported surface kind: {kind}")
    return kind  # type: ignore[return-value]
