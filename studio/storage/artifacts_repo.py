"""Storage interfaces for generated artifacts and their content slots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol

from studio.utils.ids import generate_artifact_id, generate_slot_id

logger = logging.getLogger(__name__)

DEFAULT_ARTIFACT_TITLE = "Untitled document"


@dataclass(frozen=True)
class Artifact:
  """A user-visible document with one content slot receiving generated text."""

  artifact_key: str
  title: str
  content_slot_key: str
  content: str
  created_at: datetime
  updated_at: datetime


class ArtifactNotFoundError(LookupError):
  """Raised when an artifact or its content slot does not exist."""


class ArtifactRepository(Protocol):
  """Repository contract for artifact persistence."""

  async def create_artifact(self, *, title: str | None = None) -> str:
    """Create an artifact with its default content slot and return its key."""

  async def get_artifact(self, artifact_key: str) -> Artifact | None:
    """Fetch an artifact by key."""

  async def get_content_slot(self, artifact_key: str) -> str | None:
    """Return the content slot key of an artifact, or None when missing."""

  async def append_content(self, artifact_key: str, slot_key: str, text: str) -> None:
    """Append streamed text to a content slot."""


class InMemoryArtifactRepository:
  """Process-local artifact store used by the development server and tests."""

  def __init__(self) -> None:
    self._artifacts: dict[str, Artifact] = {}

  async def create_artifact(self, *, title: str | None = None) -> str:
    now = datetime.now(UTC)
    artifact = Artifact(artifact_key=generate_artifact_id(), title=title or DEFAULT_ARTIFACT_TITLE, content_slot_key=generate_slot_id(), content="", created_at=now, updated_at=now)
    self._artifacts[artifact.artifact_key] = artifact
    logger.info("Created artifact %s with content slot %s", artifact.artifact_key, artifact.content_slot_key)
    return artifact.artifact_key

  async def get_artifact(self, artifact_key: str) -> Artifact | None:
    return self._artifacts.get(artifact_key)

  async def get_content_slot(self, artifact_key: str) -> str | None:
    artifact = self._artifacts.get(artifact_key)
    if artifact is None:
      return None
    return artifact.content_slot_key

  async def append_content(self, artifact_key: str, slot_key: str, text: str) -> None:
    artifact = self._artifacts.get(artifact_key)
    if artifact is None:
      logger.warning("Append to missing artifact %s", artifact_key)
      raise ArtifactNotFoundError("Artifact not found")
    if artifact.content_slot_key != slot_key:
      logger.warning("Append to unknown content slot %s on artifact %s", slot_key, artifact_key)
      raise ArtifactNotFoundError("Content slot not found")
    self._artifacts[artifact_key] = replace(artifact, content=artifact.content + text, updated_at=datetime.now(UTC))
