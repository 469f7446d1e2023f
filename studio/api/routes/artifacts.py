import logging

from fastapi import APIRouter, Depends, HTTPException, status

from studio.api.deps import get_artifacts, get_registry
from studio.api.models import ArtifactResponse
from studio.jobs.registry import JobRegistry
from studio.storage.artifacts_repo import ArtifactRepository

router = APIRouter()
logger = logging.getLogger("studio.api.routes.artifacts")


@router.get("/{artifact_key}", response_model=ArtifactResponse)
async def get_artifact(  # noqa: B008
  artifact_key: str,
  artifacts: ArtifactRepository = Depends(get_artifacts),  # noqa: B008
  registry: JobRegistry = Depends(get_registry),  # noqa: B008
) -> ArtifactResponse:
  """Return an artifact with the content generated so far."""
  artifact = await artifacts.get_artifact(artifact_key)
  if artifact is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Artifact not found.")
  return ArtifactResponse.from_artifact(artifact, is_generating=registry.is_active(artifact_key))
