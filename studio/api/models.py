from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from studio.ai.models import DEFAULT_MODEL_ID, ModelConfig
from studio.jobs.models import GenerationJob, JobStatus
from studio.storage.artifacts_repo import Artifact

SurfaceKindField = Literal["inline", "overlay", "full_page"]


class GenerationStartRequest(BaseModel):
  """Request payload for starting a document generation."""

  # Emptiness is checked by the orchestrator so the caller gets a 400 with a friendly message.
  user_prompt: StrictStr = Field(description="What the generated document should contain.", examples=["Write a one-page project brief for a recipe app"])
  model_id: StrictStr = Field(default=DEFAULT_MODEL_ID, description="Catalog id of the model to use.")
  system_prompt: StrictStr | None = Field(default=None, description="Optional extra instructions appended to the system message.")
  surface: SurfaceKindField | None = Field(default=None, description="Surface to open; defaults to the stored preference.")
  context_artifact_ids: list[StrictStr] = Field(default_factory=list, max_length=20, description="Artifacts to include as reference material.")
  web_search_enabled: StrictBool = False
  title: StrictStr | None = Field(default=None, min_length=1, max_length=200)
  model_config = ConfigDict(extra="forbid", protected_namespaces=())


class GenerationStartResponse(BaseModel):
  """Response payload for a started generation."""

  artifact_key: StrictStr
  job_id: StrictStr
  status: JobStatus


class JobStatusResponse(BaseModel):
  """Snapshot of a generation job."""

  job_id: StrictStr
  artifact_key: StrictStr
  content_slot_key: StrictStr
  status: JobStatus
  model_id: StrictStr
  error: StrictStr | None = None
  is_active: bool
  started_at: datetime
  ended_at: datetime | None = None
  model_config = ConfigDict(protected_namespaces=())

  @classmethod
  def from_job(cls, job: GenerationJob) -> JobStatusResponse:
    return cls(
      job_id=job.job_id,
      artifact_key=job.artifact_key,
      content_slot_key=job.content_slot_key,
      status=job.status,
      model_id=job.request.model_id,
      error=job.error,
      is_active=job.is_active,
      started_at=job.started_at,
      ended_at=job.ended_at,
    )


class ArtifactResponse(BaseModel):
  """Artifact with the content streamed into it so far."""

  artifact_key: StrictStr
  title: StrictStr
  content_slot_key: StrictStr
  content: str
  is_generating: bool = Field(description="True while a job is writing into the artifact; editors should stay read-only.")
  created_at: datetime
  updated_at: datetime

  @classmethod
  def from_artifact(cls, artifact: Artifact, *, is_generating: bool) -> ArtifactResponse:
    return cls(
      artifact_key=artifact.artifact_key,
      title=artifact.title,
      content_slot_key=artifact.content_slot_key,
      content=artifact.content,
      is_generating=is_generating,
      created_at=artifact.created_at,
      updated_at=artifact.updated_at,
    )


class ModelInfo(BaseModel):
  """Public view of a catalog model."""

  id: StrictStr
  display_name: StrictStr
  provider: StrictStr
  model_name: StrictStr
  model_series: str = ""
  description: str = ""
  is_free: bool
  is_recommended: bool = False
  max_tokens: int
  model_config = ConfigDict(protected_namespaces=())

  @classmethod
  def from_config(cls, model_id: str, config: ModelConfig) -> ModelInfo:
    return cls(
      id=model_id,
      display_name=config.display_name,
      provider=config.provider,
      model_name=config.model_name,
      model_series=config.model_series,
      description=config.description,
      is_free=config.is_free,
      is_recommended=config.is_recommended,
      max_tokens=config.max_tokens,
    )


class ModelCatalogResponse(BaseModel):
  default_model_id: StrictStr
  models: list[ModelInfo]


class SurfacePreference(BaseModel):
  """Preferred surface used when a generation request names none."""

  kind: SurfaceKindField
  model_config = ConfigDict(extra="forbid")
