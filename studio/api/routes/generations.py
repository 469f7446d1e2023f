import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, Header, HTTPException, Response, status
from fastapi.responses import StreamingResponse

from studio.api.deps import get_orchestrator, get_registry
from studio.api.models import GenerationStartRequest, GenerationStartResponse, JobStatusResponse
from studio.api.msgspec_utils import encode_sse, job_event
from studio.jobs.models import GenerationJob
from studio.jobs.registry import JobRegistry
from studio.services.orchestrator import GenerationOrchestrator, GenerationParams

router = APIRouter()
logger = logging.getLogger("studio.api.routes.generations")


@router.post("", response_model=GenerationStartResponse, status_code=status.HTTP_201_CREATED)
async def start_generation(  # noqa: B008
  payload: GenerationStartRequest,
  orchestrator: GenerationOrchestrator = Depends(get_orchestrator),  # noqa: B008
  openrouter_key: str | None = Header(default=None, alias="x-openrouter-key"),
) -> GenerationStartResponse:
  """Create an artifact and start generating into it; returns before any content exists."""
  params = GenerationParams(
    user_prompt=payload.user_prompt,
    model_id=payload.model_id,
    system_prompt=payload.system_prompt,
    surface=payload.surface,
    context_artifact_ids=tuple(payload.context_artifact_ids),
    user_api_key=openrouter_key,
    web_search_enabled=payload.web_search_enabled,
    title=payload.title,
  )
  result = await orchestrator.start_generation(params)
  if not result.success:
    if result.rejected:
      raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error or "Failed to start generation.")

  job = orchestrator.registry.get_job(result.artifact_key)
  return GenerationStartResponse(artifact_key=result.artifact_key, job_id=result.job_id, status=job.status if job else "starting")


def _require_job(registry: JobRegistry, artifact_key: str) -> GenerationJob:
  job = registry.get_job(artifact_key)
  if job is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No generation job for this artifact.")
  return job


@router.get("/{artifact_key}", response_model=JobStatusResponse)
async def get_generation(artifact_key: str, registry: JobRegistry = Depends(get_registry)) -> JobStatusResponse:  # noqa: B008
  """Fetch the current job snapshot for an artifact."""
  return JobStatusResponse.from_job(_require_job(registry, artifact_key))


@router.post("/{artifact_key}/cancel", response_model=JobStatusResponse)
async def cancel_generation(artifact_key: str, orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> JobStatusResponse:  # noqa: B008
  """Cancel the active job; the artifact keeps whatever content was already written."""
  _require_job(orchestrator.registry, artifact_key)
  if not orchestrator.cancel_job(artifact_key):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Generation is not active.")
  return JobStatusResponse.from_job(_require_job(orchestrator.registry, artifact_key))


@router.post("/{artifact_key}/dismiss", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_generation(artifact_key: str, orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> Response:  # noqa: B008
  """Clear a finished job once the user dismisses its banner."""
  if not orchestrator.dismiss_job(artifact_key):
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Only finished generations can be dismissed.")
  return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{artifact_key}/events")
async def stream_generation_events(artifact_key: str, registry: JobRegistry = Depends(get_registry)) -> StreamingResponse:  # noqa: B008
  """Stream job snapshots as server-sent events until the job is removed.

  Event types:
      job: the current snapshot, then one per change
      removed: the job left the registry; the stream ends
  """
  initial = _require_job(registry, artifact_key)
  queue: asyncio.Queue[GenerationJob | None] = asyncio.Queue()
  unsubscribe = registry.subscribe(artifact_key, queue.put_nowait)

  async def event_generator() -> AsyncGenerator[str, None]:
    try:
      yield encode_sse("job", job_event(artifact_key, initial))
      while True:
        job = await queue.get()
        if job is None:
          yield encode_sse("removed", job_event(artifact_key, None))
          return
        yield encode_sse("job", job_event(artifact_key, job))
    finally:
      unsubscribe()
      logger.debug("Closed event stream for artifact %s", artifact_key)

  return StreamingResponse(event_generator(), media_type="text/event-stream", headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"})
