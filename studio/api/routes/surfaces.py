import logging

from fastapi import APIRouter, Depends

from studio.api.deps import get_surfaces
from studio.api.models import SurfacePreference
from studio.services.surfaces import SurfaceController

router = APIRouter()
logger = logging.getLogger("studio.api.routes.surfaces")


@router.get("/preference", response_model=SurfacePreference)
async def get_surface_preference(surfaces: SurfaceController = Depends(get_surfaces)) -> SurfacePreference:  # noqa: B008
  return SurfacePreference(kind=surfaces.preferred_kind)


@router.put("/preference", response_model=SurfacePreference)
async def set_surface_preference(payload: SurfacePreference, surfaces: SurfaceController = Depends(get_surfaces)) -> SurfacePreference:  # noqa: B008
  """Store the surface that new generations open on when the request names none."""
  surfaces.preferred_kind = payload.kind
  logger.info("Preferred surface set to %s", payload.kind)
  return SurfacePreference(kind=surfaces.preferred_kind)
