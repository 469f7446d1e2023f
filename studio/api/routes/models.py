from fastapi import APIRouter

from studio.ai.models import AVAILABLE_MODELS, DEFAULT_MODEL_ID
from studio.api.models import ModelCatalogResponse, ModelInfo

router = APIRouter()


@router.get("", response_model=ModelCatalogResponse)
async def list_models() -> ModelCatalogResponse:
  """List selectable models, recommended ones first."""
  models = [ModelInfo.from_config(model_id, config) for model_id, config in AVAILABLE_MODELS.items()]
  models.sort(key=lambda info: (not info.is_recommended, info.is_free, info.display_name.lower()))
  return ModelCatalogResponse(default_model_id=DEFAULT_MODEL_ID, models=models)
