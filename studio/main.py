from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from studio import __version__
from studio.api.routes import artifacts, generations, models, surfaces
from studio.config import get_settings
from studio.core.exceptions import global_exception_handler, http_exception_handler, request_validation_exception_handler
from studio.core.lifespan import lifespan
from studio.core.middleware import RequestLoggingMiddleware

settings = get_settings()

app = FastAPI(title="Generation Studio", version=__version__, lifespan=lifespan, docs_url="/docs" if settings.debug else None, redoc_url=None)

app.add_middleware(
  CORSMiddleware,
  allow_origins=list(settings.allowed_origins),
  allow_credentials=True,
  allow_methods=["GET", "POST", "PUT", "OPTIONS"],
  allow_headers=["content-type", "authorization", "x-openrouter-key"],
  expose_headers=["content-length", "x-request-id"],
)

# Add exception handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", include_in_schema=False)
async def health_check() -> dict[str, str]:
  """Return a simple health status."""
  return {"status": "ok", "version": __version__}


app.include_router(generations.router, prefix="/v1/generations", tags=["generations"])
app.include_router(artifacts.router, prefix="/v1/artifacts", tags=["artifacts"])
app.include_router(models.router, prefix="/v1/models", tags=["models"])
app.include_router(surfaces.router, prefix="/v1/surfaces", tags=["surfaces"])
