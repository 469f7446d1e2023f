"""Shared FastAPI dependencies resolving the process-wide services from app state."""

from __future__ import annotations

from fastapi import Request

from studio.jobs.registry import JobRegistry
from studio.services.orchestrator import GenerationOrchestrator
from studio.services.surfaces import SurfaceController
from studio.storage.artifacts_repo import ArtifactRepository


def get_orchestrator(request: Request) -> GenerationOrchestrator:
  return request.app.state.orchestrator


def get_registry(request: Request) -> JobRegistry:
  return request.app.state.job_registry


def get_artifacts(request: Request) -> ArtifactRepository:
  return request.app.state.artifacts


def get_surfaces(request: Request) -> SurfaceController:
  return request.app.state.surfaces
