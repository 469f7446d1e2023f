"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import get_args

from studio.ai.models import OPENROUTER_BASE_URL
from studio.services.surfaces import SurfaceKind
from studio.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the generation studio service."""

  environment: str
  debug: bool
  allowed_origins: tuple[str, ...]
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_4xx: bool
  job_completed_grace_seconds: float
  job_cancel_grace_seconds: float
  generation_timeout_seconds: float | None
  default_surface: SurfaceKind
  error_message_max_chars: int
  openrouter_api_key: str | None
  openrouter_base_url: str
  openrouter_http_referer: str | None
  openrouter_title: str | None


def _parse_origins(raw: str | None) -> tuple[str, ...]:
  if not raw:
    raise ValueError("STUDIO_ALLOWED_ORIGINS must be set to one or more origins.")

  origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

  if not origins:
    raise ValueError("STUDIO_ALLOWED_ORIGINS must include at least one origin.")

  if "*" in origins:
    raise ValueError("STUDIO_ALLOWED_ORIGINS must not include wildcard origins.")

  return tuple(origins)


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _parse_seconds(name: str, raw: str | None, default: float) -> float:
  """Parse a non-negative duration in seconds."""
  if raw is None or raw.strip() == "":
    return default
  value = float(raw)
  if value < 0:
    raise ValueError(f"{name} must be zero or a positive number of seconds.")
  return value


def _parse_optional_seconds(name: str, raw: str | None) -> float | None:
  if raw is None or raw.strip() == "":
    return None

  value = float(raw)

  if value <= 0:
    raise ValueError(f"{name} must be positive when provided.")

  return value


def _parse_surface(raw: str | None) -> SurfaceKind:
  normalized = (raw or "overlay").strip().lower().replace("-", "_")
  if normalized not in get_args(SurfaceKind):
    raise ValueError(f"STUDIO_DEFAULT_SURFACE must be one of {', '.join(get_args(SurfaceKind))}.")
  return normalized  # type: ignore[return-value]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("STUDIO_ENV", "development").lower()

  # Toggle verbose error output and diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("STUDIO_DEBUG"))

  log_max_bytes = int(os.getenv("STUDIO_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("STUDIO_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("STUDIO_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("STUDIO_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of 4xx HTTPExceptions for diagnostics.
  log_http_4xx = _parse_bool(os.getenv("STUDIO_LOG_HTTP_4XX"))

  # Grace delays keep finished jobs visible long enough for every surface to render the final state.
  job_completed_grace_seconds = _parse_seconds("STUDIO_JOB_COMPLETED_GRACE_SECONDS", os.getenv("STUDIO_JOB_COMPLETED_GRACE_SECONDS"), 3.0)
  job_cancel_grace_seconds = _parse_seconds("STUDIO_JOB_CANCEL_GRACE_SECONDS", os.getenv("STUDIO_JOB_CANCEL_GRACE_SECONDS"), 0.1)
  if job_cancel_grace_seconds == 0:
    raise ValueError("STUDIO_JOB_CANCEL_GRACE_SECONDS must be greater than zero.")

  error_message_max_chars = int(os.getenv("STUDIO_ERROR_MESSAGE_MAX_CHARS", "100"))
  if error_message_max_chars <= 0:
    raise ValueError("STUDIO_ERROR_MESSAGE_MAX_CHARS must be a positive integer.")

  return Settings(
    environment=environment,
    debug=debug,
    allowed_origins=_parse_origins(os.getenv("STUDIO_ALLOWED_ORIGINS")),
    log_dir=(os.getenv("STUDIO_LOG_DIR") or "logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_4xx=log_http_4xx,
    job_completed_grace_seconds=job_completed_grace_seconds,
    job_cancel_grace_seconds=job_cancel_grace_seconds,
    generation_timeout_seconds=_parse_optional_seconds("STUDIO_GENERATION_TIMEOUT_SECONDS", os.getenv("STUDIO_GENERATION_TIMEOUT_SECONDS")),
    default_surface=_parse_surface(os.getenv("STUDIO_DEFAULT_SURFACE")),
    error_message_max_chars=error_message_max_chars,
    openrouter_api_key=_optional_str(os.getenv("OPENROUTER_API_KEY")),
    openrouter_base_url=(os.getenv("OPENROUTER_BASE_URL") or OPENROUTER_BASE_URL).strip(),
    openrouter_http_referer=_optional_str(os.getenv("OPENROUTER_HTTP_REFERER")),
    openrouter_title=_optional_str(os.getenv("OPENROUTER_TITLE")),
  )
