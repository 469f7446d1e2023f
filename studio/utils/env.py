"""Minimal .env support for local runs of the studio service."""

from __future__ import annotations

import os
from pathlib import Path

# Only variables the service reads are taken from the file.
ENV_PREFIXES = ("STUDIO_", "OPENROUTER_")


def default_env_path() -> Path:
  """Return `STUDIO_ENV_FILE` when set, else the .env beside the project root."""
  configured = os.getenv("STUDIO_ENV_FILE")
  if configured:
    return Path(configured).expanduser()
  return Path(__file__).resolve().parents[2] / ".env"


def parse_env_line(raw_line: str) -> tuple[str, str] | None:
  """Split one `[export ]KEY=VALUE` line, or return None for blanks, comments and junk."""
  line = raw_line.strip()
  if not line or line.startswith("#"):
    return None
  line = line.removeprefix("export ").lstrip()
  key, sep, value = line.partition("=")
  key = key.strip()
  if not sep or not key:
    return None
  value = value.strip()
  if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
    value = value[1:-1]
  return key, value


def load_env_file(path: Path, *, override: bool = False, prefixes: tuple[str, ...] = ENV_PREFIXES) -> dict[str, str]:
  """Copy matching variables from `path` into the environment and return what was set."""
  if not path.is_file():
    return {}

  loaded: dict[str, str] = {}
  for raw_line in path.read_text(encoding="utf-8").splitlines():
    parsed = parse_env_line(raw_line)
    if parsed is None:
      continue
    key, value = parsed
    if prefixes and not key.startswith(prefixes):
      continue
    if not override and key in os.environ:
      continue
    os.environ[key] = value
    loaded[key] = value
  return loaded
