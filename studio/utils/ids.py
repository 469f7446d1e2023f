"""Identifier utilities."""

from __future__ import annotations

import uuid


def generate_job_id() -> str:
  """Return a new generation job identifier."""
  return f"job_{uuid.uuid4().hex}"


def generate_artifact_id() -> str:
  """Return a new artifact identifier."""
  return str(uuid.uuid4())


def generate_slot_id() -> str:
  """Return a new content slot identifier."""
  return f"slot_{uuid.uuid4().hex[:16]}"
