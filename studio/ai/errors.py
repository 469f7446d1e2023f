"""Map opaque upstream generation failures onto a small set of user-facing categories."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_MAX_MESSAGE_CHARS = 100


class ErrorCategory(str, Enum):
  """Stable categories shown to users instead of raw provider errors."""

  RATE_LIMITED = "rate_limited"
  INVALID_CREDENTIALS = "invalid_credentials"
  NETWORK_FAILURE = "network_failure"
  PERMISSION_DENIED = "permission_denied"
  RESOURCE_INCONSISTENT = "resource_inconsistent"
  UNKNOWN = "unknown"


FRIENDLY_MESSAGES: dict[ErrorCategory, str] = {
  ErrorCategory.RATE_LIMITED: "The model is receiving too many requests. Please retry shortly or switch to another model.",
  ErrorCategory.INVALID_CREDENTIALS: "The API key is invalid or missing. Please check your configuration.",
  ErrorCategory.NETWORK_FAILURE: "Network connection failed. Please check your connection and retry.",
  ErrorCategory.PERMISSION_DENIED: "You do not have permission for this action. Please sign in again.",
  ErrorCategory.RESOURCE_INCONSISTENT: "The document data is out of sync. Please refresh and retry.",
}

_RATE_LIMIT_MARKERS = ("rate-limited", "rate limit", "ratelimit", "429", "model_rate_limit", "too many requests", "resource exhausted", "quota exceeded")
_API_KEY_MARKERS = ("api key", "api_key", "apikey", "api-key")
_API_KEY_PROBLEMS = ("invalid", "missing", "incorrect", "not set", "required", "no auth")
_NETWORK_MARKERS = ("network", "timeout", "timed out", "connection", "econnreset", "econnrefused")
_PERMISSION_MARKERS = ("unauthorized", "forbidden", "permission denied", "not permitted", "403")
_RESOURCE_MARKERS = ("artifact not found", "document not found", "content slot not found", "content block not found")


@dataclass(frozen=True)
class ClassifiedError:
  """A raw upstream error together with its category and user-facing message."""

  category: ErrorCategory
  message: str
  raw: str


def _truncate(text: str, max_chars: int) -> str:
  if len(text) <= max_chars:
    return text
  return text[:max_chars] + "..."


def classify_generation_error(raw: str | BaseException | None, *, max_chars: int = DEFAULT_MAX_MESSAGE_CHARS) -> ClassifiedError:
  """Classify raw error text (or an exception) into a stable category.

  Matching is case-insensitive and ordered: rate limiting first, then
  credentials, network, permission and resource problems. Anything else is
  `UNKNOWN` and keeps the raw text, truncated to `max_chars`.
  """
  if isinstance(raw, BaseException):
    raw_text = str(raw) or type(raw).__name__
  else:
    raw_text = (raw or "").strip()
  normalized = raw_text.lower()

  if any(marker in normalized for marker in _RATE_LIMIT_MARKERS):
    category = ErrorCategory.RATE_LIMITED
  elif "401" in normalized or (any(marker in normalized for marker in _API_KEY_MARKERS) and any(problem in normalized for problem in _API_KEY_PROBLEMS)):
    category = ErrorCategory.INVALID_CREDENTIALS
  elif any(marker in normalized for marker in _NETWORK_MARKERS):
    category = ErrorCategory.NETWORK_FAILURE
  elif any(marker in normalized for marker in _PERMISSION_MARKERS):
    category = ErrorCategory.PERMISSION_DENIED
  elif any(marker in normalized for marker in _RESOURCE_MARKERS):
    category = ErrorCategory.RESOURCE_INCONSISTENT
  else:
    message = _truncate(raw_text, max_chars) if raw_text else "Unknown error"
    return ClassifiedError(category=ErrorCategory.UNKNOWN, message=message, raw=raw_text)

  return ClassifiedError(category=category, message=FRIENDLY_MESSAGES[category], raw=raw_text)


def friendly_message(raw: str | BaseException | None, *, max_chars: int = DEFAULT_MAX_MESSAGE_CHARS) -> str:
  """Return only the user-facing message for a raw error."""
  return classify_generation_error(raw, max_chars=max_chars).message
