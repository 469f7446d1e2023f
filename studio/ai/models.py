"""Static catalog of the chat models a generation can run on."""

from __future__ import annotations

from dataclasses import dataclass

# Default endpoint; a per-model `base_url` overrides the configured one.
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

# Output ceilings tuned for whole-document generation.
PAID_MODEL_MAX_DOC_OUTPUT = 16384
FREE_MODEL_MAX_DOC_OUTPUT = 10000


@dataclass(frozen=True)
class ModelConfig:
  """Provider routing and sampling limits for one selectable model."""

  model_name: str
  provider: str
  display_name: str
  temperature: float
  max_tokens: int
  is_free: bool
  description: str = ""
  is_recommended: bool = False
  model_series: str = ""
  base_url: str | None = None
  timeout_seconds: float | None = None


_PAID_MODELS: dict[str, ModelConfig] = {
  "gpt-4o": ModelConfig(
    model_name="gpt-4o",
    provider="openai",
    display_name="GPT-4o",
    temperature=0.5,
    max_tokens=PAID_MODEL_MAX_DOC_OUTPUT,
    is_free=False,
    description="OpenAI multimodal flagship with broad knowledge, suited to analysis and creative work.",
    model_series="gpt",
  ),
  "gpt-5-chat": ModelConfig(
    model_name="openai/gpt-5-chat",
    provider="openai",
    display_name="GPT-5",
    temperature=0.5,
    max_tokens=PAID_MODEL_MAX_DOC_OUTPUT,
    is_free=False,
    description="OpenAI conversational model with long context and robust reasoning.",
    is_recommended=True,
    model_series="gpt",
  ),
  "gemini-2.5-pro": ModelConfig(
    model_name="google/gemini-2.5-pro",
    provider="google",
    display_name="Gemini 2.5 Pro",
    temperature=0.5,
    max_tokens=PAID_MODEL_MAX_DOC_OUTPUT,
    is_free=False,
    description="Google model tuned for advanced reasoning, coding, math and science.",
    is_recommended=True,
    model_series="gemini",
  ),
  "claude-sonnet-4.5": ModelConfig(
    model_name="anthropic/claude-sonnet-4.5",
    provider="anthropic",
    display_name="Claude Sonnet 4.5",
    temperature=0.5,
    max_tokens=PAID_MODEL_MAX_DOC_OUTPUT,
    is_free=False,
    description="Anthropic model for production workflows with long context and tool orchestration.",
    is_recommended=True,
    model_series="claude",
  ),
  "kimi-k2-thinking": ModelConfig(
    model_name="moonshotai/kimi-k2-thinking",
    provider="moonshotai",
    display_name="Kimi K2 Thinking",
    temperature=0.5,
    max_tokens=PAID_MODEL_MAX_DOC_OUTPUT,
    is_free=False,
    description="Moonshot AI agentic model with long-horizon step-by-step reasoning.",
    is_recommended=True,
    model_series="kimi",
  ),
}

_FREE_MODELS: dict[str, ModelConfig] = {
  "glm-4.5-air-free": ModelConfig(
    model_name="z-ai/glm-4.5-air:free",
    provider="z-ai",
    display_name="GLM 4.5 Air",
    temperature=0.5,
    max_tokens=FREE_MODEL_MAX_DOC_OUTPUT,
    is_free=True,
    description="Lightweight MoE model with switchable reasoning, suited to interactive use.",
    model_series="glm",
  ),
  "qwen3-235b-a22b-free": ModelConfig(
    model_name="qwen/qwen3-235b-a22b:free",
    provider="qwen",
    display_name="Qwen3 235B A22B",
    temperature=0.5,
    max_tokens=FREE_MODEL_MAX_DOC_OUTPUT,
    is_free=True,
    description="MoE model with thinking and non-thinking modes, strong on math and code.",
    model_series="qwen",
  ),
  "deepseek-r1t2-chimera-free": ModelConfig(
    model_name="tngtech/deepseek-r1t2-chimera:free",
    provider="tngtech",
    display_name="R1T2 Chimera",
    temperature=0.5,
    max_tokens=FREE_MODEL_MAX_DOC_OUTPUT,
    is_free=True,
    description="Assembly-of-experts merge of DeepSeek R1 variants for long-form generation.",
    model_series="deepseek",
  ),
  "gpt-oss-20b-free": ModelConfig(
    model_name="openai/gpt-oss-20b:free",
    provider="openai",
    display_name="GPT-OSS 20B",
    temperature=0.5,
    max_tokens=FREE_MODEL_MAX_DOC_OUTPUT,
    is_free=True,
    description="Open-weight MoE model optimized for low latency and structured output.",
    is_recommended=True,
    model_series="gpt",
  ),
}

AVAILABLE_MODELS: dict[str, ModelConfig] = {**_PAID_MODELS, **_FREE_MODELS}

DEFAULT_MODEL_ID = "gpt-oss-20b-free"


def get_model_config(model_id: str | None) -> ModelConfig | None:
  """Return the catalog entry for a model id, or None when unknown."""
  if not model_id:
    return None
  return AVAILABLE_MODELS.get(model_id)
