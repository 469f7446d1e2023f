"""OpenRouter generation service using the openai SDK's streaming chat completions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

from openai import AsyncOpenAI

from studio.ai.models import OPENROUTER_BASE_URL, ModelConfig
from studio.ai.providers.base import GenerationOutcome
from studio.jobs.models import CancelSignal
from studio.storage.artifacts_repo import ArtifactRepository

logger = logging.getLogger(__name__)

DOCUMENT_TASK = "Generate a document that fulfils the user's request."
DOCUMENT_RULES = (
  "Write the final result in Markdown (GitHub Flavored Markdown is supported).",
  "Do not add explanations, preambles or closing remarks unrelated to the document itself.",
)

ClientFactory = Callable[[str, str], AsyncOpenAI]


class OpenRouterGenerationService:
  """Streams a chat completion from OpenRouter into an artifact's content slot."""

  def __init__(self, artifacts: ArtifactRepository, *, api_key: str | None = None, base_url: str = OPENROUTER_BASE_URL, http_referer: str | None = None, title: str | None = None, client_factory: ClientFactory | None = None) -> None:
    self._artifacts = artifacts
    self._api_key = api_key
    self._base_url = base_url
    # OpenRouter uses the OpenAI-compatible API; attribution headers are optional.
    self._default_headers: dict[str, str] = {}
    if http_referer:
      self._default_headers["HTTP-Referer"] = http_referer
    if title:
      self._default_headers["X-Title"] = title
    self._client_factory = client_factory or self._build_client
    self._clients: dict[tuple[str, str], AsyncOpenAI] = {}

  def _build_client(self, api_key: str, base_url: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key, base_url=base_url, default_headers=self._default_headers or None)

  def _client_for(self, api_key: str, base_url: str) -> AsyncOpenAI:
    key = (api_key, base_url)
    client = self._clients.get(key)
    if client is None:
      client = self._client_factory(api_key, base_url)
      self._clients[key] = client
    return client

  async def _build_messages(self, prompt: str, *, context_refs: Sequence[str], system_prompt: str | None) -> list[dict[str, str]]:
    """Assemble the system instructions, referenced documents and the user prompt."""
    system_parts = [DOCUMENT_TASK, "\n".join(DOCUMENT_RULES)]
    if system_prompt:
      system_parts.append(system_prompt)

    # Inline referenced documents so the model can ground its output on them.
    for ref in context_refs:
      artifact = await self._artifacts.get_artifact(ref)
      if artifact is None:
        logger.warning("Skipping missing context artifact %s", ref)
        continue
      system_parts.append(f"Reference document \"{artifact.title}\":\n{artifact.content}")

    return [{"role": "system", "content": "\n\n".join(system_parts)}, {"role": "user", "content": prompt}]

  async def generate(
    self,
    artifact_key: str,
    slot_key: str,
    prompt: str,
    model_config: ModelConfig,
    *,
    context_refs: Sequence[str] = (),
    search_enabled: bool = False,
    system_prompt: str | None = None,
    user_api_key: str | None = None,
    cancel_signal: CancelSignal | None = None,
  ) -> GenerationOutcome:
    """Stream one completion into the content slot, stopping early when cancelled."""
    api_key = user_api_key or self._api_key
    if not api_key:
      return GenerationOutcome(success=False, error="OpenRouter API key is missing.")

    client = self._client_for(api_key, model_config.base_url or self._base_url)
    messages = await self._build_messages(prompt, context_refs=context_refs, system_prompt=system_prompt)
    request_kwargs: dict[str, Any] = {"model": model_config.model_name, "messages": messages, "temperature": model_config.temperature, "max_tokens": model_config.max_tokens, "stream": True}
    if search_enabled:
      request_kwargs["extra_body"] = {"plugins": [{"id": "web"}]}

    written_chars = 0
    try:
      stream = await client.chat.completions.create(**request_kwargs)
      async for chunk in stream:
        if cancel_signal is not None and cancel_signal.triggered:
          await stream.close()
          logger.info("Stopped streaming into artifact %s after cancellation (%d chars written)", artifact_key, written_chars)
          return GenerationOutcome(success=False, error="Generation cancelled.", cancelled=True)

        if not chunk.choices:
          continue
        delta = chunk.choices[0].delta.content
        if not delta:
          continue
        await self._artifacts.append_content(artifact_key, slot_key, delta)
        written_chars += len(delta)

    except Exception as exc:  # noqa: BLE001
      logger.warning("OpenRouter generation failed for artifact %s model=%s: %s", artifact_key, model_config.model_name, exc)
      return GenerationOutcome(success=False, error=str(exc) or type(exc).__name__)

    logger.info("OpenRouter generation finished for artifact %s model=%s (%d chars)", artifact_key, model_config.model_name, written_chars)
    return GenerationOutcome(success=True)
