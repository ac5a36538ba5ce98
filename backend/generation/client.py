"""Chat completion client over the OpenAI / Azure OpenAI SDK."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Protocol

import openai
from openai import AzureOpenAI, OpenAI

from backend.core.config import Settings
from backend.core.errors import ConfigurationError, GenerationError

logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    """Generation collaborator used by approaches."""

    def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        ...

    def complete_stream(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        ...


class ChatCompletionClient:
    """Thin wrapper around ``client.chat.completions``.

    Every SDK failure surfaces as GenerationError; nothing is retried here.
    """

    def __init__(
        self,
        client: Any,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 1024,
    ):
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> ChatCompletionClient:
        """Build an Azure OpenAI client when an endpoint is set, else OpenAI."""
        if settings.azure_openai_endpoint:
            if not settings.azure_openai_chat_deployment:
                raise ConfigurationError("AZURE_OPENAI_CHAT_DEPLOYMENT must be set with AZURE_OPENAI_ENDPOINT")
            client = AzureOpenAI(
                azure_endpoint=settings.azure_openai_endpoint,
                api_key=settings.azure_openai_api_key,
                api_version=settings.azure_openai_api_version,
            )
            model = settings.azure_openai_chat_deployment
        elif settings.openai_api_key:
            client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
            model = settings.openai_chat_model
        else:
            raise ConfigurationError("Set OPENAI_API_KEY or AZURE_OPENAI_ENDPOINT to enable generation")

        return cls(
            client,
            model,
            temperature=settings.chat_temperature,
            max_tokens=settings.chat_max_tokens,
        )

    def _params(self, temperature: float | None, max_tokens: int | None) -> dict:
        return {
            "model": self.model,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }

    def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Return the assistant text for the given messages."""
        try:
            response = self._client.chat.completions.create(
                messages=messages,
                **self._params(temperature, max_tokens),
            )
        except openai.OpenAIError as e:
            raise GenerationError(f"Chat completion failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise GenerationError("Malformed chat completion response") from e
        if content is None:
            raise GenerationError("Chat completion returned no content")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(
                "Chat completion generated with prompt tokens[%s], completion tokens[%s], total tokens[%s]",
                usage.prompt_tokens,
                usage.completion_tokens,
                usage.total_tokens,
            )
        return content

    def complete_stream(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        """Open a streaming completion and return an iterator of text deltas.

        The request is sent before this returns, so connection failures
        raise here rather than on first iteration.
        """
        try:
            stream = self._client.chat.completions.create(
                messages=messages,
                stream=True,
                **self._params(temperature, max_tokens),
            )
        except openai.OpenAIError as e:
            raise GenerationError(f"Chat completion stream failed: {e}") from e

        return self._iter_deltas(stream)

    def _iter_deltas(self, stream) -> Iterator[str]:
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except openai.OpenAIError as e:
            raise GenerationError(f"Chat completion stream interrupted: {e}") from e
        finally:
            stream.close()
