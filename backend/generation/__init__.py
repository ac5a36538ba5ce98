"""Generation domain - language model completions."""

from .client import ChatClient, ChatCompletionClient

__all__ = ["ChatClient", "ChatCompletionClient"]
