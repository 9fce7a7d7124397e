"""
Anthropic Claude LLM provider implementation.
"""

from k8s_launch_kit.exceptions import LLMAPIError, LLMProviderNotAvailableError
from k8s_launch_kit.llm.base import DEFAULT_TEMPERATURE, LLMProvider, Message
from k8s_launch_kit.util.redact import redact_sensitive

DEFAULT_MODEL = "claude-sonnet-4-5"


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    vendor = "anthropic"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = None
        self._initialize_client()

    def _initialize_client(self):
        """Initialize Anthropic client if API key is available."""
        if self.api_key:
            from anthropic import Anthropic

            kwargs = {"api_key": self.api_key}
            if self.api_url:
                kwargs["base_url"] = self.api_url
            self.client = Anthropic(**kwargs)

    def complete(
        self,
        system_prompt: str,
        history: list[Message],
        user_text: str,
        max_tokens: int = 4096,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Generate a reply using Anthropic Claude.

        Raises:
            LLMProviderNotAvailableError: If API key not configured
            LLMAPIError: If API call fails
        """
        if not self.client:
            raise LLMProviderNotAvailableError("anthropic")

        kwargs = {
            "model": self.model or DEFAULT_MODEL,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": self.build_messages(history, user_text),
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = self.client.messages.create(**kwargs)
        except Exception as e:
            raise LLMAPIError("Anthropic", redact_sensitive(str(e), [self.api_key])) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return text

    def is_available(self) -> bool:
        """Check if Anthropic provider is available."""
        return bool(self.api_key) and self.client is not None
