"""
Abstract base class for LLM providers.
"""
import os
from abc import ABC, abstractmethod

DEFAULT_API_KEY_ENV = "L8K_LLM_API_KEY"
DEFAULT_TEMPERATURE = 0.5

# A chat turn: {"role": "user" | "assistant", "content": "..."}
Message = dict[str, str]


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    vendor = "unknown"

    def __init__(self, config: dict):
        """
        Initialize LLM provider.

        Args:
            config: LLM settings with 'model', 'api_key', 'api_url', 'api_key_env'
        """
        self.config = config
        self.model = config.get("model")
        self.api_url = config.get("api_url")
        self.api_key_env = config.get("api_key_env", DEFAULT_API_KEY_ENV)
        self.api_key = config.get("api_key") or os.environ.get(self.api_key_env)

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        history: list[Message],
        user_text: str,
        max_tokens: int = 4096,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Send one completion request.

        The request carries the system prompt, every earlier turn and the new
        user text; providers keep no conversation state between calls.

        Args:
            system_prompt: Instructions for the model
            history: Earlier turns, oldest first
            user_text: The new user turn
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Raw response text

        Raises:
            LLMProviderNotAvailableError: If the provider is not configured
            LLMAPIError: If the API call fails
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the provider is properly configured and available.

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    def get_model_name(self) -> str:
        """Get the configured model name."""
        return self.model or "unknown"

    @staticmethod
    def build_messages(history: list[Message], user_text: str) -> list[Message]:
        messages = [{"role": turn["role"], "content": turn["content"]} for turn in history]
        messages.append({"role": "user", "content": user_text})
        return messages
