"""
OpenAI and Azure OpenAI LLM provider implementations.
"""

import os

from k8s_launch_kit.exceptions import ConfigurationError, LLMAPIError, LLMProviderNotAvailableError
from k8s_launch_kit.llm.base import DEFAULT_TEMPERATURE, LLMProvider, Message
from k8s_launch_kit.util.redact import redact_sensitive

DEFAULT_MODEL = "gpt-4o"
DEFAULT_AZURE_API_VERSION = "2024-10-21"


class OpenAIProvider(LLMProvider):
    """OpenAI GPT provider (also any OpenAI-compatible endpoint via api_url)."""

    vendor = "openai"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = None
        self._initialize_client()

    def _initialize_client(self):
        """Initialize OpenAI client if API key is available."""
        if self.api_key:
            from openai import OpenAI

            kwargs = {"api_key": self.api_key}
            if self.api_url:
                kwargs["base_url"] = self.api_url
            self.client = OpenAI(**kwargs)

    def complete(
        self,
        system_prompt: str,
        history: list[Message],
        user_text: str,
        max_tokens: int = 4096,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Generate a reply using the chat completions API.

        Raises:
            LLMProviderNotAvailableError: If API key not configured
            LLMAPIError: If API call fails
        """
        if not self.client:
            raise LLMProviderNotAvailableError(self.vendor)

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.extend(self.build_messages(history, user_text))

        try:
            response = self.client.chat.completions.create(
                model=self.model or DEFAULT_MODEL,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            raise LLMAPIError("OpenAI", redact_sensitive(str(e), [self.api_key])) from e

        if not response.choices:
            raise LLMAPIError("OpenAI", "no response from LLM")
        content = response.choices[0].message.content
        return str(content) if content else ""

    def is_available(self) -> bool:
        """Check if OpenAI provider is available."""
        return bool(self.api_key) and self.client is not None


class AzureOpenAIProvider(OpenAIProvider):
    """Azure OpenAI deployment; ``model`` names the deployment, ``api_url`` the endpoint."""

    vendor = "openai-azure"

    def _initialize_client(self):
        if not self.api_key:
            return
        if not self.api_url:
            raise ConfigurationError(
                "Azure OpenAI requires an endpoint",
                "Pass --llm-api-url https://<resource>.openai.azure.com",
            )
        if not self.model:
            raise ConfigurationError(
                "Azure OpenAI requires a deployment name",
                "Pass --llm-model <deployment-name>",
            )

        from openai import AzureOpenAI

        self.client = AzureOpenAI(
            api_key=self.api_key,
            azure_endpoint=self.api_url,
            api_version=self.config.get("api_version")
            or os.environ.get("OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION),
        )
