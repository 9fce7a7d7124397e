"""
Google Gemini LLM provider implementation.
"""

from k8s_launch_kit.exceptions import LLMAPIError, LLMProviderNotAvailableError
from k8s_launch_kit.llm.base import DEFAULT_TEMPERATURE, LLMProvider, Message
from k8s_launch_kit.util.redact import redact_sensitive

DEFAULT_MODEL = "gemini-2.5-flash"

# Gemini names the assistant side of a conversation "model"
ROLES = {"user": "user", "assistant": "model"}


class GeminiProvider(LLMProvider):
    """Google Gemini provider (google-genai SDK)."""

    vendor = "gemini"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = None
        self._initialize_client()

    def _initialize_client(self):
        """Initialize Gemini client if API key is available."""
        if self.api_key:
            from google import genai
            from google.genai import types

            kwargs = {"api_key": self.api_key}
            if self.api_url:
                kwargs["http_options"] = types.HttpOptions(base_url=self.api_url)
            self.client = genai.Client(**kwargs)

    @staticmethod
    def build_contents(history: list[Message], user_text: str) -> list[dict]:
        return [
            {"role": ROLES[turn["role"]], "parts": [{"text": turn["content"]}]}
            for turn in LLMProvider.build_messages(history, user_text)
        ]

    def complete(
        self,
        system_prompt: str,
        history: list[Message],
        user_text: str,
        max_tokens: int = 4096,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Generate a reply using Gemini.

        Raises:
            LLMProviderNotAvailableError: If API key not configured
            LLMAPIError: If API call fails or returns no text
        """
        if not self.client:
            raise LLMProviderNotAvailableError(self.vendor)

        from google.genai import types

        generation_config = types.GenerateContentConfig(
            max_output_tokens=max_tokens,
            temperature=temperature,
            system_instruction=system_prompt or None,
        )

        try:
            response = self.client.models.generate_content(
                model=self.model or DEFAULT_MODEL,
                contents=self.build_contents(history, user_text),
                config=generation_config,
            )
        except Exception as e:
            raise LLMAPIError("Gemini", redact_sensitive(str(e), [self.api_key])) from e

        if not response.text:
            raise LLMAPIError("Gemini", "no response from LLM")
        return response.text

    def is_available(self) -> bool:
        """Check if Gemini provider is available."""
        return bool(self.api_key) and self.client is not None
