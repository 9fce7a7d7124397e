"""
LLM provider abstraction layer and profile-selection session.
"""

from k8s_launch_kit.llm.anthropic import AnthropicProvider
from k8s_launch_kit.llm.base import LLMProvider
from k8s_launch_kit.llm.gemini import GeminiProvider
from k8s_launch_kit.llm.mock import MockProvider
from k8s_launch_kit.llm.openai import AzureOpenAIProvider, OpenAIProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "openai-azure": AzureOpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
    "mock": MockProvider,
}


def get_provider(config: dict) -> LLMProvider:
    """
    Factory function to get LLM provider based on settings.

    Args:
        config: LLM settings with 'vendor', 'model', 'api_key', 'api_url'

    Returns:
        LLMProvider instance

    Raises:
        ValueError: If the vendor is not supported
    """
    vendor = (config.get("vendor") or "openai").lower()

    if vendor not in PROVIDERS:
        raise ValueError(
            f"Unsupported LLM vendor: {vendor}. Supported vendors: {', '.join(PROVIDERS)}"
        )

    return PROVIDERS[vendor](config)


__all__ = [
    "LLMProvider",
    "AnthropicProvider",
    "AzureOpenAIProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "MockProvider",
    "PROVIDERS",
    "get_provider",
]
