"""
LLM-assisted profile selection.

Two modes turn free-form user text into the flat string map plugins build
their requirements from:

- ``select_profile``: one request, one response.
- ``ChatSession``: a multi-turn conversation; ``extract_profile`` reads the
  recommendation from the most recent assistant reply.

Model output is untrusted text. Parsing goes through one pipeline: strip
markdown fences, locate the outer braces, parse JSON, coerce values to strings.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from k8s_launch_kit.exceptions import (
    ConfigurationError,
    ExtractionError,
    LowConfidenceRecommendationError,
    NothingToExtractError,
)
from k8s_launch_kit.llm.base import LLMProvider, Message
from k8s_launch_kit.models.descriptors import ClusterConfig

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"
SYSTEM_PROMPT_FILE = PROMPTS_DIR / "system-prompt.md"

INTERACTIVE_PROMPT_SUFFIX = (
    "\n\n---\nIf you would like to generate the manifests for the recommended profile, "
    "type 'generate'. If you want to ask another question, type it here."
)

logger = logging.getLogger(__name__)


def trim_markdown_json(text: str) -> str:
    """
    Remove markdown code fence wrapping from a JSON response.

    A leading ```json (or bare ```) and a trailing ``` are stripped
    independently, then surrounding whitespace. Already-clean text is
    returned unchanged.

    Example:
        >>> trim_markdown_json('```json\\n{"a": 1}\\n```')
        '{"a": 1}'
    """
    text = text.strip()

    if text.startswith("```json"):
        text = text[len("```json") :]
    elif text.startswith("```"):
        text = text[len("```") :]

    if text.endswith("```"):
        text = text[: -len("```")]

    return text.strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Parse the JSON object embedded in free text.

    The object spans from the first ``{`` to the last ``}`` of the fence-stripped
    text, so prose before and after the object is ignored.

    Raises:
        ExtractionError: If no ``{...}`` span exists or it is not a JSON object
    """
    stripped = trim_markdown_json(text)
    start = stripped.find("{")
    end = stripped.rfind("}")

    if start == -1 or end == -1 or end <= start:
        raise ExtractionError("no valid JSON found in response")

    try:
        parsed = json.loads(stripped[start : end + 1])
    except json.JSONDecodeError as e:
        raise ExtractionError(f"failed to parse profile JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ExtractionError("profile JSON is not an object")
    return parsed


def stringify_value(value: Any) -> str:
    """String form of a JSON value; booleans keep their JSON spelling."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def stringify_fields(data: dict[str, Any]) -> dict[str, str]:
    return {key: stringify_value(value) for key, value in data.items()}


def check_confidence(fields: dict[str, str]) -> dict[str, str]:
    """
    Reject recommendations the model marked as low confidence.

    Raises:
        LowConfidenceRecommendationError: Carrying the model's reasoning
    """
    if fields.get("confidence", "").lower() == "low":
        raise LowConfidenceRecommendationError(fields.get("reasoning", ""))
    return fields


def build_system_prompt(cluster_config: ClusterConfig, addenda: Iterable[str] = ()) -> str:
    """
    Assemble the system prompt: static instructions, plugin addenda, cluster facts.

    Args:
        cluster_config: Discovered cluster configuration, serialized as JSON
        addenda: Plugin-specific instructions

    Returns:
        The system prompt text
    """
    try:
        instructions = SYSTEM_PROMPT_FILE.read_text()
    except OSError as e:
        raise ConfigurationError(f"failed to read system prompt {SYSTEM_PROMPT_FILE}: {e}") from e

    parts = [instructions.rstrip()]
    parts.extend(addendum.rstrip() for addendum in addenda if addendum)
    parts.append("CLUSTER CONFIGURATION:")
    parts.append(json.dumps(cluster_config.to_dict(), sort_keys=True))
    return "\n\n".join(parts)


def read_prompt_file(path: str | Path) -> str:
    """Read the user's free-text requirements file."""
    prompt_path = Path(path)
    if not prompt_path.is_file():
        raise ConfigurationError(f"prompt file {prompt_path} does not exist")
    return prompt_path.read_text()


def select_profile(prompt_text: str, system_prompt: str, llm: LLMProvider) -> dict[str, str]:
    """
    Single-shot profile recommendation.

    Args:
        prompt_text: The user's description of what they need
        system_prompt: Output of ``build_system_prompt``
        llm: Provider to query

    Returns:
        Recommendation fields as strings (fabric, deploymentType, ...)

    Raises:
        ExtractionError: If the response is not a JSON object
        LowConfidenceRecommendationError: If the model reports low confidence
    """
    logger.debug("User prompt: %s", prompt_text)
    response = llm.complete(system_prompt, [], prompt_text)
    logger.debug("LLM response: %s", response)

    try:
        parsed = json.loads(trim_markdown_json(response))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"response is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ExtractionError("profile JSON is not an object")

    return check_confidence(stringify_fields(parsed))


class ChatSession:
    """
    Interactive conversation that ends in a profile recommendation.

    The system prompt is fixed when the session is created. Every
    ``send_message`` re-sends it with the full history; the history itself is
    append-only.
    """

    def __init__(self, system_prompt: str, llm: LLMProvider):
        self.system_prompt = system_prompt
        self.llm = llm
        self._messages: list[Message] = []
        self._last_response = ""

    @classmethod
    def create(
        cls, cluster_config: ClusterConfig, llm: LLMProvider, addenda: Iterable[str] = ()
    ) -> "ChatSession":
        return cls(build_system_prompt(cluster_config, addenda), llm)

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(dict(message) for message in self._messages)

    @property
    def last_response(self) -> str:
        return self._last_response

    def send_message(self, text: str) -> str:
        """
        Send a user turn and return the assistant reply.

        Raises:
            LLMError: If the provider call fails (the user turn stays in history)
        """
        prior = list(self._messages)
        self._messages.append({"role": "user", "content": text})
        logger.debug("Sending message to LLM: %s", text)

        reply = self.llm.complete(self.system_prompt, prior, text)

        self._last_response = reply
        self._messages.append({"role": "assistant", "content": reply})
        logger.debug("LLM response: %s", reply)
        return reply

    def extract_profile(self) -> dict[str, str]:
        """
        Parse the recommendation out of the most recent assistant reply.

        Raises:
            NothingToExtractError: If no reply has been received yet
            ExtractionError: If the reply holds no JSON object
        """
        if not self._last_response:
            raise NothingToExtractError()
        return stringify_fields(extract_json_object(self._last_response))
