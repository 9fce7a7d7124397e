"""
Mock LLM provider for testing (no API calls).
"""

import json
import re

from k8s_launch_kit.llm.base import DEFAULT_TEMPERATURE, LLMProvider, Message


class MockProvider(LLMProvider):
    """
    Mock LLM provider that recommends a profile from keywords in the user text.
    Useful for trying the workflow without an API key.
    """

    vendor = "mock"

    def complete(
        self,
        system_prompt: str,
        history: list[Message],
        user_text: str,
        max_tokens: int = 4096,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> str:
        """
        Return a fenced JSON recommendation based on the conversation so far.

        Keywords are collected from every user turn, so later questions can
        refine an earlier answer.
        """
        text = " ".join(
            [turn["content"] for turn in history if turn["role"] == "user"] + [user_text]
        ).lower()
        recommendation = self._recommend(text)
        return (
            "Based on your description, this is the recommended profile:\n\n"
            f"```json\n{json.dumps(recommendation, indent=2)}\n```"
        )

    @staticmethod
    def _has_word(text: str, *words: str) -> bool:
        return any(re.search(rf"\b{re.escape(word)}\b", text) for word in words)

    def _recommend(self, text: str) -> dict:
        fabric = "infiniband" if self._has_word(text, "infiniband", "ib") else "ethernet"

        if self._has_word(text, "shared", "rdma shared", "macvlan"):
            deployment = "rdma_shared"
        elif self._has_word(text, "host device", "host-device", "hostdev"):
            deployment = "host_device"
        else:
            deployment = "sriov"

        spectrum_x = self._has_word(text, "spectrum-x", "spectrumx", "spectrum x")
        multirail = spectrum_x or self._has_word(text, "multirail", "multi-rail", "rail")
        ai = self._has_word(text, "ai", "training", "inference", "gpu", "llm")

        recognized = any(
            [
                fabric == "infiniband",
                deployment != "sriov",
                self._has_word(text, "sriov", "sr-iov", "ethernet", "roce", "rdma"),
                spectrum_x,
                multirail,
                ai,
            ]
        )

        return {
            "fabric": fabric,
            "deploymentType": deployment,
            "multirail": multirail,
            "spectrumX": spectrum_x,
            "ai": ai,
            "confidence": "high" if recognized else "low",
            "reasoning": (
                f"Requested {fabric} fabric with {deployment} deployment."
                if recognized
                else "The request does not describe any networking requirement."
            ),
        }

    def is_available(self) -> bool:
        """Mock provider is always available."""
        return True
