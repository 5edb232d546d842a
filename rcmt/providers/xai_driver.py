from __future__ import annotations

from typing import Any

from rcmt.providers.openai_driver import OpenAIDriver

# XAI's API is OpenAI-compatible; the separate class keeps room for its own
# parameter handling without branching inside OpenAIDriver.


class XAIDriver(OpenAIDriver):
    """Driver for XAI/Grok style API (OpenAI-compatible)."""

    def _build_kwargs(self, prompt: str, system_instruction: str) -> dict[str, Any]:
        kwargs = super()._build_kwargs(prompt, system_instruction)
        # Grok models accept the modern token parameter only.
        if "max_tokens" in kwargs:
            kwargs["max_completion_tokens"] = kwargs.pop("max_tokens")
        return kwargs
