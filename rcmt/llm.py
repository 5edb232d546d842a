"""LLM integration for rcmt.

``LLMClient`` is the single text-generation capability the rest of the
package depends on: ``generate_message(prompt, system_instruction)``. It
picks a provider driver, performs one request and cleans the raw output
(quotes, code fences, "Commit message:" labels) before returning it.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Protocol

from .config import Config, get_active_config
from .exceptions import ConfigError, ProviderError
from .providers.anthropic_driver import AnthropicDriver
from .providers.base import BaseDriver
from .providers.ollama_driver import OllamaDriver
from .providers.openai_driver import OpenAIDriver
from .providers.xai_driver import XAIDriver

logger = logging.getLogger(__name__)

_LABEL_RE = re.compile(r"^(commit message|message|subject)\s*:\s*", re.IGNORECASE)


class TextGenerationProvider(Protocol):
    """Capability consumed by MessageGenerator."""

    def generate_message(self, prompt: str, system_instruction: str) -> str:
        ...


class LLMClient:
    """Provider-aware client for generating commit messages."""

    def __init__(self, config: Optional[Config] = None, debug: bool = False) -> None:
        self.debug = debug
        self.config = config or get_active_config()
        self.provider = self.config.provider
        self.model = self.config.model

        if self.config.requires_api_key and not self.config.resolve_api_key():
            raise ConfigError(
                "Environment variable '"
                f"{self.config.api_key_env}"
                "' is not set or empty."
            )

        # Provider driver setup (strategy pattern)
        self._driver: BaseDriver
        if self.provider == "anthropic":
            self._driver = AnthropicDriver(self.config, debug=debug)
        elif self.provider in {"openai", "github"}:
            # Treat github models as OpenAI-compatible
            self._driver = OpenAIDriver(self.config, debug=debug)
        elif self.provider == "xai":
            self._driver = XAIDriver(self.config, debug=debug)
        elif self.provider == "ollama":
            self._driver = OllamaDriver(self.config, debug=debug)
        else:
            raise ConfigError(f"Unsupported provider: {self.provider}")

    @property
    def name(self) -> str:
        return self._driver.describe()

    def generate_message(self, prompt: str, system_instruction: str) -> str:
        """Return a cleaned commit message for ``prompt``.

        Raises ``ProviderUnavailable`` or ``ProviderError``; no retries.
        """
        raw = self._driver.invoke(prompt, system_instruction)
        logger.debug("provider %s returned %d characters", self.provider, len(raw or ""))
        return self._sanitize_output(raw or "")

    def _sanitize_output(self, raw: str) -> str:
        """Strip presentation artefacts models like to add around messages.

        Steps:
          1. Remove markdown code fences, keeping the first fenced block.
          2. Remove surrounding quotes/backticks and a leading label.
          3. Drop blank lines at the edges and trailing whitespace per line.
        """
        text = raw.strip()
        if text.startswith("```"):
            parts = text.split("```")
            for part in parts:
                candidate = part.strip()
                if not candidate:
                    continue
                # Drop a language tag on the opening fence line.
                first, _, rest = candidate.partition("\n")
                if rest and re.fullmatch(r"[A-Za-z0-9_-]+", first.strip()):
                    candidate = rest.strip()
                text = candidate
                break

        for quote in ('"', "'", "`"):
            if len(text) >= 2 and text.startswith(quote) and text.endswith(quote):
                text = text[1:-1].strip()

        text = _LABEL_RE.sub("", text, count=1)
        lines = [line.rstrip() for line in text.splitlines()]
        while lines and not lines[0].strip():
            lines.pop(0)
        while lines and not lines[-1].strip():
            lines.pop()
        cleaned = "\n".join(lines).strip()
        if not cleaned:
            raise ProviderError(f"Empty response from {self.provider}")
        return cleaned
