from __future__ import annotations

import logging
from typing import Any

import openai

from rcmt.config import Config
from rcmt.exceptions import ProviderError, ProviderUnavailable
from rcmt.providers.base import BaseDriver

logger = logging.getLogger(__name__)

MAX_TOKENS = 200
TEMPERATURE = 0.3


class OpenAIDriver(BaseDriver):
    """Driver encapsulating OpenAI / OpenAI-compatible chat completions.

    Also used for GitHub Models, whose inference endpoint speaks the same
    protocol.
    """

    def __init__(self, config: Config, debug: bool = False) -> None:
        super().__init__(config, debug)
        self._client: Any = openai.OpenAI(
            base_url=config.llm_endpoint,
            api_key=config.resolve_api_key(),
            timeout=self._request_timeout,
            max_retries=0,
        )

    def _build_kwargs(self, prompt: str, system_instruction: str) -> dict[str, Any]:
        model = self.config.model
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
        }
        # Reasoning models reject temperature and the legacy token parameter.
        if model.startswith(("gpt-5", "o1", "o3", "o4")):
            kwargs["max_completion_tokens"] = MAX_TOKENS * 8
        else:
            kwargs["temperature"] = TEMPERATURE
            kwargs["max_tokens"] = MAX_TOKENS
        return kwargs

    def invoke(self, prompt: str, system_instruction: str) -> str:
        kwargs = self._build_kwargs(prompt, system_instruction)
        logger.debug(
            "openai-compatible request model=%s endpoint=%s prompt_len=%d",
            kwargs["model"],
            self.config.llm_endpoint,
            len(prompt),
        )
        try:
            resp = self._client.chat.completions.create(**kwargs)
        except openai.APIConnectionError as e:
            raise ProviderUnavailable(
                f"Cannot reach {self.config.provider} at {self.config.llm_endpoint}: {e}"
            ) from e
        except openai.APIError as e:
            raise ProviderError(f"{self.config.provider} API error: {e}") from e

        try:
            choice0 = resp.choices[0]
        except (AttributeError, IndexError, TypeError):
            raise ProviderError("Missing choices in OpenAI response") from None

        raw_msg = getattr(choice0, "message", None)
        content = getattr(raw_msg, "content", None) if raw_msg is not None else None
        if isinstance(content, list):
            fragments: list[str] = []
            for part in content:
                if isinstance(part, dict):
                    fragments.append(str(part.get("text") or ""))
                else:
                    fragments.append(str(getattr(part, "text", "") or ""))
            content = "".join(fragments)
        if not isinstance(content, str) or not content.strip():
            raise ProviderError(
                "Empty response from {} (finish_reason={})".format(
                    self.config.provider, getattr(choice0, "finish_reason", None)
                )
            )
        return content.strip()
