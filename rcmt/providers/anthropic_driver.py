from __future__ import annotations

import logging

import httpx

from ..config import Config
from ..exceptions import ProviderError, ProviderUnavailable
from .base import BaseDriver

logger = logging.getLogger(__name__)


class AnthropicDriver(BaseDriver):
    """Driver handling Anthropic API calls (messages endpoint)."""

    API_VERSION = "2023-06-01"

    def __init__(self, config: Config, debug: bool = False) -> None:
        super().__init__(config, debug)
        self._api_key = config.resolve_api_key()

    def invoke(self, prompt: str, system_instruction: str) -> str:
        url = self.config.llm_endpoint.rstrip("/") + "/v1/messages"
        headers = {
            "x-api-key": self._api_key or "",
            "anthropic-version": self.API_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.config.model,
            "max_tokens": 200,
            "temperature": 0.3,
            "system": system_instruction,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}],
                }
            ],
        }
        logger.debug("anthropic request model=%s url=%s", self.config.model, url)
        try:
            response = httpx.post(
                url,
                headers=headers,
                json=payload,
                timeout=self._request_timeout,
            )
        except httpx.TransportError as e:
            raise ProviderUnavailable(
                f"Anthropic network error during messages request: {e}"
            ) from e
        status = getattr(response, "status_code", 200)
        if status and int(status) >= 400:
            raise ProviderError(
                "Anthropic error {}: {}".format(
                    status, getattr(response, "text", "<no body>")
                )
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Anthropic returned malformed JSON: {e}") from e
        if not isinstance(data, dict):
            raise ProviderError("Anthropic returned a malformed response")
        content = data.get("content") or []
        if not isinstance(content, list):
            raise ProviderError("Anthropic returned a malformed response")
        texts = []
        for chunk in content:
            if isinstance(chunk, dict) and chunk.get("type") == "text":
                text_part = chunk.get("text")
                if isinstance(text_part, str):
                    texts.append(text_part)
        text = "\n".join(filter(None, texts)).strip()
        if not text:
            raise ProviderError("No commit message generated from Anthropic")
        return text
