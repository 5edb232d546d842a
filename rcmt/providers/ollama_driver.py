from __future__ import annotations

import logging

import httpx

from ..config import Config
from ..exceptions import ProviderError, ProviderUnavailable
from .base import BaseDriver

logger = logging.getLogger(__name__)


class OllamaDriver(BaseDriver):
    """Driver for a local Ollama server (``/api/chat``).

    Before the first request the driver checks ``/api/tags`` once so a
    missing model is reported with a pull hint instead of a bare 404.
    """

    def __init__(self, config: Config, debug: bool = False) -> None:
        super().__init__(config, debug)
        self._base_url = config.llm_endpoint.rstrip("/")
        self._checked = False

    def _unreachable(self, exc: Exception) -> ProviderUnavailable:
        return ProviderUnavailable(
            f"Cannot connect to Ollama at {self._base_url}. "
            f"Make sure Ollama is running ('ollama serve'): {exc}"
        )

    def check_connection(self) -> None:
        try:
            resp = httpx.get(f"{self._base_url}/api/tags", timeout=self._request_timeout)
        except httpx.TransportError as e:
            raise self._unreachable(e) from e
        if resp.status_code >= 400:
            raise ProviderError("Ollama server is not responding correctly")
        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(f"Ollama returned malformed JSON: {e}") from e
        models = data.get("models") if isinstance(data, dict) else None
        if not isinstance(models, list):
            raise ProviderError("Ollama returned a malformed model list")
        names = [str(m.get("name", "")).split(":")[0] for m in models if isinstance(m, dict)]
        wanted = self.config.model.split(":")[0]
        if wanted not in names:
            raise ProviderError(
                f"Model '{self.config.model}' not found in Ollama. "
                f"Available models: {', '.join(names) or 'none'}. "
                f"To pull the model, run: ollama pull {self.config.model}"
            )
        self._checked = True

    def invoke(self, prompt: str, system_instruction: str) -> str:
        if not self._checked:
            self.check_connection()
        payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": prompt},
            ],
            "stream": False,
            "options": {"temperature": 0.3, "num_predict": 200},
        }
        logger.debug("ollama request model=%s", self.config.model)
        try:
            response = httpx.post(
                f"{self._base_url}/api/chat",
                json=payload,
                timeout=self._request_timeout,
            )
        except httpx.TransportError as e:
            raise self._unreachable(e) from e
        if response.status_code >= 400:
            raise ProviderError(
                f"Ollama API error ({response.status_code}): {response.text}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(f"Ollama returned malformed JSON: {e}") from e
        reply = data.get("message") if isinstance(data, dict) else None
        content = reply.get("content") if isinstance(reply, dict) else None
        if not isinstance(content, str):
            raise ProviderError("Ollama returned a malformed response")
        message = content.strip()
        if not message:
            raise ProviderError("No commit message generated from Ollama")
        return message
