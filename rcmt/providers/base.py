from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import Config


class BaseDriver(ABC):
    """Abstract base for provider-specific text generation.

    Each driver encapsulates one provider's HTTP/client call pattern and
    translates its failures into ``ProviderUnavailable`` (the provider could
    not be reached) or ``ProviderError`` (it answered, but not usefully).
    Prompt construction and output clean-up stay in ``LLMClient`` so every
    provider sees the same request.
    """

    def __init__(self, config: Config, debug: bool = False) -> None:
        self.config = config
        self.debug = debug
        self._request_timeout = config.request_timeout

    @abstractmethod
    def invoke(self, prompt: str, system_instruction: str) -> str:
        """Return the raw text produced for ``prompt``.

        Implementations perform exactly one request; retries, if any, are
        the caller's concern.
        """
        raise NotImplementedError

    def describe(self) -> str:
        return f"{self.config.provider} ({self.config.model})"
