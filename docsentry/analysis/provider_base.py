from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx

from docsentry.analysis.models import ProviderConfig, ProviderKind, ProviderRequest
from docsentry.exceptions import InvalidInputError


class BaseProviderHandler(ABC):
    """Contract for one LLM provider: how to build the call and read the reply."""

    KIND: ClassVar[ProviderKind]
    DEFAULT_ENDPOINT: ClassVar[str] = ""
    REQUIRES_API_KEY: ClassVar[bool] = True
    SUPPORTS_STRUCTURE_HINTS: ClassVar[bool] = True

    def check_credentials(self, config: ProviderConfig) -> None:
        """Reject configurations that can never succeed, before any network call.

        Raises:
            InvalidInputError: on a missing endpoint, a missing key where one
                is required, or a key that cannot be sent as a header.
        """
        if not self.resolve_endpoint(config):
            raise InvalidInputError(f"Endpoint is required for provider {self.KIND.value}")
        key = config.api_key
        if self.REQUIRES_API_KEY and not key.strip():
            raise InvalidInputError(f"API key is required for provider {self.KIND.value}")
        if key and (key != key.strip() or any(ch.isspace() or ord(ch) < 32 for ch in key)):
            raise InvalidInputError("API key contains whitespace or control characters")

    def resolve_endpoint(self, config: ProviderConfig) -> str:
        return (config.endpoint or self.DEFAULT_ENDPOINT).strip()

    @abstractmethod
    def build_request(
        self,
        config: ProviderConfig,
        *,
        system_prompt: str,
        user_prompt: str,
    ) -> ProviderRequest:
        """Return the URL, headers and JSON body for one call."""

    @abstractmethod
    def parse_response(self, payload: Any) -> str:
        """Return the model's text from a decoded 2xx response body.

        Raises:
            ValidationError: if the body does not have the provider's shape.
        """

    @staticmethod
    def error_message(response: httpx.Response) -> str:
        """Best-effort human-readable reason from an error response."""
        try:
            payload = response.json()
        except ValueError:
            excerpt = response.text.strip()[:200]
            return excerpt or response.reason_phrase
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"].strip()
            if isinstance(error, str):
                return error.strip()
            message = payload.get("message")
            if isinstance(message, str):
                return message.strip()
        return response.reason_phrase
