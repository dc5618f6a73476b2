from typing import Any

from docsentry.analysis.models import ProviderConfig, ProviderKind, ProviderRequest
from docsentry.analysis.openai_provider import chat_messages
from docsentry.analysis.provider_base import BaseProviderHandler
from docsentry.exceptions import ValidationError


class CustomProvider(BaseProviderHandler):
    """Self-hosted OpenAI-compatible server (LM Studio, Ollama, vLLM).

    The key is optional and such servers often omit envelope fields, so the
    reply is read leniently instead of through the OpenAI response model.
    """

    KIND = ProviderKind.CUSTOM
    DEFAULT_ENDPOINT = "http://localhost:1234/v1/chat/completions"
    REQUIRES_API_KEY = False
    SUPPORTS_STRUCTURE_HINTS = False

    def build_request(
        self,
        config: ProviderConfig,
        *,
        system_prompt: str,
        user_prompt: str,
    ) -> ProviderRequest:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        return ProviderRequest(
            url=self.resolve_endpoint(config),
            headers=headers,
            body={
                "model": config.model,
                "messages": chat_messages(system_prompt, user_prompt),
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
            },
        )

    def parse_response(self, payload: Any) -> str:
        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
            raise ValidationError("CUSTOM response has no choices")
        first = choices[0]
        message = first.get("message")
        content = message.get("content") if isinstance(message, dict) else first.get("text")
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("CUSTOM returned empty response")
        return content
