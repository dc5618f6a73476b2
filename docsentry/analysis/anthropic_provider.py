"""Anthropic Messages API handler.

Differs from the chat-completions shape in three ways: authentication uses
``x-api-key`` plus ``anthropic-version``, the system prompt is a top-level
field rather than a message, and the reply is a list of content blocks.
"""

from typing import Any

from docsentry.analysis.models import ProviderConfig, ProviderKind, ProviderRequest
from docsentry.analysis.provider_base import BaseProviderHandler
from docsentry.exceptions import ValidationError

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(BaseProviderHandler):
    KIND = ProviderKind.ANTHROPIC
    DEFAULT_ENDPOINT = "https://api.anthropic.com/v1/messages"

    def build_request(
        self,
        config: ProviderConfig,
        *,
        system_prompt: str,
        user_prompt: str,
    ) -> ProviderRequest:
        body: dict[str, Any] = {
            "model": config.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            body["system"] = system_prompt
        return ProviderRequest(
            url=self.resolve_endpoint(config),
            headers={
                "x-api-key": config.api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "Content-Type": "application/json",
            },
            body=body,
        )

    def parse_response(self, payload: Any) -> str:
        if not isinstance(payload, dict) or not isinstance(payload.get("content"), list):
            raise ValidationError("ANTHROPIC response has no content blocks")
        texts = [
            block["text"]
            for block in payload["content"]
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        ]
        text = "\n".join(t for t in texts if t.strip())
        if not text:
            raise ValidationError("ANTHROPIC returned empty response")
        return text
