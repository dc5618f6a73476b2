from typing import Any

import pydantic
from openai.types.chat import ChatCompletion

from docsentry.analysis.models import ProviderConfig, ProviderKind, ProviderRequest
from docsentry.analysis.provider_base import BaseProviderHandler
from docsentry.exceptions import ValidationError


def chat_messages(system_prompt: str, user_prompt: str) -> list[dict[str, str]]:
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": user_prompt})
    return messages


class OpenAIProvider(BaseProviderHandler):
    """OpenAI chat-completions API with bearer authentication."""

    KIND = ProviderKind.OPENAI
    DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"

    def build_request(
        self,
        config: ProviderConfig,
        *,
        system_prompt: str,
        user_prompt: str,
    ) -> ProviderRequest:
        return ProviderRequest(
            url=self.resolve_endpoint(config),
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            body={
                "model": config.model,
                "messages": chat_messages(system_prompt, user_prompt),
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
                "response_format": {"type": "json_object"},
            },
        )

    def parse_response(self, payload: Any) -> str:
        try:
            completion = ChatCompletion.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"{self.KIND.value} response is not a chat completion: {exc.error_count()} errors"
            ) from exc
        if not completion.choices:
            raise ValidationError(f"{self.KIND.value} returned no choices")
        content = completion.choices[0].message.content
        if not content:
            raise ValidationError(f"{self.KIND.value} returned empty response")
        return content


class AzureOpenAIProvider(OpenAIProvider):
    """Azure OpenAI deployment endpoint; the deployment in the URL selects the model."""

    KIND = ProviderKind.AZURE_OPENAI
    DEFAULT_ENDPOINT = ""

    def build_request(
        self,
        config: ProviderConfig,
        *,
        system_prompt: str,
        user_prompt: str,
    ) -> ProviderRequest:
        return ProviderRequest(
            url=self.resolve_endpoint(config),
            headers={
                "api-key": config.api_key,
                "Content-Type": "application/json",
            },
            body={
                "messages": chat_messages(system_prompt, user_prompt),
                "temperature": config.temperature,
                "max_tokens": config.max_tokens,
            },
        )
