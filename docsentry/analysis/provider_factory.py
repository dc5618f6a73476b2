from typing import ClassVar

from docsentry.analysis.anthropic_provider import AnthropicProvider
from docsentry.analysis.custom_provider import CustomProvider
from docsentry.analysis.models import ProviderKind
from docsentry.analysis.openai_provider import AzureOpenAIProvider, OpenAIProvider
from docsentry.analysis.provider_base import BaseProviderHandler


class ProviderFactory:
    """Maps each provider variant to its handler."""

    HANDLERS: ClassVar[dict[ProviderKind, type[BaseProviderHandler]]] = {
        ProviderKind.OPENAI: OpenAIProvider,
        ProviderKind.AZURE_OPENAI: AzureOpenAIProvider,
        ProviderKind.ANTHROPIC: AnthropicProvider,
        ProviderKind.CUSTOM: CustomProvider,
    }

    @classmethod
    def create(cls, kind: ProviderKind | str) -> BaseProviderHandler:
        return cls.HANDLERS[ProviderKind.parse(kind)]()
