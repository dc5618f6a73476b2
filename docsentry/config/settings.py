from pydantic_settings import BaseSettings, SettingsConfigDict

from docsentry.analysis.models import ProviderConfig, ProviderKind, ThreatPlatformConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    pdf_engine: str = "pymupdf"
    fetch_timeout_seconds: float = 30.0
    max_document_bytes: int = 50 * 1024 * 1024

    llm_provider: str = "custom"
    llm_endpoint: str = ""
    llm_api_key: str = ""
    llm_model: str = "deepseek/deepseek-r1-0528-qwen3-8b"
    llm_timeout_seconds: float = 30.0
    llm_max_attempts: int = 3
    llm_backoff_seconds: float = 1.0
    llm_max_backoff_seconds: float = 8.0
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2000

    threat_platform_base_url: str = ""
    threat_platform_api_key: str = ""

    knowledge_base_path: str = ""

    def provider_config(self) -> ProviderConfig:
        """Snapshot the LLM settings into the immutable config passed per call."""
        threat_platform = None
        if self.threat_platform_base_url.strip():
            threat_platform = ThreatPlatformConfig(
                base_url=self.threat_platform_base_url.strip(),
                api_key=self.threat_platform_api_key,
            )
        return ProviderConfig(
            provider=ProviderKind.parse(self.llm_provider),
            endpoint=self.llm_endpoint,
            api_key=self.llm_api_key,
            model=self.llm_model,
            timeout_seconds=self.llm_timeout_seconds,
            max_attempts=self.llm_max_attempts,
            backoff_seconds=self.llm_backoff_seconds,
            max_backoff_seconds=self.llm_max_backoff_seconds,
            temperature=self.llm_temperature,
            max_tokens=self.llm_max_tokens,
            threat_platform=threat_platform,
        )
