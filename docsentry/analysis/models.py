from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from docsentry.documents.models import DocumentModel, SourceType


class ProviderKind(str, Enum):
    OPENAI = "OPENAI"
    AZURE_OPENAI = "AZURE_OPENAI"
    ANTHROPIC = "ANTHROPIC"
    CUSTOM = "CUSTOM"

    @classmethod
    def parse(cls, value: "str | ProviderKind") -> "ProviderKind":
        """Accept enum names and the lower-case ids stored by the settings UI."""
        if isinstance(value, ProviderKind):
            return value
        aliases = {"azure": cls.AZURE_OPENAI, "azure_openai": cls.AZURE_OPENAI}
        key = value.strip().lower()
        if key in aliases:
            return aliases[key]
        try:
            return cls(key.upper())
        except ValueError:
            raise ValueError(
                f"Unknown LLM provider '{value}'. Choose from: {[k.value for k in cls]}"
            ) from None


class ThreatLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RequestState(str, Enum):
    PENDING = "PENDING"
    SENDING = "SENDING"
    RETRYING = "RETRYING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.SUCCEEDED, RequestState.FAILED, RequestState.CANCELLED)


@dataclass(frozen=True)
class ThreatPlatformConfig:
    base_url: str
    api_key: str = ""


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable provider settings passed into every orchestrator call."""

    provider: ProviderKind
    endpoint: str = ""
    api_key: str = ""
    model: str = ""
    timeout_seconds: float = 30.0
    max_attempts: int = 3
    backoff_seconds: float = 1.0
    max_backoff_seconds: float = 8.0
    temperature: float = 0.3
    max_tokens: int = 2000
    threat_platform: ThreatPlatformConfig | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")


@dataclass(frozen=True)
class AnalysisRequest:
    """One analysis invocation; the document must be fully parsed beforehand."""

    content: DocumentModel
    prompt: str = ""
    source_type: SourceType | None = None


@dataclass(frozen=True)
class Threat:
    type: str
    description: str
    level: ThreatLevel = ThreatLevel.MEDIUM
    impact: str = ""


@dataclass(frozen=True)
class TestScenario:
    __test__ = False

    category: str
    description: str
    steps: tuple[str, ...] = ()
    expected_result: str = ""


@dataclass(frozen=True)
class AnalysisResult:
    summary: str = ""
    assets: tuple[str, ...] = ()
    threats: tuple[Threat, ...] = ()
    test_scenarios: tuple[TestScenario, ...] = ()
    recommendations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the externally visible camelCase contract."""
        return {
            "summary": self.summary,
            "assets": list(self.assets),
            "threats": [
                {
                    "type": t.type,
                    "description": t.description,
                    "level": t.level.value,
                    "impact": t.impact,
                }
                for t in self.threats
            ],
            "testScenarios": [
                {
                    "category": s.category,
                    "description": s.description,
                    "steps": list(s.steps),
                    "expectedResult": s.expected_result,
                }
                for s in self.test_scenarios
            ],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class AnalysisError:
    """Terminal failure of an analysis call, tagged with its error kind."""

    kind: str
    message: str
    state: RequestState
    request_id: int = 0
    attempts: int = 0
    status_code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "kind": self.kind,
            "message": self.message,
            "state": self.state.value,
            "requestId": self.request_id,
            "attempts": self.attempts,
        }
        if self.status_code is not None:
            payload["statusCode"] = self.status_code
        return payload


@dataclass(frozen=True)
class ConnectionCheck:
    success: bool
    detail: str


@dataclass(frozen=True)
class ProviderRequest:
    """A fully built HTTP call for one provider."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)
