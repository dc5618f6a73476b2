from docsentry.analysis.normalizer import ResultNormalizer
from docsentry.analysis.orchestrator import AnalysisHandle, AnalysisOrchestrator
from docsentry.analysis.provider_factory import ProviderFactory

__all__ = ["AnalysisHandle", "AnalysisOrchestrator", "ProviderFactory", "ResultNormalizer"]
