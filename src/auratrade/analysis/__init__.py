"""Signal generation and the analyst collaborator interface."""
from .base import AnalysisError, AnalysisErrorKind, AnalysisResult, Analyst
from .signals import SignalGenerator, SignalState

__all__ = [
    "AnalysisError",
    "AnalysisErrorKind",
    "AnalysisResult",
    "Analyst",
    "SignalGenerator",
    "SignalState",
]
