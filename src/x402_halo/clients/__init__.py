"""
Client-side 402 recovery.

Provides the interceptor that wraps an API client, plus the individual
pieces (extractor, judge, retry executor, manual tools) for callers that
want to drive the protocol themselves.
"""

from .extractors import RequirementExtractor, TermsSource, ExtractedTerms
from .interceptor import Interceptor, InterceptedModel, FailureClass, halo_system
from .judge import JudgeClient
from .responses import RecoveredResponse
from .retry import RetryExecutor
from .tools import HaloPaymentTools

__all__ = [
    "RequirementExtractor",
    "TermsSource",
    "ExtractedTerms",
    "Interceptor",
    "InterceptedModel",
    "FailureClass",
    "halo_system",
    "JudgeClient",
    "RecoveredResponse",
    "RetryExecutor",
    "HaloPaymentTools",
]
