"""
x402-halo: automatic HTTP 402 payment recovery for metered API clients.
"""

from .config import HaloConfig
from .clients import (
    Interceptor,
    InterceptedModel,
    HaloPaymentTools,
    JudgeClient,
    RecoveredResponse,
    RequirementExtractor,
    RetryExecutor,
    halo_system,
)
from .adapters.evm import PaymentSigner
from .engine.exceptions import (
    HaloError,
    RecoveryError,
    ExtractionFailure,
    JudgeDenied,
    NoSigningKey,
    PaymentSignatureError,
    RetryFailure,
    TransportFailure,
    ConfigurationError,
)
from .schemas import PaymentRequirement, PaymentAuthorization, SignedPayload

__all__ = [
    "HaloConfig",
    "Interceptor",
    "InterceptedModel",
    "HaloPaymentTools",
    "JudgeClient",
    "RecoveredResponse",
    "RequirementExtractor",
    "RetryExecutor",
    "halo_system",
    "PaymentSigner",
    "HaloError",
    "RecoveryError",
    "ExtractionFailure",
    "JudgeDenied",
    "NoSigningKey",
    "PaymentSignatureError",
    "RetryFailure",
    "TransportFailure",
    "ConfigurationError",
    "PaymentRequirement",
    "PaymentAuthorization",
    "SignedPayload",
]
