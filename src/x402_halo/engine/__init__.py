from .exceptions import (
    HaloError,
    RecoveryError,
    ExtractionFailure,
    JudgeDenied,
    NoSigningKey,
    PaymentSignatureError,
    RetryFailure,
    TransportFailure,
    ConfigurationError,
    InvalidTransition,
)
from .states import RecoveryState, RecoverySession, TERMINAL_STATES

__all__ = [
    "HaloError",
    "RecoveryError",
    "ExtractionFailure",
    "JudgeDenied",
    "NoSigningKey",
    "PaymentSignatureError",
    "RetryFailure",
    "TransportFailure",
    "ConfigurationError",
    "InvalidTransition",
    "RecoveryState",
    "RecoverySession",
    "TERMINAL_STATES",
]
