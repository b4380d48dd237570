"""
Exception and Error Definitions Module

Defines the exception hierarchy for 402 payment recovery. Every failure
raised during a recovery attempt is terminal: it surfaces to the original
caller and is never retried automatically.

Exception Hierarchy:
    HaloError (root)
    ├── RecoveryError
    │   ├── ExtractionFailure
    │   ├── JudgeDenied
    │   ├── NoSigningKey
    │   ├── PaymentSignatureError
    │   ├── RetryFailure
    │   └── TransportFailure
    ├── ConfigurationError
    └── InvalidTransition
"""

from typing import Any, Optional


class HaloError(Exception):
    """
    Root exception class for all project-specific exceptions.

    Catch this to handle every failure produced by the recovery middleware
    while letting unrelated errors of the wrapped client propagate.
    """
    pass


class RecoveryError(HaloError):
    """
    Base exception for failures inside the 402 recovery sequence.

    Raised in place of the original 402 failure, which is chained as
    ``__cause__`` when available.
    """
    pass


class ExtractionFailure(RecoveryError):
    """
    Raised when no extraction strategy yields payment terms.

    This includes scenarios such as:
    - No ``payment-required`` header on the attached response
    - Details array absent or not carrying x402 terms
    - No parseable JSON object embedded in the error message
    - Terms found but missing a usable amount

    Attributes:
        raw: Diagnostic snapshot of the failure that could not be parsed
    """

    def __init__(self, message: str, raw: Any = None):
        super().__init__(message)
        self.raw = raw


class JudgeDenied(RecoveryError):
    """
    Raised when the advisory judge does not approve the payment.

    Any reply without ``YES`` counts as a denial, including the ``ERROR``
    sentinel produced for unparseable replies.

    Attributes:
        decision: Normalised decision text returned by the judge
    """

    def __init__(self, decision: str):
        super().__init__(f"Judge denied payment (decision: {decision!r})")
        self.decision = decision


class NoSigningKey(RecoveryError):
    """
    Raised when signing is attempted without a configured signing key.

    This is a configuration error: a keyless setup can ask the judge whether
    a payment should happen but can never produce the payment proof itself.
    """
    pass


class PaymentSignatureError(RecoveryError):
    """
    Raised when the typed-data authorization cannot be built or signed.

    This includes scenarios such as:
    - ``payTo`` or ``asset`` is not a valid EVM address
    - The signing backend rejects the typed data
    """
    pass


class RetryFailure(RecoveryError):
    """
    Raised when the paid resubmission returns a non-success status.

    Attributes:
        status_code: HTTP status of the retry response
        body: Raw response body, kept for diagnostics
    """

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Retry failed with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class TransportFailure(RecoveryError):
    """
    Raised when the advisory or retry request cannot complete.

    Wraps the underlying ``httpx`` error, which is chained as ``__cause__``.

    Attributes:
        url: Endpoint that was being called (API key stripped)
    """

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ConfigurationError(HaloError):
    """
    Raised when configuration is missing or invalid.

    This includes scenarios such as:
    - Malformed signing key
    - Empty endpoint URL
    """
    pass


class InvalidTransition(HaloError):
    """
    Raised when the recovery state machine is driven out of order.

    Attributes:
        current_state: State the session was in
        target_state: State that was requested
    """

    def __init__(self, current_state: Any, target_state: Any):
        super().__init__(f"Invalid recovery transition: {current_state} -> {target_state}")
        self.current_state = current_state
        self.target_state = target_state
