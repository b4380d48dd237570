"""
402 Payment Recovery Interceptor

Wraps the methods of an API client so that a 402 failure is paid for and
retried transparently. Any other failure, and every success, passes through
untouched.

Recovery flow for a payment-required failure:
    1. Extract the payment terms from the failure
    2. Approve: automatically when a signing key is configured, otherwise
       by asking the judge
    3. Sign an ERC-3009 authorization
    4. Resubmit the original request with the ``Payment-Signature`` header
    5. Return a response shaped like the wrapped API's own success result

Calls are independent: two overlapping calls that both hit a 402 each sign
their own authorization. Callers that need at most one payment per logical
operation must serialize those calls themselves.
"""

import functools
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional

import httpx

from ..config import HaloConfig
from ..engine.exceptions import ConfigurationError, JudgeDenied, RecoveryError
from ..engine.states import RecoverySession, RecoveryState
from .extractors import RequirementExtractor, error_message
from .judge import JudgeClient
from .responses import RecoveredResponse
from .retry import RetryExecutor
from .tools import HaloPaymentTools

logger = logging.getLogger(__name__)

PAYMENT_REQUIRED_STATUS = 402
_MESSAGE_MARKERS = ("402", "Payment Required")
DEFAULT_METHODS = ("generate_content",)


class FailureClass(str, Enum):
    PAYMENT_REQUIRED = "payment_required"
    NOT_PAYMENT_REQUIRED = "not_payment_required"


def _as_status(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def failure_statuses(error: BaseException) -> List[int]:
    """
    Every HTTP-like status found on ``error``.

    Looks at ``error.response.status_code`` / ``.status`` (object or dict
    response) and at ``status_code``, ``status`` and ``code`` on the error.
    """
    raw: List[Any] = []
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        raw.extend([response.get("status_code"), response.get("status")])
    elif response is not None:
        raw.extend([getattr(response, "status_code", None), getattr(response, "status", None)])
    raw.extend(getattr(error, name, None) for name in ("status_code", "status", "code"))
    return [status for status in (_as_status(value) for value in raw) if status is not None]


class Interceptor:
    """
    Drives 402 recovery for wrapped calls.

    Args:
        config: Shared middleware configuration.
        tools: Judge and signer; built from ``config`` when omitted.
        extractor: Payment-terms extractor.
        executor: Paid-retry executor.
        http_client: Optional shared ``httpx.AsyncClient`` for judge and retry.

    Attributes:
        last_session: ``RecoverySession`` of the most recent recovery, for
            diagnostics. ``None`` until a 402 has been seen. Overlapping calls
            overwrite it, so it is only reliable when calls do not run
            concurrently.
    """

    def __init__(
        self,
        config: HaloConfig,
        *,
        tools: Optional[HaloPaymentTools] = None,
        extractor: Optional[RequirementExtractor] = None,
        executor: Optional[RetryExecutor] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.tools = tools or HaloPaymentTools(config, http_client)
        self.extractor = extractor or RequirementExtractor()
        self.executor = executor or RetryExecutor(config, http_client)
        self.last_session: Optional[RecoverySession] = None

    @staticmethod
    def classify(error: BaseException) -> FailureClass:
        statuses = failure_statuses(error)
        message = error_message(error)
        logger.debug("Error caught. Statuses: %s, Message: %s", statuses, message)
        if PAYMENT_REQUIRED_STATUS in statuses or any(marker in message for marker in _MESSAGE_MARKERS):
            return FailureClass.PAYMENT_REQUIRED
        return FailureClass.NOT_PAYMENT_REQUIRED

    async def invoke(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Call ``method`` and recover from a 402 failure.

        Sync and async methods are both supported; the result of an async
        method is awaited. Failures that are not payment-required are
        re-raised unchanged.
        """
        try:
            result = method(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as error:
            if self.classify(error) is FailureClass.NOT_PAYMENT_REQUIRED:
                raise
            logger.info("402 detected, starting auto-recovery")
            return await self.recover(error, args, kwargs)

    def wrap(self, method: Callable[..., Any]) -> Callable[..., Any]:
        """Return an async callable that forwards to ``method`` through ``invoke``."""

        @functools.wraps(method)
        async def intercepted(*args: Any, **kwargs: Any) -> Any:
            return await self.invoke(method, *args, **kwargs)

        return intercepted

    async def recover(
        self,
        error: BaseException,
        args: Iterable[Any],
        kwargs: Optional[Mapping[str, Any]] = None,
    ) -> RecoveredResponse:
        """
        Run the recovery sequence for a payment-required ``error``.

        Raises:
            ExtractionFailure: No terms could be found on ``error``.
            JudgeDenied: The judge did not approve (keyless config only).
            NoSigningKey: Approved, but no key is configured to pay.
            PaymentSignatureError: The terms could not be signed.
            RetryFailure: The paid resubmission was rejected.
            TransportFailure: Judge or retry request could not complete.
        """
        args = tuple(args)
        session = RecoverySession()
        self.last_session = session
        session.advance(RecoveryState.INTERCEPTED)

        try:
            requirement = self.extractor.extract(error)

            if self.config.fast_track:
                session.advance(RecoveryState.AUTO_APPROVE)
                logger.info("Signing key configured, skipping judge and auto-approving payment")
            else:
                session.advance(RecoveryState.CONSULT)
                decision = await self.tools.consult_judge(
                    requirement.resource_description, requirement.amount_display
                )
                if not JudgeClient.approves(decision):
                    raise JudgeDenied(decision)

            envelope = await self.tools.sign_payment(requirement)
            session.advance(RecoveryState.SIGNED)

            result = await self.executor.retry(envelope, args, self.tools.api_details(), kwargs)
            session.advance(RecoveryState.RETRIED)
            session.advance(RecoveryState.DONE)
            return result
        except Exception as failure:
            if not session.finished:
                session.fail(failure)
            logger.warning("Recovery failed: %s", failure)
            if isinstance(failure, RecoveryError) and failure.__cause__ is None:
                raise failure from error
            raise


class InterceptedModel:
    """
    Adapter exposing the same members as ``target``.

    Intercepted methods become coroutines that recover from 402 failures;
    every other attribute is read straight from ``target``.

    Args:
        target: The API client object to wrap.
        interceptor: Recovery driver.
        methods: Names of the methods to intercept.

    Raises:
        ConfigurationError: If a named method does not exist on ``target``.
    """

    def __init__(self, target: Any, interceptor: Interceptor, methods: Iterable[str] = DEFAULT_METHODS):
        self._target = target
        self._interceptor = interceptor
        self._methods = frozenset(methods)
        for name in self._methods:
            method = getattr(target, name, None)
            if not callable(method):
                raise ConfigurationError(f"{type(target).__name__} has no method {name!r} to intercept")
            setattr(self, name, interceptor.wrap(method))

    @property
    def wrapped(self) -> Any:
        return self._target

    @property
    def interceptor(self) -> Interceptor:
        return self._interceptor

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._target, name)

    def __repr__(self) -> str:
        return f"InterceptedModel({self._target!r}, methods={sorted(self._methods)})"


def halo_system(
    model: Any,
    config: Optional[HaloConfig] = None,
    *,
    methods: Iterable[str] = DEFAULT_METHODS,
    http_client: Optional[httpx.AsyncClient] = None,
) -> InterceptedModel:
    """
    Wrap ``model`` with automatic 402 payment recovery.

    Usage:
        ```python
        model = halo_system(genai_model, HaloConfig(signing_key="0x...", api_key="..."))
        result = await model.generate_content("Explain x402")
        print(result.text)
        ```

    Args:
        model: API client exposing the methods to protect.
        config: Middleware config; ``HaloConfig.from_env()`` when omitted.
        methods: Method names to intercept; ``generate_content`` by default.
        http_client: Optional shared ``httpx.AsyncClient``.
    """
    config = config or HaloConfig.from_env()
    return InterceptedModel(model, Interceptor(config, http_client=http_client), methods)
