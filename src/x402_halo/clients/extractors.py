"""
Payment requirement extraction.

A 402 failure raised by an arbitrary API client can carry its terms in one
of three places. Each location is a strategy; strategies run in order and
the first one that yields a JSON object wins. Nothing is merged across
strategies.

    1. HEADER   base64 JSON in the ``payment-required`` header of ``error.response``
    2. DETAILS  first entry of an array-valued details field (``error_details``,
                ``errorDetails`` or ``details``) that looks like x402 terms
    3. MESSAGE  a ``[{...}]`` JSON blob embedded in the error message
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..constants import PAYMENT_REQUIRED_HEADER
from ..engine.exceptions import ExtractionFailure
from ..schemas.bases import b64decode_json
from ..schemas.requirements import PaymentRequiredResponse, PaymentRequirement

logger = logging.getLogger(__name__)

_DETAILS_ATTRIBUTES = ("error_details", "errorDetails", "details")
_EMBEDDED_JSON_RE = re.compile(r"\[(\{.*\})\]", re.DOTALL)


class TermsSource(str, Enum):
    HEADER = "header"
    DETAILS = "details"
    MESSAGE = "message"


@dataclass(frozen=True)
class ExtractedTerms:
    """Raw terms found on a failure, tagged with where they were found."""
    source: TermsSource
    data: Dict[str, Any]


def error_message(error: BaseException) -> str:
    """Best-effort message text: an explicit ``message`` attribute, else ``str(error)``."""
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def describe_failure(error: BaseException) -> Dict[str, Any]:
    """Snapshot of a failure's type, message and attributes for diagnostics."""
    attributes = {}
    for name, value in getattr(error, "__dict__", {}).items():
        if not name.startswith("_"):
            attributes[name] = repr(value)
    return {
        "type": f"{type(error).__module__}.{type(error).__qualname__}",
        "message": error_message(error),
        "args": [repr(arg) for arg in error.args],
        "attributes": attributes,
    }


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def _lookup_header(headers: Any, name: str) -> Any:
    getter = getattr(headers, "get", None)
    if callable(getter):
        value = getter(name)
        if value:
            return value
    if isinstance(headers, dict):
        for key, value in headers.items():
            if isinstance(key, str) and key.lower() == name:
                return value
    return None


def from_header(error: BaseException) -> Optional[Dict[str, Any]]:
    response = getattr(error, "response", None)
    if response is None:
        return None
    if isinstance(response, dict):
        headers = response.get("headers")
    else:
        headers = getattr(response, "headers", None)
    if headers is None:
        return None

    header = _lookup_header(headers, PAYMENT_REQUIRED_HEADER)
    if not header or not isinstance(header, (str, bytes, bytearray)):
        return None
    try:
        data = b64decode_json(header)
    except ValueError as e:
        logger.warning("Failed to decode %s header: %s", PAYMENT_REQUIRED_HEADER, e)
        return None
    return data if isinstance(data, dict) else None


def from_details(error: BaseException) -> Optional[Dict[str, Any]]:
    for attribute in _DETAILS_ATTRIBUTES:
        details = getattr(error, attribute, None)
        if not isinstance(details, (list, tuple)):
            continue
        if not details:
            return None
        first = details[0]
        if isinstance(first, dict) and ("accepts" in first or "x402Version" in first):
            return first
        return None
    return None


def from_message(error: BaseException) -> Optional[Dict[str, Any]]:
    match = _EMBEDDED_JSON_RE.search(error_message(error))
    if not match:
        return None
    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError:
        logger.debug("Embedded JSON in error message is not parseable")
        return None
    return data if isinstance(data, dict) else None


Strategy = Callable[[BaseException], Optional[Dict[str, Any]]]

DEFAULT_STRATEGIES: Tuple[Tuple[TermsSource, Strategy], ...] = (
    (TermsSource.HEADER, from_header),
    (TermsSource.DETAILS, from_details),
    (TermsSource.MESSAGE, from_message),
)


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class RequirementExtractor:
    """
    Turns a caught 402 failure into a ``PaymentRequirement``.

    Usage:
        ```python
        requirement = RequirementExtractor().extract(error)
        ```
    """

    def __init__(self, strategies: Optional[List[Tuple[TermsSource, Strategy]]] = None):
        self._strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES

    def locate(self, error: BaseException) -> ExtractedTerms:
        """
        Run strategies in order and return the first terms found.

        Raises:
            ExtractionFailure: If every strategy comes up empty. The failure
                carries a diagnostic dump of ``error`` as ``raw``.
        """
        for source, strategy in self._strategies:
            data = strategy(error)
            if data is not None:
                logger.debug("Payment terms found via %s strategy", source.value)
                return ExtractedTerms(source=source, data=data)

        dump = describe_failure(error)
        logger.error("Could not extract payment requirements, failure dump: %s", json.dumps(dump))
        raise ExtractionFailure("Could not extract payment requirements from 402 error", raw=dump)

    @staticmethod
    def normalize(data: Dict[str, Any]) -> PaymentRequirement:
        """
        Reduce a full x402 body or a bare requirement to a ``PaymentRequirement``.

        A body with ``accepts`` pays its first entry and takes the resource
        description from ``resource.description``; anything else is treated
        as the requirement itself.

        Raises:
            ExtractionFailure: If the terms are incomplete, including a missing
                or non-integer amount.
        """
        try:
            if "accepts" in data:
                return PaymentRequiredResponse.model_validate(data).first_requirement()
            resource = data.get("resource")
            if isinstance(resource, dict):
                description = resource.get("description") or ""
            else:
                description = data.get("description") or ""
            return PaymentRequirement.from_terms(data, description)
        except (ValidationError, ValueError) as e:
            raise ExtractionFailure(f"Payment terms are incomplete: {e}", raw=data) from e

    def extract(self, error: BaseException) -> PaymentRequirement:
        return self.normalize(self.locate(error).data)
