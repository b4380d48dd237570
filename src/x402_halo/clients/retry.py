"""
Paid resubmission of the original request.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence

import httpx

from ..config import HaloConfig
from ..constants import PAYMENT_SIGNATURE_HEADER
from ..engine.exceptions import RetryFailure, TransportFailure
from .responses import RecoveredResponse

logger = logging.getLogger(__name__)


def build_retry_body(original_args: Sequence[Any], original_kwargs: Optional[Mapping[str, Any]] = None) -> Any:
    """
    Rebuild the request body from the wrapped call's arguments.

    A plain string prompt becomes a single-message ``contents`` body; any
    other first argument is assumed to already be in the API's native shape
    and is sent unchanged. With no positional argument the ``contents``
    keyword is used instead.
    """
    if original_args:
        content = original_args[0]
    else:
        content = (original_kwargs or {}).get("contents")
    if isinstance(content, str):
        return {"contents": [{"parts": [{"text": content}]}]}
    return content


class RetryExecutor:
    """
    Reissues a request with a ``Payment-Signature`` header, exactly once.

    Args:
        config: Endpoint, model, API key and transport timeout.
        http_client: Optional shared ``httpx.AsyncClient``.
    """

    def __init__(self, config: HaloConfig, http_client: Optional[httpx.AsyncClient] = None):
        self._config = config
        self._http = http_client

    def _url(self, halo_url: str) -> str:
        return f"{halo_url.rstrip('/')}/v1beta/models/{self._config.model}:generateContent"

    async def retry(
        self,
        signed_payload: str,
        original_args: Sequence[Any],
        api_details: Optional[Dict[str, str]] = None,
        original_kwargs: Optional[Mapping[str, Any]] = None,
    ) -> RecoveredResponse:
        """
        Resubmit the original request with payment proof attached.

        Args:
            signed_payload: Base64 ``SignedPayload`` envelope.
            original_args: Positional arguments of the failed call.
            api_details: ``{"api_key", "halo_url"}``; taken from the config
                when omitted.
            original_kwargs: Keyword arguments of the failed call.

        Returns:
            ``RecoveredResponse`` shaped like the wrapped API's success result.

        Raises:
            RetryFailure: On a non-2xx status or a non-JSON success body.
            TransportFailure: If the request cannot complete.
        """
        details = api_details or self._config.api_details()
        url = self._url(details["halo_url"])
        params = {"key": details["api_key"]}
        headers = {"Content-Type": "application/json", PAYMENT_SIGNATURE_HEADER: signed_payload}
        body = build_retry_body(original_args, original_kwargs)

        logger.info("Retrying with payment proof")
        try:
            if self._http is not None:
                response = await self._http.post(url, params=params, headers=headers, json=body)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout) as http:
                    response = await http.post(url, params=params, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise TransportFailure(f"Retry request failed: {e}", url=url) from e

        if not response.is_success:
            raise RetryFailure(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError:
            raise RetryFailure(response.status_code, response.text) from None
        if not isinstance(data, dict):
            raise RetryFailure(response.status_code, response.text)

        logger.info("Retry succeeded with status %s", response.status_code)
        return RecoveredResponse(data, status_code=response.status_code)
