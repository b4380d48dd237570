"""
Signed payment payload models.

``PaymentAuthorization`` is the ERC-3009 ``transferWithAuthorization``
intent. ``SignedPayload`` is the versioned envelope carried in the
``Payment-Signature`` header:

    {
        "x402Version": 2,
        "accepted": <requirement as received>,
        "payload": {
            "signature": "0x...",
            "authorization": {"from", "to", "value", "validAfter", "validBefore", "nonce"}
        }
    }

Integer fields are serialized as decimal strings so no JSON consumer loses
precision on large amounts.
"""

import re
from typing import Any, Dict, Optional

from pydantic import Field, field_serializer, field_validator

from ..constants import X402_VERSION
from .bases import CanonicalModel, b64decode_json, b64encode_json
from .versions import X402Version

_BYTES32_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


class PaymentAuthorization(CanonicalModel):
    """
    ERC-3009 transfer authorization.

    Attributes:
        authorizer: Signer's address (``from``).
        recipient: Destination address (``to``), the requirement's ``payTo``.
        value: Amount in the asset's smallest unit.
        valid_after: Unix timestamp after which the authorization is valid.
        valid_before: Unix timestamp before which it must be used.
        nonce: 0x-prefixed 32-byte hex string, random per authorization.
        signature: 0x-prefixed 65-byte EIP-712 signature. Not part of the
            wire ``authorization`` object; carried beside it.
    """

    authorizer: str = Field(..., alias="from")
    recipient: str = Field(..., alias="to")
    value: int = Field(..., ge=0)
    valid_after: int = Field(..., alias="validAfter")
    valid_before: int = Field(..., alias="validBefore")
    nonce: str
    signature: Optional[str] = Field(default=None, exclude=True)

    @field_validator("nonce")
    @classmethod
    def _check_nonce(cls, value: str) -> str:
        if not _BYTES32_RE.match(value):
            raise ValueError("nonce must be a 0x-prefixed 32-byte hex string")
        return value

    @field_serializer("value", "valid_after", "valid_before")
    def _as_decimal_string(self, value: int) -> str:
        return str(value)

    def to_message(self) -> Dict[str, Any]:
        """EIP-712 message dict with native integer values, for signing."""
        return {
            "from": self.authorizer,
            "to": self.recipient,
            "value": self.value,
            "validAfter": self.valid_after,
            "validBefore": self.valid_before,
            "nonce": self.nonce,
        }


class ExactPayload(CanonicalModel):
    signature: str
    authorization: PaymentAuthorization


class SignedPayload(CanonicalModel):
    """
    Versioned, transport-ready payment proof.

    Use ``to_base64()`` for the header value and ``from_base64()`` to
    inspect a header produced elsewhere.
    """

    x402_version: int = Field(default=X402_VERSION, alias="x402Version")
    accepted: Dict[str, Any]
    payload: ExactPayload

    @field_validator("x402_version")
    @classmethod
    def _check_version(cls, value: int) -> int:
        return int(X402Version.from_value(value))

    def to_base64(self) -> str:
        return b64encode_json(self.to_dict())

    @classmethod
    def from_base64(cls, token: str) -> "SignedPayload":
        """
        Decode a ``Payment-Signature`` header value.

        Raises:
            ValueError: If the token is not base64 JSON or does not match the schema.
        """
        return cls.model_validate(b64decode_json(token))
