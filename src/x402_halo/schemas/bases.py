"""
Base Schema Models for x402-halo

Defines the serialization base shared by every wire model and the base64
JSON helpers used for the ``payment-required`` header and the
``Payment-Signature`` envelope.

Dependencies:
    - pydantic: For data validation and serialization
"""

import base64
import binascii
import json
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Wire field names are declared as aliases so Python code uses snake_case
    attributes while JSON output keeps the protocol's camelCase keys.

    Example:
        class MyModel(CanonicalModel):
            pay_to: str = Field(..., alias="payTo")

        MyModel(pay_to="0xabc").to_canonical_json()  # '{"payTo":"0xabc"}'
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a compact JSON string with sorted keys.

        ``model_dump(mode="json", by_alias=True)`` applies field serializers
        and aliases; ``json.dumps`` then removes whitespace so the output is
        stable for hashing and transport.
        """
        return canonical_json(self.model_dump(mode="json", by_alias=True, exclude_none=True))

    def to_dict(self) -> Dict[str, Any]:
        """Convert model to its wire dictionary (aliases, JSON-safe values)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def canonical_json(data: Any) -> str:
    """RFC8785-ish: sort_keys + no whitespace."""
    return json.dumps(data, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def b64encode_json(data: Any) -> str:
    return base64.b64encode(canonical_json(data).encode("utf-8")).decode("ascii")


def b64decode_json(data: Union[str, bytes]) -> Any:
    """
    Decode a base64 (standard or URL-safe, padding optional) JSON token.

    ``bytes`` tokens are read as ASCII.

    Raises:
        ValueError: If the token is not valid base64 or not valid JSON.
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("ascii")
        except UnicodeDecodeError as e:
            raise ValueError(f"Invalid base64 JSON token: {e}") from e
    token = data.strip()
    padding = "=" * (-len(token) % 4)
    try:
        if "-" in token or "_" in token:
            raw = base64.urlsafe_b64decode(token + padding)
        else:
            raw = base64.b64decode(token + padding, validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"Invalid base64 JSON token: {e}") from e
