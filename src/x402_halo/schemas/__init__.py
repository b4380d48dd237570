from .bases import CanonicalModel, canonical_json, b64encode_json, b64decode_json
from .requirements import PaymentRequirement, PaymentRequiredResponse, ResourceInfo, parse_amount
from .payloads import PaymentAuthorization, ExactPayload, SignedPayload
from .versions import X402Version

__all__ = [
    "CanonicalModel",
    "canonical_json",
    "b64encode_json",
    "b64decode_json",
    "PaymentRequirement",
    "PaymentRequiredResponse",
    "ResourceInfo",
    "parse_amount",
    "PaymentAuthorization",
    "ExactPayload",
    "SignedPayload",
    "X402Version",
]
