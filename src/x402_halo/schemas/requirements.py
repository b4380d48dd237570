"""
Payment requirement models.

``PaymentRequirement`` is the canonical form of the terms a server attaches
to a 402 response, whatever shape they arrived in. ``PaymentRequiredResponse``
models the full x402 body (``accepts`` list plus optional ``resource``).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import Field, model_validator

from ..constants import BASE_CHAIN_ID, DEFAULT_ASSET_NAME, DEFAULT_ASSET_VERSION
from .bases import CanonicalModel


def parse_amount(raw: Any) -> int:
    """
    Parse an integer amount in the asset's smallest unit.

    Accepts ints and decimal strings. Floats, booleans, fractional or
    non-numeric strings are rejected.

    Raises:
        ValueError: If ``raw`` is not a non-negative integer value.
    """
    if isinstance(raw, bool) or raw is None:
        raise ValueError(f"amount must be an integer, got {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdigit():
        value = int(raw.strip())
    else:
        raise ValueError(f"amount must be an integer, got {raw!r}")
    if value < 0:
        raise ValueError(f"amount must be non-negative, got {value}")
    return value


class ResourceInfo(CanonicalModel):
    """Resource block sent alongside the requirements (x402 v2)."""

    url: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = Field(default=None, alias="mimeType")


class PaymentRequirement(CanonicalModel):
    """
    Canonical payment terms extracted from a 402 signal.

    ``amount`` is read from ``amount`` or, failing that, ``maxAmountRequired``
    (x402 v1). Domain metadata comes from ``extra.name`` / ``extra.version``
    with USDC defaults. ``chain_id`` is always Base mainnet regardless of what
    the server advertises.

    Attributes:
        pay_to: Destination account.
        asset: Token contract; also the EIP-712 ``verifyingContract``.
        amount: Integer amount in the asset's smallest unit.
        chain_id: Network the authorization is signed for.
        asset_name: EIP-712 domain ``name``.
        asset_version: EIP-712 domain ``version``.
        resource_description: Human-readable description, used for the judge only.
        source: The mapping the requirement was parsed from, echoed back as
            ``accepted`` in the signed envelope.
    """

    pay_to: str = Field(..., alias="payTo")
    asset: str = Field(..., description="Token contract address")
    amount: int = Field(..., ge=0, description="Amount in the asset's smallest unit")
    chain_id: int = Field(default=BASE_CHAIN_ID, exclude=True)
    asset_name: str = Field(default=DEFAULT_ASSET_NAME, alias="assetName")
    asset_version: str = Field(default=DEFAULT_ASSET_VERSION, alias="assetVersion")
    scheme: Optional[str] = None
    network: Optional[str] = None
    max_timeout_seconds: Optional[int] = Field(default=None, alias="maxTimeoutSeconds")
    resource_description: str = Field(default="", exclude=True)
    source: Dict[str, Any] = Field(default_factory=dict, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _normalise_terms(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        terms = dict(data)
        raw_amount = terms.get("amount")
        if raw_amount is None or (isinstance(raw_amount, str) and not raw_amount.strip()):
            raw_amount = terms.get("maxAmountRequired")
        terms["amount"] = parse_amount(raw_amount)

        extra = terms.get("extra")
        if isinstance(extra, dict):
            if extra.get("name") and not terms.get("assetName"):
                terms["assetName"] = extra["name"]
            if extra.get("version") and not terms.get("assetVersion"):
                terms["assetVersion"] = str(extra["version"])

        terms.pop("chain_id", None)
        terms.pop("chainId", None)
        return terms

    @classmethod
    def from_terms(cls, terms: Dict[str, Any], resource_description: str = "") -> "PaymentRequirement":
        """Build a requirement from a raw terms mapping."""
        return cls.model_validate({**terms, "source": dict(terms), "resource_description": resource_description or ""})

    def accepted(self) -> Dict[str, Any]:
        """The terms as the server sent them, for the envelope's ``accepted`` field."""
        if self.source:
            return dict(self.source)
        terms = {
            "scheme": self.scheme,
            "network": self.network,
            "asset": self.asset,
            "payTo": self.pay_to,
            "amount": str(self.amount),
            "maxTimeoutSeconds": self.max_timeout_seconds,
            "extra": {"name": self.asset_name, "version": self.asset_version},
        }
        return {key: value for key, value in terms.items() if value is not None}

    @property
    def amount_display(self) -> str:
        return str(self.amount)


class PaymentRequiredResponse(CanonicalModel):
    """
    Full x402 402 body: ``{x402Version, accepts: [...], resource?, error?}``.

    Only ``accepts`` is required; the first entry is the one that gets paid.
    """

    x402_version: Optional[int] = Field(default=None, alias="x402Version")
    accepts: List[Dict[str, Any]] = Field(..., min_length=1)
    resource: Optional[Union[ResourceInfo, str]] = None
    error: Optional[str] = None

    def first_requirement(self) -> PaymentRequirement:
        return PaymentRequirement.from_terms(self.accepts[0], self.resource_description())

    def resource_description(self) -> str:
        if isinstance(self.resource, ResourceInfo) and self.resource.description:
            return self.resource.description
        return self.accepts[0].get("description") or ""
