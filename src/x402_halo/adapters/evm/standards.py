from dataclasses import dataclass, field
from typing import Dict, Any, List


# -----------------------------
# EIP-712 Domain
# -----------------------------

@dataclass
class EIP712Domain:
    """
    EIP-712 domain separator for the token being transferred.
    Binds a signature to one token contract on one network.
    """
    name: str
    version: str
    chainId: int
    verifyingContract: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "chainId": self.chainId,
            "verifyingContract": self.verifyingContract,
        }


# -----------------------------
# ERC-3009: TransferWithAuthorization
# -----------------------------

TRANSFER_WITH_AUTHORIZATION_TYPES: Dict[str, List[Dict[str, str]]] = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "TransferWithAuthorization": [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ],
}


@dataclass
class TransferTypedData:
    """
    Full EIP-712 payload for an ERC-3009 transfer authorization.

    ``message`` is the plain dict produced by
    ``PaymentAuthorization.to_message()``; ``to_dict()`` yields the
    ``{types, primaryType, domain, message}`` layout accepted by
    ``eth_account`` and ``eth_signTypedData_v4``.
    """
    domain: EIP712Domain
    message: Dict[str, Any]

    primary_type: str = "TransferWithAuthorization"
    types: Dict[str, List[Dict[str, str]]] = field(
        default_factory=lambda: {k: list(v) for k, v in TRANSFER_WITH_AUTHORIZATION_TYPES.items()}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "types": self.types,
            "primaryType": self.primary_type,
            "domain": self.domain.to_dict(),
            "message": self.message,
        }
