"""
EVM Off-Chain Signing Utilities

Local EIP-712 signing for ERC-3009 ``transferWithAuthorization``. All
cryptographic operations are performed in-process using ``eth_account``;
no RPC calls or on-chain state queries are made.

Exported helpers
----------------
build_transfer_typed_data
    Wrap a ``PaymentAuthorization`` in its EIP-712 envelope without signing.
    Useful when the signing step is handled externally (hardware wallet,
    TEE, MPC service).

sign_transfer_authorization
    Build and sign a fresh authorization for a ``PaymentRequirement``.

recover_authorization_signer
    Recover the signing address from a ``SignedPayload``.

PaymentSigner
    Key-holding signer used by the recovery pipeline; produces the base64
    ``Payment-Signature`` envelope.
"""

import logging
import os
import time
from typing import Callable, Optional, Tuple

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import to_checksum_address, to_hex

from ...constants import BASE_CHAIN_ID, DEFAULT_RPC_URL, VALID_AFTER_SKEW, VALID_BEFORE_TTL
from ...engine.exceptions import ConfigurationError, NoSigningKey, PaymentSignatureError
from ...schemas.payloads import ExactPayload, PaymentAuthorization, SignedPayload
from ...schemas.requirements import PaymentRequirement
from .standards import EIP712Domain, TransferTypedData

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Low-level typed-data builder
# ---------------------------------------------------------------------------

def build_transfer_typed_data(
    authorization: PaymentAuthorization,
    *,
    asset: str,
    chain_id: int,
    domain_name: str,
    domain_version: str,
) -> TransferTypedData:
    """
    Wrap a ``PaymentAuthorization`` in an EIP-712 envelope without signing.

    Args:
        authorization:  Authorization to sign (its ``signature`` is ignored).
        asset:          Token contract, used as ``verifyingContract``.
        chain_id:       EVM network ID.
        domain_name:    EIP-712 domain ``name`` (e.g. ``"USD Coin"``).
        domain_version: EIP-712 domain ``version`` (e.g. ``"2"``).

    Returns:
        ``TransferTypedData`` whose ``to_dict()`` is compatible with
        ``eth_account`` and ``eth_signTypedData_v4``.
    """
    domain = EIP712Domain(
        name=domain_name,
        version=domain_version,
        chainId=chain_id,
        verifyingContract=to_checksum_address(asset),
    )
    message = authorization.to_message()
    message["from"] = to_checksum_address(message["from"])
    message["to"] = to_checksum_address(message["to"])
    return TransferTypedData(domain=domain, message=message)


def authorization_window(now: float) -> Tuple[int, int]:
    """Return ``(valid_after, valid_before)`` for a signature made at ``now``."""
    issued_at = int(now)
    return issued_at - VALID_AFTER_SKEW, issued_at + VALID_BEFORE_TTL


# ---------------------------------------------------------------------------
# ERC-3009 signer
# ---------------------------------------------------------------------------

def sign_transfer_authorization(
    *,
    private_key: str,
    requirement: PaymentRequirement,
    chain_id: int = BASE_CHAIN_ID,
    now: Optional[float] = None,
    nonce: Optional[str] = None,
) -> PaymentAuthorization:
    """
    Sign an ERC-3009 ``transferWithAuthorization`` for ``requirement``.

    The window is ``[now - 60, now + 3600]`` and the nonce is 32 random
    bytes unless one is supplied, so two calls for the same requirement
    never produce the same authorization.

    Args:
        private_key: Hex-encoded secp256k1 key (with or without ``0x``).
        requirement: Terms to pay.
        chain_id:    EVM network ID; Base mainnet by default.
        now:         Signing time as a Unix timestamp; ``time.time()`` when omitted.
        nonce:       Optional bytes32 hex string.

    Returns:
        ``PaymentAuthorization`` with ``signature`` populated (0x-prefixed, 65 bytes).

    Raises:
        PaymentSignatureError: If the terms carry malformed addresses or
            signing fails.
    """
    account = Account.from_key(private_key)
    valid_after, valid_before = authorization_window(time.time() if now is None else now)

    try:
        authorization = PaymentAuthorization(
            authorizer=account.address,
            recipient=to_checksum_address(requirement.pay_to),
            value=requirement.amount,
            valid_after=valid_after,
            valid_before=valid_before,
            nonce=nonce if nonce is not None else "0x" + os.urandom(32).hex(),
        )
        typed_data = build_transfer_typed_data(
            authorization,
            asset=requirement.asset,
            chain_id=chain_id,
            domain_name=requirement.asset_name,
            domain_version=requirement.asset_version,
        )
        signed = Account.sign_typed_data(private_key, full_message=typed_data.to_dict())
    except ValueError as e:
        raise PaymentSignatureError(f"Cannot sign authorization: {e}") from e

    authorization.signature = to_hex(signed.signature)
    return authorization


def recover_authorization_signer(payload: SignedPayload, chain_id: int = BASE_CHAIN_ID) -> str:
    """
    Recover the address that signed ``payload``.

    The EIP-712 domain is rebuilt from ``payload.accepted`` exactly the way
    the signer built it, so a mismatch in domain metadata yields a different
    address rather than an error.

    Returns:
        Checksummed address of the signer.
    """
    requirement = PaymentRequirement.from_terms(payload.accepted)
    typed_data = build_transfer_typed_data(
        payload.payload.authorization,
        asset=requirement.asset,
        chain_id=chain_id,
        domain_name=requirement.asset_name,
        domain_version=requirement.asset_version,
    )
    signable = encode_typed_data(full_message=typed_data.to_dict())
    return Account.recover_message(signable, signature=payload.payload.signature)


# ---------------------------------------------------------------------------
# Pipeline signer
# ---------------------------------------------------------------------------

class PaymentSigner:
    """
    Produces ``Payment-Signature`` envelopes for 402 recovery.

    Holds the signing key for the lifetime of the process; the key is never
    logged or serialized. Without a key the signer can still be constructed
    (so a keyless configuration can reach the judge) but ``sign`` raises
    ``NoSigningKey``.

    Usage:
        ```python
        signer = PaymentSigner(signing_key="0x...")
        header_value = await signer.sign(requirement)
        ```
    """

    def __init__(
        self,
        signing_key: Optional[str] = None,
        *,
        chain_id: int = BASE_CHAIN_ID,
        rpc_url: str = DEFAULT_RPC_URL,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            signing_key: Optional hex private key.
            chain_id: Network authorizations are signed for.
            rpc_url: Network endpoint associated with the signer.
            clock: Source of the current Unix time.

        Raises:
            ConfigurationError: If ``signing_key`` is not a valid private key.
        """
        self._signing_key = signing_key or None
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self._clock = clock
        self._address: Optional[str] = None
        if self._signing_key:
            try:
                self._address = Account.from_key(self._signing_key).address
            except Exception as e:
                raise ConfigurationError("signing_key is not a valid private key") from e

    @property
    def address(self) -> Optional[str]:
        return self._address

    @property
    def can_sign(self) -> bool:
        return self._signing_key is not None

    def build_payload(self, requirement: PaymentRequirement) -> SignedPayload:
        """
        Sign ``requirement`` and wrap the result in a ``SignedPayload``.

        Raises:
            NoSigningKey: If no signing key is configured.
            PaymentSignatureError: If signing fails.
        """
        if not self._signing_key:
            raise NoSigningKey("No private key for signing.")

        authorization = sign_transfer_authorization(
            private_key=self._signing_key,
            requirement=requirement,
            chain_id=self.chain_id,
            now=self._clock(),
        )
        logger.debug(
            "Signed authorization of %s to %s (validBefore=%s)",
            authorization.value,
            authorization.recipient,
            authorization.valid_before,
        )
        return SignedPayload(
            accepted=requirement.accepted(),
            payload=ExactPayload(signature=authorization.signature, authorization=authorization),
        )

    async def sign(self, requirement: PaymentRequirement) -> str:
        """Return the base64 envelope for ``requirement``."""
        return self.build_payload(requirement).to_base64()
