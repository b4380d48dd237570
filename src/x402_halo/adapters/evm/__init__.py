from .standards import EIP712Domain, TransferTypedData, TRANSFER_WITH_AUTHORIZATION_TYPES
from .signatures import (
    PaymentSigner,
    authorization_window,
    build_transfer_typed_data,
    sign_transfer_authorization,
    recover_authorization_signer,
)

__all__ = [
    "EIP712Domain",
    "TransferTypedData",
    "TRANSFER_WITH_AUTHORIZATION_TYPES",
    "PaymentSigner",
    "authorization_window",
    "build_transfer_typed_data",
    "sign_transfer_authorization",
    "recover_authorization_signer",
]
