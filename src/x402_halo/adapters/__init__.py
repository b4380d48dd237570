from .evm import PaymentSigner, sign_transfer_authorization, recover_authorization_signer

__all__ = [
    "PaymentSigner",
    "sign_transfer_authorization",
    "recover_authorization_signer",
]
