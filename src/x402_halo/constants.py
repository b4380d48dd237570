"""
Protocol and network constants shared across the recovery pipeline.
"""

#: x402 envelope version produced by the signer.
X402_VERSION = 2

#: Base mainnet. The only network payments are signed for.
BASE_CHAIN_ID = 8453

#: EIP-712 domain defaults used when the 402 terms omit ``extra.name`` / ``extra.version``.
DEFAULT_ASSET_NAME = "USD Coin"
DEFAULT_ASSET_VERSION = "2"

#: Authorization window relative to signing time, in seconds.
VALID_AFTER_SKEW = 60
VALID_BEFORE_TTL = 3600

DEFAULT_HALO_URL = "https://api.agihalo.com"
DEFAULT_RPC_URL = "https://mainnet.base.org"
DEFAULT_MODEL = "gemini-3-flash-preview"

# Header names
PAYMENT_REQUIRED_HEADER = "payment-required"
PAYMENT_SIGNATURE_HEADER = "Payment-Signature"
RESCUE_HEADER = "x-halo-rescue"

#: Decision returned by the judge when its reply cannot be parsed.
JUDGE_ERROR_SENTINEL = "ERROR"
