"""
Manual payment tools.

For integrations that drive the 402 protocol themselves (a TEE, an agent
framework, a human in the loop): ask the judge, sign, and hand the envelope
to whatever transport makes the paid request.
"""

from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..adapters.evm.signatures import PaymentSigner
from ..config import HaloConfig
from ..schemas.requirements import PaymentRequirement
from .judge import JudgeClient


class HaloPaymentTools:
    """
    Judge and signer bundled behind one config.

    Usage:
        ```python
        tools = HaloPaymentTools(HaloConfig.from_env())
        decision = await tools.consult_judge("Gemini generateContent", "1000000")
        if JudgeClient.approves(decision):
            envelope = await tools.sign_payment(requirement)
        ```
    """

    def __init__(self, config: HaloConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.signer = PaymentSigner(config.signing_key, rpc_url=config.rpc_url)
        self.judge = JudgeClient(config, http_client)

    async def consult_judge(self, context: str, amount: str) -> str:
        """Free advisory query; returns the normalised decision text."""
        return await self.judge.consult(context, amount)

    async def sign_payment(self, requirement: Union[PaymentRequirement, Mapping[str, Any]]) -> str:
        """
        Sign ``requirement`` and return the base64 ``Payment-Signature`` value.

        Raises:
            NoSigningKey: If the config has no signing key.
        """
        if not isinstance(requirement, PaymentRequirement):
            requirement = PaymentRequirement.from_terms(dict(requirement))
        return await self.signer.sign(requirement)

    def api_details(self) -> Dict[str, str]:
        return self.config.api_details()
