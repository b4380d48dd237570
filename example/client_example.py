"""
Minimal generateContent client wrapped with automatic 402 recovery.

    HALO_WALLET_PRIVATE_KEY=0x... HALO_API_KEY=... python example/client_example.py
"""

import asyncio

import httpx

from x402_halo import HaloConfig, halo_system


class ApiError(Exception):
    def __init__(self, response: httpx.Response):
        super().__init__(f"{response.status_code} {response.reason_phrase}: {response.text}")
        self.response = response


class GenerativeModel:
    def __init__(self, config: HaloConfig):
        self._config = config

    async def generate_content(self, prompt: str) -> dict:
        async with httpx.AsyncClient(timeout=httpx.Timeout(60.0, read=120.0)) as client:
            response = await client.post(
                self._config.generate_url,
                params={"key": self._config.api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
            )
        if response.is_error:
            raise ApiError(response)
        return response.json()


async def main():
    config = HaloConfig.from_env()
    model = halo_system(GenerativeModel(config), config, methods=["generate_content"])
    return await model.generate_content("Explain HTTP 402 in one sentence.")


if __name__ == "__main__":
    result = asyncio.run(main())
    print("Response:", result.text if hasattr(result, "text") else result)
