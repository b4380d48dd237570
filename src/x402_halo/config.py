"""
Recovery middleware configuration.

``HaloConfig`` is built once at startup and handed to every component;
nothing else in the package reads the environment. ``HaloConfig.from_env``
is the bridge for deployments that configure through ``.env`` files or
process environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DEFAULT_HALO_URL, DEFAULT_MODEL, DEFAULT_RPC_URL
from .engine.exceptions import ConfigurationError

#: Environment variable consulted for each option by ``HaloConfig.from_env``.
ENV_VARS: Dict[str, str] = {
    "signing_key": "HALO_WALLET_PRIVATE_KEY",
    "api_key": "HALO_API_KEY",
    "halo_url": "HALO_PROXY_URL",
    "rpc_url": "HALO_RPC_URL",
    "model": "HALO_MODEL",
}


class HaloConfig(BaseModel):
    """
    Options for the recovery middleware.

    Attributes:
        signing_key: Hex private key. Its presence enables fast-track
            (auto-approve) recovery; without it payments can only be judged.
        api_key: Key for the metered API; sent as the ``key`` query parameter.
        halo_url: Base endpoint, trailing slash stripped.
        rpc_url: Network endpoint associated with the signer.
        model: Model path segment used for judge and retry requests.
        timeout: Transport timeout in seconds for judge and retry requests;
            ``None`` waits indefinitely.
    """

    model_config = ConfigDict(frozen=True)

    signing_key: Optional[str] = Field(default=None, repr=False)
    api_key: str = Field(default="", repr=False)
    halo_url: str = DEFAULT_HALO_URL
    rpc_url: str = DEFAULT_RPC_URL
    model: str = DEFAULT_MODEL
    timeout: Optional[float] = Field(default=60.0, gt=0)

    @field_validator("signing_key", mode="before")
    @classmethod
    def _blank_key_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("halo_url", "rpc_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("endpoint URL must not be empty")
        return value

    @property
    def fast_track(self) -> bool:
        """True when a signing key is configured and the judge is skipped."""
        return self.signing_key is not None

    @property
    def generate_url(self) -> str:
        return f"{self.halo_url}/v1beta/models/{self.model}:generateContent"

    def api_details(self) -> Dict[str, str]:
        return {"api_key": self.api_key, "halo_url": self.halo_url}

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None, **overrides: Any) -> "HaloConfig":
        """
        Build a config from explicit overrides, falling back to environment variables.

        Args:
            env_file: Optional ``.env`` file loaded with ``python-dotenv``
                before reading the environment. Existing variables win.
            **overrides: Field values that take precedence over the environment.

        Raises:
            ConfigurationError: If ``env_file`` does not exist or a value is invalid.
        """
        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.exists():
                raise ConfigurationError(f"Config path does not exist: {env_path}")
            load_dotenv(dotenv_path=env_path)
        else:
            load_dotenv()

        values: Dict[str, Any] = {}
        for field_name, env_name in ENV_VARS.items():
            if overrides.get(field_name) is not None:
                values[field_name] = overrides[field_name]
            elif os.getenv(env_name):
                values[field_name] = os.getenv(env_name)
        for field_name, value in overrides.items():
            if field_name not in ENV_VARS and value is not None:
                values[field_name] = value

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e
