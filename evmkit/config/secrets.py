"""
Secret Manager for handling sensitive keys
Loads configuration from environment variables or .env file
"""
import os
from typing import Optional

from dotenv import load_dotenv

from evmkit.config.settings import EvmKitConfig
from evmkit.core.errors import ConfigurationError


class SecretManager:
    """
    Manages access to RPC endpoints and signing keys
    """

    def __init__(self, env_file: Optional[str] = None):
        # Existing environment variables take precedence over the .env file
        load_dotenv(env_file)

    def get_rpc_url(self) -> str | None:
        return os.getenv("RPC_URL")

    def get_private_key(self) -> str | None:
        """Get wallet private key"""
        return os.getenv("PRIVATE_KEY") or None

    def get_chain_id(self) -> int | None:
        raw = os.getenv("CHAIN_ID")
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(f"CHAIN_ID must be an integer, got {raw!r}") from e

    def get_timeout(self) -> float | None:
        raw = os.getenv("RPC_TIMEOUT")
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError as e:
            raise ConfigurationError(f"RPC_TIMEOUT must be a number, got {raw!r}") from e

    def get_log_level(self) -> str | None:
        return os.getenv("EVMKIT_LOG_LEVEL") or None

    def load_kit_config(self) -> EvmKitConfig:
        """Build an EvmKitConfig from the environment. RPC_URL is required."""
        rpc_url = self.get_rpc_url()
        if not rpc_url:
            raise ConfigurationError("RPC_URL is not set")
        return EvmKitConfig(
            rpc_url=rpc_url,
            private_key=self.get_private_key(),
            chain_id=self.get_chain_id(),
            timeout=self.get_timeout(),
            log_level=self.get_log_level(),
        )
