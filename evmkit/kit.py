"""
EvmKit: one object bundling the provider, token services and the multicall
aggregator
"""
from typing import Optional

from evmkit.config.chains import ChainRegistry
from evmkit.config.secrets import SecretManager
from evmkit.config.settings import EvmKitConfig
from evmkit.core.errors import ConfigurationError
from evmkit.core.multicall import Multicall
from evmkit.core.provider import ProviderManager
from evmkit.erc20.permit2 import Permit2Service
from evmkit.erc20.service import Erc20Service
from evmkit.utils.retry import RetryPolicy
from evmkit.utils.validation import is_valid_rpc_url


class EvmKit:
    """
    Facade over ProviderManager, Erc20Service, Permit2Service and Multicall.

    Usage:
        kit = EvmKit.from_env()
        setup_logging(kit.config.log_level)
        balances = await kit.multicall.get_erc20_batch_balances(owner, [dai, usdc])
        await kit.close()
    """

    def __init__(
        self,
        config: EvmKitConfig,
        registry: Optional[ChainRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        if not is_valid_rpc_url(config.rpc_url):
            raise ConfigurationError(f"Invalid RPC URL: {config.rpc_url!r}")

        self.config = config
        self._provider_manager = ProviderManager(
            config.rpc_url,
            private_key=config.private_key,
            chain_id=config.chain_id,
            registry=registry,
            timeout=config.timeout,
        )
        self.erc20 = Erc20Service(self._provider_manager)
        self.permit2 = Permit2Service(self._provider_manager)
        self.multicall = Multicall(self._provider_manager, retry_policy=retry_policy)

    @classmethod
    def from_env(
        cls,
        env_file: Optional[str] = None,
        registry: Optional[ChainRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> "EvmKit":
        """Build from RPC_URL / PRIVATE_KEY / CHAIN_ID / RPC_TIMEOUT"""
        config = SecretManager(env_file).load_kit_config()
        return cls(config, registry=registry, retry_policy=retry_policy)

    def get_provider_manager(self) -> ProviderManager:
        return self._provider_manager

    async def close(self):
        await self._provider_manager.close()
