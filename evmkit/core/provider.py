"""
Per-chain read connections and signing identities
"""
from typing import Optional

import aiohttp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3

from evmkit.config.chains import DEFAULT_REGISTRY, ChainConfig, ChainRegistry, resolve_chain_id
from evmkit.core.errors import (
    ConfigurationError,
    ConnectionNotFoundError,
    SignerNotFoundError,
)
from evmkit.utils.logger import get_logger
from evmkit.utils.validation import is_valid_private_key, is_valid_rpc_url

logger = get_logger(__name__)


class ProviderManager:
    """
    Manages Web3 connections and signers across EVM chains.

    The constructor registers the default chain. Further chains are added with
    ``register_connection``. Registering a chain again replaces its connection
    (last writer wins).
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: Optional[str] = None,
        chain_id: Optional[int] = None,
        registry: Optional[ChainRegistry] = None,
        timeout: Optional[float] = None,
    ):
        if not is_valid_rpc_url(rpc_url):
            raise ConfigurationError(f"Invalid RPC URL: {rpc_url!r}")

        self._registry = registry if registry is not None else DEFAULT_REGISTRY
        self._timeout = timeout
        self._connections: dict[int, AsyncWeb3] = {}
        self._signers: dict[int, LocalAccount] = {}
        self._default_chain_id = resolve_chain_id(rpc_url, chain_id, self._registry)

        self.register_connection(rpc_url, self._default_chain_id, private_key)

    @property
    def default_chain_id(self) -> int:
        return self._default_chain_id

    @property
    def registry(self) -> ChainRegistry:
        return self._registry

    @property
    def chain_ids(self) -> list[int]:
        return sorted(self._connections)

    def resolve(self, chain_id: Optional[int] = None) -> int:
        """Chain id to use for an operation; None means the default chain"""
        return self._default_chain_id if chain_id is None else chain_id

    def _create_web3(self, rpc_url: str) -> AsyncWeb3:
        request_kwargs = {}
        if self._timeout is not None:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(total=self._timeout)
        return AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs=request_kwargs))

    def register_connection(
        self,
        rpc_url: str,
        chain_id: int,
        private_key: Optional[str] = None,
    ) -> None:
        """Add or replace the connection (and optionally the signer) for a chain"""
        if not is_valid_rpc_url(rpc_url):
            raise ConfigurationError(f"Invalid RPC URL: {rpc_url!r}")
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
            raise ConfigurationError(f"Invalid chain ID: {chain_id!r}")

        account = None
        if private_key:
            if not is_valid_private_key(private_key):
                raise ConfigurationError("Invalid private key")
            if not private_key.startswith("0x"):
                private_key = "0x" + private_key
            account = Account.from_key(private_key)

        self._connections[chain_id] = self._create_web3(rpc_url)
        if account is not None:
            self._signers[chain_id] = account
            logger.debug(
                f"Signer {account.address[:6]}...{account.address[-4:]} registered for chain {chain_id}"
            )
        logger.debug(f"Connection registered for chain {chain_id}")

    def get_read_connection(self, chain_id: Optional[int] = None) -> AsyncWeb3:
        chain_id = self.resolve(chain_id)
        web3 = self._connections.get(chain_id)
        if web3 is None:
            raise ConnectionNotFoundError(chain_id)
        return web3

    def get_signing_identity(self, chain_id: Optional[int] = None) -> LocalAccount:
        chain_id = self.resolve(chain_id)
        account = self._signers.get(chain_id)
        if account is None:
            raise SignerNotFoundError(chain_id)
        return account

    def has_signer(self, chain_id: Optional[int] = None) -> bool:
        return self.resolve(chain_id) in self._signers

    def get_chain_info(self, chain_id: int) -> ChainConfig | None:
        return self._registry.get_chain_info(chain_id)

    async def close(self):
        """Close all Web3 providers"""
        for chain_id, web3 in self._connections.items():
            if not hasattr(web3.provider, "disconnect"):
                continue
            try:
                await web3.provider.disconnect()
            except Exception as e:
                logger.warning(f"Failed to close provider for chain {chain_id}: {e}")
