"""
Tests for the EvmKit facade, environment configuration and logging setup
"""
import logging

import pytest

from evmkit import EvmKit, EvmKitConfig, setup_logging
from evmkit.config.secrets import SecretManager
from evmkit.core.errors import ConfigurationError
from evmkit.core.multicall import Multicall
from evmkit.core.provider import ProviderManager
from evmkit.erc20.permit2 import Permit2Service
from evmkit.erc20.service import Erc20Service
from evmkit.utils.retry import RetryPolicy

from conftest import TEST_PRIVATE_KEY, FakeWeb3

ENV_VARS = ("RPC_URL", "PRIVATE_KEY", "CHAIN_ID", "RPC_TIMEOUT", "EVMKIT_LOG_LEVEL")


@pytest.fixture
def no_network(monkeypatch):
    monkeypatch.setattr(ProviderManager, "_create_web3", lambda self, rpc_url: FakeWeb3())


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so variables loaded from an env file are undone too
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Keep any .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)


class TestEvmKit:

    def test_builds_services(self, no_network):
        kit = EvmKit(EvmKitConfig(rpc_url="https://eth.llamarpc.com", private_key=TEST_PRIVATE_KEY))

        assert isinstance(kit.erc20, Erc20Service)
        assert isinstance(kit.permit2, Permit2Service)
        assert isinstance(kit.multicall, Multicall)
        manager = kit.get_provider_manager()
        assert manager.default_chain_id == 1
        assert manager.has_signer()
        assert kit.erc20.provider_manager is manager
        assert kit.multicall.provider_manager is manager

    def test_chain_inferred_from_url(self, no_network):
        kit = EvmKit(EvmKitConfig(rpc_url="https://mainnet.base.org"))

        assert kit.get_provider_manager().default_chain_id == 8453

    def test_retry_policy_reaches_multicall(self, no_network):
        policy = RetryPolicy(max_attempts=3)
        kit = EvmKit(EvmKitConfig(rpc_url="https://eth.llamarpc.com"), retry_policy=policy)

        assert kit.multicall.retry_policy is policy

    def test_invalid_url(self, no_network):
        with pytest.raises(ConfigurationError):
            EvmKit(EvmKitConfig(rpc_url="ftp://example.org"))

    @pytest.mark.asyncio
    async def test_close(self, monkeypatch):
        web3 = FakeWeb3()
        monkeypatch.setattr(ProviderManager, "_create_web3", lambda self, rpc_url: web3)
        kit = EvmKit(EvmKitConfig(rpc_url="https://eth.llamarpc.com"))

        await kit.close()

        web3.provider.disconnect.assert_awaited_once()


class TestEnvironment:

    def test_from_env(self, no_network, clean_env, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://polygon-rpc.com")
        monkeypatch.setenv("PRIVATE_KEY", TEST_PRIVATE_KEY)

        kit = EvmKit.from_env()

        manager = kit.get_provider_manager()
        assert manager.default_chain_id == 137
        assert manager.has_signer(137)

    def test_env_file(self, no_network, clean_env, tmp_path):
        env_file = tmp_path / "kit.env"
        env_file.write_text("RPC_URL=https://rpc.example.org\nCHAIN_ID=10\nRPC_TIMEOUT=15\n")

        config = SecretManager(str(env_file)).load_kit_config()

        assert config == EvmKitConfig(rpc_url="https://rpc.example.org", chain_id=10, timeout=15.0)

    def test_log_level_from_env(self, no_network, clean_env, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://eth.llamarpc.com")
        monkeypatch.setenv("EVMKIT_LOG_LEVEL", "debug")
        root_level = logging.getLogger().level

        kit = EvmKit.from_env()

        assert kit.config.log_level == "debug"
        # Carried for the caller's setup_logging, never applied on construction
        assert logging.getLogger().level == root_level

    def test_log_level_unset(self, clean_env, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://eth.llamarpc.com")

        assert SecretManager().load_kit_config().log_level is None

    def test_missing_rpc_url(self, clean_env):
        with pytest.raises(ConfigurationError, match="RPC_URL"):
            EvmKit.from_env()

    def test_invalid_chain_id(self, clean_env, monkeypatch):
        monkeypatch.setenv("RPC_URL", "https://eth.llamarpc.com")
        monkeypatch.setenv("CHAIN_ID", "mainnet")

        with pytest.raises(ConfigurationError, match="CHAIN_ID"):
            EvmKit.from_env()

    def test_empty_private_key_is_none(self, clean_env, monkeypatch):
        monkeypatch.setenv("PRIVATE_KEY", "")

        assert SecretManager().get_private_key() is None


def test_setup_logging_quiets_libraries():
    setup_logging("DEBUG")

    assert logging.getLogger("web3").level == logging.WARNING
    assert logging.getLogger("asyncio").level == logging.WARNING
