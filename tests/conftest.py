import os
from datetime import timedelta

import pytest
from hypothesis import settings, Phase

from vault_accounting.ledger import MintableToken, generate_address
from vault_accounting.share_math import MAX_UINT256
from vault_accounting.share_vault import ShareVault


settings.register_profile("no-shrink", settings(phases=list(Phase)[:4]), deadline=timedelta(seconds=1000))
settings.register_profile("default", deadline=timedelta(seconds=1000))
settings.load_profile(os.getenv(u"HYPOTHESIS_PROFILE", "default"))


ONE = 10**18

# Contract function name -> attribute on the in-memory vault or token
CALL_MAP = {
    'totalAssets': 'total_assets',
    'totalSupply': 'total_supply',
    'balanceOf': 'balance_of',
    'allowance': 'allowance',
    'convertToShares': 'convert_to_shares',
    'convertToAssets': 'convert_to_assets',
    'previewDeposit': 'preview_deposit',
    'previewMint': 'preview_mint',
    'previewWithdraw': 'preview_withdraw',
    'previewRedeem': 'preview_redeem',
    'maxWithdraw': 'max_withdraw',
    'maxRedeem': 'max_redeem',
}


class FakeWeb3Helper:
    """Answers eth_call style reads from an in-memory vault instead of an RPC node."""

    def __init__(self, vault: ShareVault, account_address=None):
        self.vault = vault
        self.account_address = account_address
        self.sent = []

    def _target(self, address: str):
        if address.lower() == self.vault.address:
            return self.vault
        if address.lower() == self.vault.asset_token.address:
            return self.vault.asset_token
        raise ValueError(f"No contract at {address}")

    def call_uint(self, address, function_signature, args=()):
        target = self._target(address)
        name = function_signature.split('(')[0]
        if name == 'decimals':
            return target.decimals
        return getattr(target, CALL_MAP[name])(*args)

    def call_address(self, address, function_signature, args=()):
        assert function_signature == 'asset()'
        return self._target(address).asset()

    def send_transaction(self, to, data):
        self.sent.append((to, data))
        return {'status': 1, 'blockNumber': len(self.sent), 'transactionHash': bytes([len(self.sent)]) * 32}


@pytest.fixture
def alice():
    return generate_address()


@pytest.fixture
def bob():
    return generate_address()


@pytest.fixture
def charlie():
    return generate_address()


@pytest.fixture
def token():
    return MintableToken("Mock USD", "mUSD", 18)


@pytest.fixture
def vault(token):
    return ShareVault(token, "Share Vault", "sVLT")


@pytest.fixture
def fund(token, vault):
    """Mint assets to a user and approve the vault for all of them."""
    def f(user, amount=1000 * ONE, approve=MAX_UINT256):
        token.mint(user, amount)
        token.approve(vault.address, approve, sender=user)
    return f


@pytest.fixture
def deposit_into_vault(vault, fund, alice):
    def f(user=None, assets=100 * ONE):
        user = user or alice
        fund(user, assets)
        return vault.deposit(assets, sender=user)
    return f
