import pytest

from conftest import ONE
from vault_accounting.errors import InsufficientAllowance, InsufficientBalance, ZeroAmount
from vault_accounting.events import filter_events
from vault_accounting.share_math import MAX_UINT256
from vault_accounting.share_vault import ShareVault


def test_redeem_basic(token, vault, alice, deposit_into_vault):
    """Test basic redeem - balances, totals, event."""
    deposit_into_vault(assets=100 * ONE)
    initial_balance = vault.balance_of(alice)
    shares_to_redeem = initial_balance // 2

    expected_assets = vault.preview_redeem(shares_to_redeem)
    assets_redeemed = vault.redeem(shares_to_redeem, sender=alice)

    assert assets_redeemed == expected_assets
    assert vault.balance_of(alice) == initial_balance - shares_to_redeem
    assert vault.total_supply() == initial_balance - shares_to_redeem
    assert token.balance_of(alice) == assets_redeemed

    logs = filter_events(vault, "Withdraw")
    assert len(logs) == 1
    assert logs[0].assets == assets_redeemed
    assert logs[0].shares == shares_to_redeem


def test_redeem_with_owner_and_receiver(token, vault, alice, bob, charlie, deposit_into_vault):
    """Owner's shares burned, receiver gets assets, caller gets nothing."""
    deposit_into_vault(user=alice, assets=100 * ONE)
    vault.approve(bob, MAX_UINT256, sender=alice)

    assets = vault.redeem(20 * ONE, charlie, alice, sender=bob)

    assert vault.balance_of(alice) == 80 * ONE
    assert vault.balance_of(bob) == 0
    assert token.balance_of(charlie) == assets == 20 * ONE
    assert token.balance_of(bob) == 0
    # Unlimited approvals are not spent
    assert vault.allowance(alice, bob) == MAX_UINT256

    logs = filter_events(vault, "Withdraw")
    assert logs[0].sender == bob
    assert logs[0].receiver == charlie
    assert logs[0].owner == alice


def test_redeem_for_owner_without_allowance(vault, alice, bob, deposit_into_vault):
    deposit_into_vault(user=alice)

    with pytest.raises(InsufficientAllowance):
        vault.redeem(1, bob, alice, sender=bob)

    assert vault.balance_of(alice) == 100 * ONE


def test_redeem_more_than_owned(vault, alice, deposit_into_vault):
    deposit_into_vault(assets=100 * ONE)

    with pytest.raises(InsufficientBalance):
        vault.redeem(100 * ONE + 1, sender=alice)

    assert vault.balance_of(alice) == 100 * ONE


def test_redeem_zero_reverts(vault, alice, deposit_into_vault):
    deposit_into_vault()
    with pytest.raises(ZeroAmount):
        vault.redeem(0, sender=alice)


def test_redeem_paying_zero_assets_reverts(token, alice):
    """With more shares than assets, one share is worth less than one asset."""
    vault_offset = ShareVault(token, "Offset Vault", "oVLT", decimals_offset=6)
    token.mint(alice, 10)
    token.approve(vault_offset.address, MAX_UINT256, sender=alice)
    shares = vault_offset.deposit(10, sender=alice)
    assert shares == 10 * 10**6

    with pytest.raises(ZeroAmount):
        vault_offset.redeem(1, sender=alice)

    assert vault_offset.balance_of(alice) == shares


def test_redeem_everything_empties_vault(token, vault, alice, bob, deposit_into_vault):
    deposit_into_vault(user=alice, assets=40 * ONE)
    deposit_into_vault(user=bob, assets=60 * ONE)

    vault.redeem(vault.max_redeem(alice), sender=alice)
    vault.redeem(vault.max_redeem(bob), sender=bob)

    assert vault.total_supply() == 0
    assert vault.total_assets() == 0
    assert token.balance_of(alice) == 40 * ONE
    assert token.balance_of(bob) == 60 * ONE


@pytest.mark.parametrize("shares", [MAX_UINT256 + 1, -1])
def test_redeem_outside_uint256(token, vault, alice, deposit_into_vault, shares):
    deposit_into_vault(user=alice, assets=100 * ONE)

    with pytest.raises(InsufficientBalance) as e:
        vault.redeem(shares, sender=alice)

    assert e.value.balance == 100 * ONE
    assert vault.total_supply() == 100 * ONE
    assert token.balance_of(alice) == 0
