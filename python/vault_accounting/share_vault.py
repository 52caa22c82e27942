from typing import Dict, Optional, Tuple

from vault_accounting.base_vault import BaseVault
from vault_accounting.errors import (
    ExceededMax,
    InsufficientAllowance,
    InsufficientAllowanceOrBalance,
    InsufficientBalance,
    ZeroAmount,
)
from vault_accounting.events import Deposit, Withdraw
from vault_accounting.ledger import FungibleToken, MintableToken
from vault_accounting.share_math import MAX_UINT256, Rounding, is_uint256, to_assets, to_shares

# Holds the shares of everybody not named when a vault is rebuilt from totals
OTHER_HOLDERS = "0x" + "ff" * 20


class ShareVault(FungibleToken, BaseVault):
    """Tokenized vault issuing shares against a single underlying asset.

    Shares are a fungible token of their own. Conversions follow the
    ERC-4626 rounding rules, always in the vault's favour:

    * deposit / convert_to_shares / preview_deposit round shares down
    * mint / preview_mint round assets up
    * withdraw / preview_withdraw round shares up
    * redeem / convert_to_assets / preview_redeem round assets down

    An empty vault converts 1:1 (times 10**decimals_offset). The assets
    the vault accounts for are exactly its balance on the asset ledger.
    """

    def __init__(self, asset: FungibleToken, name: str, symbol: str,
                 decimals_offset: int = 0, address: Optional[str] = None):
        FungibleToken.__init__(self, name, symbol, asset.decimals + decimals_offset, address)
        BaseVault.__init__(self, self.address)
        self.asset_token = asset
        self.decimals_offset = decimals_offset

    @classmethod
    def from_snapshot(cls, total_assets: int, total_supply: int, asset_decimals: int = 18,
                      decimals_offset: int = 0, holdings: Optional[Dict[str, int]] = None,
                      address: Optional[str] = None) -> 'ShareVault':
        """Rebuild a vault holding `total_assets` with `total_supply` shares outstanding.

        `holdings` pins the share balance of specific accounts; the rest of
        the supply is parked on OTHER_HOLDERS.
        """
        holdings = holdings or {}
        named = sum(holdings.values())
        if named > total_supply:
            raise ValueError(f"Holdings ({named}) exceed total supply ({total_supply})")

        asset = MintableToken("Underlying", "UND", asset_decimals)
        vault = cls(asset, "Share Vault", "sVLT", decimals_offset, address)
        if total_assets:
            asset.mint(vault.address, total_assets)
        for account, shares in holdings.items():
            if shares:
                vault._mint(account, shares)
        if total_supply > named:
            vault._mint(OTHER_HOLDERS, total_supply - named)
        vault.events.clear()
        return vault

    def asset(self) -> str:
        return self.asset_token.address

    def total_assets(self) -> int:
        return self.asset_token.balance_of(self.address)

    def get_decimals(self) -> Tuple[int, int]:
        return self.asset_token.decimals, self.decimals

    def _convert_to_shares(self, assets: int, rounding: Rounding) -> int:
        return to_shares(assets, self.total_assets(), self.total_supply(), rounding, self.decimals_offset)

    def _convert_to_assets(self, shares: int, rounding: Rounding) -> int:
        return to_assets(shares, self.total_assets(), self.total_supply(), rounding, self.decimals_offset)

    def convert_to_shares(self, assets: int) -> int:
        return self._convert_to_shares(assets, Rounding.DOWN)

    def convert_to_assets(self, shares: int) -> int:
        return self._convert_to_assets(shares, Rounding.DOWN)

    def preview_deposit(self, assets: int) -> int:
        return self._convert_to_shares(assets, Rounding.DOWN)

    def preview_mint(self, shares: int) -> int:
        return self._convert_to_assets(shares, Rounding.UP)

    def preview_withdraw(self, assets: int) -> int:
        return self._convert_to_shares(assets, Rounding.UP)

    def preview_redeem(self, shares: int) -> int:
        return self._convert_to_assets(shares, Rounding.DOWN)

    def max_deposit(self, receiver: str) -> int:
        return MAX_UINT256

    def max_mint(self, receiver: str) -> int:
        return MAX_UINT256

    def deposit(self, assets: int, receiver: Optional[str] = None, *, sender: str) -> int:
        """Pull `assets` from `sender` and credit the resulting shares to `receiver`."""
        receiver = receiver or sender
        self._check_nonzero(assets)
        maximum = min(self.max_deposit(receiver), MAX_UINT256)
        if not 0 < assets <= maximum:
            raise ExceededMax('deposit', receiver, assets, maximum)

        shares = self.preview_deposit(assets)
        if shares == 0:
            raise ZeroAmount(f"Depositing {assets} assets would mint zero shares")
        self._check_supply_headroom('deposit', receiver, shares)

        self._pull_assets(sender, assets)
        self._mint(receiver, shares)
        self.events.append(Deposit(sender.lower(), receiver.lower(), assets, shares))
        return shares

    def mint(self, shares: int, receiver: Optional[str] = None, *, sender: str) -> int:
        """Credit exactly `shares` to `receiver`, pulling preview_mint(shares) from `sender`."""
        receiver = receiver or sender
        self._check_nonzero(shares)
        maximum = min(self.max_mint(receiver), MAX_UINT256)
        if not 0 < shares <= maximum:
            raise ExceededMax('mint', receiver, shares, maximum)
        self._check_supply_headroom('mint', receiver, shares)

        assets = self.preview_mint(shares)
        self._pull_assets(sender, assets)
        self._mint(receiver, shares)
        self.events.append(Deposit(sender.lower(), receiver.lower(), assets, shares))
        return assets

    def withdraw(self, assets: int, receiver: Optional[str] = None,
                 owner: Optional[str] = None, *, sender: str) -> int:
        """Burn preview_withdraw(assets) shares from `owner` and pay `assets` to `receiver`."""
        receiver = receiver or sender
        owner = owner or sender
        self._check_nonzero(assets)
        maximum = self.max_withdraw(owner)
        if not 0 < assets <= maximum:
            raise InsufficientBalance(owner.lower(), maximum, assets)

        shares = self.preview_withdraw(assets)
        self._settle_withdrawal(sender, receiver, owner, assets, shares)
        return shares

    def redeem(self, shares: int, receiver: Optional[str] = None,
               owner: Optional[str] = None, *, sender: str) -> int:
        """Burn `shares` from `owner` and pay convert_to_assets(shares) to `receiver`."""
        receiver = receiver or sender
        owner = owner or sender
        self._check_nonzero(shares)
        maximum = self.max_redeem(owner)
        if not 0 < shares <= maximum:
            raise InsufficientBalance(owner.lower(), maximum, shares)

        assets = self.preview_redeem(shares)
        if assets == 0:
            raise ZeroAmount(f"Redeeming {shares} shares would pay out zero assets")

        self._settle_withdrawal(sender, receiver, owner, assets, shares)
        return assets

    def _check_nonzero(self, amount: int):
        # Out-of-range integers are reported against the operation's max
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValueError(f"Amount must be an integer, got: {amount!r}")
        if amount == 0:
            raise ZeroAmount("Amount must be greater than zero")

    def _check_supply_headroom(self, action: str, receiver: str, shares: int):
        headroom = MAX_UINT256 - self.total_supply()
        if shares > headroom:
            raise ExceededMax(action, receiver, shares, headroom)

    def _pull_assets(self, sender: str, assets: int):
        if not is_uint256(assets):
            # No balance or allowance can cover it
            reason = InsufficientBalance(sender.lower(), self.asset_token.balance_of(sender), assets)
            raise InsufficientAllowanceOrBalance(sender.lower(), assets, reason)
        try:
            self.asset_token.transfer_from(sender, self.address, assets, sender=self.address)
        except (InsufficientAllowance, InsufficientBalance) as e:
            raise InsufficientAllowanceOrBalance(sender.lower(), assets, e) from e

    def _settle_withdrawal(self, sender: str, receiver: str, owner: str, assets: int, shares: int):
        self._check_balance(owner, shares)
        if sender.lower() != owner.lower():
            self._check_allowance(owner, sender, shares)
            self._spend_allowance(owner, sender, shares)

        self._burn(owner, shares)
        self.asset_token.transfer(receiver, assets, sender=self.address)
        self.events.append(Withdraw(sender.lower(), receiver.lower(), owner.lower(), assets, shares))
