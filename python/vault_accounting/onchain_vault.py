from typing import Dict, Optional, Tuple

from vault_accounting.base_vault import BaseVault
from vault_accounting.share_vault import ShareVault
from vault_utils.encoding import EncodingHelper


class OnchainVault(BaseVault):
    """ERC-4626 vault deployed on chain, read through a Web3Helper."""

    def __init__(self, vault_address: str, web3_helper):
        super().__init__(vault_address)
        self.web3_helper = web3_helper
        self._asset: Optional[str] = None

    def _uint(self, function_signature: str, *args) -> int:
        return self.web3_helper.call_uint(self.vault_address, function_signature, args)

    def asset(self) -> str:
        if self._asset is None:
            self._asset = self.web3_helper.call_address(self.vault_address, 'asset()')
        return self._asset

    def total_assets(self) -> int:
        return self._uint('totalAssets()')

    def total_supply(self) -> int:
        return self._uint('totalSupply()')

    def balance_of(self, account: str) -> int:
        return self._uint('balanceOf(address)', account)

    def allowance(self, owner: str, spender: str) -> int:
        return self._uint('allowance(address,address)', owner, spender)

    def convert_to_shares(self, assets: int) -> int:
        return self._uint('convertToShares(uint256)', assets)

    def convert_to_assets(self, shares: int) -> int:
        return self._uint('convertToAssets(uint256)', shares)

    def preview_deposit(self, assets: int) -> int:
        return self._uint('previewDeposit(uint256)', assets)

    def preview_mint(self, shares: int) -> int:
        return self._uint('previewMint(uint256)', shares)

    def preview_withdraw(self, assets: int) -> int:
        return self._uint('previewWithdraw(uint256)', assets)

    def preview_redeem(self, shares: int) -> int:
        return self._uint('previewRedeem(uint256)', shares)

    def max_withdraw(self, owner: str) -> int:
        return self._uint('maxWithdraw(address)', owner)

    def max_redeem(self, owner: str) -> int:
        return self._uint('maxRedeem(address)', owner)

    def get_decimals(self) -> Tuple[int, int]:
        """Get asset and vault share decimals."""
        asset_decimals = self.web3_helper.call_uint(self.asset(), 'decimals()')
        vault_share_decimals = self._uint('decimals()')
        return asset_decimals, vault_share_decimals

    def asset_balance_of(self, account: str) -> int:
        return self.web3_helper.call_uint(self.asset(), 'balanceOf(address)', [account])

    def asset_allowance(self, owner: str) -> int:
        """Assets `owner` has approved the vault to pull."""
        return self.web3_helper.call_uint(self.asset(), 'allowance(address,address)', [owner, self.vault_address])

    def check_asset_invariant(self) -> Tuple[bool, int, int]:
        """Compare totalAssets() with the asset balance the vault actually holds."""
        total_assets = self.total_assets()
        held = self.asset_balance_of(self.vault_address)
        return total_assets == held, total_assets, held

    def build_deposit_call(self, assets: int, receiver: str) -> Tuple[str, bytes]:
        return self.vault_address, EncodingHelper.encode_deposit(assets, receiver)

    def build_mint_call(self, shares: int, receiver: str) -> Tuple[str, bytes]:
        return self.vault_address, EncodingHelper.encode_mint(shares, receiver)

    def build_withdraw_call(self, assets: int, receiver: str, owner: str) -> Tuple[str, bytes]:
        return self.vault_address, EncodingHelper.encode_withdraw(assets, receiver, owner)

    def build_redeem_call(self, shares: int, receiver: str, owner: str) -> Tuple[str, bytes]:
        return self.vault_address, EncodingHelper.encode_redeem(shares, receiver, owner)

    def build_approve_call(self, amount: int) -> Tuple[str, bytes]:
        """Asset approval letting the vault pull `amount`."""
        return self.asset(), EncodingHelper.encode_approve(self.vault_address, amount)

    def to_local(self, sender: str, owner: Optional[str] = None) -> ShareVault:
        """Mirror the deployed totals into a ShareVault for offline simulation.

        `sender` gets its on-chain asset balance and vault allowance;
        `owner` (defaults to `sender`) gets its share balance, and its share
        allowance to `sender` when the two differ.

        The mirror converts with OpenZeppelin's virtual-offset math (one
        virtual asset, 10**offset virtual shares). A deployed vault that
        converts without the virtual asset can differ from the mirror by
        rounding.
        """
        sender = sender.lower()
        owner = (owner or sender).lower()
        asset_decimals, vault_share_decimals = self.get_decimals()

        holdings: Dict[str, int] = {owner: self.balance_of(owner)}
        local = ShareVault.from_snapshot(
            total_assets=self.total_assets(),
            total_supply=self.total_supply(),
            asset_decimals=asset_decimals,
            decimals_offset=max(0, vault_share_decimals - asset_decimals),
            holdings=holdings,
            address=self.vault_address,
        )

        asset_balance = self.asset_balance_of(sender)
        if asset_balance:
            local.asset_token.mint(sender, asset_balance)
        local.asset_token.approve(local.address, self.asset_allowance(sender), sender=sender)
        if owner != sender:
            local.approve(sender, self.allowance(owner, sender), sender=owner)

        local.events.clear()
        local.asset_token.events.clear()
        return local
