from abc import ABC, abstractmethod
from typing import Dict, Tuple

# Contract function name -> method name
PREVIEW_FUNCTIONS = {
    'convertToShares': 'convert_to_shares',
    'convertToAssets': 'convert_to_assets',
    'previewDeposit': 'preview_deposit',
    'previewMint': 'preview_mint',
    'previewWithdraw': 'preview_withdraw',
    'previewRedeem': 'preview_redeem',
}


class BaseVault(ABC):
    """Abstract read interface of an ERC-4626 share vault."""

    def __init__(self, vault_address: str):
        self.vault_address = vault_address.lower()

    @abstractmethod
    def asset(self) -> str:
        """Address of the underlying asset."""
        pass

    @abstractmethod
    def total_assets(self) -> int:
        pass

    @abstractmethod
    def total_supply(self) -> int:
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def convert_to_shares(self, assets: int) -> int:
        """Shares for `assets`, rounded down."""
        pass

    @abstractmethod
    def convert_to_assets(self, shares: int) -> int:
        """Assets for `shares`, rounded down."""
        pass

    @abstractmethod
    def preview_deposit(self, assets: int) -> int:
        pass

    @abstractmethod
    def preview_mint(self, shares: int) -> int:
        pass

    @abstractmethod
    def preview_withdraw(self, assets: int) -> int:
        pass

    @abstractmethod
    def preview_redeem(self, shares: int) -> int:
        pass

    @abstractmethod
    def get_decimals(self) -> Tuple[int, int]:
        """Get asset and vault share decimals."""
        pass

    def max_withdraw(self, owner: str) -> int:
        return self.convert_to_assets(self.balance_of(owner))

    def max_redeem(self, owner: str) -> int:
        return self.balance_of(owner)

    def price_per_share(self) -> int:
        """Assets paid for one whole share."""
        return self.convert_to_assets(10 ** self.get_decimals()[1])

    def preview(self, function: str, amount: int) -> int:
        """Dispatch a conversion or preview by its contract function name."""
        if function not in PREVIEW_FUNCTIONS:
            raise ValueError(f"Unknown preview function {function}, expected one of {list(PREVIEW_FUNCTIONS)}")
        return getattr(self, PREVIEW_FUNCTIONS[function])(amount)

    def snapshot(self) -> Dict[str, int]:
        """Totals that determine the exchange rate."""
        return {
            'total_assets': self.total_assets(),
            'total_supply': self.total_supply(),
        }
