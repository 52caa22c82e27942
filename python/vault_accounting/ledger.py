import secrets
from typing import Dict, List, Optional, Tuple

from vault_accounting.errors import InsufficientAllowance, InsufficientBalance
from vault_accounting.events import Approval, Transfer
from vault_accounting.share_math import MAX_UINT256, is_uint256

ZERO_ADDRESS = "0x" + "00" * 20


def generate_address() -> str:
    """Random 20-byte address in lowercase hex."""
    return "0x" + secrets.token_hex(20)


def _check_amount(amount: int) -> int:
    if not is_uint256(amount):
        raise ValueError(f"Amount must be a uint256 integer, got: {amount!r}")
    return amount


class FungibleToken:
    """In-memory fungible token ledger with ERC-20 semantics.

    Callers are passed explicitly through the keyword-only `sender`
    argument. Every state change is preceded by all of its checks, so a
    raised error leaves balances, allowances and the event log untouched.
    """

    def __init__(self, name: str, symbol: str, decimals: int = 18,
                 address: Optional[str] = None):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.address = (address or generate_address()).lower()
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0
        self.events: List = []

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances.get(account.lower(), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner.lower(), spender.lower()), 0)

    def approve(self, spender: str, amount: int, *, sender: str) -> bool:
        _check_amount(amount)
        owner = sender.lower()
        spender = spender.lower()
        self._allowances[(owner, spender)] = amount
        self.events.append(Approval(owner, spender, amount))
        return True

    def transfer(self, receiver: str, amount: int, *, sender: str) -> bool:
        _check_amount(amount)
        self._check_balance(sender, amount)
        self._move(sender, receiver, amount)
        return True

    def transfer_from(self, owner: str, receiver: str, amount: int, *, sender: str) -> bool:
        _check_amount(amount)
        self._check_allowance(owner, sender, amount)
        self._check_balance(owner, amount)
        self._spend_allowance(owner, sender, amount)
        self._move(owner, receiver, amount)
        return True

    def _check_balance(self, account: str, amount: int):
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(account.lower(), balance, amount)

    def _check_allowance(self, owner: str, spender: str, amount: int):
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(owner.lower(), spender.lower(), allowed, amount)

    def _spend_allowance(self, owner: str, spender: str, amount: int):
        key = (owner.lower(), spender.lower())
        allowed = self._allowances.get(key, 0)
        # Unlimited approvals are never decremented
        if allowed != MAX_UINT256:
            self._allowances[key] = allowed - amount

    def _move(self, sender: str, receiver: str, amount: int):
        sender = sender.lower()
        receiver = receiver.lower()
        self._balances[sender] = self._balances.get(sender, 0) - amount
        self._balances[receiver] = self._balances.get(receiver, 0) + amount
        self.events.append(Transfer(sender, receiver, amount))

    def _mint(self, account: str, amount: int):
        account = account.lower()
        self._balances[account] = self._balances.get(account, 0) + amount
        self._total_supply += amount
        self.events.append(Transfer(ZERO_ADDRESS, account, amount))

    def _burn(self, account: str, amount: int):
        account = account.lower()
        self._balances[account] = self._balances.get(account, 0) - amount
        self._total_supply -= amount
        self.events.append(Transfer(account, ZERO_ADDRESS, amount))


class MintableToken(FungibleToken):
    """Underlying asset for tests and simulations; anyone may mint."""

    def mint(self, account: str, amount: int) -> bool:
        _check_amount(amount)
        if self._total_supply + amount > MAX_UINT256:
            raise ValueError("Total supply would overflow uint256")
        self._mint(account, amount)
        return True
