import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from vault_accounting.errors import VaultError
from vault_accounting.ledger import MintableToken, generate_address
from vault_accounting.share_math import MAX_UINT256
from vault_accounting.share_vault import ShareVault
from vault_utils.units import parse_units

ACTIONS = ('deposit', 'mint', 'withdraw', 'redeem', 'approve', 'transfer', 'donate')

# Actions whose amount is denominated in shares rather than assets
SHARE_ACTIONS = ('mint', 'redeem', 'approve', 'transfer')

# Step fields each action cannot run without
REQUIRED_FIELDS = {
    'approve': ('spender',),
    'transfer': ('receiver',),
}


@dataclass
class StepResult:
    index: int
    action: str
    account: str
    amount: int
    result: Optional[int] = None
    error: Optional[VaultError] = None
    balances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    total_assets: int = 0
    total_supply: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class Scenario:
    """Replays a scripted sequence of vault operations against a fresh vault.

    Scenario data::

        {
          "asset": {"name": "Mock USD", "symbol": "mUSD", "decimals": 18},
          "vault": {"name": "Share Vault", "symbol": "sVLT", "decimals_offset": 0},
          "accounts": {"alice": "1000"},
          "steps": [
            {"action": "deposit", "account": "alice", "amount": "100"},
            {"action": "redeem", "account": "alice", "amount": "40"}
          ]
        }

    Amounts are whole tokens. Every account approves the vault for an
    unlimited amount of the asset. `receiver`, `owner` and `spender` name
    other accounts; accounts first seen there start with nothing.
    """

    def __init__(self, data: dict):
        asset_config = data.get('asset', {})
        vault_config = data.get('vault', {})
        self.asset = MintableToken(
            asset_config.get('name', 'Mock USD'),
            asset_config.get('symbol', 'mUSD'),
            int(asset_config.get('decimals', 18)),
        )
        self.vault = ShareVault(
            self.asset,
            vault_config.get('name', 'Share Vault'),
            vault_config.get('symbol', 'sVLT'),
            int(vault_config.get('decimals_offset', 0)),
        )
        self.accounts: Dict[str, str] = {}
        for name, funding in data.get('accounts', {}).items():
            address = self._account(name)
            amount = parse_units(funding, self.asset.decimals)
            if amount:
                self.asset.mint(address, amount)
        self.steps: List[dict] = list(data.get('steps', []))

    @classmethod
    def from_file(cls, path: str) -> 'Scenario':
        with open(path) as f:
            return cls(json.load(f))

    def _account(self, name: str) -> str:
        if name not in self.accounts:
            address = generate_address()
            self.accounts[name] = address
            self.asset.approve(self.vault.address, MAX_UINT256, sender=address)
        return self.accounts[name]

    def balances(self) -> Dict[str, Dict[str, int]]:
        return {
            name: {
                'assets': self.asset.balance_of(address),
                'shares': self.vault.balance_of(address),
            }
            for name, address in self.accounts.items()
        }

    def run_step(self, index: int, step: dict) -> StepResult:
        action = step.get('action')
        if action not in ACTIONS:
            raise ValueError(f"Step {index}: action must be one of {list(ACTIONS)}, got: {action}")
        for name in ('account', 'amount') + REQUIRED_FIELDS.get(action, ()):
            if name not in step:
                raise ValueError(f"Step {index}: {action} needs a '{name}' field")

        sender = self._account(step['account'])
        decimals = self.vault.decimals if action in SHARE_ACTIONS else self.asset.decimals
        amount = parse_units(step['amount'], decimals)
        receiver = self._account(step['receiver']) if 'receiver' in step else None
        owner = self._account(step['owner']) if 'owner' in step else None

        outcome = StepResult(index=index, action=action, account=step['account'], amount=amount)
        try:
            if action == 'deposit':
                outcome.result = self.vault.deposit(amount, receiver, sender=sender)
            elif action == 'mint':
                outcome.result = self.vault.mint(amount, receiver, sender=sender)
            elif action == 'withdraw':
                outcome.result = self.vault.withdraw(amount, receiver, owner, sender=sender)
            elif action == 'redeem':
                outcome.result = self.vault.redeem(amount, receiver, owner, sender=sender)
            elif action == 'approve':
                self.vault.approve(self._account(step['spender']), amount, sender=sender)
            elif action == 'transfer':
                self.vault.transfer(self._account(step['receiver']), amount, sender=sender)
            elif action == 'donate':
                # Assets sent straight to the vault raise the share price
                self.asset.transfer(self.vault.address, amount, sender=sender)
        except VaultError as e:
            outcome.error = e

        outcome.balances = self.balances()
        outcome.total_assets = self.vault.total_assets()
        outcome.total_supply = self.vault.total_supply()
        return outcome

    def run(self, stop_on_error: bool = True) -> List[StepResult]:
        results = []
        for index, step in enumerate(self.steps):
            outcome = self.run_step(index, step)
            results.append(outcome)
            if not outcome.ok and stop_on_error:
                break
        return results
