class VaultError(Exception):
    """Base class for errors raised by vault and ledger operations.

    Raising one of these aborts the operation before any balance changes.
    """
    pass


class ZeroAmount(VaultError):
    """An operation was given, or would settle, a zero quantity."""
    pass


class InsufficientBalance(VaultError):
    """A principal holds fewer shares or assets than the operation needs."""

    def __init__(self, account: str, balance: int, needed: int):
        self.account = account
        self.balance = balance
        self.needed = needed
        super().__init__(f"{account} holds {balance}, needs {needed}")


class InsufficientAllowance(VaultError):
    """A spender is not approved for the amount it tries to move."""

    def __init__(self, owner: str, spender: str, allowance: int, needed: int):
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.needed = needed
        super().__init__(
            f"{spender} is allowed {allowance} by {owner}, needs {needed}"
        )


class InsufficientAllowanceOrBalance(VaultError):
    """Deposit or mint could not pull the required assets from the caller."""

    def __init__(self, caller: str, assets: int, reason: VaultError):
        self.caller = caller
        self.assets = assets
        self.reason = reason
        super().__init__(f"cannot pull {assets} assets from {caller}: {reason}")


class ExceededMax(VaultError):
    """Deposit or mint above max_deposit / max_mint, or past the uint256 share supply."""

    def __init__(self, action: str, receiver: str, amount: int, maximum: int):
        self.action = action
        self.receiver = receiver
        self.amount = amount
        self.maximum = maximum
        super().__init__(f"{action} of {amount} for {receiver} exceeds max {maximum}")
