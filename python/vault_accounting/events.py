from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Transfer:
    sender: str
    receiver: str
    value: int


@dataclass(frozen=True)
class Approval:
    owner: str
    spender: str
    value: int


@dataclass(frozen=True)
class Deposit:
    sender: str
    owner: str
    assets: int
    shares: int


@dataclass(frozen=True)
class Withdraw:
    sender: str
    receiver: str
    owner: str
    assets: int
    shares: int


def filter_events(source, name: str) -> List:
    """Return the events of one kind recorded by a ledger or vault, oldest first."""
    return [event for event in source.events if type(event).__name__ == name]
