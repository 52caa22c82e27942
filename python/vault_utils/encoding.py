from typing import Sequence

from eth_abi import decode, encode
from web3 import Web3


class EncodingHelper:
    """Helper class for ABI encoding operations."""

    @staticmethod
    def function_selector(function_signature: str) -> bytes:
        """First four bytes of keccak256 of a signature like `deposit(uint256,address)`."""
        return Web3.keccak(text=function_signature)[:4]

    @staticmethod
    def argument_types(function_signature: str) -> list[str]:
        """Parse the argument types out of a flat function signature."""
        start = function_signature.index('(')
        inner = function_signature[start + 1:function_signature.rindex(')')]
        return [t.strip() for t in inner.split(',')] if inner.strip() else []

    @staticmethod
    def encode_call(function_signature: str, args: Sequence = ()) -> bytes:
        """Encode call data for a function with flat (non-tuple) arguments."""
        types = EncodingHelper.argument_types(function_signature)
        if len(types) != len(args):
            raise ValueError(f"{function_signature} takes {len(types)} arguments, got {len(args)}")

        selector = EncodingHelper.function_selector(function_signature)
        return selector + encode(types, list(args)) if types else selector

    @staticmethod
    def encode_deposit(assets: int, receiver: str) -> bytes:
        return EncodingHelper.encode_call('deposit(uint256,address)', [assets, receiver])

    @staticmethod
    def encode_mint(shares: int, receiver: str) -> bytes:
        return EncodingHelper.encode_call('mint(uint256,address)', [shares, receiver])

    @staticmethod
    def encode_withdraw(assets: int, receiver: str, owner: str) -> bytes:
        return EncodingHelper.encode_call('withdraw(uint256,address,address)', [assets, receiver, owner])

    @staticmethod
    def encode_redeem(shares: int, receiver: str, owner: str) -> bytes:
        return EncodingHelper.encode_call('redeem(uint256,address,address)', [shares, receiver, owner])

    @staticmethod
    def encode_approve(spender: str, amount: int) -> bytes:
        return EncodingHelper.encode_call('approve(address,uint256)', [spender, amount])

    @staticmethod
    def decode_uint256(data: bytes) -> int:
        return decode(['uint256'], data)[0]

    @staticmethod
    def decode_address(data: bytes) -> str:
        return decode(['address'], data)[0].lower()

    @staticmethod
    def bytes_to_hex(data: bytes) -> str:
        """Convert bytes to hex string with 0x prefix."""
        return '0x' + bytes(data).hex()
