from typing import Optional, Sequence

from web3 import Web3

from vault_utils.config import NetworkConfig
from vault_utils.encoding import EncodingHelper


class Web3Helper:
    """Helper class for Web3 operations."""

    def __init__(self, rpc_url: str, private_key: Optional[str] = None,
                 chain_id: Optional[int] = None, w3: Optional[Web3] = None):
        if not rpc_url and w3 is None:
            raise ValueError("An RPC URL must be provided")

        self.rpc_url = rpc_url
        self.private_key = private_key
        self.w3 = w3 or Web3(Web3.HTTPProvider(self.rpc_url))

        if not self.w3.is_connected():
            raise ConnectionError(f"Failed to connect to Web3 provider at {self.rpc_url}")

        self.chain_id = chain_id if chain_id is not None else self.w3.eth.chain_id

    @classmethod
    def from_network(cls, network: NetworkConfig) -> 'Web3Helper':
        return cls(network.url, private_key=network.private_key, chain_id=network.chain_id)

    @property
    def account_address(self) -> Optional[str]:
        """Address of the configured signing key, if any."""
        if not self.private_key:
            return None
        return self.w3.eth.account.from_key(self.private_key).address

    def get_contract_call(self, address: str, function_signature: str, args: Sequence = ()) -> bytes:
        """Make a contract call and return raw bytes."""
        data = EncodingHelper.encode_call(function_signature, args)
        checksum_address = Web3.to_checksum_address(address)

        result = self.w3.eth.call({
            'to': checksum_address,
            'data': EncodingHelper.bytes_to_hex(data)
        })

        return bytes(result)

    def call_uint(self, address: str, function_signature: str, args: Sequence = ()) -> int:
        return EncodingHelper.decode_uint256(self.get_contract_call(address, function_signature, args))

    def call_address(self, address: str, function_signature: str, args: Sequence = ()) -> str:
        return EncodingHelper.decode_address(self.get_contract_call(address, function_signature, args))

    def send_transaction(self, to: str, data: bytes) -> dict:
        """Sign `data` to `to` with the configured key, send it and wait for the receipt."""
        if not self.private_key:
            raise ValueError("PRIVATE_KEY must be set to send transactions")

        sender = self.account_address
        tx = {
            'from': sender,
            'to': Web3.to_checksum_address(to),
            'data': EncodingHelper.bytes_to_hex(data),
            'nonce': self.w3.eth.get_transaction_count(sender),
            'chainId': self.chain_id,
            'gasPrice': self.w3.eth.gas_price,
            'value': 0,
        }
        tx['gas'] = self.w3.eth.estimate_gas(tx)

        signed = self.w3.eth.account.sign_transaction(tx, self.private_key)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)

        if receipt['status'] != 1:
            raise RuntimeError(f"Transaction {EncodingHelper.bytes_to_hex(tx_hash)} reverted")
        return dict(receipt)
