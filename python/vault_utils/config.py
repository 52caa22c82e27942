import os
from dataclasses import dataclass
from typing import Dict, List, Optional

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when a network or credential cannot be resolved from the environment."""
    pass


@dataclass(frozen=True)
class NetworkConfig:
    name: str
    url: str
    chain_id: int
    private_key: Optional[str] = None

    @property
    def has_account(self) -> bool:
        return bool(self.private_key)


# name -> (chain id, endpoint template); hosted endpoints take the Infura project id
NETWORKS: Dict[str, tuple] = {
    'localhost': (31337, 'http://127.0.0.1:8545'),
    'kovan': (42, 'https://kovan.infura.io/v3/{project_id}'),
    'goerli': (5, 'https://goerli.infura.io/v3/{project_id}'),
    'sepolia': (11155111, 'https://sepolia.infura.io/v3/{project_id}'),
    'optimism': (10, 'https://optimism-mainnet.infura.io/v3/{project_id}'),
    'arbitrum': (42161, 'https://arbitrum-mainnet.infura.io/v3/{project_id}'),
}

LOCAL_NETWORKS = ('localhost',)


class Settings:
    """Credentials and endpoints read from the environment (and `.env`)."""

    def __init__(self, env: Optional[Dict[str, str]] = None, dotenv_path: Optional[str] = None):
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ
        self.project_id = env.get('PROJECT_ID') or None
        self.private_key = env.get('PRIVATE_KEY') or None
        self.etherscan_api_key = env.get('ETHERSCAN_API_KEY') or None
        self.rpc_url = env.get('RPC_URL') or None

    @staticmethod
    def list_networks() -> List[str]:
        return list(NETWORKS.keys())

    def get_network(self, name: str) -> NetworkConfig:
        """Resolve endpoint, chain id and signing key for a named network."""
        if name not in NETWORKS:
            raise ConfigError(f"Unknown network {name}, expected one of {self.list_networks()}")

        chain_id, template = NETWORKS[name]
        if self.rpc_url:
            url = self.rpc_url
        elif '{project_id}' in template:
            if not self.project_id:
                raise ConfigError(f"PROJECT_ID must be set to reach {name}")
            url = template.format(project_id=self.project_id)
        else:
            url = template

        # Local nodes sign with their own unlocked accounts
        private_key = None if name in LOCAL_NETWORKS else self.private_key
        return NetworkConfig(name=name, url=url, chain_id=chain_id, private_key=private_key)

    def masked(self) -> Dict[str, str]:
        """Presence of each setting, without revealing secrets."""
        def mask(value: Optional[str]) -> str:
            if not value:
                return '<unset>'
            return value[:4] + '...' if len(value) > 8 else '***'

        return {
            'PROJECT_ID': mask(self.project_id),
            'PRIVATE_KEY': mask(self.private_key),
            'ETHERSCAN_API_KEY': mask(self.etherscan_api_key),
            'RPC_URL': self.rpc_url or '<unset>',
        }
