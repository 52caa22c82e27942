import re

from vault_accounting.base_vault import PREVIEW_FUNCTIONS
from vault_accounting.share_math import MAX_UINT256
from vault_utils.config import NETWORKS


class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


class InputValidator:
    """Utility class for validating user inputs."""

    @staticmethod
    def validate_address(address: str) -> str:
        """Validate Ethereum address format."""
        if not isinstance(address, str):
            raise ValidationError("Address must be a string")

        if not re.match(r'^0x[a-fA-F0-9]{40}$', address):
            raise ValidationError(f"Invalid Ethereum address format: {address}")

        return address.lower()

    @staticmethod
    def validate_integer_amount(amount: str) -> int:
        """Validate a pre-scaled integer amount (base units)."""
        if isinstance(amount, bool):
            raise ValidationError(f"Invalid integer amount: {amount}")
        try:
            integer_amount = int(str(amount).strip())
        except ValueError:
            raise ValidationError(f"Invalid integer amount: {amount}")

        if integer_amount < 0:
            raise ValidationError("Amount cannot be negative")
        if integer_amount > MAX_UINT256:
            raise ValidationError("Amount does not fit in uint256")
        return integer_amount

    @staticmethod
    def validate_mode(mode: str) -> str:
        """Validate execution mode."""
        valid_modes = ['sim', 'exec']
        if mode not in valid_modes:
            raise ValidationError(f"Mode must be one of {valid_modes}, got: {mode}")
        return mode

    @staticmethod
    def validate_network(network: str) -> str:
        """Validate network name against the configured networks."""
        if network not in NETWORKS:
            raise ValidationError(f"Network must be one of {list(NETWORKS)}, got: {network}")
        return network

    @staticmethod
    def validate_preview_function(function: str) -> str:
        """Validate an ERC-4626 conversion or preview function name."""
        if function not in PREVIEW_FUNCTIONS:
            raise ValidationError(f"Function must be one of {list(PREVIEW_FUNCTIONS)}, got: {function}")
        return function
