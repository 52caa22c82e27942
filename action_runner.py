#!/usr/bin/env python3
"""
Action Runner - command line front end for ERC-4626 share vaults.

Replays vault scenarios offline, reads deployed vaults, previews
conversions and runs deposit/mint/withdraw/redeem either as an offline
simulation against a mirror of the deployed vault or as a signed
transaction.
"""

import argparse
import os
import sys
from decimal import InvalidOperation
from typing import Optional
from dotenv import load_dotenv

# Load .env file from the root directory
load_dotenv()

# Add the python directory to Python path for imports
python_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'python')
sys.path.insert(0, python_dir)

from vault_accounting.base_vault import PREVIEW_FUNCTIONS
from vault_accounting.errors import VaultError
from vault_accounting.onchain_vault import OnchainVault
from vault_accounting.scenario import SHARE_ACTIONS, Scenario
from vault_accounting.share_math import MAX_UINT256
from vault_utils.config import ConfigError, Settings
from vault_utils.encoding import EncodingHelper
from vault_utils.units import format_units
from vault_utils.validation import InputValidator, ValidationError
from vault_utils.web3_helper import Web3Helper

VAULT_ACTIONS = ('deposit', 'mint', 'withdraw', 'redeem')


class ActionRunner:
    """Main class for running vault actions."""

    def __init__(self, settings: Optional[Settings] = None, helper_factory=None):
        self.settings = settings or Settings(os.environ)
        self._helper_factory = helper_factory or Web3Helper.from_network
        self._helpers = {}

    def _connect(self, network_name: str) -> Web3Helper:
        """Web3 helper for a named network, created once per run."""
        network_name = InputValidator.validate_network(network_name)
        if network_name not in self._helpers:
            network = self.settings.get_network(network_name)
            self._helpers[network_name] = self._helper_factory(network)
        return self._helpers[network_name]

    def list_networks(self) -> bool:
        """Print configured networks."""
        print("=" * 60)
        print(f"{'Network':15} {'Chain ID':>10}  Endpoint")
        print("=" * 60)
        for name in self.settings.list_networks():
            try:
                network = self.settings.get_network(name)
                print(f"{name:15} {network.chain_id:>10}  {network.url}")
            except ConfigError as e:
                print(f"{name:15} {'-':>10}  ({e})")
        print("=" * 60)
        return True

    def show_config(self) -> bool:
        """Print which settings are present, secrets masked."""
        print("=" * 60)
        for key, value in self.settings.masked().items():
            print(f"{key:20} {value}")
        print("=" * 60)
        return True

    def simulate(self, scenario_path: str) -> bool:
        """Replay a scenario file against a fresh in-memory vault."""
        try:
            scenario = Scenario.from_file(scenario_path)
            print(f"Simulating {len(scenario.steps)} steps from {scenario_path}")

            results = scenario.run()
            asset_decimals, share_decimals = scenario.vault.get_decimals()

            for outcome in results:
                decimals = share_decimals if outcome.action in SHARE_ACTIONS else asset_decimals
                amount = format_units(outcome.amount, decimals)
                if outcome.ok:
                    print(f"✓ [{outcome.index}] {outcome.account} {outcome.action} {amount}"
                          + (f" -> {outcome.result}" if outcome.result is not None else ""))
                else:
                    print(f"✗ [{outcome.index}] {outcome.account} {outcome.action} {amount}: {outcome.error}")

                for name, balance in outcome.balances.items():
                    print(f"    {name:12} assets {format_units(balance['assets'], asset_decimals):>24}"
                          f"  shares {format_units(balance['shares'], share_decimals):>24}")
                print(f"    {'vault':12} assets {format_units(outcome.total_assets, asset_decimals):>24}"
                      f"  shares {format_units(outcome.total_supply, share_decimals):>24}")

            return all(outcome.ok for outcome in results)

        except (OSError, ValueError, KeyError, InvalidOperation) as e:
            print(f"Invalid scenario: {e}")
            return False

    def vault_state(self, network: str, vault_address: str) -> bool:
        """Display totals, decimals and the asset-balance invariant of a deployed vault."""
        try:
            vault_address = InputValidator.validate_address(vault_address)
            vault = OnchainVault(vault_address, self._connect(network))

            asset_decimals, vault_share_decimals = vault.get_decimals()
            holds, total_assets, held = vault.check_asset_invariant()
            total_supply = vault.total_supply()

            print("=" * 60)
            print("VAULT STATE")
            print("=" * 60)
            print(f"Vault Address:        {vault_address}")
            print(f"Asset Address:        {vault.asset()}")
            print(f"Asset Decimals:       {asset_decimals}")
            print(f"Vault Share Decimals: {vault_share_decimals}")
            print(f"Total Assets:         {format_units(total_assets, asset_decimals)}")
            print(f"Total Supply:         {format_units(total_supply, vault_share_decimals)}")
            print(f"Asset Balance Held:   {format_units(held, asset_decimals)}")
            print(f"Price Per Share:      {format_units(vault.price_per_share(), asset_decimals)}")
            print("=" * 60)

            if holds:
                print("✓ totalAssets() matches the vault's asset balance")
            else:
                print("✗ totalAssets() differs from the vault's asset balance")
            return holds

        except (ValidationError, ConfigError) as e:
            print(f"Validation error: {e}")
            return False
        except Exception as e:
            print(f"Unexpected error: {e}")
            return False

    def account_details(self, network: str, vault_address: str, account_address: str) -> bool:
        """Display an account's shares and what they are worth."""
        try:
            vault_address = InputValidator.validate_address(vault_address)
            account_address = InputValidator.validate_address(account_address)
            vault = OnchainVault(vault_address, self._connect(network))

            asset_decimals, vault_share_decimals = vault.get_decimals()
            shares = vault.balance_of(account_address)

            print("=" * 60)
            print(f"ACCOUNT {account_address}")
            print("=" * 60)
            print(f"Shares:               {format_units(shares, vault_share_decimals)}")
            print(f"Share Value:          {format_units(vault.convert_to_assets(shares), asset_decimals)}")
            print(f"Max Withdraw:         {format_units(vault.max_withdraw(account_address), asset_decimals)}")
            print(f"Max Redeem:           {format_units(vault.max_redeem(account_address), vault_share_decimals)}")
            print(f"Asset Balance:        {format_units(vault.asset_balance_of(account_address), asset_decimals)}")
            print("=" * 60)
            return True

        except (ValidationError, ConfigError) as e:
            print(f"Validation error: {e}")
            return False
        except Exception as e:
            print(f"Unexpected error: {e}")
            return False

    def preview(self, network: str, vault_address: str, function: str, amount: str) -> bool:
        """Call one of the ERC-4626 conversion or preview functions."""
        try:
            vault_address = InputValidator.validate_address(vault_address)
            function = InputValidator.validate_preview_function(function)
            amount_integer = InputValidator.validate_integer_amount(amount)
            vault = OnchainVault(vault_address, self._connect(network))

            result = vault.preview(function, amount_integer)
            print(f"{function}({amount_integer}) = {result}")
            return True

        except (ValidationError, ConfigError) as e:
            print(f"Validation error: {e}")
            return False
        except Exception as e:
            print(f"Unexpected error: {e}")
            return False

    def vault_action(self, action: str, mode: str, network: str, vault_address: str, amount: str,
                     receiver: Optional[str] = None, owner: Optional[str] = None,
                     sender_address: Optional[str] = None) -> bool:
        """Run deposit, mint, withdraw or redeem as a simulation or a transaction."""
        try:
            if action not in VAULT_ACTIONS:
                raise ValidationError(f"Action must be one of {list(VAULT_ACTIONS)}, got: {action}")
            mode = InputValidator.validate_mode(mode)
            vault_address = InputValidator.validate_address(vault_address)
            amount_integer = InputValidator.validate_integer_amount(amount)

            helper = self._connect(network)
            sender = sender_address or helper.account_address
            if not sender:
                raise ValidationError("--sender is required when no PRIVATE_KEY is configured")
            sender = InputValidator.validate_address(sender)
            receiver = InputValidator.validate_address(receiver) if receiver else sender
            owner = InputValidator.validate_address(owner) if owner else sender

            vault = OnchainVault(vault_address, helper)
            asset_decimals, vault_share_decimals = vault.get_decimals()
            amount_decimals = vault_share_decimals if action in ('mint', 'redeem') else asset_decimals

            value_config = {
                f'{action}_amount': {'value': amount_integer, 'decimals': amount_decimals},
            }
            if not self._display_and_confirm_values(value_config, mode):
                print("Transaction cancelled by user.")
                return False

            if mode == 'sim':
                return self._simulate_action(vault, action, amount_integer, sender, receiver, owner)
            return self._execute_action(vault, action, amount_integer, sender, receiver, owner)

        except (ValidationError, ConfigError) as e:
            print(f"Validation error: {e}")
            return False
        except VaultError as e:
            print(f"✗ Vault rejected {action}: {e}")
            return False
        except Exception as e:
            print(f"Unexpected error: {e}")
            return False

    def _simulate_action(self, vault: OnchainVault, action: str, amount: int,
                         sender: str, receiver: str, owner: str) -> bool:
        """Apply the action to a local mirror of the deployed vault."""
        local = vault.to_local(sender, owner)
        asset_decimals, vault_share_decimals = local.get_decimals()

        if action == 'deposit':
            result = local.deposit(amount, receiver, sender=sender)
            print(f"✓ Deposit of {format_units(amount, asset_decimals)} would mint "
                  f"{format_units(result, vault_share_decimals)} shares")
        elif action == 'mint':
            result = local.mint(amount, receiver, sender=sender)
            print(f"✓ Mint of {format_units(amount, vault_share_decimals)} shares would cost "
                  f"{format_units(result, asset_decimals)} assets")
        elif action == 'withdraw':
            result = local.withdraw(amount, receiver, owner, sender=sender)
            print(f"✓ Withdraw of {format_units(amount, asset_decimals)} would burn "
                  f"{format_units(result, vault_share_decimals)} shares")
        else:
            result = local.redeem(amount, receiver, owner, sender=sender)
            print(f"✓ Redeem of {format_units(amount, vault_share_decimals)} shares would pay "
                  f"{format_units(result, asset_decimals)} assets")

        print(f"Owner shares after:   {format_units(local.balance_of(owner), vault_share_decimals)}")
        print(f"Vault total assets:   {format_units(local.total_assets(), asset_decimals)}")
        print(f"Vault total supply:   {format_units(local.total_supply(), vault_share_decimals)}")
        return True

    def _execute_action(self, vault: OnchainVault, action: str, amount: int,
                        sender: str, receiver: str, owner: str) -> bool:
        """Sign and send the action, approving the asset first when needed."""
        helper = vault.web3_helper
        if not helper.account_address or helper.account_address.lower() != sender:
            raise ValidationError("exec mode sends from the PRIVATE_KEY account; --sender must match it or be omitted")

        if action in ('deposit', 'mint'):
            needed = amount if action == 'deposit' else vault.preview_mint(amount)
            if vault.asset_allowance(sender) < needed:
                print("Approving vault to pull the asset...")
                to, data = vault.build_approve_call(MAX_UINT256)
                helper.send_transaction(to, data)

        if action == 'deposit':
            to, data = vault.build_deposit_call(amount, receiver)
        elif action == 'mint':
            to, data = vault.build_mint_call(amount, receiver)
        elif action == 'withdraw':
            to, data = vault.build_withdraw_call(amount, receiver, owner)
        else:
            to, data = vault.build_redeem_call(amount, receiver, owner)

        print(f"Call data: {EncodingHelper.bytes_to_hex(data)}")
        receipt = helper.send_transaction(to, data)
        tx_hash = receipt.get('transactionHash')
        print(f"✓ {action.title()} confirmed in block {receipt.get('blockNumber')}"
              + (f" ({EncodingHelper.bytes_to_hex(tx_hash)})" if tx_hash is not None else ""))
        return True

    def _display_and_confirm_values(self, value_config: dict, mode: str) -> bool:
        """Display human-readable values and confirm with user for exec mode."""
        print("=" * 60)
        print("TRANSACTION PARAMETERS IN HUMAN READABLE PRECISION")
        print("=" * 60)
        for name, config in value_config.items():
            human_value = format_units(config['value'], config['decimals'])
            print(f"{name.replace('_', ' ').title():30} {human_value:>20}")
        print("=" * 60)

        # Confirmation prompt for exec mode
        if mode == 'exec':
            response = input("Proceed with these values? (y/N): ").strip().lower()
            return response == 'y'

        return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='ERC-4626 share vault action runner')
    subparsers = parser.add_subparsers(dest='action', help='Available actions')

    subparsers.add_parser('list-networks', help='List configured networks')
    subparsers.add_parser('show-config', help='Show which settings are present (secrets masked)')

    simulate_parser = subparsers.add_parser('simulate', help='Replay a scenario file against an in-memory vault')
    simulate_parser.add_argument('scenario', help='Path to a scenario JSON file')

    state_parser = subparsers.add_parser('vault-state', help='Show totals and asset invariant of a deployed vault')
    state_parser.add_argument('network', help='Network name')
    state_parser.add_argument('vault_address', help='Vault contract address')

    account_parser = subparsers.add_parser('account-details', help='Show an account position in a deployed vault')
    account_parser.add_argument('network', help='Network name')
    account_parser.add_argument('vault_address', help='Vault contract address')
    account_parser.add_argument('account_address', help='Account address to query')

    preview_parser = subparsers.add_parser('preview', help='Call a conversion or preview function')
    preview_parser.add_argument('network', help='Network name')
    preview_parser.add_argument('vault_address', help='Vault contract address')
    preview_parser.add_argument('function', choices=list(PREVIEW_FUNCTIONS), help='Function to call')
    preview_parser.add_argument('amount', help='Amount (integer, pre-scaled)')

    for action in VAULT_ACTIONS:
        unit = 'shares' if action in ('mint', 'redeem') else 'assets'
        action_parser = subparsers.add_parser(action, help=f'{action.title()} against a deployed vault')
        action_parser.add_argument('mode', choices=['sim', 'exec'], help='Execution mode')
        action_parser.add_argument('network', help='Network name')
        action_parser.add_argument('vault_address', help='Vault contract address')
        action_parser.add_argument('amount', help=f'Amount of {unit} (integer, pre-scaled)')
        action_parser.add_argument('--receiver', help='Receiver address (defaults to sender)')
        if action in ('withdraw', 'redeem'):
            action_parser.add_argument('--owner', help='Share owner address (defaults to sender)')
        action_parser.add_argument('--sender', help='Sender address (for sim mode)')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.action:
        parser.print_help()
        sys.exit(1)

    try:
        runner = ActionRunner()

        if args.action == 'list-networks':
            success = runner.list_networks()

        elif args.action == 'show-config':
            success = runner.show_config()

        elif args.action == 'simulate':
            success = runner.simulate(args.scenario)

        elif args.action == 'vault-state':
            success = runner.vault_state(network=args.network, vault_address=args.vault_address)

        elif args.action == 'account-details':
            success = runner.account_details(
                network=args.network,
                vault_address=args.vault_address,
                account_address=args.account_address
            )

        elif args.action == 'preview':
            success = runner.preview(
                network=args.network,
                vault_address=args.vault_address,
                function=args.function,
                amount=args.amount
            )

        else:
            if args.mode == 'sim' and not args.sender and not runner.settings.private_key:
                print("Error: --sender is required for sim mode without PRIVATE_KEY")
                sys.exit(1)

            success = runner.vault_action(
                action=args.action,
                mode=args.mode,
                network=args.network,
                vault_address=args.vault_address,
                amount=args.amount,
                receiver=args.receiver,
                owner=getattr(args, 'owner', None),
                sender_address=args.sender
            )

        sys.exit(0 if success else 1)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
