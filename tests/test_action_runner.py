import json
import os

import pytest

import action_runner
from action_runner import ActionRunner
from conftest import ONE, FakeWeb3Helper
from vault_utils.config import Settings
from vault_utils.encoding import EncodingHelper

SCENARIO_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'scenarios')


@pytest.fixture
def deployed(token, vault, alice, bob, fund, deposit_into_vault):
    deposit_into_vault(user=alice, assets=100 * ONE)
    fund(alice, 50 * ONE)
    token.mint(bob, 20 * ONE)
    return vault


def make_runner(vault, account_address=None, env=None):
    helpers = []

    def factory(network):
        helper = FakeWeb3Helper(vault, account_address)
        helper.network = network
        helpers.append(helper)
        return helper

    runner = ActionRunner(settings=Settings(env=env or {}), helper_factory=factory)
    return runner, helpers


def test_list_networks(capsys):
    runner = ActionRunner(settings=Settings(env={'PROJECT_ID': 'pid'}))
    assert runner.list_networks()

    out = capsys.readouterr().out
    assert 'http://127.0.0.1:8545' in out
    assert 'https://sepolia.infura.io/v3/pid' in out


def test_list_networks_without_project_id(capsys):
    assert ActionRunner(settings=Settings(env={})).list_networks()
    assert 'PROJECT_ID must be set' in capsys.readouterr().out


def test_show_config(capsys):
    runner = ActionRunner(settings=Settings(env={'PRIVATE_KEY': '0x' + 'ab' * 32}))
    assert runner.show_config()

    out = capsys.readouterr().out
    assert 'ab' * 32 not in out
    assert 'ETHERSCAN_API_KEY' in out


def test_simulate_scenario_file(capsys):
    runner = ActionRunner(settings=Settings(env={}))
    assert runner.simulate(os.path.join(SCENARIO_DIR, 'deposit_redeem.json'))

    out = capsys.readouterr().out
    assert '✓ [0] alice deposit 100.000000' in out
    assert '✓ [1] alice redeem 40.000000' in out
    assert '940.000000' in out


def test_simulate_failing_scenario(tmp_path, capsys):
    path = tmp_path / 'overdraw.json'
    path.write_text(json.dumps({
        'accounts': {'alice': '10'},
        'steps': [{'action': 'redeem', 'account': 'alice', 'amount': '1'}],
    }))

    assert not ActionRunner(settings=Settings(env={})).simulate(str(path))
    assert '✗ [0] alice redeem' in capsys.readouterr().out


def test_simulate_missing_file(tmp_path, capsys):
    assert not ActionRunner(settings=Settings(env={})).simulate(str(tmp_path / 'missing.json'))
    assert 'Invalid scenario' in capsys.readouterr().out


def test_vault_state(deployed, capsys):
    runner, helpers = make_runner(deployed)
    assert runner.vault_state('localhost', deployed.address)

    out = capsys.readouterr().out
    assert 'Total Assets:         100.000000' in out
    assert '✓ totalAssets() matches' in out
    assert 'Price Per Share:      1.000000' in out
    assert helpers[0].network.name == 'localhost'


def test_vault_state_bad_inputs(deployed, capsys):
    runner, _ = make_runner(deployed)
    assert not runner.vault_state('localhost', '0x1234')
    assert not runner.vault_state('mainnet', deployed.address)
    assert capsys.readouterr().out.count('Validation error') == 2


def test_account_details(deployed, alice, capsys):
    runner, _ = make_runner(deployed)
    assert runner.account_details('localhost', deployed.address, alice)

    out = capsys.readouterr().out
    assert 'Shares:               100.000000' in out
    assert 'Asset Balance:        50.000000' in out


def test_preview(deployed, capsys):
    runner, _ = make_runner(deployed)
    assert runner.preview('localhost', deployed.address, 'previewMint', str(10 * ONE))
    assert f'previewMint({10 * ONE}) = {deployed.preview_mint(10 * ONE)}' in capsys.readouterr().out


def test_preview_rejects_unknown_function(deployed):
    runner, _ = make_runner(deployed)
    assert not runner.preview('localhost', deployed.address, 'previewBorrow', '1')


def test_sim_deposit_leaves_deployed_vault_alone(deployed, alice, capsys):
    runner, helpers = make_runner(deployed)
    snapshot = deployed.snapshot()

    assert runner.vault_action('deposit', 'sim', 'localhost', deployed.address, str(10 * ONE), sender_address=alice)

    out = capsys.readouterr().out
    assert '✓ Deposit of 10.000000 would mint 10.000000 shares' in out
    assert deployed.snapshot() == snapshot
    assert helpers[0].sent == []


def test_sim_redeem_beyond_balance(deployed, bob, capsys):
    runner, _ = make_runner(deployed)

    assert not runner.vault_action('redeem', 'sim', 'localhost', deployed.address, '1', sender_address=bob)
    assert '✗ Vault rejected redeem' in capsys.readouterr().out


def test_sim_requires_sender(deployed, capsys):
    runner, _ = make_runner(deployed)
    assert not runner.vault_action('deposit', 'sim', 'localhost', deployed.address, '1')
    assert '--sender is required' in capsys.readouterr().out


def test_exec_deposit_sends_transaction(deployed, alice, monkeypatch):
    monkeypatch.setattr('builtins.input', lambda _: 'y')
    runner, helpers = make_runner(deployed, account_address=alice)

    assert runner.vault_action('deposit', 'exec', 'localhost', deployed.address, str(5 * ONE))

    # alice already approved the vault, so only the deposit is sent
    assert helpers[0].sent == [(deployed.address, EncodingHelper.encode_deposit(5 * ONE, alice))]


def test_exec_mint_approves_first(deployed, bob, monkeypatch):
    monkeypatch.setattr('builtins.input', lambda _: 'y')
    runner, helpers = make_runner(deployed, account_address=bob)

    assert runner.vault_action('mint', 'exec', 'localhost', deployed.address, str(ONE))

    sent = helpers[0].sent
    assert len(sent) == 2
    assert sent[0][0] == deployed.asset_token.address
    assert sent[1] == (deployed.address, EncodingHelper.encode_mint(ONE, bob))


def test_exec_redeem_for_owner(deployed, alice, bob, monkeypatch):
    monkeypatch.setattr('builtins.input', lambda _: 'y')
    runner, helpers = make_runner(deployed, account_address=bob)

    assert runner.vault_action('redeem', 'exec', 'localhost', deployed.address, '7', receiver=bob, owner=alice)
    assert helpers[0].sent == [(deployed.address, EncodingHelper.encode_redeem(7, bob, alice))]


def test_exec_cancelled(deployed, alice, monkeypatch, capsys):
    monkeypatch.setattr('builtins.input', lambda _: 'n')
    runner, helpers = make_runner(deployed, account_address=alice)

    assert not runner.vault_action('withdraw', 'exec', 'localhost', deployed.address, '1')
    assert helpers[0].sent == []
    assert 'Transaction cancelled by user.' in capsys.readouterr().out


def test_exec_sender_must_be_signing_account(deployed, alice, bob, monkeypatch):
    monkeypatch.setattr('builtins.input', lambda _: 'y')
    runner, helpers = make_runner(deployed, account_address=alice)

    assert not runner.vault_action('deposit', 'exec', 'localhost', deployed.address, '1', sender_address=bob)
    assert helpers[0].sent == []


def test_main_without_action():
    with pytest.raises(SystemExit) as e:
        action_runner.main([])
    assert e.value.code == 1


def test_main_simulate():
    with pytest.raises(SystemExit) as e:
        action_runner.main(['simulate', os.path.join(SCENARIO_DIR, 'mint_withdraw.json')])
    assert e.value.code == 0


def test_main_list_networks():
    with pytest.raises(SystemExit) as e:
        action_runner.main(['list-networks'])
    assert e.value.code == 0
