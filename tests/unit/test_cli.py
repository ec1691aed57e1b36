"""
Unit tests for the gemledger command line interface.
"""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner

from cli.config import ConfigurationManager
from cli.main import cli


MINT_ARGS = [
    'asset', 'mint',
    '--caller', 'ST1TEST',
    '--category', 'fungible-batch',
    '--origin', 'MineB',
    '--certification', 'Cert2',
    '--location', 'LocY',
    '--unit', 'Gram',
    '--quantity', '100',
    '--owner', 'ST3OWNER',
    '--min-quantity', '50',
    '--max-quantity', '500',
]


@pytest.fixture(autouse=True)
def reset_cli_loggers():
    yield
    for name in ('gemledger-cli', 'ledger'):
        logger = logging.getLogger(name)
        logger.handlers = []
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "gemledger.yml"
    path.write_text(yaml.safe_dump({'cli': {'output_format': 'json'}}))
    return str(path)


@pytest.fixture
def run(tmp_path, config_file):
    """Invoke the CLI against a temporary ledger directory."""
    runner = CliRunner()
    data_dir = str(tmp_path / "data")

    def _run(*args, env=None):
        return runner.invoke(cli, ['-c', config_file, '-d', data_dir, *args], env=env or {})
    return _run


def bootstrap(run):
    assert run('config', 'set-fee-recipient', 'ST2TEST', '--caller', 'ST0ADMIN').exit_code == 0
    assert run('account', 'fund', 'ST1TEST', '10000').exit_code == 0


class TestLedgerCommands:
    """Test lifecycle commands end to end."""

    def test_mint_show_and_count(self, run):
        bootstrap(run)

        result = run(*MINT_ARGS)
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {'asset_id': 0}

        record = json.loads(run('asset', 'show', '0').output)
        assert record['owner'] == 'ST3OWNER'
        assert record['category'] == 'fungible-batch'
        assert record['metadata']['unit'] == 'Gram'

        assert json.loads(run('asset', 'count').output) == {'count': 1}
        exists = json.loads(run('asset', 'exists', 'fungible-batch').output)
        assert exists['has_assets'] is True

    def test_state_persists_between_invocations(self, run):
        bootstrap(run)
        run(*MINT_ARGS)

        result = run('asset', 'transfer', '0', 'ST4BUYER', '--caller', 'ST3OWNER')
        assert result.exit_code == 0, result.output

        balance = json.loads(run('account', 'balance', 'ST4BUYER').output)
        assert balance['fungible_balance'] == 100
        assert balance['assets_owned'] == [0]

        stats = json.loads(run('ledger', 'stats').output)
        assert stats['total_assets'] == 1
        assert stats['fees_collected'] == 500

    def test_update_and_history(self, run):
        bootstrap(run)
        run(*MINT_ARGS)

        result = run('asset', 'update', '0', '--caller', 'ST1TEST',
                     '--origin', 'MineC', '--certification', 'Cert3', '--quantity', '120')
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)['quantity'] == 120

        history = json.loads(run('asset', 'history', '0').output)
        assert history[0]['updated_origin'] == 'MineC'

    def test_ledger_error_exit_code(self, run):
        result = run('-o', 'table', *MINT_ARGS)

        assert result.exit_code == 1
        assert "Error [124]" in result.output

    def test_ledger_error_as_json(self, run):
        result = run(*MINT_ARGS)

        assert result.exit_code == 1
        assert '"error": "FeeNotConfiguredError"' in result.output
        assert '"code": 124' in result.output
        assert '"kind": "authorization"' in result.output

    def test_unauthorized_transfer(self, run):
        bootstrap(run)
        run(*MINT_ARGS)

        result = run('-o', 'table', 'asset', 'transfer', '0', 'ST4BUYER', '--caller', 'ST9OTHER')
        assert result.exit_code == 1
        assert "Error [100]" in result.output

    def test_config_changes_need_the_administrator(self, run):
        bootstrap(run)

        result = run('config', 'set-fee', '0')
        assert result.exit_code != 0
        assert "--caller" in result.output

        result = run('-o', 'table', 'config', 'set-fee', '0', '--caller', 'ST9OTHER')
        assert result.exit_code == 1
        assert "Error [100]" in result.output

        result = run('config', 'set-fee', '0', '--caller', 'ST0ADMIN')
        assert result.exit_code == 0, result.output
        assert json.loads(run('config', 'show').output)['mint_fee'] == 0

    def test_corrupt_ledger_file(self, run, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "ledger.json").write_text('{"height": "not-a-number"}')

        result = run('asset', 'count')
        assert result.exit_code == 1
        assert "Error: Stored ledger state is invalid" in result.output
        assert "Traceback" not in result.output

    def test_show_missing_asset(self, run):
        result = run('asset', 'show', '42')
        assert result.exit_code != 0
        assert "Asset 42 not found" in result.output

    def test_advance_and_verify(self, run):
        assert json.loads(run('ledger', 'advance', '--blocks', '3').output) == {'height': 3}

        result = run('ledger', 'verify')
        assert result.exit_code == 0
        assert json.loads(result.output)['status'] == 'ok'

    def test_backup_and_restore(self, run):
        bootstrap(run)
        assert run('ledger', 'backup').exit_code == 0
        run(*MINT_ARGS)

        timestamp = json.loads(run('ledger', 'backups').output)[0]
        result = run('ledger', 'restore', timestamp)
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)['assets'] == 0

    def test_table_output(self, run):
        result = run('-o', 'table', 'asset', 'count')
        assert result.exit_code == 0
        assert result.output.startswith("count")


class TestConfigCommands:
    """Test configuration loading through the CLI."""

    def test_environment_overrides_file(self, run):
        result = run('config', 'show', env={'GEMLEDGER_MINT_FEE': '42'})
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)['mint_fee'] == 42

        sources = json.loads(run('config', 'sources', env={'GEMLEDGER_MINT_FEE': '42'}).output)
        assert sources[0] == 'defaults'
        assert sources[-1] == 'environment'

    def test_invalid_configuration(self, run):
        result = run('config', 'show', env={'GEMLEDGER_CAPACITY_CEILING': '0'})
        assert result.exit_code != 0
        assert "capacity_ceiling" in result.output


class TestConfigurationManager:
    """Test hierarchical configuration loading."""

    def test_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        manager = ConfigurationManager(str(path), environ={})

        assert manager.get('ledger.mint_fee') == 500
        assert manager.get('ledger.history_limit') == 1
        assert manager.get('cli.output_format') == 'table'
        assert manager.get('missing.key', 'fallback') == 'fallback'
        assert manager.validate() == []

    def test_file_and_environment_precedence(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({'ledger': {'mint_fee': 100, 'administrator': 'ST0ADMIN'}}))
        manager = ConfigurationManager(str(path), environ={
            'GEMLEDGER_MINT_FEE': '250',
            'GEMLEDGER_ENFORCE_QUANTITY_BOUNDS': 'yes',
            'GEMLEDGER_CLI__OUTPUT_FORMAT': 'yaml',
            'UNRELATED': 'x',
        })

        settings = manager.ledger_settings()
        assert settings['mint_fee'] == 250
        assert settings['administrator'] == 'ST0ADMIN'
        assert settings['enforce_quantity_bounds'] is True
        assert manager.get('cli.output_format') == 'yaml'
        assert manager.get_sources() == ['defaults', f'file:{path}', 'environment']

    def test_missing_config_file(self, tmp_path):
        manager = ConfigurationManager(str(tmp_path / "absent.yml"), environ={})
        with pytest.raises(FileNotFoundError):
            manager.load()

    def test_validation_errors(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text(yaml.safe_dump({'ledger': {'mint_fee': -1}, 'cli': {'output_format': 'xml'}}))
        errors = ConfigurationManager(str(path), environ={}).validate()

        assert any("mint_fee" in e for e in errors)
        assert any("output format" in e for e in errors)

